"""
Entity lifecycle service: create / update / delete / status for one type.

Design notes
------------
- One ``EntityLifecycleService`` instance serves one entity type.  Everything
  that differs between types lives in its ``EntityDefinition`` (model,
  collection, slug source, blob fields, listing rules) plus the optional
  ``prepare`` / ``before_delete`` hooks a subclass overrides.
- Side effects are sequenced so the stored pointers never dangle:

  1. validate (slug, status transition) before touching the blob store;
  2. upload new blobs; if any upload fails, delete the ones written by this
     call and re-raise with the entity untouched;
  3. apply field changes and commit;
  4. only then delete the blobs the commit superseded, best-effort.

  A failed commit after a successful upload leaves the new blob orphaned
  and logged.  The commit might have landed server-side, so deleting the
  blob could break a row that now points at it.
- Deletes run in the opposite order: remove the record, commit, then
  delete its blobs best-effort.
- Public list reads go through the Redis cache-aside layer; the cache key
  is a digest of the full ``QueryPlan`` so every dimension that affects the
  result is encoded.  Any mutation purges the collection's keys.
"""
import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from content_api import lifecycle
from content_api.access import Caller
from content_api.cache import cache
from content_api.config import settings
from content_api.errors import ContentError, IllegalTransition, NotFound
from content_api.errors import ValidationFailed
from content_api.query_planner import ListingRules, PageResult, plan
from content_api.repository import SqlRepository
from content_api.responses import page_data, serialize_row
from content_api.slugs import SlugGenerator, slugify
from content_api.storage import (
    IMAGE,
    ContentStore,
    Locator,
    StoredObject,
    asset_object_path,
    content_object_path,
    looks_like_url,
    resolve_locator_from_url,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetField:
    """A binary blob (image) attached to an entity through a multipart part."""

    url_attr: str
    # Column holding the provider id, when the model keeps one next to the URL.
    locator_attr: str | None = None


@dataclass(frozen=True)
class Upload:
    data: bytes
    filename: str | None = None
    content_type: str | None = None


@dataclass(frozen=True)
class EntityDefinition:
    model: type
    label: str
    collection: str
    items_key: str
    listing: ListingRules
    slug_source: str | None = "title"
    has_content: bool = False
    assets: Mapping[str, AssetField] = field(default_factory=dict)
    required_assets: tuple[str, ...] = ()
    counts_views: bool = False
    serialize: Callable[[Any], dict] = serialize_row

    @property
    def machine(self) -> lifecycle.StatusMachine | None:
        return self.listing.machine


@dataclass
class _Staged:
    """Pending blob work for one mutation."""

    values: dict = field(default_factory=dict)
    fresh: list[StoredObject] = field(default_factory=list)
    retired: list[Locator] = field(default_factory=list)

    def retire(self, locator: Locator | None) -> None:
        if locator is not None:
            self.retired.append(locator)


def content_digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class EntityLifecycleService:
    def __init__(
        self,
        definition: EntityDefinition,
        repository: SqlRepository,
        store: ContentStore,
        clock: Callable = lifecycle.utcnow,
    ) -> None:
        self.definition = definition
        self.repository = repository
        self.store = store
        self.clock = clock
        self.slugs = (
            SlugGenerator(repository, definition.label, definition.slug_source)
            if definition.slug_source
            else None
        )

    @property
    def label(self) -> str:
        return self.definition.label

    def serialize(self, entity) -> dict:
        return self.definition.serialize(entity)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def prepare(self, values: dict, caller: Caller, entity=None) -> dict:
        """Adjust or validate incoming values; *entity* is None on create."""
        return values

    async def before_delete(self, entity) -> None:
        pass

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, entity_id: int):
        entity = await self.repository.get(entity_id)
        if entity is None:
            raise NotFound(self.label, entity_id)
        return entity

    def is_visible(self, entity, caller: Caller) -> bool:
        machine = self.definition.machine
        return machine is None or caller.is_elevated or entity.status in machine.public

    async def get_visible_by_slug(self, slug: str, caller: Caller):
        """
        Public fetch by slug.

        Entities the caller may not see answer ``NotFound`` exactly like
        missing ones.  Types that count views increment the counter here.
        """
        entity = await self.repository.get_by(slug=slug)
        if entity is None or not self.is_visible(entity, caller):
            raise NotFound(self.label, slug)
        if self.definition.counts_views:
            entity.views = (entity.views or 0) + 1
            await self.repository.commit()
            await self.repository.refresh(entity)
            await cache.invalidate_collection(self.definition.collection)
        return entity

    async def list_page(self, raw: Mapping[str, str], caller: Caller) -> PageResult:
        return await self.repository.find(plan(raw, caller, self.definition.listing))

    async def list_data(self, raw: Mapping[str, str], caller: Caller) -> dict:
        """
        Serialised list payload.  Public (non-elevated) reads are cached.
        """
        query_plan = plan(raw, caller, self.definition.listing)

        async def load() -> dict:
            result = await self.repository.find(query_plan)
            return page_data(self.definition.items_key, result, self.serialize)

        if caller.is_elevated:
            return await load()
        fingerprint = hashlib.sha1(repr(query_plan).encode("utf-8")).hexdigest()
        return await cache.remember(
            cache.list_key(self.definition.collection, fingerprint), settings.CACHE_TTL_LIST, load
        )

    async def status_counts(self) -> list[dict]:
        return await self.repository.grouped_counts("status")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(
        self, fields: Mapping[str, Any], caller: Caller, files: Mapping[str, Upload] | None = None
    ):
        files = files or {}
        for part in self.definition.required_assets:
            if part not in files:
                raise ValidationFailed.for_field(part, f"{part.capitalize()} file is required")

        values = await self.prepare(dict(fields), caller)
        requested = values.pop("status", None)
        if requested is not None:
            logger.info("%s create: requested status %r ignored", self.label, requested)
        content = values.pop("content", None) if self.definition.has_content else None

        if self.slugs is not None:
            values["slug"] = await self.slugs.generate(values.get(self.definition.slug_source))

        staged = await self._stage(values, content, files, entity=None)
        values.update(staged.values)
        if self.definition.machine is not None:
            values["status"] = self.definition.machine.initial

        entity = self.definition.model(**values)
        self.repository.add(entity)
        await self._persist(entity, staged.fresh)
        logger.info("%s %s created", self.label, entity.id)
        return entity

    async def update(
        self,
        entity_id: int,
        fields: Mapping[str, Any],
        caller: Caller,
        files: Mapping[str, Upload] | None = None,
    ):
        """
        Partial update.  Keys absent from *fields* keep their current value.
        """
        entity = await self.get(entity_id)
        values = await self.prepare(dict(fields), caller, entity)
        target = values.pop("status", None)
        content = values.pop("content", None) if self.definition.has_content else None

        if target is not None and not self._accepts_status(entity, target, caller):
            target = None

        source = self.definition.slug_source
        if self.slugs is not None and values.get(source) and values[source] != getattr(entity, source):
            values["slug"] = await self.slugs.generate(values[source], exclude_id=entity.id)

        staged = await self._stage(values, content, files or {}, entity=entity)
        values.update(staged.values)

        for name, value in values.items():
            setattr(entity, name, value)
        if target is not None:
            lifecycle.set_status(
                self.definition.machine, entity, target, caller, self.label, self.clock
            )

        await self._persist(entity, staged.fresh)
        await self._delete_blobs(staged.retired)
        logger.info("%s %s updated", self.label, entity.id)
        return entity

    async def delete(self, entity_id: int) -> None:
        entity = await self.get(entity_id)
        await self.before_delete(entity)
        locators = self._owned_locators(entity)

        await self.repository.remove(entity)
        await self.repository.commit()
        await cache.invalidate_collection(self.definition.collection)

        await self._delete_blobs(locators)
        logger.info("%s %s deleted", self.label, entity_id)

    async def delete_many(self, ids: list[int]) -> int:
        entities = await self.repository.get_many(ids)
        locators: list[Locator] = []
        for entity in entities:
            await self.before_delete(entity)
            locators.extend(self._owned_locators(entity))
            await self.repository.remove(entity)

        await self.repository.commit()
        await cache.invalidate_collection(self.definition.collection)

        await self._delete_blobs(locators)
        logger.info("%s bulk delete removed %d record(s)", self.label, len(entities))
        return len(entities)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def _machine(self) -> lifecycle.StatusMachine:
        machine = self.definition.machine
        if machine is None:
            raise TypeError(f"{self.label} has no status lifecycle")
        return machine

    async def toggle(self, entity_id: int, caller: Caller):
        entity = await self.get(entity_id)
        lifecycle.toggle(self._machine(), entity, caller, self.label, self.clock)
        await self._persist(entity)
        return entity

    async def set_status(self, entity_id: int, target: str, caller: Caller):
        entity = await self.get(entity_id)
        lifecycle.set_status(self._machine(), entity, target, caller, self.label, self.clock)
        await self._persist(entity)
        return entity

    async def archive(self, entity_id: int, caller: Caller):
        machine = self._machine()
        entity = await self.get(entity_id)
        if machine.archived is None:
            raise IllegalTransition(self.label, entity.status, "archived")
        lifecycle.set_status(machine, entity, machine.archived, caller, self.label, self.clock)
        await self._persist(entity)
        return entity

    def _accepts_status(self, entity, target: str, caller: Caller) -> bool:
        machine = self.definition.machine
        if machine is None:
            return False
        if not caller.can(machine.required):
            logger.warning(
                "Ignoring status %r on %s %s: role %s may not change status",
                target, self.label.lower(), entity.id, caller.role,
            )
            return False
        return lifecycle.check_transition(machine, entity.status, target, caller, self.label)

    # ------------------------------------------------------------------
    # Blob staging
    # ------------------------------------------------------------------

    async def _stage(self, values: dict, content, files: Mapping[str, Upload], entity) -> _Staged:
        staged = _Staged()
        try:
            if self.definition.has_content:
                await self._stage_content(staged, content, values, entity)
            await self._stage_assets(staged, files, values, entity)
        except ContentError:
            # Nothing references the blobs written so far.
            await self._delete_blobs([stored.locator for stored in staged.fresh])
            raise
        return staged

    async def _stage_content(self, staged: _Staged, content, values: dict, entity) -> None:
        if content is None or not str(content).strip():
            return
        text = str(content)
        current_url = entity.content_url if entity is not None else None

        if looks_like_url(text):
            url = text.strip()
            if url != current_url:
                staged.values["content_url"] = url
                staged.values["content_digest"] = None
                staged.retire(resolve_locator_from_url(current_url))
            return

        digest = content_digest(text)
        if entity is not None and current_url and entity.content_digest == digest:
            return

        slug = values.get("slug") or getattr(entity, "slug", None)
        stored = await self.store.upload(
            text, content_object_path(self.definition.collection, slug)
        )
        staged.fresh.append(stored)
        staged.values["content_url"] = stored.url
        staged.values["content_digest"] = digest
        staged.retire(resolve_locator_from_url(current_url))

    async def _stage_assets(
        self, staged: _Staged, files: Mapping[str, Upload], values: dict, entity
    ) -> None:
        for part, asset in self.definition.assets.items():
            upload = files.get(part)
            if upload is not None:
                stored = await self.store.upload(
                    upload.data,
                    asset_object_path(self.definition.collection, self._stem(values, entity)),
                    IMAGE,
                )
                staged.fresh.append(stored)
                staged.values[asset.url_attr] = stored.url
                if asset.locator_attr:
                    staged.values[asset.locator_attr] = stored.locator.public_id
                staged.retire(self._asset_locator(asset, entity))
            elif entity is not None and asset.url_attr in values:
                if values[asset.url_attr] != getattr(entity, asset.url_attr):
                    staged.retire(self._asset_locator(asset, entity))

    @staticmethod
    def _stem(values: dict, entity) -> str:
        name = (
            values.get("slug")
            or getattr(entity, "slug", None)
            or values.get("name")
            or getattr(entity, "name", None)
            or ""
        )
        return slugify(name)

    @staticmethod
    def _asset_locator(asset: AssetField, entity) -> Locator | None:
        if entity is None:
            return None
        if asset.locator_attr and getattr(entity, asset.locator_attr, None):
            return Locator(getattr(entity, asset.locator_attr), IMAGE)
        return resolve_locator_from_url(getattr(entity, asset.url_attr, None))

    def _owned_locators(self, entity) -> list[Locator]:
        locators = []
        if self.definition.has_content:
            locators.append(resolve_locator_from_url(entity.content_url))
        for asset in self.definition.assets.values():
            locators.append(self._asset_locator(asset, entity))
        return [locator for locator in locators if locator is not None]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _persist(self, entity, fresh: list[StoredObject] = ()) -> None:
        try:
            await self.repository.commit()
        except Exception:
            for stored in fresh:
                logger.warning(
                    "Orphaned upload %s: saving %s failed", stored.url, self.label.lower()
                )
            raise
        await self.repository.refresh(entity)
        await cache.invalidate_collection(self.definition.collection)

    async def _delete_blobs(self, locators: list[Locator]) -> None:
        for locator in locators:
            await self.store.delete(locator)
