"""
Service pages and the sections that group them.

A ``ServicePage`` always belongs to an existing ``ServiceSection``; the
section is checked on create and whenever ``section_id`` changes.  A
section that still has pages cannot be deleted.

Service pages keep an embedded FAQ list (JSON column).  Each FAQ gets a
short random id when added so it can be addressed later without relying
on list positions.
"""
import logging
import secrets

from content_api.access import Caller
from content_api.errors import Conflict, NotFound
from content_api.lifecycle import SECTION, SERVICE
from content_api.models import ServicePage, ServiceSection
from content_api.query_planner import ListingRules, SortKey
from content_api.repository import SqlRepository
from content_api.services.entity_service import EntityDefinition, EntityLifecycleService

logger = logging.getLogger(__name__)

SECTIONS = EntityDefinition(
    model=ServiceSection,
    label="Service section",
    collection="service-sections",
    items_key="sections",
    slug_source="name",
    listing=ListingRules(
        machine=SECTION,
        sorts={"order": (SortKey("order", descending=False), SortKey("created_at", descending=False))},
        default_sort="order",
        search_fields=("name",),
        allow_unpaginated=True,
    ),
)

SERVICES = EntityDefinition(
    model=ServicePage,
    label="Service",
    collection="services",
    items_key="services",
    has_content=True,
    listing=ListingRules(
        machine=SERVICE,
        sorts={
            "order": (SortKey("order", descending=False), SortKey("created_at")),
            "newest": (SortKey("created_at"),),
        },
        default_sort="order",
        search_fields=("title", "subtitle", "description"),
        exact_filters={"section_id": "section_id"},
        allow_unpaginated=True,
    ),
)


class ServiceSectionService(EntityLifecycleService):
    def __init__(self, repository, store, pages: SqlRepository, **kwargs) -> None:
        super().__init__(SECTIONS, repository, store, **kwargs)
        self.pages = pages

    async def before_delete(self, entity) -> None:
        if await self.pages.exists(section_id=entity.id):
            raise Conflict("Cannot delete a section that still has services")


class ServicePageService(EntityLifecycleService):
    def __init__(self, repository, store, sections: SqlRepository, **kwargs) -> None:
        super().__init__(SERVICES, repository, store, **kwargs)
        self.sections = sections

    async def prepare(self, values: dict, caller: Caller, entity=None) -> dict:
        section_id = values.get("section_id")
        if section_id is not None and (entity is None or section_id != entity.section_id):
            if not await self.sections.exists(id=section_id):
                raise NotFound("Service section", section_id)
        return values

    async def stats(self) -> dict:
        return {
            "statusStats": await self.status_counts(),
            "sectionStats": await self.repository.grouped_counts("section_id"),
        }

    # ------------------------------------------------------------------
    # FAQs
    # ------------------------------------------------------------------

    @staticmethod
    def _find_faq(faqs: list[dict], faq_id: str) -> int:
        for index, faq in enumerate(faqs):
            if faq.get("id") == faq_id:
                return index
        raise NotFound("FAQ", faq_id)

    async def _save_faqs(self, entity, faqs: list[dict]) -> None:
        # JSON columns are not mutation-tracked; assign a new list.
        entity.faqs = sorted(faqs, key=lambda faq: faq.get("order") or 0)
        await self._persist(entity)

    async def list_faqs(self, entity_id: int) -> list[dict]:
        entity = await self.get(entity_id)
        return list(entity.faqs or [])

    async def add_faq(self, entity_id: int, faq: dict) -> dict:
        entity = await self.get(entity_id)
        faqs = list(entity.faqs or [])
        item = {"id": secrets.token_hex(6), **faq}
        if item.get("order") is None:
            item["order"] = len(faqs)
        faqs.append(item)
        await self._save_faqs(entity, faqs)
        logger.info("FAQ %s added to service %s", item["id"], entity_id)
        return item

    async def update_faq(self, entity_id: int, faq_id: str, changes: dict) -> dict:
        entity = await self.get(entity_id)
        faqs = [dict(faq) for faq in entity.faqs or []]
        index = self._find_faq(faqs, faq_id)
        faqs[index].update(changes)
        item = faqs[index]
        await self._save_faqs(entity, faqs)
        return item

    async def delete_faq(self, entity_id: int, faq_id: str) -> None:
        entity = await self.get(entity_id)
        faqs = list(entity.faqs or [])
        del faqs[self._find_faq(faqs, faq_id)]
        await self._save_faqs(entity, faqs)
        logger.info("FAQ %s removed from service %s", faq_id, entity_id)
