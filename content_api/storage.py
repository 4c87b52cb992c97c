"""
External blob store for large text bodies and binary assets.

The database only keeps the public delivery URL of each object.  Deleting
an object therefore starts by reverse-deriving the provider's id from that
URL (``resolve_locator_from_url``).

Two implementations share the ``ContentStore`` base:

- ``CloudinaryContentStore``: the production store.  The Cloudinary SDK is
  blocking, so calls run in Starlette's threadpool.
- ``InMemoryContentStore``: keeps objects in a dict and emits
  Cloudinary-shaped URLs; used for local runs and the test suite.

Uploads raise ``UploadFailed`` on any provider error.  Deletes never raise:
cleanup must not fail the request that triggered it, so errors are logged
and dropped.
"""
import io
import logging
import re
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import unquote, urlparse

import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from content_api.config import settings
from content_api.errors import UploadFailed

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_VERSION_RE = re.compile(r"^v\d+$")

RAW = "raw"
IMAGE = "image"


@dataclass(frozen=True)
class Locator:
    """Provider-side address of one stored object."""

    public_id: str
    resource_type: str = RAW


@dataclass(frozen=True)
class StoredObject:
    url: str
    locator: Locator


def looks_like_url(value: str | None) -> bool:
    """True when *value* already points somewhere (has a leading scheme)."""
    return bool(value) and bool(_SCHEME_RE.match(value.strip()))


def resolve_locator_from_url(url: str | None) -> Locator | None:
    """
    Reverse a delivery URL into the Locator needed to delete it.

    ``https://res.cloudinary.com/<cloud>/<type>/upload/[<transforms>/]v<n>/<id>``
    yields ``Locator(<id>, <type>)``.  Raw objects keep their extension as
    part of the id; images and videos do not.  URLs that do not follow this
    shape (e.g. a caller-supplied link to another host) resolve to None.
    """
    if not url:
        return None
    parsed = urlparse(url.strip())
    if not parsed.scheme or not parsed.path:
        return None

    segments = [unquote(s) for s in parsed.path.split("/") if s]
    if "upload" not in segments:
        return None
    upload_at = segments.index("upload")
    if upload_at == 0:
        return None
    resource_type = segments[upload_at - 1]
    rest = segments[upload_at + 1:]

    # Everything up to and including the version segment is delivery detail.
    for i, segment in enumerate(rest):
        if _VERSION_RE.match(segment):
            rest = rest[i + 1:]
            break
    if not rest:
        return None

    public_id = "/".join(rest)
    if resource_type != RAW:
        stem, dot, _ext = public_id.rpartition(".")
        if dot and "/" not in _ext:
            public_id = stem
    return Locator(public_id=public_id, resource_type=resource_type)


def content_object_path(collection: str, slug: str) -> str:
    """
    Object path for a text body.

    Every upload gets a fresh token so a replacement never overwrites the
    object it is about to supersede.
    """
    return f"content/{collection}/{slug}-content-{secrets.token_hex(4)}.md"


def asset_object_path(collection: str, stem: str) -> str:
    return f"images/{collection}/{stem or 'asset'}-{secrets.token_hex(4)}"


class ContentStore(ABC):
    """Common upload/delete contract with error policy applied once."""

    def __init__(self, root: str = "") -> None:
        self.root = root.strip("/")

    def _public_id(self, path: str) -> str:
        path = path.strip("/")
        return f"{self.root}/{path}" if self.root else path

    async def upload(
        self, content: bytes | str, path: str, resource_type: str = RAW
    ) -> StoredObject:
        data = content.encode("utf-8") if isinstance(content, str) else content
        public_id = self._public_id(path)
        try:
            stored = await self._put(data, public_id, resource_type)
        except UploadFailed:
            raise
        except Exception as exc:
            logger.error("Upload of %s (%s) failed: %s", public_id, resource_type, exc)
            raise UploadFailed() from exc
        logger.debug("Uploaded %s -> %s", public_id, stored.url)
        return stored

    async def delete(self, locator: Locator) -> None:
        try:
            await self._remove(locator)
        except Exception as exc:
            logger.warning(
                "Blob delete failed for %s (%s), leaving it orphaned: %s",
                locator.public_id, locator.resource_type, exc,
            )

    async def delete_url(self, url: str | None) -> None:
        """Best-effort delete of the object behind *url*."""
        locator = resolve_locator_from_url(url)
        if locator is None:
            if url:
                logger.debug("Skipping delete of foreign URL %r", url)
            return
        await self.delete(locator)

    @abstractmethod
    async def _put(self, data: bytes, public_id: str, resource_type: str) -> StoredObject:
        ...

    @abstractmethod
    async def _remove(self, locator: Locator) -> None:
        ...


class CloudinaryContentStore(ContentStore):
    def __init__(self, cloud_name: str, api_key: str, api_secret: str, root: str = "") -> None:
        super().__init__(root)
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
        }

    async def _put(self, data: bytes, public_id: str, resource_type: str) -> StoredObject:
        result = await run_in_threadpool(
            cloudinary.uploader.upload,
            io.BytesIO(data),
            public_id=public_id,
            resource_type=resource_type,
            overwrite=True,
            **self._credentials,
        )
        return StoredObject(
            url=result["secure_url"],
            locator=Locator(result.get("public_id", public_id), resource_type),
        )

    async def _remove(self, locator: Locator) -> None:
        result = await run_in_threadpool(
            cloudinary.uploader.destroy,
            locator.public_id,
            resource_type=locator.resource_type,
            invalidate=True,
            **self._credentials,
        )
        outcome = (result or {}).get("result")
        # "not found" is success for an idempotent delete.
        if outcome not in ("ok", "not found"):
            raise RuntimeError(f"unexpected destroy result {outcome!r}")


class InMemoryContentStore(ContentStore):
    """
    Dict-backed store producing Cloudinary-shaped URLs.

    ``fail_uploads`` / ``fail_deletes`` simulate provider outages, and
    ``events`` records every successful call in order.
    """

    def __init__(self, root: str = "", cloud_name: str = "local") -> None:
        super().__init__(root)
        self.cloud_name = cloud_name
        self.objects: dict[Locator, bytes] = {}
        self.events: list[tuple[str, str]] = []
        self.fail_uploads = False
        self.fail_deletes = False
        self._version = 0

    async def _put(self, data: bytes, public_id: str, resource_type: str) -> StoredObject:
        if self.fail_uploads:
            raise ConnectionError("blob store unavailable")
        self._version += 1
        locator = Locator(public_id, resource_type)
        self.objects[locator] = data
        self.events.append(("upload", public_id))
        url = (
            f"https://res.cloudinary.com/{self.cloud_name}/{resource_type}"
            f"/upload/v{self._version}/{public_id}"
        )
        return StoredObject(url=url, locator=locator)

    async def _remove(self, locator: Locator) -> None:
        if self.fail_deletes:
            raise ConnectionError("blob store unavailable")
        self.objects.pop(locator, None)
        self.events.append(("delete", locator.public_id))

    def exists(self, url: str) -> bool:
        locator = resolve_locator_from_url(url)
        return locator is not None and locator in self.objects

    def read(self, url: str) -> bytes:
        return self.objects[resolve_locator_from_url(url)]


def build_content_store() -> ContentStore:
    """Construct the store selected by ``CONTENT_STORE_BACKEND``."""
    backend = settings.CONTENT_STORE_BACKEND.lower()
    if backend == "memory":
        return InMemoryContentStore(root=settings.CONTENT_STORE_ROOT)
    if backend == "cloudinary":
        return CloudinaryContentStore(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            root=settings.CONTENT_STORE_ROOT,
        )
    raise ValueError(f"Unknown CONTENT_STORE_BACKEND {settings.CONTENT_STORE_BACKEND!r}")


_store: ContentStore | None = None


def get_content_store() -> ContentStore:
    """FastAPI dependency returning the process-wide store."""
    global _store
    if _store is None:
        _store = build_content_store()
    return _store
