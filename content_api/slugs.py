"""Slug derivation and per-collection uniqueness."""
import re

from content_api.errors import Conflict, ValidationFailed

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s]")
_SLUG_SPACE_RE = re.compile(r"\s+")


def slugify(title: str) -> str:
    """
    Return the slug for *title*: lower-cased, everything outside
    ``[a-z0-9]`` and whitespace removed, whitespace runs collapsed to a
    single hyphen.

    Hyphens already present in the title are removed, not kept, so
    ``"Re-Use"`` becomes ``"reuse"``.
    """
    text = _SLUG_STRIP_RE.sub("", title.lower()).strip()
    return _SLUG_SPACE_RE.sub("-", text)


class SlugGenerator:
    """
    Derives a slug and guarantees it is free within one collection.

    There is no suffixing: a title whose slug is taken is rejected with
    ``Conflict`` and the caller has to pick another title.
    """

    def __init__(self, repository, label: str, source_field: str = "title") -> None:
        self.repository = repository
        self.label = label
        self.source_field = source_field

    async def generate(self, title: str, exclude_id: int | None = None) -> str:
        slug = slugify(title or "")
        if not slug:
            raise ValidationFailed.for_field(
                self.source_field,
                f"{self.source_field.capitalize()} must contain at least one letter or digit",
            )
        if await self.repository.slug_taken(slug, exclude_id=exclude_id):
            raise Conflict(
                f"A {self.label.lower()} with this {self.source_field} already exists"
            )
        return slug
