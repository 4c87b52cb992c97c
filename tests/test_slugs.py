"""Slug derivation and the per-collection uniqueness check."""
import re

import pytest

from content_api.errors import Conflict, ValidationFailed
from content_api.slugs import SlugGenerator, slugify


class FakeRepository:
    def __init__(self, taken: dict[str, int]) -> None:
        self.taken = taken

    async def slug_taken(self, slug: str, exclude_id: int | None = None) -> bool:
        owner = self.taken.get(slug.lower())
        return owner is not None and owner != exclude_id


@pytest.mark.parametrize(
    "title, expected",
    [
        ("Intro to Testing!", "intro-to-testing"),
        ("Intro To Testing", "intro-to-testing"),
        ("  Hello   World  ", "hello-world"),
        ("Re-Use & Recycle", "reuse-recycle"),
        ("C++ in 2024", "c-in-2024"),
        ("Café déjà vu", "caf-dj-vu"),
        ("tabs\tand\nnewlines", "tabs-and-newlines"),
    ],
)
def test_slugify(title, expected):
    assert slugify(title) == expected


@pytest.mark.parametrize(
    "title",
    ["Intro to Testing!", "  --weird -- spacing--  ", "ALL CAPS 123", "émoji 🎉 title", "a  b   c"],
)
def test_slugify_output_alphabet(title):
    slug = slugify(title)
    assert slug == slug.lower()
    assert re.fullmatch(r"[a-z0-9-]*", slug)
    assert not slug.startswith("-") and not slug.endswith("-")


@pytest.mark.asyncio
async def test_generate_returns_free_slug():
    generator = SlugGenerator(FakeRepository({}), "Blog")
    assert await generator.generate("Intro to Testing!") == "intro-to-testing"


@pytest.mark.asyncio
async def test_generate_rejects_taken_slug():
    generator = SlugGenerator(FakeRepository({"intro-to-testing": 1}), "Blog")
    with pytest.raises(Conflict) as exc_info:
        await generator.generate("Intro To Testing")
    assert "already exists" in exc_info.value.message


@pytest.mark.asyncio
async def test_generate_excludes_the_entity_being_updated():
    generator = SlugGenerator(FakeRepository({"intro-to-testing": 7}), "Blog")
    assert await generator.generate("Intro to testing", exclude_id=7) == "intro-to-testing"


@pytest.mark.asyncio
async def test_generate_rejects_title_without_slug_characters():
    generator = SlugGenerator(FakeRepository({}), "Blog")
    with pytest.raises(ValidationFailed) as exc_info:
        await generator.generate("!!!")
    assert exc_info.value.errors[0]["field"] == "title"
