"""Blob store adapter: locator parsing and the error policy."""
import pytest

from content_api.errors import UploadFailed
from content_api.storage import (
    IMAGE,
    RAW,
    InMemoryContentStore,
    Locator,
    content_object_path,
    looks_like_url,
    resolve_locator_from_url,
)


@pytest.mark.parametrize(
    "url, expected",
    [
        (
            "https://res.cloudinary.com/demo/raw/upload/v1712345678/ping-assignments/content/blogs/intro-content-ab12cd34.md",
            Locator("ping-assignments/content/blogs/intro-content-ab12cd34.md", RAW),
        ),
        (
            "https://res.cloudinary.com/demo/image/upload/v17/images/blogs/cover-1a2b.jpg",
            Locator("images/blogs/cover-1a2b", IMAGE),
        ),
        (
            "https://res.cloudinary.com/demo/image/upload/c_fill,w_300/v17/images/a%20b.png",
            Locator("images/a b", IMAGE),
        ),
        (
            "https://res.cloudinary.com/demo/image/upload/folder/photo.webp",
            Locator("folder/photo", IMAGE),
        ),
    ],
)
def test_resolve_locator_from_url(url, expected):
    assert resolve_locator_from_url(url) == expected


@pytest.mark.parametrize(
    "url",
    [None, "", "not a url", "https://example.com/articles/intro.md", "https://res.cloudinary.com/demo/raw/upload/v12"],
)
def test_resolve_locator_rejects_foreign_urls(url):
    assert resolve_locator_from_url(url) is None


@pytest.mark.parametrize(
    "value, expected",
    [("https://x.test/a.md", True), ("http://x", True), ("s3://bucket/key", True),
     ("# Heading\nbody", False), ("www.example.com", False), ("", False), (None, False)],
)
def test_looks_like_url(value, expected):
    assert looks_like_url(value) is expected


def test_content_paths_are_unique_per_upload():
    first = content_object_path("blogs", "intro")
    second = content_object_path("blogs", "intro")
    assert first.startswith("content/blogs/intro-content-")
    assert first.endswith(".md")
    assert first != second


@pytest.mark.asyncio
async def test_upload_then_resolve_round_trips_through_the_url():
    store = InMemoryContentStore(root="root")
    stored = await store.upload("# hi", "content/blogs/x.md")
    assert stored.locator == Locator("root/content/blogs/x.md", RAW)
    assert resolve_locator_from_url(stored.url) == stored.locator
    assert store.read(stored.url) == b"# hi"


@pytest.mark.asyncio
async def test_upload_failure_raises_upload_failed():
    store = InMemoryContentStore()
    store.fail_uploads = True
    with pytest.raises(UploadFailed):
        await store.upload(b"data", "images/x", IMAGE)
    assert store.objects == {}


@pytest.mark.asyncio
async def test_delete_is_idempotent_and_never_raises():
    store = InMemoryContentStore()
    stored = await store.upload("body", "content/a.md")

    await store.delete_url(stored.url)
    await store.delete_url(stored.url)
    assert not store.exists(stored.url)

    other = await store.upload("body", "content/b.md")
    store.fail_deletes = True
    await store.delete_url(other.url)
    assert store.exists(other.url)


@pytest.mark.asyncio
async def test_delete_of_foreign_url_is_skipped():
    store = InMemoryContentStore()
    await store.delete_url("https://example.com/somewhere.md")
    assert store.events == []
