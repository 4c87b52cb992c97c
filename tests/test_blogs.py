"""End-to-end tests for the /api/v1/blogs endpoints."""
import pytest

BLOGS = "/api/v1/blogs"


def _blog(**overrides) -> dict:
    body = {
        "title": "Intro to Testing!",
        "description": "Why tests matter",
        "content": "# Intro\n\n" + "word " * 450,
        "category": "Guides",
        "tags": ["python", "testing"],
    }
    body.update(overrides)
    return body


async def _create(client, headers, **overrides) -> dict:
    resp = await client.post(BLOGS, json=_blog(**overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def _publish(client, headers, blog_id: int) -> dict:
    resp = await client.patch(f"{BLOGS}/{blog_id}/toggle-status", headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_blog(async_client, store, admin):
    resp = await async_client.post(BLOGS, json=_blog(status="Published"), headers=admin)
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Blog created successfully"

    blog = body["data"]
    assert blog["slug"] == "intro-to-testing"
    assert blog["status"] == "Draft"
    assert blog["published_at"] is None
    assert blog["author_name"] == "Ada Admin"
    assert blog["read_time"] == 3
    assert "content_digest" not in blog
    assert store.exists(blog["content_url"])


@pytest.mark.asyncio
async def test_toggle_publishes_and_stamps(async_client, admin):
    blog = await _create(async_client, admin)
    published = await _publish(async_client, admin, blog["id"])
    assert published["status"] == "Published"
    assert published["published_at"] is not None

    back = await _publish(async_client, admin, blog["id"])
    assert back["status"] == "Draft"
    assert back["published_at"] == published["published_at"]


@pytest.mark.asyncio
async def test_duplicate_title_conflicts(async_client, admin):
    await _create(async_client, admin)
    resp = await async_client.post(BLOGS, json=_blog(title="Intro To Testing"), headers=admin)
    assert resp.status_code == 409
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_title_without_slug_characters_rejected(async_client, admin):
    resp = await async_client.post(BLOGS, json=_blog(title="!!!"), headers=admin)
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "title"


@pytest.mark.asyncio
async def test_missing_fields_fail_validation(async_client, admin):
    resp = await async_client.post(BLOGS, json={"title": "Only a title"}, headers=admin)
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert {"description", "content"} <= fields


# ---------------------------------------------------------------------------
# Access control
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_anonymous_cannot_write(async_client):
    resp = await async_client.post(BLOGS, json=_blog())
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_user_role_cannot_write(async_client, user):
    resp = await async_client.post(BLOGS, json=_blog(), headers=user)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_cannot_delete(async_client, admin):
    blog = await _create(async_client, admin)
    resp = await async_client.delete(f"{BLOGS}/{blog['id']}", headers=admin)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_super_admin_deletes_with_blobs(async_client, store, admin, super_admin):
    blog = await _create(async_client, admin)
    resp = await async_client.delete(f"{BLOGS}/{blog['id']}", headers=super_admin)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Blog deleted successfully"

    assert not store.exists(blog["content_url"])
    resp = await async_client.get(f"{BLOGS}/admin/{blog['id']}", headers=admin)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Visibility and listing
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_drafts_hidden_from_public(async_client, admin):
    draft = await _create(async_client, admin, title="Draft post")
    live = await _create(async_client, admin, title="Live post")
    await _publish(async_client, admin, live["id"])

    resp = await async_client.get(BLOGS)
    assert resp.status_code == 200
    slugs = [b["slug"] for b in resp.json()["data"]["blogs"]]
    assert slugs == ["live-post"]

    # Even an explicit status filter does not reveal drafts to the public.
    resp = await async_client.get(BLOGS, params={"status": "Draft"})
    assert [b["slug"] for b in resp.json()["data"]["blogs"]] == ["live-post"]

    resp = await async_client.get(f"{BLOGS}/{draft['slug']}")
    assert resp.status_code == 404

    resp = await async_client.get(BLOGS, params={"status": "all"}, headers=admin)
    assert resp.json()["data"]["pagination"]["totalItems"] == 2


@pytest.mark.asyncio
async def test_admin_status_filter(async_client, admin):
    await _create(async_client, admin, title="Draft post")
    live = await _create(async_client, admin, title="Live post")
    await _publish(async_client, admin, live["id"])

    resp = await async_client.get(BLOGS, params={"status": "Draft"}, headers=admin)
    assert [b["slug"] for b in resp.json()["data"]["blogs"]] == ["draft-post"]

    resp = await async_client.get(BLOGS, params={"status": "Live"}, headers=admin)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_pagination_beyond_last_page(async_client, admin):
    for i in range(3):
        blog = await _create(async_client, admin, title=f"Post {i}")
        await _publish(async_client, admin, blog["id"])

    resp = await async_client.get(BLOGS, params={"page": "9", "limit": "2"})
    data = resp.json()["data"]
    assert data["blogs"] == []
    assert data["pagination"] == {"current": 9, "total": 2, "totalItems": 3}


@pytest.mark.asyncio
async def test_malformed_paging_falls_back(async_client, admin):
    blog = await _create(async_client, admin)
    await _publish(async_client, admin, blog["id"])

    resp = await async_client.get(BLOGS, params={"page": "abc", "limit": "-5", "sort": "bogus"})
    assert resp.status_code == 200
    assert resp.json()["data"]["pagination"]["current"] == 1


@pytest.mark.asyncio
async def test_search_category_and_tag_filters(async_client, admin):
    for title, category, tags in [
        ("Pytest fixtures", "Guides", ["python"]),
        ("Redis caching", "Guides", ["redis"]),
        ("Study plan", "Study Tips", ["python"]),
    ]:
        blog = await _create(async_client, admin, title=title, category=category, tags=tags)
        await _publish(async_client, admin, blog["id"])

    async def slugs(**params):
        resp = await async_client.get(BLOGS, params={"sort": "title", **params})
        return [b["slug"] for b in resp.json()["data"]["blogs"]]

    assert await slugs(category="Guides") == ["pytest-fixtures", "redis-caching"]
    assert await slugs(tag="python") == ["pytest-fixtures", "study-plan"]
    assert await slugs(search="redis") == ["redis-caching"]


@pytest.mark.asyncio
async def test_public_fetch_counts_views(async_client, admin):
    blog = await _create(async_client, admin)
    await _publish(async_client, admin, blog["id"])

    for expected in (1, 2):
        resp = await async_client.get(f"{BLOGS}/{blog['slug']}")
        assert resp.status_code == 200
        assert resp.json()["data"]["views"] == expected


# ---------------------------------------------------------------------------
# Update, thumbnail, status
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_replaces_content_blob(async_client, store, admin):
    blog = await _create(async_client, admin)
    resp = await async_client.put(
        f"{BLOGS}/{blog['id']}", json={"content": "Short new body"}, headers=admin
    )
    assert resp.status_code == 200
    updated = resp.json()["data"]
    assert updated["content_url"] != blog["content_url"]
    assert updated["read_time"] == 1
    assert store.read(updated["content_url"]) == b"Short new body"
    assert not store.exists(blog["content_url"])


@pytest.mark.asyncio
async def test_update_upload_failure_keeps_blog(async_client, store, admin):
    blog = await _create(async_client, admin)
    store.fail_uploads = True

    resp = await async_client.put(
        f"{BLOGS}/{blog['id']}", json={"content": "Another body", "subtitle": "New"}, headers=admin
    )
    assert resp.status_code == 502

    resp = await async_client.get(f"{BLOGS}/admin/{blog['id']}", headers=admin)
    current = resp.json()["data"]
    assert current["content_url"] == blog["content_url"]
    assert current["subtitle"] is None
    assert store.exists(blog["content_url"])


@pytest.mark.asyncio
async def test_thumbnail_replacement(async_client, store, admin):
    blog = await _create(async_client, admin)

    resp = await async_client.put(
        f"{BLOGS}/{blog['id']}/thumbnail",
        files={"thumbnail": ("cover.png", b"first-image", "image/png")},
        headers=admin,
    )
    assert resp.status_code == 200
    first = resp.json()["data"]["thumbnail_url"]
    assert "/image/upload/" in first
    assert store.read(first) == b"first-image"

    resp = await async_client.put(
        f"{BLOGS}/{blog['id']}/thumbnail",
        files={"thumbnail": ("cover.png", b"second-image", "image/png")},
        headers=admin,
    )
    second = resp.json()["data"]["thumbnail_url"]
    assert second != first
    assert store.exists(second)
    assert not store.exists(first)


@pytest.mark.asyncio
async def test_status_endpoint_and_archive(async_client, admin):
    blog = await _create(async_client, admin)

    resp = await async_client.patch(
        f"{BLOGS}/{blog['id']}/status", json={"status": "Published"}, headers=admin
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "Published"

    resp = await async_client.patch(f"{BLOGS}/{blog['id']}/archive", headers=admin)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "Archived"

    # Archived is terminal for blogs.
    resp = await async_client.patch(f"{BLOGS}/{blog['id']}/toggle-status", headers=admin)
    assert resp.status_code == 400
    resp = await async_client.patch(
        f"{BLOGS}/{blog['id']}/status", json={"status": "Draft"}, headers=admin
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_unknown_status_rejected(async_client, admin):
    blog = await _create(async_client, admin)
    resp = await async_client.patch(
        f"{BLOGS}/{blog['id']}/status", json={"status": "Deleted"}, headers=admin
    )
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "status"


@pytest.mark.asyncio
async def test_blog_stats(async_client, admin):
    first = await _create(async_client, admin, title="One", tags=["python", "redis"])
    await _create(async_client, admin, title="Two", tags=["python"])
    await _publish(async_client, admin, first["id"])

    resp = await async_client.get(f"{BLOGS}/admin/stats", headers=admin)
    assert resp.status_code == 200
    stats = resp.json()["data"]
    assert {row["_id"]: row["count"] for row in stats["statusStats"]} == {"Draft": 1, "Published": 1}
    assert stats["tagStats"][0] == {"_id": "python", "count": 2}
    assert stats["categoryStats"] == [{"_id": "Guides", "count": 2}]


@pytest.mark.asyncio
async def test_missing_blog_is_404(async_client, admin):
    resp = await async_client.get(f"{BLOGS}/admin/999", headers=admin)
    assert resp.status_code == 404
    resp = await async_client.put(f"{BLOGS}/999", json={"subtitle": "x"}, headers=admin)
    assert resp.status_code == 404
    resp = await async_client.get(f"{BLOGS}/no-such-post")
    assert resp.status_code == 404
