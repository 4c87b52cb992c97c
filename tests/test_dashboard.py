import pytest


@pytest.mark.asyncio
async def test_dashboard_requires_view_all(async_client, user):
    resp = await async_client.get("/api/v1/dashboard", headers=user)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_dashboard_summary(async_client, admin):
    for title in ("Draft blog", "Live blog"):
        resp = await async_client.post("/api/v1/blogs", json={
            "title": title, "description": "d", "content": "Body",
        }, headers=admin)
        assert resp.status_code == 201
    live_id = resp.json()["data"]["id"]
    await async_client.patch(f"/api/v1/blogs/{live_id}/toggle-status", headers=admin)

    resp = await async_client.get("/api/v1/dashboard", headers=admin)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["totals"]["blogs"] == 2
    assert data["totals"]["imageAssets"] == 0
    assert data["contentStatus"]["publishedBlogs"] == 1
    assert data["contentStatus"]["draftBlogs"] == 1
    assert {b["title"] for b in data["recentBlogs"]} == {"Draft blog", "Live blog"}
    assert data["recentSamples"] == []
    assert "hits" in data["cache"]
