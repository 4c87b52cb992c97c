"""End-to-end tests for the admin image asset library."""
import pytest

ASSETS = "/api/v1/image-assets"


async def _asset(client, headers, name: str = "Hero banner", data: bytes = b"png") -> dict:
    resp = await client.post(
        ASSETS,
        data={"name": name, "alt_text": f"{name} image"},
        files={"image": ("banner.png", data, "image/png")},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_asset(async_client, store, admin):
    asset = await _asset(async_client, admin)
    assert asset["public_id"].startswith("test/images/image-assets/hero-banner-")
    assert store.read(asset["url"]) == b"png"
    assert "status" not in asset


@pytest.mark.asyncio
async def test_image_is_required(async_client, store, admin):
    resp = await async_client.post(
        ASSETS, data={"name": "No file", "alt_text": "Nothing"}, headers=admin
    )
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "image"
    assert store.objects == {}


@pytest.mark.asyncio
async def test_collection_is_admin_only(async_client, user):
    assert (await async_client.get(ASSETS)).status_code == 403
    assert (await async_client.get(ASSETS, headers=user)).status_code == 403


@pytest.mark.asyncio
async def test_replacement_deletes_previous_image(async_client, store, admin):
    asset = await _asset(async_client, admin, data=b"v1")
    resp = await async_client.put(
        f"{ASSETS}/{asset['id']}",
        data={"alt_text": "Updated alt"},
        files={"image": ("banner.png", b"v2", "image/png")},
        headers=admin,
    )
    assert resp.status_code == 200
    updated = resp.json()["data"]
    assert updated["alt_text"] == "Updated alt"
    assert updated["public_id"] != asset["public_id"]
    assert store.read(updated["url"]) == b"v2"
    assert ("delete", asset["public_id"]) in store.events
    assert not store.exists(asset["url"])


@pytest.mark.asyncio
async def test_metadata_update_keeps_image(async_client, store, admin):
    asset = await _asset(async_client, admin)
    resp = await async_client.put(f"{ASSETS}/{asset['id']}", data={"name": "Renamed"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["data"]["url"] == asset["url"]
    assert store.exists(asset["url"])


@pytest.mark.asyncio
async def test_listing_defaults_to_twenty_per_page(async_client, admin):
    for i in range(3):
        await _asset(async_client, admin, name=f"Asset {i}")

    resp = await async_client.get(ASSETS, params={"sort": "name", "search": "asset"}, headers=admin)
    data = resp.json()["data"]
    assert [a["name"] for a in data["imageAssets"]] == ["Asset 0", "Asset 1", "Asset 2"]
    assert data["pagination"] == {"current": 1, "total": 1, "totalItems": 3}


@pytest.mark.asyncio
async def test_bulk_delete(async_client, store, admin, super_admin):
    first = await _asset(async_client, admin, name="First")
    second = await _asset(async_client, admin, name="Second")
    kept = await _asset(async_client, admin, name="Kept")

    resp = await async_client.post(
        f"{ASSETS}/bulk-delete", json={"ids": [first["id"], second["id"], 999]}, headers=super_admin
    )
    assert resp.status_code == 200
    assert resp.json()["data"] == {"deletedCount": 2}
    assert not store.exists(first["url"])
    assert not store.exists(second["url"])
    assert store.exists(kept["url"])

    resp = await async_client.post(f"{ASSETS}/bulk-delete", json={"ids": [999]}, headers=super_admin)
    assert resp.json()["data"] == {"deletedCount": 0}


@pytest.mark.asyncio
async def test_bulk_delete_validation_and_access(async_client, admin, super_admin):
    resp = await async_client.post(f"{ASSETS}/bulk-delete", json={"ids": []}, headers=super_admin)
    assert resp.status_code == 400
    resp = await async_client.post(f"{ASSETS}/bulk-delete", json={"ids": [1]}, headers=admin)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_asset_stats(async_client, admin):
    await _asset(async_client, admin, name="One")
    resp = await async_client.get(f"{ASSETS}/admin/stats", headers=admin)
    stats = resp.json()["data"]
    assert stats["totalAssets"] == 1
    assert stats["recentAssets"][0]["name"] == "One"
    assert set(stats["recentAssets"][0]) == {"id", "name", "url", "created_at"}
