"""
Image assets: a reusable library of uploaded images for the admin UI.

Assets have no slug and no status; the whole collection is admin-only.  The
provider id is stored next to the URL, so deletes use it directly.
"""
from content_api.models import ImageAsset
from content_api.query_planner import ListingRules, SortKey
from content_api.responses import serialize_row
from content_api.services.entity_service import (
    AssetField,
    EntityDefinition,
    EntityLifecycleService,
)

IMAGE_ASSETS = EntityDefinition(
    model=ImageAsset,
    label="Image asset",
    collection="image-assets",
    items_key="imageAssets",
    slug_source=None,
    assets={"image": AssetField("url", locator_attr="public_id")},
    required_assets=("image",),
    listing=ListingRules(
        machine=None,
        sorts={
            "newest": (SortKey("created_at"),),
            "name": (SortKey("name", descending=False),),
        },
        default_sort="newest",
        default_limit=20,
        search_fields=("name", "alt_text"),
    ),
)


class ImageAssetService(EntityLifecycleService):
    def __init__(self, repository, store, **kwargs) -> None:
        super().__init__(IMAGE_ASSETS, repository, store, **kwargs)

    async def stats(self) -> dict:
        recent = await self.repository.latest(10)
        return {
            "totalAssets": await self.repository.total(),
            "recentAssets": [
                {key: row[key] for key in ("id", "name", "url", "created_at")}
                for row in map(serialize_row, recent)
            ],
        }
