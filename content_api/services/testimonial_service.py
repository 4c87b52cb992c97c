"""
Testimonials.

No slug: testimonials are only addressed by id.  Status may be set to any
of ``draft`` / ``published`` / ``archived``; toggle flips draft and
published.  ``for_homepage`` is an independent flag with its own toggle and
a public list of published homepage testimonials.
"""
import logging

from content_api.cache import cache
from content_api.config import settings
from content_api.lifecycle import TESTIMONIAL
from content_api.models import Testimonial
from content_api.query_planner import ListingRules, SortKey
from content_api.services.entity_service import (
    AssetField,
    EntityDefinition,
    EntityLifecycleService,
)

logger = logging.getLogger(__name__)

TESTIMONIALS = EntityDefinition(
    model=Testimonial,
    label="Testimonial",
    collection="testimonials",
    items_key="testimonials",
    slug_source=None,
    assets={"image": AssetField("image_url")},
    listing=ListingRules(
        machine=TESTIMONIAL,
        sorts={
            "newest": (SortKey("created_at"),),
            "stars": (SortKey("stars"), SortKey("created_at")),
        },
        default_sort="newest",
        search_fields=("name", "content", "location"),
        flag_filters={"for_homepage": "for_homepage"},
    ),
)


class TestimonialService(EntityLifecycleService):
    def __init__(self, repository, store, **kwargs) -> None:
        super().__init__(TESTIMONIALS, repository, store, **kwargs)

    async def toggle_homepage(self, entity_id: int):
        entity = await self.get(entity_id)
        entity.for_homepage = not entity.for_homepage
        await self._persist(entity)
        logger.info("Testimonial %s for_homepage=%s", entity_id, entity.for_homepage)
        return entity

    async def homepage(self) -> list[dict]:
        async def load() -> list[dict]:
            items = await self.repository.latest(
                None, for_homepage=True, status=TESTIMONIAL.live
            )
            return [self.serialize(item) for item in items]

        return await cache.remember(
            f"{TESTIMONIALS.collection}:homepage", settings.CACHE_TTL_DETAIL, load
        )

    async def stats(self) -> dict:
        return {
            "statusStats": await self.status_counts(),
            "starStats": await self.repository.grouped_counts("stars"),
        }
