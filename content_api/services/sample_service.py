"""Writing samples: editorial lifecycle plus public per-subject counts."""
from content_api.cache import cache
from content_api.config import settings
from content_api.lifecycle import EDITORIAL, EditorialStatus
from content_api.models import Sample
from content_api.query_planner import ListingRules, SortKey
from content_api.services.entity_service import EntityDefinition, EntityLifecycleService

SAMPLES = EntityDefinition(
    model=Sample,
    label="Sample",
    collection="samples",
    items_key="samples",
    has_content=True,
    counts_views=True,
    listing=ListingRules(
        machine=EDITORIAL,
        sorts={
            "rating": (SortKey("rating_score"), SortKey("rating_count")),
            "newest": (SortKey("created_at"),),
            "views": (SortKey("views"),),
        },
        default_sort="rating",
        search_fields=("title", "description"),
        exact_filters={
            "subject": "subject",
            "topic": "topic",
            "academic_level": "academic_level",
        },
    ),
)


class SampleService(EntityLifecycleService):
    def __init__(self, repository, store, **kwargs) -> None:
        super().__init__(SAMPLES, repository, store, **kwargs)

    async def subject_counts(self) -> list[dict]:
        """Published samples grouped by subject, alphabetical."""

        async def load() -> list[dict]:
            counts = await self.repository.grouped_counts(
                "subject", status=EditorialStatus.PUBLISHED.value
            )
            return sorted(counts, key=lambda row: row["_id"] or "")

        return await cache.remember(
            f"{SAMPLES.collection}:subjects", settings.CACHE_TTL_DETAIL, load
        )

    async def stats(self) -> dict:
        return {
            "statusStats": await self.status_counts(),
            "subjectStats": await self.repository.grouped_counts("subject"),
        }
