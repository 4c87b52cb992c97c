"""
Article (blog post) service.

Articles carry their markdown body in the blob store and an optional
thumbnail image.  On top of the shared lifecycle they:

- compute ``read_time`` (minutes at 200 words per minute) whenever a raw
  body is supplied;
- default ``author_name`` to the calling user's display name and record the
  caller as ``creator_id``;
- drop a CTA section whose title or content is empty;
- count a view on every public fetch by slug.
"""
import math
from collections import Counter

from content_api.access import Caller
from content_api.errors import ValidationFailed
from content_api.lifecycle import EDITORIAL
from content_api.models import Article
from content_api.query_planner import ListingRules, SortKey
from content_api.services.entity_service import (
    AssetField,
    EntityDefinition,
    EntityLifecycleService,
)
from content_api.storage import looks_like_url

WORDS_PER_MINUTE = 200

ARTICLES = EntityDefinition(
    model=Article,
    label="Blog",
    collection="blogs",
    items_key="blogs",
    has_content=True,
    assets={"thumbnail": AssetField("thumbnail_url")},
    counts_views=True,
    listing=ListingRules(
        machine=EDITORIAL,
        sorts={
            "newest": (SortKey("created_at"),),
            "views": (SortKey("views"),),
            "title": (SortKey("title", descending=False),),
        },
        default_sort="newest",
        search_fields=("title", "description"),
        exact_filters={"category": "category"},
        member_filters={"tag": "tags"},
    ),
)


def reading_time(text: str) -> int:
    words = len(text.split())
    return math.ceil(words / WORDS_PER_MINUTE)


def _clean_cta(cta: dict | None) -> dict | None:
    if not cta or not (cta.get("title") or "").strip() or not (cta.get("content") or "").strip():
        return None
    return cta


class ArticleService(EntityLifecycleService):
    def __init__(self, repository, store, **kwargs) -> None:
        super().__init__(ARTICLES, repository, store, **kwargs)

    async def prepare(self, values: dict, caller: Caller, entity=None) -> dict:
        if entity is None:
            values["author_name"] = values.get("author_name") or caller.name
            if not values["author_name"]:
                raise ValidationFailed.for_field("author_name", "Author name is required")
            values["creator_id"] = caller.user_id

        content = values.get("content")
        if content and not looks_like_url(content):
            values["read_time"] = reading_time(content)

        if "cta_section" in values:
            values["cta_section"] = _clean_cta(values["cta_section"])
        return values

    async def stats(self) -> dict:
        tag_counts: Counter = Counter()
        for tags in await self.repository.column_values("tags"):
            tag_counts.update(tags or [])
        return {
            "statusStats": await self.status_counts(),
            "categoryStats": await self.repository.grouped_counts("category"),
            "tagStats": [
                {"_id": tag, "count": count} for tag, count in tag_counts.most_common(10)
            ],
        }
