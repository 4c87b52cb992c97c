from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from content_api.access import Caller, Capability, require
from content_api.cache import cache
from content_api.database import get_db
from content_api.lifecycle import EditorialStatus
from content_api.models import Article, ImageAsset, Sample, ServicePage, Testimonial
from content_api.responses import ok

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


async def _count(db: AsyncSession, model, **criteria) -> int:
    q = select(func.count()).select_from(model).filter_by(**criteria)
    return (await db.execute(q)).scalar_one()


async def _recent(db: AsyncSession, model, limit: int = 5) -> list[dict]:
    q = select(model.id, model.title, model.slug, model.status, model.created_at).order_by(
        model.created_at.desc(), model.id.desc()
    ).limit(limit)
    rows = (await db.execute(q)).all()
    return [
        {
            "id": row.id,
            "title": row.title,
            "slug": row.slug,
            "status": row.status,
            "created_at": row.created_at.isoformat() if row.created_at else None,
        }
        for row in rows
    ]


@router.get("")
async def dashboard(
    _: Caller = Depends(require(Capability.VIEW_ALL)),
    db: AsyncSession = Depends(get_db),
):
    published = EditorialStatus.PUBLISHED.value
    draft = EditorialStatus.DRAFT.value
    return ok({
        "totals": {
            "blogs": await _count(db, Article),
            "samples": await _count(db, Sample),
            "services": await _count(db, ServicePage),
            "testimonials": await _count(db, Testimonial),
            "imageAssets": await _count(db, ImageAsset),
        },
        "contentStatus": {
            "publishedBlogs": await _count(db, Article, status=published),
            "draftBlogs": await _count(db, Article, status=draft),
            "publishedSamples": await _count(db, Sample, status=published),
            "draftSamples": await _count(db, Sample, status=draft),
        },
        "recentBlogs": await _recent(db, Article),
        "recentSamples": await _recent(db, Sample),
        "cache": cache.stats,
    })
