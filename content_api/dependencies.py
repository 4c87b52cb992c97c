"""
FastAPI dependencies that assemble services per request.

Each lifecycle service gets its own ``SqlRepository`` bound to the request's
session plus the process-wide content store.  Tests swap the store through
``app.dependency_overrides[get_content_store]``.
"""
from fastapi import Depends, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from content_api.database import get_db
from content_api.models import Article, ImageAsset, Sample, ServicePage, ServiceSection, Testimonial
from content_api.repository import SqlRepository
from content_api.services.article_service import ArticleService
from content_api.services.entity_service import Upload
from content_api.services.image_asset_service import ImageAssetService
from content_api.services.order_service import LoggingNotifier, Notifier, OrderService
from content_api.services.sample_service import SampleService
from content_api.services.service_page_service import ServicePageService, ServiceSectionService
from content_api.services.testimonial_service import TestimonialService
from content_api.storage import ContentStore, get_content_store


def list_params(request: Request) -> dict[str, str]:
    """
    Raw list query parameters.

    They are handed to the query planner untouched: malformed ``page`` or
    ``limit`` values fall back to defaults there instead of failing here.
    """
    return dict(request.query_params)


async def read_upload(file: UploadFile | None) -> Upload | None:
    if file is None or not file.filename:
        return None
    return Upload(data=await file.read(), filename=file.filename, content_type=file.content_type)


def article_service(
    db: AsyncSession = Depends(get_db), store: ContentStore = Depends(get_content_store)
) -> ArticleService:
    return ArticleService(SqlRepository(db, Article), store)


def section_service(
    db: AsyncSession = Depends(get_db), store: ContentStore = Depends(get_content_store)
) -> ServiceSectionService:
    return ServiceSectionService(
        SqlRepository(db, ServiceSection), store, pages=SqlRepository(db, ServicePage)
    )


def service_page_service(
    db: AsyncSession = Depends(get_db), store: ContentStore = Depends(get_content_store)
) -> ServicePageService:
    return ServicePageService(
        SqlRepository(db, ServicePage), store, sections=SqlRepository(db, ServiceSection)
    )


def sample_service(
    db: AsyncSession = Depends(get_db), store: ContentStore = Depends(get_content_store)
) -> SampleService:
    return SampleService(SqlRepository(db, Sample), store)


def testimonial_service(
    db: AsyncSession = Depends(get_db), store: ContentStore = Depends(get_content_store)
) -> TestimonialService:
    return TestimonialService(SqlRepository(db, Testimonial), store)


def image_asset_service(
    db: AsyncSession = Depends(get_db), store: ContentStore = Depends(get_content_store)
) -> ImageAssetService:
    return ImageAssetService(SqlRepository(db, ImageAsset), store)


_notifier: Notifier = LoggingNotifier()


def get_notifier() -> Notifier:
    return _notifier


def order_service(
    store: ContentStore = Depends(get_content_store), notifier: Notifier = Depends(get_notifier)
) -> OrderService:
    return OrderService(store, notifier)
