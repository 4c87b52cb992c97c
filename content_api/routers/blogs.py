from fastapi import APIRouter, Depends, File, UploadFile

from content_api.access import Caller, Capability, get_caller, require
from content_api.dependencies import article_service, list_params, read_upload
from content_api.errors import ValidationFailed
from content_api.responses import ok
from content_api.schemas import ArticleCreate, ArticleUpdate, StatusChange
from content_api.services.article_service import ArticleService

router = APIRouter(prefix="/api/v1/blogs", tags=["blogs"])


@router.get("")
async def list_blogs(
    params: dict = Depends(list_params),
    caller: Caller = Depends(get_caller),
    service: ArticleService = Depends(article_service),
):
    return ok(await service.list_data(params, caller))


@router.get("/admin/stats")
async def blog_stats(
    _: Caller = Depends(require(Capability.VIEW_ALL)),
    service: ArticleService = Depends(article_service),
):
    return ok(await service.stats())


@router.get("/admin/{blog_id}")
async def get_blog_for_admin(
    blog_id: int,
    _: Caller = Depends(require(Capability.VIEW_ALL)),
    service: ArticleService = Depends(article_service),
):
    return ok(service.serialize(await service.get(blog_id)))


@router.get("/{slug}")
async def get_blog(
    slug: str,
    caller: Caller = Depends(get_caller),
    service: ArticleService = Depends(article_service),
):
    return ok(service.serialize(await service.get_visible_by_slug(slug, caller)))


@router.post("", status_code=201)
async def create_blog(
    data: ArticleCreate,
    caller: Caller = Depends(require(Capability.WRITE)),
    service: ArticleService = Depends(article_service),
):
    blog = await service.create(data.model_dump(exclude_none=True), caller)
    return ok(service.serialize(blog), "Blog created successfully")


@router.put("/{blog_id}")
async def update_blog(
    blog_id: int,
    data: ArticleUpdate,
    caller: Caller = Depends(require(Capability.WRITE)),
    service: ArticleService = Depends(article_service),
):
    blog = await service.update(blog_id, data.model_dump(exclude_unset=True, exclude_none=True), caller)
    return ok(service.serialize(blog), "Blog updated successfully")


@router.put("/{blog_id}/thumbnail")
async def replace_thumbnail(
    blog_id: int,
    thumbnail: UploadFile = File(...),
    caller: Caller = Depends(require(Capability.WRITE)),
    service: ArticleService = Depends(article_service),
):
    upload = await read_upload(thumbnail)
    if upload is None:
        raise ValidationFailed.for_field("thumbnail", "Thumbnail file is required")
    blog = await service.update(blog_id, {}, caller, files={"thumbnail": upload})
    return ok(service.serialize(blog), "Thumbnail updated successfully")


@router.patch("/{blog_id}/toggle-status")
async def toggle_blog_status(
    blog_id: int,
    caller: Caller = Depends(require(Capability.PUBLISH)),
    service: ArticleService = Depends(article_service),
):
    blog = await service.toggle(blog_id, caller)
    return ok(service.serialize(blog), f"Blog status changed to {blog.status}")


@router.patch("/{blog_id}/status")
async def change_blog_status(
    blog_id: int,
    data: StatusChange,
    caller: Caller = Depends(require(Capability.PUBLISH)),
    service: ArticleService = Depends(article_service),
):
    blog = await service.set_status(blog_id, data.status, caller)
    return ok(service.serialize(blog), f"Blog status changed to {blog.status}")


@router.patch("/{blog_id}/archive")
async def archive_blog(
    blog_id: int,
    caller: Caller = Depends(require(Capability.PUBLISH)),
    service: ArticleService = Depends(article_service),
):
    blog = await service.archive(blog_id, caller)
    return ok(service.serialize(blog), "Blog archived successfully")


@router.delete("/{blog_id}")
async def delete_blog(
    blog_id: int,
    _: Caller = Depends(require(Capability.DELETE)),
    service: ArticleService = Depends(article_service),
):
    await service.delete(blog_id)
    return ok(message="Blog deleted successfully")
