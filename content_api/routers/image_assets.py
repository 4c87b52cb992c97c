from fastapi import APIRouter, Depends, File, Form, UploadFile

from content_api.access import Caller, Capability, require
from content_api.dependencies import image_asset_service, list_params, read_upload
from content_api.responses import ok
from content_api.schemas import BulkDelete, ImageAssetForm, ImageAssetUpdateForm
from content_api.services.image_asset_service import ImageAssetService

# The whole collection is admin-only.
router = APIRouter(prefix="/api/v1/image-assets", tags=["image-assets"])


@router.get("")
async def list_image_assets(
    params: dict = Depends(list_params),
    caller: Caller = Depends(require(Capability.VIEW_ALL)),
    service: ImageAssetService = Depends(image_asset_service),
):
    return ok(await service.list_data(params, caller))


@router.get("/admin/stats")
async def image_asset_stats(
    _: Caller = Depends(require(Capability.VIEW_ALL)),
    service: ImageAssetService = Depends(image_asset_service),
):
    return ok(await service.stats())


@router.get("/{asset_id}")
async def get_image_asset(
    asset_id: int,
    _: Caller = Depends(require(Capability.VIEW_ALL)),
    service: ImageAssetService = Depends(image_asset_service),
):
    return ok(service.serialize(await service.get(asset_id)))


@router.post("", status_code=201)
async def create_image_asset(
    name: str = Form(...),
    alt_text: str = Form(...),
    image: UploadFile | None = File(None),
    caller: Caller = Depends(require(Capability.WRITE)),
    service: ImageAssetService = Depends(image_asset_service),
):
    form = ImageAssetForm(name=name, alt_text=alt_text)
    upload = await read_upload(image)
    files = {"image": upload} if upload is not None else {}
    asset = await service.create(form.model_dump(), caller, files)
    return ok(service.serialize(asset), "Image asset created successfully")


@router.put("/{asset_id}")
async def update_image_asset(
    asset_id: int,
    name: str | None = Form(None),
    alt_text: str | None = Form(None),
    image: UploadFile | None = File(None),
    caller: Caller = Depends(require(Capability.WRITE)),
    service: ImageAssetService = Depends(image_asset_service),
):
    form = ImageAssetUpdateForm(name=name, alt_text=alt_text)
    upload = await read_upload(image)
    files = {"image": upload} if upload is not None else {}
    asset = await service.update(asset_id, form.model_dump(exclude_none=True), caller, files)
    return ok(service.serialize(asset), "Image asset updated successfully")


@router.post("/bulk-delete")
async def bulk_delete_image_assets(
    data: BulkDelete,
    _: Caller = Depends(require(Capability.DELETE)),
    service: ImageAssetService = Depends(image_asset_service),
):
    deleted = await service.delete_many(data.ids)
    return ok({"deletedCount": deleted}, f"{deleted} image assets deleted successfully")


@router.delete("/{asset_id}")
async def delete_image_asset(
    asset_id: int,
    _: Caller = Depends(require(Capability.DELETE)),
    service: ImageAssetService = Depends(image_asset_service),
):
    await service.delete(asset_id)
    return ok(message="Image asset deleted successfully")
