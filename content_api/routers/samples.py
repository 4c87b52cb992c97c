from fastapi import APIRouter, Depends

from content_api.access import Caller, Capability, get_caller, require
from content_api.dependencies import list_params, sample_service
from content_api.responses import ok
from content_api.schemas import SampleCreate, SampleUpdate, StatusChange
from content_api.services.sample_service import SampleService

router = APIRouter(prefix="/api/v1/samples", tags=["samples"])


@router.get("")
async def list_samples(
    params: dict = Depends(list_params),
    caller: Caller = Depends(get_caller),
    service: SampleService = Depends(sample_service),
):
    return ok(await service.list_data(params, caller))


@router.get("/subjects/counts")
async def subject_counts(service: SampleService = Depends(sample_service)):
    return ok(await service.subject_counts())


@router.get("/admin/stats")
async def sample_stats(
    _: Caller = Depends(require(Capability.VIEW_ALL)),
    service: SampleService = Depends(sample_service),
):
    return ok(await service.stats())


@router.get("/admin/{sample_id}")
async def get_sample_for_admin(
    sample_id: int,
    _: Caller = Depends(require(Capability.VIEW_ALL)),
    service: SampleService = Depends(sample_service),
):
    return ok(service.serialize(await service.get(sample_id)))


@router.get("/{slug}")
async def get_sample(
    slug: str,
    caller: Caller = Depends(get_caller),
    service: SampleService = Depends(sample_service),
):
    return ok(service.serialize(await service.get_visible_by_slug(slug, caller)))


@router.post("", status_code=201)
async def create_sample(
    data: SampleCreate,
    caller: Caller = Depends(require(Capability.WRITE)),
    service: SampleService = Depends(sample_service),
):
    sample = await service.create(data.model_dump(exclude_none=True), caller)
    return ok(service.serialize(sample), "Sample created successfully")


@router.put("/{sample_id}")
async def update_sample(
    sample_id: int,
    data: SampleUpdate,
    caller: Caller = Depends(require(Capability.WRITE)),
    service: SampleService = Depends(sample_service),
):
    sample = await service.update(
        sample_id, data.model_dump(exclude_unset=True, exclude_none=True), caller
    )
    return ok(service.serialize(sample), "Sample updated successfully")


@router.patch("/{sample_id}/toggle-status")
async def toggle_sample_status(
    sample_id: int,
    caller: Caller = Depends(require(Capability.PUBLISH)),
    service: SampleService = Depends(sample_service),
):
    sample = await service.toggle(sample_id, caller)
    return ok(service.serialize(sample), f"Sample status changed to {sample.status}")


@router.patch("/{sample_id}/status")
async def change_sample_status(
    sample_id: int,
    data: StatusChange,
    caller: Caller = Depends(require(Capability.PUBLISH)),
    service: SampleService = Depends(sample_service),
):
    sample = await service.set_status(sample_id, data.status, caller)
    return ok(service.serialize(sample), f"Sample status changed to {sample.status}")


@router.patch("/{sample_id}/archive")
async def archive_sample(
    sample_id: int,
    caller: Caller = Depends(require(Capability.PUBLISH)),
    service: SampleService = Depends(sample_service),
):
    sample = await service.archive(sample_id, caller)
    return ok(service.serialize(sample), "Sample archived successfully")


@router.delete("/{sample_id}")
async def delete_sample(
    sample_id: int,
    _: Caller = Depends(require(Capability.DELETE)),
    service: SampleService = Depends(sample_service),
):
    await service.delete(sample_id)
    return ok(message="Sample deleted successfully")
