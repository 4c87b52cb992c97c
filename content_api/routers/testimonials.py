from fastapi import APIRouter, Depends, File, Form, UploadFile

from content_api.access import Caller, Capability, get_caller, require
from content_api.dependencies import list_params, read_upload, testimonial_service
from content_api.responses import ok
from content_api.schemas import StatusChange, TestimonialForm, TestimonialUpdateForm
from content_api.services.testimonial_service import TestimonialService

router = APIRouter(prefix="/api/v1/testimonials", tags=["testimonials"])


def _present(**fields) -> dict:
    return {key: value for key, value in fields.items() if value is not None}


@router.get("")
async def list_testimonials(
    params: dict = Depends(list_params),
    caller: Caller = Depends(get_caller),
    service: TestimonialService = Depends(testimonial_service),
):
    return ok(await service.list_data(params, caller))


@router.get("/homepage")
async def homepage_testimonials(service: TestimonialService = Depends(testimonial_service)):
    return ok(await service.homepage())


@router.get("/admin/stats")
async def testimonial_stats(
    _: Caller = Depends(require(Capability.VIEW_ALL)),
    service: TestimonialService = Depends(testimonial_service),
):
    return ok(await service.stats())


@router.get("/admin/{testimonial_id}")
async def get_testimonial_for_admin(
    testimonial_id: int,
    _: Caller = Depends(require(Capability.VIEW_ALL)),
    service: TestimonialService = Depends(testimonial_service),
):
    return ok(service.serialize(await service.get(testimonial_id)))


@router.post("", status_code=201)
async def create_testimonial(
    name: str = Form(...),
    content: str = Form(...),
    stars: int = Form(...),
    location: str | None = Form(None),
    for_homepage: bool = Form(False),
    status: str | None = Form(None),
    image: UploadFile | None = File(None),
    caller: Caller = Depends(require(Capability.WRITE)),
    service: TestimonialService = Depends(testimonial_service),
):
    form = TestimonialForm(
        **_present(
            name=name, content=content, stars=stars, location=location,
            for_homepage=for_homepage, status=status,
        )
    )
    files = _present(image=await read_upload(image))
    testimonial = await service.create(form.model_dump(exclude_none=True), caller, files)
    return ok(service.serialize(testimonial), "Testimonial created successfully")


@router.put("/{testimonial_id}")
async def update_testimonial(
    testimonial_id: int,
    name: str | None = Form(None),
    content: str | None = Form(None),
    stars: int | None = Form(None),
    location: str | None = Form(None),
    for_homepage: bool | None = Form(None),
    status: str | None = Form(None),
    image: UploadFile | None = File(None),
    caller: Caller = Depends(require(Capability.WRITE)),
    service: TestimonialService = Depends(testimonial_service),
):
    form = TestimonialUpdateForm(
        **_present(
            name=name, content=content, stars=stars, location=location,
            for_homepage=for_homepage, status=status,
        )
    )
    files = _present(image=await read_upload(image))
    testimonial = await service.update(
        testimonial_id, form.model_dump(exclude_unset=True, exclude_none=True), caller, files
    )
    return ok(service.serialize(testimonial), "Testimonial updated successfully")


@router.patch("/{testimonial_id}/toggle-status")
async def toggle_testimonial_status(
    testimonial_id: int,
    caller: Caller = Depends(require(Capability.PUBLISH)),
    service: TestimonialService = Depends(testimonial_service),
):
    testimonial = await service.toggle(testimonial_id, caller)
    return ok(service.serialize(testimonial), f"Testimonial status changed to {testimonial.status}")


@router.patch("/{testimonial_id}/status")
async def change_testimonial_status(
    testimonial_id: int,
    data: StatusChange,
    caller: Caller = Depends(require(Capability.PUBLISH)),
    service: TestimonialService = Depends(testimonial_service),
):
    testimonial = await service.set_status(testimonial_id, data.status, caller)
    return ok(service.serialize(testimonial), f"Testimonial status changed to {testimonial.status}")


@router.patch("/{testimonial_id}/archive")
async def archive_testimonial(
    testimonial_id: int,
    caller: Caller = Depends(require(Capability.PUBLISH)),
    service: TestimonialService = Depends(testimonial_service),
):
    testimonial = await service.archive(testimonial_id, caller)
    return ok(service.serialize(testimonial), "Testimonial archived successfully")


@router.patch("/{testimonial_id}/toggle-homepage")
async def toggle_testimonial_homepage(
    testimonial_id: int,
    _: Caller = Depends(require(Capability.WRITE)),
    service: TestimonialService = Depends(testimonial_service),
):
    testimonial = await service.toggle_homepage(testimonial_id)
    return ok(service.serialize(testimonial), "Testimonial homepage visibility updated")


@router.delete("/{testimonial_id}")
async def delete_testimonial(
    testimonial_id: int,
    _: Caller = Depends(require(Capability.DELETE)),
    service: TestimonialService = Depends(testimonial_service),
):
    await service.delete(testimonial_id)
    return ok(message="Testimonial deleted successfully")
