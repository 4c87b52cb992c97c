from fastapi import APIRouter, Depends

from content_api.access import Caller, Capability, get_caller, require
from content_api.dependencies import list_params, section_service, service_page_service
from content_api.responses import ok
from content_api.schemas import (
    FaqItem,
    FaqUpdate,
    SectionCreate,
    SectionUpdate,
    ServicePageCreate,
    ServicePageUpdate,
    StatusChange,
)
from content_api.services.service_page_service import ServicePageService, ServiceSectionService

router = APIRouter(prefix="/api/v1/services", tags=["services"])


# --- Sections (declared first so "/sections" never matches "/{slug}") ---

@router.get("/sections")
async def list_sections(
    params: dict = Depends(list_params),
    caller: Caller = Depends(get_caller),
    service: ServiceSectionService = Depends(section_service),
):
    return ok(await service.list_data(params, caller))


@router.post("/sections", status_code=201)
async def create_section(
    data: SectionCreate,
    caller: Caller = Depends(require(Capability.WRITE)),
    service: ServiceSectionService = Depends(section_service),
):
    section = await service.create(data.model_dump(exclude_none=True), caller)
    return ok(service.serialize(section), "Section created successfully")


@router.put("/sections/{section_id}")
async def update_section(
    section_id: int,
    data: SectionUpdate,
    caller: Caller = Depends(require(Capability.WRITE)),
    service: ServiceSectionService = Depends(section_service),
):
    section = await service.update(
        section_id, data.model_dump(exclude_unset=True, exclude_none=True), caller
    )
    return ok(service.serialize(section), "Section updated successfully")


@router.patch("/sections/{section_id}/status")
async def change_section_status(
    section_id: int,
    data: StatusChange,
    caller: Caller = Depends(require(Capability.PUBLISH)),
    service: ServiceSectionService = Depends(section_service),
):
    section = await service.set_status(section_id, data.status, caller)
    return ok(service.serialize(section), f"Section status changed to {section.status}")


@router.delete("/sections/{section_id}")
async def delete_section(
    section_id: int,
    _: Caller = Depends(require(Capability.DELETE)),
    service: ServiceSectionService = Depends(section_service),
):
    await service.delete(section_id)
    return ok(message="Section deleted successfully")


# --- Service pages ---

@router.get("")
async def list_services(
    params: dict = Depends(list_params),
    caller: Caller = Depends(get_caller),
    service: ServicePageService = Depends(service_page_service),
):
    return ok(await service.list_data(params, caller))


@router.get("/admin/stats")
async def service_stats(
    _: Caller = Depends(require(Capability.VIEW_ALL)),
    service: ServicePageService = Depends(service_page_service),
):
    return ok(await service.stats())


@router.get("/admin/{service_id}")
async def get_service_for_admin(
    service_id: int,
    _: Caller = Depends(require(Capability.VIEW_ALL)),
    service: ServicePageService = Depends(service_page_service),
):
    return ok(service.serialize(await service.get(service_id)))


@router.get("/{slug}")
async def get_service(
    slug: str,
    caller: Caller = Depends(get_caller),
    service: ServicePageService = Depends(service_page_service),
):
    return ok(service.serialize(await service.get_visible_by_slug(slug, caller)))


@router.post("", status_code=201)
async def create_service(
    data: ServicePageCreate,
    caller: Caller = Depends(require(Capability.WRITE)),
    service: ServicePageService = Depends(service_page_service),
):
    page = await service.create(data.model_dump(exclude_none=True), caller)
    return ok(service.serialize(page), "Service created successfully")


@router.put("/{service_id}")
async def update_service(
    service_id: int,
    data: ServicePageUpdate,
    caller: Caller = Depends(require(Capability.WRITE)),
    service: ServicePageService = Depends(service_page_service),
):
    page = await service.update(
        service_id, data.model_dump(exclude_unset=True, exclude_none=True), caller
    )
    return ok(service.serialize(page), "Service updated successfully")


@router.patch("/{service_id}/toggle-status")
async def toggle_service_status(
    service_id: int,
    caller: Caller = Depends(require(Capability.PUBLISH)),
    service: ServicePageService = Depends(service_page_service),
):
    page = await service.toggle(service_id, caller)
    return ok(service.serialize(page), f"Service status changed to {page.status}")


@router.patch("/{service_id}/status")
async def change_service_status(
    service_id: int,
    data: StatusChange,
    caller: Caller = Depends(require(Capability.PUBLISH)),
    service: ServicePageService = Depends(service_page_service),
):
    page = await service.set_status(service_id, data.status, caller)
    return ok(service.serialize(page), f"Service status changed to {page.status}")


@router.delete("/{service_id}")
async def delete_service(
    service_id: int,
    _: Caller = Depends(require(Capability.DELETE)),
    service: ServicePageService = Depends(service_page_service),
):
    await service.delete(service_id)
    return ok(message="Service deleted successfully")


# --- FAQs embedded in a service page ---

@router.get("/{service_id}/faqs")
async def list_service_faqs(
    service_id: int,
    _: Caller = Depends(require(Capability.VIEW_ALL)),
    service: ServicePageService = Depends(service_page_service),
):
    return ok(await service.list_faqs(service_id))


@router.post("/{service_id}/faqs", status_code=201)
async def add_service_faq(
    service_id: int,
    data: FaqItem,
    _: Caller = Depends(require(Capability.WRITE)),
    service: ServicePageService = Depends(service_page_service),
):
    faq = await service.add_faq(service_id, data.model_dump(exclude_none=True))
    return ok(faq, "FAQ added successfully")


@router.put("/{service_id}/faqs/{faq_id}")
async def update_service_faq(
    service_id: int,
    faq_id: str,
    data: FaqUpdate,
    _: Caller = Depends(require(Capability.WRITE)),
    service: ServicePageService = Depends(service_page_service),
):
    faq = await service.update_faq(
        service_id, faq_id, data.model_dump(exclude_unset=True, exclude_none=True)
    )
    return ok(faq, "FAQ updated successfully")


@router.delete("/{service_id}/faqs/{faq_id}")
async def delete_service_faq(
    service_id: int,
    faq_id: str,
    _: Caller = Depends(require(Capability.WRITE)),
    service: ServicePageService = Depends(service_page_service),
):
    await service.delete_faq(service_id, faq_id)
    return ok(message="FAQ deleted successfully")
