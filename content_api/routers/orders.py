from fastapi import APIRouter, Depends, File, Form, UploadFile

from content_api.config import settings
from content_api.dependencies import order_service, read_upload
from content_api.responses import ok
from content_api.schemas import OrderSubmission
from content_api.services.order_service import OrderService

router = APIRouter(prefix="/api/v1/orders", tags=["orders"])


@router.post("/submit")
async def submit_order(
    email: str = Form(...),
    country_code: str = Form(...),
    phone_number: str = Form(...),
    subject_code: str = Form(...),
    description: str = Form(...),
    deadline: str = Form(...),
    pages: int = Form(...),
    accept_terms: bool = Form(...),
    attachments: list[UploadFile] | None = File(None),
    service: OrderService = Depends(order_service),
):
    form = OrderSubmission(
        email=email,
        country_code=country_code,
        phone_number=phone_number,
        subject_code=subject_code,
        description=description,
        deadline=deadline,
        pages=pages,
        accept_terms=accept_terms,
    )
    uploads = []
    for file in attachments or []:
        upload = await read_upload(file)
        if upload is not None:
            uploads.append(upload)
    result = await service.submit(form.model_dump(mode="json"), uploads)
    return ok(result, "Order submitted successfully")


if settings.is_development:

    @router.post("/test-notification")
    async def test_notification(service: OrderService = Depends(order_service)):
        sent = await service.test_notification()
        return ok({"emailSent": sent}, "Test notification dispatched")
