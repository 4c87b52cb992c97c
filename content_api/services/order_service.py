"""
Order intake.

Orders are not persisted: the submission is validated, its attachments are
written to the blob store under ``orders/<order-id>/`` and the enriched
order is handed to a ``Notifier``.  Formatting and delivery of the actual
notification belong to the notifier implementation.
"""
import logging
import os
import secrets
import string
import time
from typing import Protocol

from content_api.errors import UploadFailed, ValidationFailed
from content_api.services.entity_service import Upload
from content_api.storage import IMAGE, RAW, ContentStore, StoredObject

logger = logging.getLogger(__name__)

MAX_ATTACHMENTS = 5
_BASE36 = string.digits + string.ascii_uppercase


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_order_id(now_ms: int | None = None) -> str:
    """``ODR-<base36 millisecond timestamp>-<5 random base36 chars>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"ODR-{to_base36(now_ms)}-{suffix}"


class Notifier(Protocol):
    async def notify(self, order: dict) -> bool:
        ...


class LoggingNotifier:
    """Default notifier: records the order in the application log."""

    async def notify(self, order: dict) -> bool:
        logger.info(
            "New order %s from %s: %s, %s page(s), due %s, %d attachment(s)",
            order["orderId"], order["email"], order["subject_code"],
            order["pages"], order["deadline"], len(order["attachments"]),
        )
        return True


def _resource_type(upload: Upload) -> str:
    return IMAGE if (upload.content_type or "").startswith("image/") else RAW


class OrderService:
    def __init__(self, store: ContentStore, notifier: Notifier) -> None:
        self.store = store
        self.notifier = notifier

    async def _store_attachments(self, order_id: str, attachments: list[Upload]) -> list[dict]:
        stored: list[tuple[StoredObject, Upload]] = []
        try:
            for index, upload in enumerate(attachments, start=1):
                name = upload.filename or f"attachment-{index}"
                resource_type = _resource_type(upload)
                if resource_type == IMAGE:
                    # The provider appends the format to image ids.
                    name = os.path.splitext(name)[0]
                obj = await self.store.upload(
                    upload.data, f"orders/{order_id}/{index}-{name}", resource_type
                )
                stored.append((obj, upload))
        except UploadFailed:
            for obj, _upload in stored:
                await self.store.delete(obj.locator)
            raise
        return [
            {
                "url": obj.url,
                "name": upload.filename,
                "size": len(upload.data),
                "type": upload.content_type,
            }
            for obj, upload in stored
        ]

    async def submit(self, form: dict, attachments: list[Upload]) -> dict:
        if len(attachments) > MAX_ATTACHMENTS:
            raise ValidationFailed.for_field(
                "attachments", f"At most {MAX_ATTACHMENTS} files may be attached"
            )
        order_id = generate_order_id()
        files = await self._store_attachments(order_id, attachments)
        order = {**form, "orderId": order_id, "attachments": files}

        try:
            email_sent = await self.notifier.notify(order)
        except Exception as exc:
            logger.error("Notification for order %s failed: %s", order_id, exc)
            email_sent = False

        logger.info("Order %s submitted", order_id)
        return {"orderId": order_id, "emailSent": email_sent, "attachments": files}

    async def test_notification(self) -> bool:
        sample = {
            "orderId": generate_order_id(),
            "email": "test@example.com",
            "country_code": "+1",
            "phone_number": "5550100",
            "subject_code": "TEST101",
            "description": "Notification pipeline check",
            "deadline": "tomorrow",
            "pages": 1,
            "attachments": [],
        }
        return await self.notifier.notify(sample)
