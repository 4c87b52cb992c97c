"""
Response envelope builders.

Every endpoint answers ``{success, message?, data?, errors?}``.  Handlers
build the complete object with these functions before returning it; nothing
rewrites a response after the fact.
"""
from datetime import datetime
from typing import Any

from content_api.query_planner import PageResult


def envelope(
    success: bool = True,
    message: str | None = None,
    data: Any = None,
    errors: list[dict] | None = None,
) -> dict:
    body: dict[str, Any] = {"success": success}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    if errors is not None:
        body["errors"] = errors
    return body


def ok(data: Any = None, message: str | None = None) -> dict:
    return envelope(True, message=message, data=data)


def failure(message: str, errors: list[dict] | None = None) -> dict:
    return envelope(False, message=message, errors=errors)


def page_data(key: str, result: PageResult, serialize) -> dict:
    """
    ``data`` payload for a list endpoint.

    Paginated results carry ``pagination = {current, total, totalItems}``;
    unpaginated ones carry only ``totalItems``.
    """
    data: dict[str, Any] = {key: [serialize(item) for item in result.items]}
    pagination = result.pagination()
    if pagination is not None:
        data["pagination"] = pagination
    else:
        data["totalItems"] = result.total_items
    return data


_HIDDEN_COLUMNS = frozenset({"content_digest"})


def serialize_row(entity) -> dict:
    """Plain dict of an ORM row's columns, datetimes as ISO-8601 strings."""
    data: dict[str, Any] = {}
    for column in entity.__table__.columns:
        if column.key in _HIDDEN_COLUMNS:
            continue
        value = getattr(entity, column.key)
        data[column.key] = value.isoformat() if isinstance(value, datetime) else value
    return data
