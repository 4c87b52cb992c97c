"""
Domain errors raised by the lifecycle services.

Every error carries the HTTP status it maps to, so the exception handlers
registered in ``main.py`` translate them into the response envelope without
a per-router ``try``/``except``.
"""


class ContentError(Exception):
    """Base class for every error the content API reports to callers."""

    status_code: int = 500

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationFailed(ContentError):
    """Raised when input is malformed or missing; ``errors`` lists the fields."""

    status_code = 400

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailed":
        return cls("Validation failed", errors=[{"field": field, "message": message}])


class Conflict(ContentError):
    """Raised when a slug or another unique field is already taken."""

    status_code = 409


class NotFound(ContentError):
    """Raised when an id or slug does not resolve to a record."""

    status_code = 404

    def __init__(self, label: str, key: object | None = None) -> None:
        message = f"{label} not found"
        super().__init__(message)
        self.label = label
        self.key = key


class Forbidden(ContentError):
    """Raised when the caller's role lacks the capability for a mutation."""

    status_code = 403


class IllegalTransition(ContentError):
    """Raised when a status change is not an edge of the entity's state machine."""

    status_code = 400

    def __init__(self, label: str, current: str, target: str | None = None) -> None:
        if target is None:
            message = f"Cannot toggle status of {label.lower()} in state {current}"
        else:
            message = f"Cannot change {label.lower()} status from {current} to {target}"
        super().__init__(message)
        self.current = current
        self.target = target


class UploadFailed(ContentError):
    """Raised when the blob store rejects or fails a write."""

    status_code = 502

    def __init__(self, message: str = "Error uploading content") -> None:
        super().__init__(message)
