"""
Error taxonomy shared by every service. The API layer maps each kind to an
HTTP status; services raise them before any side effect takes place.
"""


class KioskError(Exception):
    """Base class. `kind` is reported to clients alongside the message."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message}


class ValidationError(KioskError):
    """Malformed or missing input (missing title, video on a child node, ...)."""

    kind = "validation_error"
    status_code = 422


class NotFoundError(KioskError):
    kind = "not_found"
    status_code = 404


class InvalidStateError(KioskError):
    """Operation does not apply to the entity's current shape."""

    kind = "invalid_state"
    status_code = 409


class StorageError(KioskError):
    """Object store operation failed."""

    kind = "storage_error"
    status_code = 502
