"""Domain errors raised by the service layer.

Every error carries a stable ``error_code`` and the HTTP status the API layer
renders it with. Routers never catch these; ``larder.main`` registers a single
exception handler for :class:`LarderError`.
"""


class LarderError(Exception):
    """Base class for all domain errors."""

    error_code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LarderError):
    """Malformed or missing input."""

    error_code = "VALIDATION_ERROR"
    status_code = 400


class BusinessRuleViolationError(ValidationError):
    """Well-formed input that breaks a domain rule (e.g. inviting yourself)."""

    error_code = "BUSINESS_RULE_VIOLATION"
    status_code = 422


class NotFoundError(LarderError):
    """Referenced entity is absent or belongs to another scope."""

    error_code = "NOT_FOUND"
    status_code = 404

    @classmethod
    def for_resource(cls, resource: str, resource_id: object) -> "NotFoundError":
        return cls(f"{resource} not found with id: {resource_id}")


class ConflictError(LarderError):
    """Uniqueness or duplicate-state violation."""

    error_code = "CONFLICT"
    status_code = 409


class InsufficientPermissionError(LarderError):
    """Role or ownership check failed."""

    error_code = "INSUFFICIENT_PERMISSION"
    status_code = 403


class ResourceStateError(LarderError):
    """Illegal transition for the resource's current state."""

    error_code = "RESOURCE_STATE_CONFLICT"
    status_code = 409


class DataIntegrityError(LarderError):
    """Persistence failure surfaced with domain context."""

    error_code = "DATA_INTEGRITY_VIOLATION"
    status_code = 409


class ExternalServiceError(LarderError):
    """An upstream service call failed."""

    error_code = "EXTERNAL_SERVICE_ERROR"
    status_code = 502

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service
