"""Custom exceptions for the content engine."""

from typing import Any


class CMSError(Exception):
    """Base exception for content engine errors.

    Every subclass carries a machine-readable ``kind`` and the HTTP status
    the API layer reports for it.
    """

    kind = "Internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "message": self.message}


class NotFoundError(CMSError):
    """Raised when a content type or item is absent, or ownership does not match."""

    kind = "NotFound"
    status_code = 404


class PayloadValidationError(CMSError):
    """Raised when a payload does not satisfy its content type's schema."""

    kind = "ValidationFailed"
    status_code = 400

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["errors"] = self.errors
        return payload


class InvalidSlugError(CMSError):
    """Raised when slug normalization yields an empty string."""

    kind = "InvalidSlug"
    status_code = 400


class ConflictError(CMSError):
    """Raised when a slug is already taken within a content type."""

    kind = "Conflict"
    status_code = 409


class DeniedError(CMSError):
    """Raised when a before-hook vetoes an operation."""

    kind = "Denied"
    status_code = 403


class InternalError(CMSError):
    """Raised for storage or schema failures that are not the caller's fault."""

    pass


class SchemaDefinitionError(InternalError):
    """Raised when a stored schema representation cannot be turned into a validator."""

    pass


class SchemaSyncError(InternalError):
    """Raised when one or more content type declarations failed to sync."""

    def __init__(self, message: str, failures: dict[str, str] | None = None):
        super().__init__(message)
        self.failures = failures or {}


class AdapterError(Exception):
    """Base exception for backend store adapter failures."""

    pass


class UniqueViolationError(AdapterError):
    """Raised when a write violates a unique constraint."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field
