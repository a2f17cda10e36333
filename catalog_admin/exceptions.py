"""
Error taxonomy for the catalog admin backend.

Services raise these; the application error handler turns them into JSON
responses, so no store or network failure escapes a request.
"""
from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base error carrying an HTTP status and a user-facing message."""
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload = {'success': False, 'error': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationFailed(CatalogError):
    """Required input missing or malformed; caught before any store call."""
    status_code = 400
    default_message = "Invalid request"


class ConfirmationRequired(CatalogError):
    """Destructive action issued without an explicit confirmation flag."""
    status_code = 400
    default_message = "This action must be confirmed with confirm=true"


class NotFoundError(CatalogError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(CatalogError):
    """Unique constraint violation reported by the store."""
    status_code = 409
    default_message = "Resource already exists"


class CategoryCycleError(ValidationFailed):
    default_message = "Parent assignment would create a category cycle"


class StoreError(CatalogError):
    """Store or network failure. Never retried."""
    status_code = 502
    default_message = "Data store request failed"


class StorageError(StoreError):
    default_message = "Image storage request failed"


class TriggerError(CatalogError):
    status_code = 502
    default_message = "Crawl trigger failed"


class CacheProxyError(CatalogError):
    status_code = 502
    default_message = "Failed to proxy cache invalidation request"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        if status_code:
            self.status_code = status_code


class AuthError(CatalogError):
    status_code = 401
    default_message = "Missing or invalid authorization header"


class ForbiddenError(CatalogError):
    status_code = 403
    default_message = "Access restricted to the organisation's accounts"
