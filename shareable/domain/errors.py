"""
Errors

Error categories with their user-facing texts, the domain exception tree
and the JSON error body returned by the API. Storage errors double as
OSError so I/O handlers catch them.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ErrorCategory(Enum):
    """Category reported in the "error" field of API error bodies."""

    INVALID_REQUEST = "invalid_request"
    INVALID_ITEM_ID = "invalid_item_id"
    INVALID_TIME = "invalid_time"
    ITEM_NOT_FOUND = "item_not_found"
    FILE_NOT_FOUND = "file_not_found"
    UPLOAD_FAILED = "upload_failed"
    STORAGE_ERROR = "storage_error"
    AUTHENTICATION_REQUIRED = "authentication_required"
    SYSTEM_ERROR = "system_error"


# Texts shown to API clients per category
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Please check your input and try again.",
    },
    ErrorCategory.INVALID_ITEM_ID: {
        "title": "Invalid Item ID",
        "message": "Item IDs may only contain letters, digits and the characters . - =",
        "action": "Choose a different ID or leave the field empty to generate one.",
    },
    ErrorCategory.INVALID_TIME: {
        "title": "Invalid Time",
        "message": "A time value could not be understood.",
        "action": "Use a timestamp, a date like 2018-01-01 or a relative time like +1 day.",
    },
    ErrorCategory.ITEM_NOT_FOUND: {
        "title": "Item Not Found",
        "message": "The requested item does not exist.",
        "action": "Check the item ID.",
    },
    ErrorCategory.FILE_NOT_FOUND: {
        "title": "File Not Found",
        "message": "The requested file could not be found or has been deleted.",
        "action": "Refresh the inbox listing.",
    },
    ErrorCategory.UPLOAD_FAILED: {
        "title": "Upload Failed",
        "message": "The uploaded file could not be accepted.",
        "action": "Please try the upload again.",
    },
    ErrorCategory.STORAGE_ERROR: {
        "title": "Storage Error",
        "message": "A file or record could not be written, moved or deleted.",
        "action": "Check the permissions of the data directories.",
    },
    ErrorCategory.AUTHENTICATION_REQUIRED: {
        "title": "Authentication Required",
        "message": "You need to log in with a user that has the required permission.",
        "action": "Provide valid credentials.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact the operator.",
    },
}


# ============================================================================
# Domain Exceptions
# ============================================================================

class DomainError(Exception):
    """
    Root of the domain exceptions.

    ``category`` selects the API error body; ``original_error`` keeps the
    low-level exception (usually an OSError) that caused it.
    """

    category = ErrorCategory.SYSTEM_ERROR

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class ValidationError(DomainError):
    """Raised when caller-supplied data is malformed or inconsistent."""

    category = ErrorCategory.INVALID_REQUEST


class NotFoundError(DomainError):
    """Raised when a referenced item or staged file does not exist."""

    category = ErrorCategory.ITEM_NOT_FOUND


class StorageError(DomainError, OSError):
    """
    Raised when a filesystem operation fails.

    Also an OSError so that callers handling I/O failures catch it.
    """

    category = ErrorCategory.STORAGE_ERROR


class ConfigurationError(DomainError):
    """Raised when the application configuration is invalid."""


# Item errors

class InvalidItemIdError(ValidationError):
    category = ErrorCategory.INVALID_ITEM_ID


class ItemValidationError(ValidationError):
    """Raised when item properties have the wrong type or value."""


class MissingFilenameError(ItemValidationError):
    pass


class ExpiryBeforeCreationError(ItemValidationError):
    pass


class ItemExistsError(ValidationError):
    pass


class ItemNotFoundError(NotFoundError):
    pass


class CorruptItemError(StorageError):
    """Raised when a persisted record cannot be read as an item."""


class DeletedItemError(DomainError):
    """Raised when a deleted item would be written to."""


class ItemWriteError(StorageError):
    pass


class ItemDeletionError(StorageError):
    pass


class BlobDeletionError(StorageError):
    pass


# Encoder errors

class EncodingError(ValidationError):
    pass


# Inbox errors

class StagedFileNotFoundError(NotFoundError):
    category = ErrorCategory.FILE_NOT_FOUND


class InvalidTimeExpressionError(ValidationError):
    category = ErrorCategory.INVALID_TIME


class TimeoutNotSetError(ValidationError):
    pass


class NothingUploadedError(ValidationError):
    category = ErrorCategory.UPLOAD_FAILED


class UploadTransferError(ValidationError):
    category = ErrorCategory.UPLOAD_FAILED


class UploadSecurityError(ValidationError):
    category = ErrorCategory.UPLOAD_FAILED


class UploadMoveError(StorageError):
    pass


class PublishMoveError(StorageError):
    pass


# User errors

class InvalidPermissionError(ValidationError):
    pass


class InvalidPasswordHashError(ValidationError):
    pass


# ============================================================================
# API Error Bodies
# ============================================================================

class ApplicationError(Exception):
    """
    An error as the API reports it: a category with its user-facing title,
    message and suggested action, plus an optional technical detail.
    """

    def __init__(self, category: ErrorCategory, technical_message: Optional[str] = None):
        info = ERROR_MESSAGES.get(category) or ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]

        self.category = category
        self.technical_message = technical_message or ""
        self.title = info["title"]
        self.message = info["message"]
        self.action = info["action"]
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }
        if self.technical_message:
            body["detail"] = self.technical_message
        return body


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    status_code: int = 400,
) -> Tuple[Dict[str, Any], int]:
    """
    Build the ``(body, status)`` pair API handlers return for a failure.

    ``technical_message`` ends up in ``detail``; leave it out for errors
    whose cause must not be exposed.
    """
    return ApplicationError(category, technical_message).to_dict(), status_code
