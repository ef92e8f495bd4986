"""
Outcome Value Object

Encapsulates the result of an inbox or item operation as an
HTTP-equivalent response that the web layer renders.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from .errors import ErrorCategory


class OutcomeKind(Enum):
    """Closed set of outcome variants."""

    OK = "ok"
    CREATED = "created"
    REDIRECT = "redirect"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    IO_ERROR = "io_error"


@dataclass(frozen=True)
class Outcome:
    """
    Value object representing the result of a core operation.

    Carries a status code, body and content type like an HTTP response,
    plus the error category for the failure variants.
    """

    kind: OutcomeKind
    status_code: int
    body: Union[str, Dict[str, Any], None] = None
    content_type: str = "text/plain"
    location: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    category: Optional[ErrorCategory] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, body: str = "Success", **data: Any) -> "Outcome":
        return cls(OutcomeKind.OK, 200, body, data=data)

    @classmethod
    def created(cls, body: str = "Success", **data: Any) -> "Outcome":
        return cls(OutcomeKind.CREATED, 201, body, data=data)

    @classmethod
    def json(cls, payload: Dict[str, Any], status_code: int = 200) -> "Outcome":
        return cls(OutcomeKind.OK, status_code, payload, content_type="application/json")

    @classmethod
    def redirect(cls, location: str, status_code: int = 302) -> "Outcome":
        return cls(
            OutcomeKind.REDIRECT,
            status_code,
            location=location,
            headers={"Location": location},
        )

    @classmethod
    def not_found(
        cls,
        message: str = "Not found",
        category: ErrorCategory = ErrorCategory.ITEM_NOT_FOUND,
    ) -> "Outcome":
        return cls(OutcomeKind.NOT_FOUND, 404, message, category=category)

    @classmethod
    def validation_error(
        cls,
        message: str,
        category: ErrorCategory = ErrorCategory.INVALID_REQUEST,
    ) -> "Outcome":
        return cls(OutcomeKind.VALIDATION_ERROR, 400, message, category=category)

    @classmethod
    def io_error(
        cls,
        message: str,
        category: ErrorCategory = ErrorCategory.STORAGE_ERROR,
    ) -> "Outcome":
        return cls(OutcomeKind.IO_ERROR, 500, message, category=category)

    @property
    def is_success(self) -> bool:
        return self.kind in (OutcomeKind.OK, OutcomeKind.CREATED, OutcomeKind.REDIRECT)
