"""
Response Helpers

Renders domain outcomes and unexpected failures as API responses.
"""

from typing import Any, Dict, Tuple, Union

from flask import current_app, redirect
from werkzeug.wrappers import Response

from ..domain.errors import ErrorCategory, create_error_response
from ..domain.outcomes import Outcome, OutcomeKind

ApiResponse = Union[Response, Tuple[Dict[str, Any], int]]


def render_outcome(outcome: Outcome) -> ApiResponse:
    """
    Convert an outcome into a Flask-RESTX return value.

    Redirects become real redirect responses, JSON payloads are returned
    as they are, plain messages are wrapped in ``{"message": ...}`` and
    failures use the structured error body.
    """
    if outcome.kind == OutcomeKind.REDIRECT:
        return redirect(outcome.location, code=outcome.status_code)

    if not outcome.is_success:
        return create_error_response(
            outcome.category or ErrorCategory.SYSTEM_ERROR,
            outcome.body,
            status_code=outcome.status_code,
        )

    if outcome.content_type == "application/json":
        return outcome.body, outcome.status_code

    return {"message": outcome.body, **outcome.data}, outcome.status_code


def storage_error_response(e: OSError) -> Tuple[Dict[str, Any], int]:
    """Error response for a failed filesystem operation."""
    current_app.logger.exception(f"Storage operation failed: {e}")
    return create_error_response(ErrorCategory.STORAGE_ERROR, str(e), status_code=500)


def unexpected_error_response(e: Exception, debug: bool = False) -> Tuple[Dict[str, Any], int]:
    """
    Error response for an unexpected exception.

    The exception text is only exposed in debug mode.
    """
    current_app.logger.exception(f"Unexpected error: {e}")
    return create_error_response(
        ErrorCategory.SYSTEM_ERROR,
        f"Unexpected error: {e}" if debug else None,
        status_code=500,
    )
