"""
Public Routes

Download links, the landing redirect and the health check. These routes
need no authentication.
"""

import os

from flask import Blueprint, current_app, jsonify, redirect, url_for

from ..config.settings import ShareableConfig
from ..domain.errors import ErrorCategory, create_error_response
from ..domain.file_storage import IFileStorageRepository
from ..domain.items import ItemManager
from .responses import render_outcome

public_bp = Blueprint("public", __name__)


@public_bp.route("/", methods=["GET"])
def index():
    """Redirect to the API documentation."""
    return redirect(url_for("api_v1.doc"))


@public_bp.route("/api/health", methods=["GET"])
def health():
    """
    Health check endpoint.
    Returns overall health status of the application and its dependencies.

    Lives below /api because every single path segment is a download link.
    """
    health_status, status_code = _get_health_status()
    return jsonify(health_status), status_code


@public_bp.route("/<string:item_id>", methods=["GET"])
def download(item_id):
    """
    Count a download and redirect to the published file.

    Invalid, expired and unknown items all answer 404.
    """
    config = current_app.container.resolve(ShareableConfig)
    try:
        item = current_app.container.resolve(ItemManager).get(item_id)
        if item is None:
            body, status_code = create_error_response(
                ErrorCategory.ITEM_NOT_FOUND, "Not found", status_code=404
            )
            return jsonify(body), status_code

        outcome = item.handle_redirect(debug=config.debug)
        if outcome.is_success:
            current_app.logger.info(f"Download {item.downloads} of item {item.id}")
            return render_outcome(outcome)

        body, status_code = render_outcome(outcome)
        return jsonify(body), status_code

    except OSError as e:
        current_app.logger.exception(f"Could not serve item {item_id}: {e}")
        body, status_code = create_error_response(
            ErrorCategory.STORAGE_ERROR,
            str(e) if config.debug else None,
            status_code=500,
        )
        return jsonify(body), status_code


def _get_health_status() -> tuple[dict, int]:
    """
    Get health status of all system components.

    Checks that the data directories are writable and whether Celery is
    configured.
    """
    container = current_app.container
    config = container.resolve(ShareableConfig)
    health_status = {
        "status": "ok",
        "message": "shareable ready",
        "files": "unknown",
        "inbox": "unknown",
        "items": "unknown",
        "celery": "unknown",
    }

    for name, path in (
        ("files", container.resolve(IFileStorageRepository).path()),
        ("inbox", config.inbox_path),
        ("items", config.items_path),
    ):
        if os.path.isdir(path) and os.access(path, os.W_OK):
            health_status[name] = "writable"
        else:
            health_status[name] = "unavailable"
            health_status["status"] = "degraded"

    # Celery only runs the cleanup; the API works without it
    if getattr(current_app, "celery", None) is not None:
        health_status["celery"] = "available"
    else:
        health_status["celery"] = "unavailable"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
