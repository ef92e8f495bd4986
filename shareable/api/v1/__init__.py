"""
Shareable REST API, version 1.

Inbox and item management behind HTTP Basic auth, documented with
Flask-RESTX.
"""

import os

from flask import Blueprint
from flask_restx import Api

API_VERSION = os.getenv("API_VERSION", "v1")

api_v1_bp = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

api = Api(
    api_v1_bp,
    version="1.0",
    title="Shareable API",
    description="Publish files behind short, time-limited download links",
    doc="/docs",
    authorizations={"basic": {"type": "basic"}},
    security="basic",
)

# namespaces import `api` models, so they come after it
from .namespaces import inbox_ns, items_ns  # noqa: E402

api.add_namespace(inbox_ns, path="/inbox")
api.add_namespace(items_ns, path="/items")
