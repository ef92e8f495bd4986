"""
API Models for request/response validation and Swagger documentation
"""

from flask_restx import fields
from werkzeug.datastructures import FileStorage

from . import api

# =============================================================================
# Request Parsers
# =============================================================================

upload_parser = api.parser()
upload_parser.add_argument(
    "files",
    location="files",
    type=FileStorage,
    action="append",
    required=True,
    help="Files to upload into the inbox",
)

publish_parser = api.parser()
publish_parser.add_argument(
    "created",
    location="form",
    help="Timestamp or time expression relative to now (default: now)",
)
publish_parser.add_argument(
    "expires",
    location="form",
    help="Timestamp or time expression relative to the creation date",
)
publish_parser.add_argument(
    "id", location="form", help="Custom item ID (default: generated)"
)
publish_parser.add_argument(
    "timeout",
    location="form",
    help="Seconds, or a time expression for the end of the first timeout period",
)
publish_parser.add_argument(
    "timeout-immediately",
    location="form",
    choices=("true", "false"),
    help="Start the timeout now instead of at the first download",
)

page_parser = api.parser()
page_parser.add_argument("page", type=int, location="args", help="Page number (1-based)")

# =============================================================================
# Response Models
# =============================================================================

staged_file_model = api.model(
    "StagedFile",
    {
        "name": fields.String(description="File name in the inbox"),
        "size": fields.Integer(description="File size in bytes"),
        "modified": fields.Integer(description="Modification time (Unix timestamp)"),
    },
)

inbox_listing_response = api.model(
    "InboxListing",
    {
        "files": fields.List(
            fields.Nested(staged_file_model), description="Files waiting to be published"
        ),
    },
)

item_model = api.model(
    "Item",
    {
        "id": fields.String(description="Item ID used in the download link"),
        "filename": fields.String(description="Path of the file relative to the file store"),
        "created": fields.Integer(description="Start of validity (Unix timestamp)"),
        "expires": fields.Integer(description="End of validity", allow_null=True),
        "timeout": fields.Integer(
            description="Seconds of inactivity after which the item becomes invalid",
            allow_null=True,
        ),
        "activity": fields.Integer(description="Last download", allow_null=True),
        "downloads": fields.Integer(description="Download counter"),
        "user": fields.String(description="User that published the item", allow_null=True),
        "url": fields.String(description="Public download link"),
        "invalidity_date": fields.Integer(
            description="Earlier of expiry and timeout deadline", allow_null=True
        ),
        "valid": fields.Boolean(description="Whether the download link currently works"),
    },
)

items_page_response = api.model(
    "ItemsPage",
    {
        "items": fields.List(fields.Nested(item_model), description="Items, newest first"),
        "page": fields.Integer(description="Current page"),
        "pages": fields.Integer(description="Number of pages"),
        "total": fields.Integer(description="Number of items"),
    },
)

success_response = api.model(
    "SuccessResponse",
    {
        "message": fields.String(description="Status message", example="Success"),
    },
)

publish_response = api.model(
    "PublishResponse",
    {
        "message": fields.String(description="Status message", example="Success"),
        "item_id": fields.String(description="ID of the created item"),
        "filename": fields.String(description="Path of the published file"),
        "url": fields.String(description="Public download link"),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing explanation"),
        "action": fields.String(description="Suggested next step"),
        "detail": fields.String(description="Technical detail", allow_null=True),
    },
)
