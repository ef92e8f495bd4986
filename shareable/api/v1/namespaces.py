"""
API Namespaces - Organized endpoint groups
"""

import math
import os
import tempfile

from flask import current_app, g, request
from flask_restx import Namespace, Resource

from ...config.settings import ShareableConfig
from ...domain.errors import ErrorCategory, create_error_response
from ...domain.inbox import UPLOAD_ERR_NO_FILE, IncomingFile, StagingArea
from ...domain.items import Item, ItemManager
from ..auth import require_permission
from ..responses import render_outcome, storage_error_response, unexpected_error_response
from .models import (
    error_response,
    inbox_listing_response,
    item_model,
    items_page_response,
    page_parser,
    publish_parser,
    publish_response,
    staged_file_model,
    success_response,
    upload_parser,
)


def _container():
    return current_app.container


def _item_dict(item: Item) -> dict:
    data = item.to_dict()
    data["id"] = item.id
    data["url"] = request.url_root + item.id
    data["invalidity_date"] = item.invalidity_date()
    data["valid"] = item.is_valid()
    return data


# =============================================================================
# Inbox Namespace - Uploading and publishing staged files
# =============================================================================

inbox_ns = Namespace("inbox", description="Staging area operations")


@inbox_ns.route("")
class Inbox(Resource):
    """Inbox listing and uploads"""

    @inbox_ns.doc("list_inbox")
    @inbox_ns.response(200, "Success", inbox_listing_response)
    @inbox_ns.response(401, "Authentication Required", error_response)
    @require_permission("upload", "publish")
    def get(self):
        """
        List files waiting in the inbox

        Dotfiles and directories are not listed.
        """
        try:
            staging = _container().resolve(StagingArea)
            files = [staged.to_dict() for staged in staging.listing().values()]
            return {"files": files}, 200
        except OSError as e:
            return storage_error_response(e)
        except Exception as e:
            return unexpected_error_response(e, g.request_context.debug)

    @inbox_ns.doc("upload_files")
    @inbox_ns.expect(upload_parser)
    @inbox_ns.response(201, "Created", success_response)
    @inbox_ns.response(400, "Bad Request", error_response)
    @inbox_ns.response(401, "Authentication Required", error_response)
    @inbox_ns.response(500, "Storage Error", error_response)
    @require_permission("upload")
    def post(self):
        """
        Upload files into the inbox

        Send the files as multipart form field ``files``. Existing inbox
        files are never overwritten; colliding names get a numeric suffix.
        """
        staging = _container().resolve(StagingArea)
        transfers = []
        try:
            for upload in request.files.getlist("files"):
                transfers.append(_receive(upload, staging.upload_tmp_path))

            outcome = staging.handle_upload(transfers, g.request_context)
            return render_outcome(outcome)
        except OSError as e:
            return storage_error_response(e)
        except Exception as e:
            return unexpected_error_response(e, g.request_context.debug)
        finally:
            # transfers that were not moved into the inbox
            for transfer in transfers:
                if transfer.temp_path and os.path.exists(transfer.temp_path):
                    os.unlink(transfer.temp_path)


def _receive(upload, upload_tmp_path: str) -> IncomingFile:
    """Store one multipart upload in the upload temp directory."""
    if not upload.filename:
        return IncomingFile(filename="", temp_path=None, error=UPLOAD_ERR_NO_FILE)

    fd, temp_path = tempfile.mkstemp(dir=upload_tmp_path, prefix="upload-")
    with os.fdopen(fd, "wb") as f:
        upload.save(f)

    return IncomingFile(filename=upload.filename, temp_path=temp_path)


@inbox_ns.route("/<string:name>")
@inbox_ns.param("name", "Name of the file in the inbox")
class InboxFile(Resource):
    """Single staged file operations"""

    @inbox_ns.doc("get_staged_file")
    @inbox_ns.response(200, "Success", staged_file_model)
    @inbox_ns.response(401, "Authentication Required", error_response)
    @inbox_ns.response(404, "File Not Found", error_response)
    @require_permission("publish")
    def get(self, name):
        """Get size and modification time of a staged file"""
        staged = _container().resolve(StagingArea).get(name)
        if staged is None:
            return create_error_response(
                ErrorCategory.FILE_NOT_FOUND,
                f"File {name} not found",
                status_code=404,
            )
        return staged.to_dict(), 200

    @inbox_ns.doc("publish_file")
    @inbox_ns.expect(publish_parser)
    @inbox_ns.response(201, "Created", publish_response)
    @inbox_ns.response(400, "Bad Request", error_response)
    @inbox_ns.response(401, "Authentication Required", error_response)
    @inbox_ns.response(404, "File Not Found", error_response)
    @inbox_ns.response(500, "Storage Error", error_response)
    @require_permission("publish")
    def post(self, name):
        """
        Publish a staged file

        Creates the item and moves the file into the file store. Time
        values accept Unix timestamps and expressions such as
        ``2018-01-01``, ``+1 day`` or ``tomorrow``.
        """
        ctx = g.request_context
        try:
            outcome = _container().resolve(StagingArea).handle_publish(name, ctx)
            response = render_outcome(outcome)
            if outcome.is_success:
                body, status_code = response
                body["url"] = request.url_root + outcome.data["item_id"]
                current_app.logger.info(
                    f"User {ctx.username} published {name} as {outcome.data['item_id']}"
                )
            return response
        except Exception as e:
            return unexpected_error_response(e, ctx.debug)

    @inbox_ns.doc("delete_staged_file")
    @inbox_ns.response(200, "Success", success_response)
    @inbox_ns.response(401, "Authentication Required", error_response)
    @inbox_ns.response(404, "File Not Found", error_response)
    @inbox_ns.response(500, "Storage Error", error_response)
    @require_permission("publish")
    def delete(self, name):
        """Delete a staged file"""
        try:
            outcome = _container().resolve(StagingArea).handle_delete(name)
            return render_outcome(outcome)
        except Exception as e:
            return unexpected_error_response(e, g.request_context.debug)


# =============================================================================
# Items Namespace - Published items
# =============================================================================

items_ns = Namespace("items", description="Published item operations")


@items_ns.route("")
class Items(Resource):
    """Item listing"""

    @items_ns.doc("list_items")
    @items_ns.expect(page_parser)
    @items_ns.response(200, "Success", items_page_response)
    @items_ns.response(401, "Authentication Required", error_response)
    @require_permission("meta")
    def get(self):
        """
        List items, newest first

        Use ``page`` to page through the listing.
        """
        try:
            page = int(request.args.get("page", 1))
        except ValueError:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Invalid page number", status_code=400
            )

        try:
            manager = _container().resolve(ItemManager)
            per_page = _container().resolve(ShareableConfig).items_per_page

            # the listing always reflects the records on disk
            manager.invalidate()
            items = manager.collection().sorted_by("created", reverse=True)

            pages = max(1, math.ceil(len(items) / per_page))
            page = min(max(page, 1), pages)
            start = (page - 1) * per_page

            return {
                "items": [_item_dict(item) for item in items[start:start + per_page]],
                "page": page,
                "pages": pages,
                "total": len(items),
            }, 200
        except OSError as e:
            return storage_error_response(e)
        except Exception as e:
            return unexpected_error_response(e, g.request_context.debug)


@items_ns.route("/<string:item_id>")
@items_ns.param("item_id", "The item identifier")
class ItemResource(Resource):
    """Single item operations"""

    @items_ns.doc("get_item")
    @items_ns.response(200, "Success", item_model)
    @items_ns.response(401, "Authentication Required", error_response)
    @items_ns.response(404, "Item Not Found", error_response)
    @require_permission("meta")
    def get(self, item_id):
        """
        Get item metadata

        Also returns items that are no longer valid.
        """
        try:
            item = _container().resolve(ItemManager).get(item_id)
            if item is None:
                return create_error_response(
                    ErrorCategory.ITEM_NOT_FOUND,
                    f"Item {item_id} not found",
                    status_code=404,
                )

            outcome = item.handle_meta()
            body, status_code = render_outcome(outcome)
            body["id"] = item.id
            body["url"] = request.url_root + item.id
            return body, status_code
        except OSError as e:
            return storage_error_response(e)
        except Exception as e:
            return unexpected_error_response(e, g.request_context.debug)

    @items_ns.doc("delete_item")
    @items_ns.response(200, "Success", success_response)
    @items_ns.response(401, "Authentication Required", error_response)
    @items_ns.response(404, "Item Not Found", error_response)
    @items_ns.response(500, "Storage Error", error_response)
    @require_permission("delete")
    def delete(self, item_id):
        """
        Delete an item and its file

        The file is removed first; if that fails the item is kept.
        """
        ctx = g.request_context
        try:
            manager = _container().resolve(ItemManager)
            item = manager.get(item_id)
            if item is None:
                return create_error_response(
                    ErrorCategory.ITEM_NOT_FOUND,
                    f"Item {item_id} not found",
                    status_code=404,
                )

            outcome = item.handle_deletion()
            manager.invalidate()
            current_app.logger.info(f"User {ctx.username} deleted item {item_id}")
            return render_outcome(outcome)
        except OSError as e:
            return storage_error_response(e)
        except Exception as e:
            return unexpected_error_response(e, ctx.debug)
