"""
Inbox Services

Domain service for the staging area: listing, deleting and accepting
uploaded files, and publishing them as items.
"""

import logging
import os
import shutil
from datetime import timezone, tzinfo
from typing import Callable, Dict, List, Optional

from ..context import RequestContext
from ..errors import (
    ErrorCategory,
    InvalidTimeExpressionError,
    ItemExistsError,
    NothingUploadedError,
    PublishMoveError,
    TimeoutNotSetError,
    UploadMoveError,
    UploadSecurityError,
    UploadTransferError,
    ValidationError,
)
from ..file_storage import IFileStorageRepository
from ..items import ItemManager, ItemProps
from ..outcomes import Outcome
from .naming import find_free_path
from .time_expressions import TimeExpressionError, is_integer, parse_time, resolve_time
from .value_objects import IncomingFile, StagedFile

logger = logging.getLogger(__name__)


def client_filename(filename: str) -> str:
    """
    The name a client sent, without directory components.

    Leading dots are dropped so the file shows up in the listing. Spaces
    and non-ASCII characters are kept as they are.
    """
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    if "\0" in name:
        return ""
    return name.strip().lstrip(".")


def load_staging_listing(path: str) -> Dict[str, StagedFile]:
    """
    Snapshot of the files in a staging directory, ordered by name.

    Dotfiles and directories are skipped.
    """
    files = {}
    for entry in sorted(os.scandir(path), key=lambda e: e.name):
        if entry.name.startswith(".") or not entry.is_file():
            continue
        files[entry.name] = StagedFile.from_path(entry.path)
    return files


class StagingArea:
    """
    Domain service for the inbox.

    Publishing creates the item record first and moves the file into the
    permanent store afterwards, so that an interrupted publish leaves at
    worst a record pointing to a missing file (reported by the cleanup)
    instead of an unreferenced file.
    """

    def __init__(
        self,
        inbox_path: str,
        file_store: IFileStorageRepository,
        items: ItemManager,
        upload_tmp_path: str,
        use_subdirs: bool = False,
        tz: tzinfo = timezone.utc,
    ):
        """
        Initialize StagingArea.

        Args:
            inbox_path: Directory holding the staged files
            file_store: Permanent store for published files
            items: Item manager creating the records
            upload_tmp_path: Directory the upload mechanism stores transfers in
            use_subdirs: Publish every file into a subdirectory named after its item
            tz: Timezone for time expressions
        """
        self.inbox_path = inbox_path
        self.file_store = file_store
        self.items = items
        self.upload_tmp_path = upload_tmp_path
        self.use_subdirs = use_subdirs
        self.tz = tz

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def listing(self) -> Dict[str, StagedFile]:
        return load_staging_listing(self.inbox_path)

    def get(self, name: str) -> Optional[StagedFile]:
        """Return a staged file by name, or None if it does not exist."""
        if not name or name.startswith(".") or "/" in name or os.sep in name:
            return None

        path = os.path.join(self.inbox_path, name)
        if not os.path.isfile(path):
            return None

        return StagedFile.from_path(path)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def delete(self, name: str) -> Outcome:
        """
        Delete a file from the inbox.

        Raises:
            OSError: If the file exists but could not be deleted
        """
        staged = self.get(name)
        if staged is None:
            return Outcome.not_found(category=ErrorCategory.FILE_NOT_FOUND)

        os.unlink(staged.path)
        logger.info(f"Deleted inbox file {staged.name}")
        return Outcome.ok("Success")

    def upload(
        self, transfers: List[IncomingFile], ctx: Optional[RequestContext] = None
    ) -> Outcome:
        """
        Move uploaded files into the inbox.

        Files are processed in order; the first failure aborts the call,
        files moved before it stay in the inbox.

        Raises:
            NothingUploadedError: If no file was uploaded
            UploadTransferError: If a transfer reported an error
            UploadSecurityError: If a transfer was not stored by the upload mechanism
            UploadMoveError: If a file could not be moved into the inbox
        """
        if not transfers:
            raise NothingUploadedError("No file was uploaded")

        for transfer in transfers:
            if transfer.error != 0:
                raise UploadTransferError(f'File upload error: "{transfer.error}"')

            if not self._is_uploaded_file(transfer.temp_path):
                raise UploadSecurityError(
                    f'File "{transfer.filename}" was not properly uploaded'
                )

            name = client_filename(transfer.filename or "")
            if not name:
                raise UploadSecurityError(
                    f'File "{transfer.filename}" was not properly uploaded'
                )

            # don't overwrite any existing file in the inbox
            filename = find_free_path(self.inbox_path, name)
            destination = os.path.join(self.inbox_path, filename)

            try:
                shutil.move(transfer.temp_path, destination)
            except OSError as e:
                raise UploadMoveError(
                    f'Could not move uploaded file "{transfer.filename}"', original_error=e
                ) from e

            logger.info(
                f"Uploaded {filename} to the inbox"
                + (f" (user {ctx.username})" if ctx else "")
            )

        return Outcome.created("Success")

    def publish(self, name: str, ctx: RequestContext) -> Outcome:
        """
        Publish a staged file by creating its item and moving the file.

        Request parameters (empty values are ignored):
            - ``created``: timestamp or time expression relative to now
            - ``expires``: timestamp or time expression relative to ``created``
            - ``id``: custom item ID
            - ``timeout``: seconds or a time expression for the end of the
              first timeout period, relative to now
            - ``timeout-immediately``: ``"true"`` to start the timeout now

        Raises:
            InvalidTimeExpressionError: If a time value cannot be parsed
            TimeoutNotSetError: If the timeout should start without a timeout
            ValidationError: If the item properties are invalid
            PublishMoveError: If the file could not be moved after creating the item
        """
        staged = self.get(name)
        if staged is None:
            return Outcome.not_found(category=ErrorCategory.FILE_NOT_FOUND)

        now = ctx.now
        props = ItemProps(filename=staged.name, created=now, user=ctx.username)

        created = ctx.param("created")
        if created is not None:
            props.created = parse_time("Created", created, now, self.tz)

        expires = ctx.param("expires")
        if expires is not None:
            props.expires = parse_time("Expires", expires, props.created, self.tz)

        item_id = ctx.param("id")
        if item_id is not None:
            props.id = item_id

        timeout = ctx.param("timeout")
        if timeout is not None:
            props.timeout = self._parse_timeout(timeout, now)

        if ctx.param("timeout-immediately") == "true":
            if props.timeout is None:
                raise TimeoutNotSetError("Cannot start timeout immediately if no timeout is set")
            props.activity = props.created

        # everything is checked before a subdirectory gets created
        props.validate()
        if props.id is None:
            props.id = self.items.generate_id(props.created)
        elif self.items.exists(props.id):
            raise ItemExistsError(f'Item "{props.id}" already exists')

        # don't overwrite any existing file; subdirectories are keyed by item ID
        props.filename = find_free_path(
            self.file_store.path(), staged.name, props.id, self.use_subdirs
        )

        try:
            item = self.items.create(props, ctx.username, now=now)
        except Exception:
            self._remove_empty_subdir(props.filename)
            raise

        # move the file at the end now that the record exists
        try:
            self.file_store.move_in(staged.path, item.filename)
        except OSError as e:
            raise PublishMoveError(
                f'Could not move file "{staged.path}" to "{self.file_store.path()}"',
                original_error=e,
            ) from e

        logger.info(f"Published {staged.name} as item {item.id} ({item.filename})")
        return Outcome.created("Success", item_id=item.id, filename=item.filename)

    # ------------------------------------------------------------------
    # Handlers returning outcomes for every failure class
    # ------------------------------------------------------------------

    def handle_delete(self, name: str) -> Outcome:
        return self._guard(lambda: self.delete(name))

    def handle_upload(self, transfers: List[IncomingFile], ctx: RequestContext) -> Outcome:
        return self._guard(lambda: self.upload(transfers, ctx))

    def handle_publish(self, name: str, ctx: RequestContext) -> Outcome:
        return self._guard(lambda: self.publish(name, ctx))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _guard(operation: Callable[[], Outcome]) -> Outcome:
        try:
            return operation()
        except ValidationError as e:
            logger.info(f"Rejected inbox request: {e}")
            return Outcome.validation_error(str(e), e.category)
        except OSError as e:
            logger.exception(f"Inbox operation failed: {e}")
            return Outcome.io_error(str(e))

    def _parse_timeout(self, value: str, now: int) -> int:
        if is_integer(value):
            return int(value)

        # natural language describes the end of the timeout period
        try:
            return resolve_time(value, now, self.tz) - now
        except TimeExpressionError as e:
            raise InvalidTimeExpressionError(
                f'Could not convert value "{value}" for field "Timeout" to integer',
                original_error=e,
            ) from e

    def _is_uploaded_file(self, temp_path: Optional[str]) -> bool:
        """Check that a transfer was stored by the upload mechanism."""
        if not temp_path or not os.path.isfile(temp_path):
            return False

        upload_root = os.path.realpath(self.upload_tmp_path)
        return os.path.realpath(temp_path).startswith(upload_root + os.sep)

    def _remove_empty_subdir(self, filename: str) -> None:
        if not self.use_subdirs or "/" not in filename:
            return

        subdir = self.file_store.path(filename.split("/", 1)[0])
        if os.path.isdir(subdir) and not os.listdir(subdir):
            os.rmdir(subdir)
