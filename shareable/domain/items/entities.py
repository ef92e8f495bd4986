"""
Item Entities

A published file's shareability record: validity window, download
counter and the referenced blob. Items persist themselves as one JSON
file per item inside the items directory.
"""

import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

from ..context import current_time
from ..errors import (
    CorruptItemError,
    DeletedItemError,
    ExpiryBeforeCreationError,
    InvalidItemIdError,
    ItemDeletionError,
    ItemExistsError,
    ItemNotFoundError,
    ItemValidationError,
    ItemWriteError,
    MissingFilenameError,
)
from ..file_storage import IFileStorageRepository
from ..outcomes import Outcome
from .id_encoder import BijectiveEncoder

logger = logging.getLogger(__name__)

ID_PATTERN = re.compile(r"^[a-zA-Z0-9.\-=]+$")
RECORD_EXTENSION = ".json"

# datetime's range (years 1 to 9999) minus a day, so every timezone can show it
MIN_TIMESTAMP = -62135596800 + 86400
MAX_TIMESTAMP = 253402300799 - 86400

_default_encoder = BijectiveEncoder()


def is_valid_id(name: str) -> bool:
    """Check if the given string would be a valid item ID."""
    return isinstance(name, str) and ID_PATTERN.match(name) is not None


def record_path(base_path: str, item_id: str) -> str:
    """Return the path of the record file for an item ID."""
    return os.path.join(base_path, item_id + RECORD_EXTENSION)


def generate_id(
    created: int,
    exists: Callable[[str], bool],
    tz: tzinfo = timezone.utc,
    encoder: Optional[BijectiveEncoder] = None,
) -> str:
    """
    Generate a new, unused item ID.

    The first part encodes the creation date (yymmdd), the last two
    characters are random and re-rolled until the ID is unused.
    """
    encoder = encoder or _default_encoder
    date_part = encoder.encode(int(datetime.fromtimestamp(created, tz).strftime("%y%m%d")))

    while True:
        candidate = date_part + encoder.random_string(2)
        if not exists(candidate):
            return candidate


def _check_int(name: str, value: Any, optional: bool = True) -> None:
    if value is None and optional:
        return
    # bool is an int subclass but never a valid timestamp
    if not isinstance(value, int) or isinstance(value, bool):
        raise ItemValidationError(f'Invalid value "{value}" for "{name}", expected integer')


@dataclass
class ItemProps:
    """
    Fully assembled item configuration.

    Used for new items (publish workflow) and for records loaded from
    disk. ``validate()`` checks everything up front.
    """

    filename: Optional[str] = None
    created: Optional[int] = None
    expires: Optional[int] = None
    timeout: Optional[int] = None
    activity: Optional[int] = None
    downloads: int = 0
    user: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def coerce(cls, props: Union[str, Mapping[str, Any], "ItemProps"]) -> "ItemProps":
        """
        Build props from a bare filename, a mapping or existing props.
        """
        if isinstance(props, ItemProps):
            return replace(props)
        if isinstance(props, str):
            return cls(filename=props)
        if isinstance(props, Mapping):
            known = {f.name for f in fields(cls)}
            unknown = set(props) - known
            if unknown:
                raise ItemValidationError(
                    f"Unknown item properties: {', '.join(sorted(unknown))}"
                )
            data = dict(props)
            # records of older versions used false for "never"
            for key in ("expires", "timeout", "activity"):
                if data.get(key) is False:
                    data[key] = None
            if data.get("downloads") is None:
                data["downloads"] = 0
            return cls(**data)

        raise ItemValidationError("Item properties must be a filename or a mapping")

    def validate(self, check_expiry: bool = True) -> None:
        if not self.filename:
            raise MissingFilenameError("Missing filename")
        if not isinstance(self.filename, str):
            raise ItemValidationError(f'Invalid filename "{self.filename}"')

        _check_int("created", self.created, optional=False)
        _check_int("expires", self.expires)
        _check_int("timeout", self.timeout)
        _check_int("activity", self.activity)
        _check_int("downloads", self.downloads, optional=False)

        for name in ("created", "expires", "activity"):
            value = getattr(self, name)
            if value is not None and not MIN_TIMESTAMP <= value <= MAX_TIMESTAMP:
                raise ItemValidationError(f'Time "{value}" for "{name}" is out of range')

        if self.downloads < 0:
            raise ItemValidationError("The number of downloads cannot be negative")

        if not isinstance(self.user, str):
            raise ItemValidationError(f'Invalid user "{self.user}"')

        if check_expiry and self.expires is not None and self.expires < self.created:
            raise ExpiryBeforeCreationError(
                f'Expiry time "{self.expires}" cannot be before creation time "{self.created}"'
            )

        if self.id is not None and not is_valid_id(self.id):
            raise InvalidItemIdError(f'Item ID "{self.id}" contains invalid characters')


class Item:
    """
    Entity representing one shareable link.

    Validity: an item is valid iff it is not deleted, its creation time
    has passed and its invalidity date (the earlier of the expiry date
    and the timeout deadline) has not passed yet.
    """

    def __init__(self, path: str, file_store: IFileStorageRepository, props: ItemProps):
        item_id = Path(path).stem
        if not is_valid_id(item_id):
            raise InvalidItemIdError(f'The item name "{item_id}" is invalid')

        self.id = item_id
        self.path = path
        self.file_store = file_store

        self.created: int = props.created
        self.expires: Optional[int] = props.expires
        self.timeout: Optional[int] = props.timeout
        self.activity: Optional[int] = props.activity
        self.downloads: int = props.downloads
        self.filename: str = props.filename
        self.user: str = props.user

        self.deleted = False

    def __repr__(self) -> str:
        return f"Item({self.id!r}, filename={self.filename!r})"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: str, file_store: IFileStorageRepository) -> "Item":
        """
        Load an existing item from its record file.

        Raises:
            InvalidItemIdError: If the file name is not a valid ID
            ItemNotFoundError: If the record does not exist
            CorruptItemError: If the record cannot be read
        """
        item_id = Path(path).stem
        if not is_valid_id(item_id):
            raise InvalidItemIdError(f'The item name "{item_id}" is invalid')

        if not os.path.isfile(path):
            raise ItemNotFoundError(f'Item "{item_id}" does not exist')

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise CorruptItemError(f'Could not read item "{item_id}"', original_error=e) from e

        if not isinstance(data, dict):
            raise CorruptItemError(f'Could not read item "{item_id}"')

        try:
            props = ItemProps.coerce(data)
            props.validate(check_expiry=False)
        except ItemValidationError as e:
            raise CorruptItemError(f'Could not read item "{item_id}": {e}', original_error=e) from e

        return cls(path, file_store, props)

    @classmethod
    def create(
        cls,
        base_path: str,
        props: Union[str, Mapping[str, Any], ItemProps],
        file_store: IFileStorageRepository,
        user: str,
        now: Optional[int] = None,
        tz: tzinfo = timezone.utc,
        exists: Optional[Callable[[str], bool]] = None,
    ) -> "Item":
        """
        Create and persist a new item.

        Args:
            base_path: Directory to store the record in
            props: Filename string or item properties:
                - ``created``: when the item first becomes valid; defaults to now
                - ``expires``: when the item is no longer valid; defaults to never
                - ``filename``: file to download; REQUIRED
                - ``id``: custom ID; defaults to a generated one
                - ``timeout``: seconds of inactivity after which the item expires
                - ``activity``: start of the timeout; defaults to the first download
            file_store: Store holding the referenced file
            user: Username of the publishing user
            now: Current timestamp
            tz: Timezone for the date part of generated IDs
            exists: Callback checking if an ID is taken

        Returns:
            The persisted item
        """
        props = ItemProps.coerce(props)
        now = current_time() if now is None else now

        if props.created is None:
            props.created = now
        if props.user is None:
            props.user = user

        props.validate()

        if exists is None:
            exists = lambda item_id: os.path.isfile(record_path(base_path, item_id))  # noqa: E731

        if props.id is None:
            props.id = generate_id(props.created, exists, tz)

        path = record_path(base_path, props.id)
        if os.path.exists(path):
            raise ItemExistsError(f'Item "{props.id}" already exists')

        item = cls(path, file_store, props)
        item.save()
        logger.info(f"Created item {item.id} for file {item.filename}")
        return item

    def save(self) -> None:
        """
        Write the record to disk atomically.

        Raises:
            DeletedItemError: If the item has been deleted
            ItemWriteError: If the record could not be written
        """
        if self.deleted:
            raise DeletedItemError(f'The deleted item "{self.path}" cannot be written to')

        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=os.path.dirname(self.path) or ".", prefix=".", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise ItemWriteError(
                f'Could not write to item file "{self.path}"', original_error=e
            ) from e

    def delete(self) -> None:
        """
        Delete the referenced file and the record.

        Missing files are fine. The record stays in place if the file
        could not be removed.

        Raises:
            BlobDeletionError: If the file exists but could not be deleted
            ItemDeletionError: If the record exists but could not be deleted
        """
        self.file_store.delete(self.filename)

        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ItemDeletionError(
                f'Could not delete item "{self.path}"', original_error=e
            ) from e

        self.deleted = True
        logger.info(f"Deleted item {self.id}")

    # ------------------------------------------------------------------
    # Validity
    # ------------------------------------------------------------------

    def timeout_date(self) -> Optional[int]:
        """
        Return the timeout deadline based on the last activity.

        None if no timeout is configured or it has not been started.
        """
        if self.timeout is not None and self.activity is not None:
            return self.activity + self.timeout
        return None

    def invalidity_date(self) -> Optional[int]:
        """Return the expiry date or the timeout deadline, whichever is earlier."""
        candidates = [d for d in (self.expires, self.timeout_date()) if d is not None]
        return min(candidates) if candidates else None

    def is_expired(self, now: Optional[int] = None) -> bool:
        invalidity_date = self.invalidity_date()
        if invalidity_date is None:
            return False

        now = current_time() if now is None else now
        return now > invalidity_date

    def is_valid(self, now: Optional[int] = None) -> bool:
        if self.deleted:
            return False

        now = current_time() if now is None else now
        return now >= self.created and not self.is_expired(now)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def handle_redirect(self, debug: bool = False, now: Optional[int] = None) -> Outcome:
        """
        Count a download and redirect to the file.

        Invalid items produce a not-found outcome.
        """
        now = current_time() if now is None else now

        if not self.is_valid(now):
            return Outcome.not_found("Item is invalid" if debug else "Not found")

        self.activity = now
        self.downloads += 1
        self.save()

        return Outcome.redirect(self.file_store.url(self.filename))

    def handle_meta(self) -> Outcome:
        return Outcome.json(self.to_dict())

    def handle_deletion(self) -> Outcome:
        self.delete()
        return Outcome.ok("Success")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "activity": self.activity,
            "created": self.created,
            "downloads": self.downloads,
            "expires": self.expires,
            "filename": self.filename,
            "timeout": self.timeout,
            "user": self.user,
        }
