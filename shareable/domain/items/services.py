"""
Item Services

Domain service for item lookup, creation and the reconciliation pass
that keeps item records and published files consistent.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from typing import Any, List, Mapping, Optional, Set, Union

from ..context import current_time
from ..file_storage import IFileStorageRepository
from .entities import Item, ItemProps, generate_id, is_valid_id, record_path
from .store import ItemStore, load_item_store

logger = logging.getLogger(__name__)


@dataclass
class CleanupReport:
    """Result of a reconciliation pass."""

    warnings: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        """Warning messages, one per line."""
        return "".join(warning + "\n" for warning in self.warnings)


class ItemManager:
    """
    Domain service for managing item records.

    Holds a cached snapshot of all items for listing and cleanup; the
    records on disk stay the authority.
    """

    def __init__(
        self,
        items_path: str,
        file_store: IFileStorageRepository,
        tz: tzinfo = timezone.utc,
    ):
        """
        Initialize ItemManager.

        Args:
            items_path: Directory holding the item records
            file_store: Store holding the published files
            tz: Timezone used for the date part of generated IDs
        """
        self.items_path = items_path
        self.file_store = file_store
        self.tz = tz
        self._collection: Optional[ItemStore] = None

    def collection(self) -> ItemStore:
        """Return the (cached) snapshot of all items."""
        if self._collection is None:
            self._collection = load_item_store(self.items_path, self.file_store)
        return self._collection

    def invalidate(self) -> None:
        """Drop the cached snapshot."""
        self._collection = None

    def exists(self, item_id: str) -> bool:
        return os.path.isfile(record_path(self.items_path, item_id))

    def get(self, item_id: str) -> Optional[Item]:
        """
        Get an item by ID.

        Returns:
            The item, or None if it does not exist

        Raises:
            CorruptItemError: If the record exists but cannot be read
        """
        if not is_valid_id(item_id) or not self.exists(item_id):
            return None

        return Item.load(record_path(self.items_path, item_id), self.file_store)

    def generate_id(self, created: Optional[int] = None) -> str:
        """Generate an unused ID for an item created at the given time."""
        created = current_time() if created is None else created
        return generate_id(created, self.exists, self.tz)

    def create(
        self,
        props: Union[str, Mapping[str, Any], ItemProps],
        user: str,
        now: Optional[int] = None,
    ) -> Item:
        """
        Create a new item, see Item.create() for the properties.
        """
        item = Item.create(
            self.items_path,
            props,
            self.file_store,
            user,
            now=now,
            tz=self.tz,
            exists=self.exists,
        )
        self.invalidate()
        return item

    def clean_up(self, now: Optional[int] = None) -> str:
        """
        Delete expired items and verify the integrity of items and files.

        Returns:
            Warning messages, one per line
        """
        return self.reconcile(now).text

    def reconcile(self, now: Optional[int] = None) -> CleanupReport:
        """
        Run the reconciliation pass.

        Expired items are deleted together with their files. For every
        remaining item the referenced file must exist, and every file in
        the store must be referenced by a remaining item. Mismatches are
        reported, never repaired: orphaned files are not deleted.

        Returns:
            CleanupReport with warnings and the IDs of deleted items
        """
        now = current_time() if now is None else now
        report = CleanupReport()
        referenced: Set[str] = set()

        # records may have changed on disk since the snapshot was cached
        self.invalidate()
        collection = self.collection()

        for item_id, item in collection.items():
            if item.is_expired(now):
                try:
                    item.delete()
                except OSError as e:
                    # the item survives and still references its file
                    self._warn(report, f'Could not delete item "{item_id}": {e}')
                else:
                    collection.discard(item_id)
                    report.deleted.append(item_id)
                    continue

            if self.file_store.exists(item.filename):
                referenced.add(item.filename.split("/", 1)[0])
            else:
                self._warn(
                    report,
                    f'File "{self.file_store.path(item.filename)}" for item "{item_id}" does not exist',
                )

        for entry in self.file_store.entries():
            if entry not in referenced:
                self._warn(report, f'File "{self.file_store.path(entry)}" is orphaned')

        logger.info(
            f"Cleanup completed - Deleted: {len(report.deleted)}, "
            f"Warnings: {len(report.warnings)}"
        )
        return report

    @staticmethod
    def _warn(report: CleanupReport, message: str) -> None:
        report.warnings.append(message)
        logger.warning(message)
