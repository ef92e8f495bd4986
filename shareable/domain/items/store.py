"""
Item Store

Point-in-time, ID-ordered snapshot of all item records in a directory.
"""

import os
from typing import Dict, Iterator, List, Optional, Tuple

from ..file_storage import IFileStorageRepository
from .entities import RECORD_EXTENSION, Item, is_valid_id


class ItemStore:
    """
    Keyed container of items, ordered by ID.

    Not live: records written after the snapshot was taken are not seen.
    """

    def __init__(self, items: Optional[Dict[str, Item]] = None):
        self._items: Dict[str, Item] = dict(sorted((items or {}).items()))

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __getitem__(self, item_id: str) -> Item:
        return self._items[item_id]

    def get(self, item_id: str) -> Optional[Item]:
        return self._items.get(item_id)

    def items(self) -> List[Tuple[str, Item]]:
        return list(self._items.items())

    def values(self) -> List[Item]:
        return list(self._items.values())

    def discard(self, item_id: str) -> None:
        self._items.pop(item_id, None)

    def sorted_by(self, field: str, reverse: bool = False) -> List[Item]:
        """
        Return the items ordered by one of their fields.

        None values sort first (last when reversed).
        """
        return sorted(
            self._items.values(),
            key=lambda item: (getattr(item, field) is not None, getattr(item, field) or 0, item.id),
            reverse=reverse,
        )


def load_item_store(path: str, file_store: IFileStorageRepository) -> ItemStore:
    """
    Load every item record in a directory.

    Entries with another extension or an invalid ID are skipped. A
    corrupt record aborts the whole build.

    Raises:
        CorruptItemError: If any record cannot be read
    """
    items: Dict[str, Item] = {}
    for entry in os.scandir(path):
        stem, extension = os.path.splitext(entry.name)
        if extension != RECORD_EXTENSION or not is_valid_id(stem):
            continue

        items[stem] = Item.load(entry.path, file_store)

    return ItemStore(items)
