"""
Items Domain

Item records, their validity state machine, the ID scheme and the
reconciliation pass.
"""

from .entities import (
    ID_PATTERN,
    RECORD_EXTENSION,
    Item,
    ItemProps,
    generate_id,
    is_valid_id,
    record_path,
)
from .id_encoder import DEFAULT_ALPHABET, BijectiveEncoder
from .services import CleanupReport, ItemManager
from .store import ItemStore, load_item_store

__all__ = [
    "BijectiveEncoder",
    "CleanupReport",
    "DEFAULT_ALPHABET",
    "ID_PATTERN",
    "Item",
    "ItemManager",
    "ItemProps",
    "ItemStore",
    "RECORD_EXTENSION",
    "generate_id",
    "is_valid_id",
    "load_item_store",
    "record_path",
]
