"""
Inbox Value Objects
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional

# Transfer error code for "no file was sent"
UPLOAD_ERR_NO_FILE = 4


@dataclass(frozen=True)
class StagedFile:
    """A file waiting in the inbox to be published."""

    name: str
    path: str
    size: int
    modified: int

    @classmethod
    def from_path(cls, path: str) -> "StagedFile":
        stat = os.stat(path)
        return cls(
            name=os.path.basename(path),
            path=path,
            size=stat.st_size,
            modified=int(stat.st_mtime),
        )

    def to_dict(self) -> Dict[str, object]:
        return {"name": self.name, "size": self.size, "modified": self.modified}


@dataclass(frozen=True)
class IncomingFile:
    """
    A single file transfer handed over by the upload mechanism.

    Attributes:
        filename: Name of the file as sent by the client
        temp_path: Where the upload mechanism stored the content
        error: Transfer-level error code, 0 for success
    """

    filename: str
    temp_path: Optional[str]
    error: int = 0
