"""
Collision-free file naming shared by uploads and publishing.
"""

import os
from typing import Optional


def find_free_path(
    directory: str,
    filename: str,
    subdir: Optional[str] = None,
    use_subdirs: bool = False,
) -> str:
    """
    Find an unused name inside a directory by adding a number suffix.

    In subdirectory mode the suffix goes to the subdirectory name, the
    subdirectory is created and the file name is kept unchanged.
    Otherwise the suffix goes before the file extension.

    Not atomic: two concurrent callers may be handed the same name.

    Args:
        directory: Directory to put the file in
        filename: Desired file name
        subdir: Desired subdirectory name (used in subdirectory mode)
        use_subdirs: Whether subdirectory mode is enabled

    Returns:
        Path relative to ``directory``
    """
    suffix = 0

    if use_subdirs and subdir is not None:
        candidate = subdir
        while os.path.lexists(os.path.join(directory, candidate)):
            suffix += 1
            candidate = f"{subdir}-{suffix}"

        os.mkdir(os.path.join(directory, candidate))
        return f"{candidate}/{filename}"

    stem, extension = os.path.splitext(filename)
    candidate = filename
    while os.path.lexists(os.path.join(directory, candidate)):
        suffix += 1
        candidate = f"{stem}-{suffix}{extension}"

    return candidate
