"""
Inbox Domain

Staging area for uploaded files and the publish workflow.
"""

from .naming import find_free_path
from .services import StagingArea, load_staging_listing
from .time_expressions import TimeExpressionError, parse_time, resolve_time
from .value_objects import UPLOAD_ERR_NO_FILE, IncomingFile, StagedFile

__all__ = [
    "IncomingFile",
    "StagedFile",
    "StagingArea",
    "TimeExpressionError",
    "UPLOAD_ERR_NO_FILE",
    "find_free_path",
    "load_staging_listing",
    "parse_time",
    "resolve_time",
]
