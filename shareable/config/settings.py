"""
Shareable Configuration

Environment-based configuration for the data directories, public URLs,
users and maintenance schedule.
"""

import json
import os
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Any, Dict, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..domain.errors import ConfigurationError

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class ShareableConfig:
    """
    Shareable configuration from environment variables.

    The three data directories must exist and be writable. The upload
    temp directory defaults to a dotfile directory inside the inbox so it
    never shows up in the inbox listing.
    """

    files_path: str
    inbox_path: str
    items_path: str
    upload_tmp_path: str = ""
    file_url: str = "/"
    subdirs: bool = False
    debug: bool = False
    timezone: str = "UTC"
    users: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    items_per_page: int = 20
    cleanup_interval: int = 3600

    def __post_init__(self):
        if not self.upload_tmp_path:
            self.upload_tmp_path = os.path.join(self.inbox_path, ".incoming")
        self.file_url = self.file_url.rstrip("/") + "/"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ShareableConfig":
        """
        Load configuration from environment variables.

        Args:
            environ: Mapping to read from, defaults to ``os.environ``

        Returns:
            ShareableConfig instance with loaded configuration

        Raises:
            ConfigurationError: If a required directory is missing or the
                users file cannot be read
        """
        env = os.environ if environ is None else environ

        def required(name: str) -> str:
            value = env.get(name, "")
            if not value:
                raise ConfigurationError(f"Environment variable {name} is not set")
            return value

        return cls(
            files_path=required("SHAREABLE_FILES_PATH"),
            inbox_path=required("SHAREABLE_INBOX_PATH"),
            items_path=required("SHAREABLE_ITEMS_PATH"),
            upload_tmp_path=env.get("SHAREABLE_UPLOAD_TMP_PATH", ""),
            file_url=env.get("SHAREABLE_FILE_URL", "/"),
            subdirs=env.get("SHAREABLE_SUBDIRS", "false").lower() in _TRUE_VALUES,
            debug=env.get("SHAREABLE_DEBUG", "false").lower() in _TRUE_VALUES,
            timezone=env.get("SHAREABLE_TIMEZONE", "UTC"),
            users=cls._load_users(env.get("SHAREABLE_USERS_FILE", "")),
            items_per_page=int(env.get("SHAREABLE_ITEMS_PER_PAGE", "20")),
            cleanup_interval=int(env.get("SHAREABLE_CLEANUP_INTERVAL", "3600")),
        )

    @staticmethod
    def _load_users(path: str) -> Dict[str, Dict[str, Any]]:
        """
        Read the user table from a JSON file.

        Expected format::

            {"alice": {"password": "<werkzeug hash>", "permissions": ["upload"]}}
        """
        if not path:
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                users = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(
                f'Could not read users file "{path}"', original_error=e
            ) from e

        if not isinstance(users, dict):
            raise ConfigurationError(f'Users file "{path}" must contain an object')

        return users

    @property
    def tzinfo(self) -> tzinfo:
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(
                f'Unknown timezone "{self.timezone}"', original_error=e
            ) from e

    def validate(self) -> None:
        """
        Check the data directories and create the upload temp directory.

        Raises:
            ConfigurationError: If a directory is missing or not writable
        """
        for name, path in (
            ("files", self.files_path),
            ("inbox", self.inbox_path),
            ("items", self.items_path),
        ):
            if not os.path.isdir(path):
                raise ConfigurationError(f'The {name} directory "{path}" does not exist')
            if not os.access(path, os.W_OK):
                raise ConfigurationError(f'The {name} directory "{path}" is not writable')

        try:
            os.makedirs(self.upload_tmp_path, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f'Could not create upload directory "{self.upload_tmp_path}"',
                original_error=e,
            ) from e

        # raises for unknown names
        self.tzinfo
