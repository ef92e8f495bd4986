"""
User Entities

Admin users with an optional password hash and a permission set.
"""

from typing import List, Optional, Union

from werkzeug.security import check_password_hash

from ..errors import InvalidPasswordHashError, InvalidPermissionError

PERMISSIONS = ("upload", "publish", "delete", "meta")

# Hash methods werkzeug.security.check_password_hash understands
_HASH_METHODS = ("scrypt", "pbkdf2")


class User:
    """
    A user of the admin API.

    Permissions are either a list of permission names or a boolean
    wildcard (``True`` grants everything, ``False`` nothing).
    """

    def __init__(
        self,
        username: str,
        password: Optional[str] = None,
        permissions: Union[List[str], bool, None] = None,
    ):
        if permissions is None:
            permissions = []

        if password is not None and not _is_known_hash(password):
            raise InvalidPasswordHashError(
                f'Invalid password hash for user "{username}", expected one '
                "created with werkzeug.security.generate_password_hash()"
            )

        if not isinstance(permissions, (list, tuple, bool)):
            raise InvalidPermissionError(
                f'Invalid permissions for user "{username}", expected list or boolean'
            )

        self.username = username
        self._password = password
        self.permissions = list(permissions) if isinstance(permissions, (list, tuple)) else permissions

    def __repr__(self) -> str:
        return f"User({self.username!r})"

    def verify_password(self, password: str) -> bool:
        """Check the given password against the stored hash."""
        # users without a password cannot log in
        if self._password is None:
            return False

        return check_password_hash(self._password, password)

    def has_permission(self, permission: Union[str, List[str], tuple]) -> bool:
        """
        Check if the user has the given permission.

        Args:
            permission: A permission name, a list of names (any one
                suffices) or ``"*"`` for "any permission whatsoever"

        Returns:
            True if the permission is granted
        """
        if isinstance(permission, (list, tuple)):
            return any(self.has_permission(p) for p in permission)

        if not isinstance(permission, str):
            raise InvalidPermissionError(
                "Invalid permission, expected string or list of strings"
            )

        if isinstance(self.permissions, bool):
            return self.permissions

        if permission == "*":
            return len(self.permissions) > 0

        return permission in self.permissions


def _is_known_hash(value: str) -> bool:
    method = value.split("$", 1)[0].split(":", 1)[0]
    return method in _HASH_METHODS and value.count("$") == 2
