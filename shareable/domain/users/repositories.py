"""
User Repository

In-memory user table built from configuration.
"""

from typing import Any, Dict, Iterator, Mapping, Optional

from .entities import User

ANONYMOUS = "anonymous"


class Users:
    """
    Collection of configured users keyed by username.

    Always contains an ``anonymous`` user (without permissions unless
    configured otherwise) that is used for unauthenticated requests.
    """

    def __init__(self, config: Optional[Mapping[str, Mapping[str, Any]]] = None):
        config = dict(config or {})
        config.setdefault(ANONYMOUS, {"permissions": False})

        self._users: Dict[str, User] = {}
        for username, props in config.items():
            props = dict(props or {})
            self._users[username] = User(
                username,
                password=props.get("password"),
                permissions=props.get("permissions", []),
            )

    def __iter__(self) -> Iterator[str]:
        return iter(self._users)

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, username: object) -> bool:
        return username in self._users

    def get(self, username: str) -> Optional[User]:
        return self._users.get(username)

    @property
    def anonymous(self) -> User:
        return self._users[ANONYMOUS]

    def authenticate(self, username: Optional[str], password: Optional[str]) -> User:
        """
        Resolve the user for a set of Basic auth credentials.

        Returns:
            The matching user if the password is correct, otherwise
            the anonymous user
        """
        if username is None:
            return self.anonymous

        user = self.get(username)
        if user is not None and user.verify_password(password or ""):
            return user

        return self.anonymous
