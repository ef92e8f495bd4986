"""
Request Context

Explicit per-request input for the core: the acting user, the request
parameters and the clock reading. Replaces any ambient request state.
"""

import time
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .users.entities import User


def current_time() -> int:
    """Return the current time as whole-second Unix timestamp."""
    return int(time.time())


@dataclass
class RequestContext:
    """Everything a handler needs to know about the current request."""

    user: User
    params: Mapping[str, str] = field(default_factory=dict)
    debug: bool = False
    now: Optional[int] = None

    def __post_init__(self):
        if self.now is None:
            self.now = current_time()

    def param(self, name: str) -> Optional[str]:
        """
        Return a request parameter, treating empty strings as absent.
        """
        value = self.params.get(name)
        if value is None or value == "":
            return None
        return value

    @property
    def username(self) -> str:
        return self.user.username
