"""
Users Domain

Admin users, permissions and credential checks.
"""

from .entities import PERMISSIONS, User
from .repositories import ANONYMOUS, Users

__all__ = [
    "ANONYMOUS",
    "PERMISSIONS",
    "User",
    "Users",
]
