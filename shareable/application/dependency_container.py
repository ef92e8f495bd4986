"""
Dependency Container

Holds the services the web layer and the Celery task share: the
configuration, the user table, the file store, the item manager and the
staging area. Services are looked up by the type they are registered
under.
"""

import logging
import threading
from typing import Any, Dict, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DependencyNotFoundError(Exception):
    """Raised when a type was never registered."""


class DependencyContainer:
    """Type-keyed registry of shared service instances."""

    def __init__(self):
        self._instances: Dict[Type, Any] = {}
        self._lock = threading.Lock()

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        """
        Share one instance for every lookup of ``interface``.

        Example:
            container.register_singleton(ItemManager, item_manager)
        """
        with self._lock:
            self._instances[interface] = implementation
        logger.debug(f"{interface.__name__} registered as shared instance")

    def resolve(self, interface: Type[T]) -> T:
        """
        Look up the service registered for ``interface``.

        Raises:
            DependencyNotFoundError: If nothing is registered for it
        """
        with self._lock:
            if interface in self._instances:
                return self._instances[interface]

        raise DependencyNotFoundError(
            f"No registration found for type: {interface.__name__}"
        )
