#
# src/jaribu/registry.py
#
"""
Ordered registry of test classes for suite runs.
"""
from collections.abc import Iterator

import structlog

from jaribu.exceptions import DiscoveryError

log = structlog.get_logger("registry")


class TestRegistry:
    """
    Ordered, duplicate-free set of test classes, compared by identity.

    Owned by the caller; create a fresh registry (or call ``clear``) for each
    independent suite. Not thread-safe.
    """

    __test__ = False

    def __init__(self) -> None:
        self._classes: list[type] = []

    def register(self, cls: type) -> bool:
        """Adds ``cls`` unless already present. Returns True if it was added."""
        if not isinstance(cls, type):
            raise DiscoveryError(
                f"Only classes can be registered, got {type(cls).__name__}", target=cls
            )
        if any(existing is cls for existing in self._classes):
            log.debug("Test class already registered", test_class=cls.__name__)
            return False
        self._classes.append(cls)
        log.debug("Registered test class", test_class=cls.__name__, total=len(self._classes))
        return True

    def clear(self) -> None:
        log.debug("Clearing registered test classes", count=len(self._classes))
        self._classes.clear()

    @property
    def classes(self) -> tuple[type, ...]:
        return tuple(self._classes)

    def __len__(self) -> int:
        return len(self._classes)

    def __iter__(self) -> Iterator[type]:
        return iter(tuple(self._classes))

    def __contains__(self, cls: object) -> bool:
        return any(existing is cls for existing in self._classes)


# 🔼⚙️
