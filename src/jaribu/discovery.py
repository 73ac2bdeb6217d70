#
# src/jaribu/discovery.py
#
"""
Convention-based discovery of test methods on a test class.

A test is a public ``async`` staticmethod declared in the class body. The
reserved names ``setup`` and ``cleanup`` are lifecycle hooks, never tests.
Tests are returned in declaration order.
"""
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from attrs import define, field

from jaribu.exceptions import DiscoveryError
from jaribu.markers import Input, Skip, Timeout, get_marker, get_markers, get_tags

log = structlog.get_logger("discovery")

SETUP_NAME = "setup"
CLEANUP_NAME = "cleanup"
RESERVED_NAMES = frozenset({SETUP_NAME, CLEANUP_NAME})
CLASS_NAME_SUFFIX = "Tests"

TestCallable = Callable[..., Awaitable[Any]]


@define(frozen=True, slots=True)
class TestMethod:
    """A discovered test method together with its markers."""

    __test__ = False

    name: str
    func: TestCallable = field(repr=False)
    tags: tuple[str, ...] = field(factory=tuple)
    skip: Skip | None = field(default=None)
    timeout: Timeout | None = field(default=None)
    inputs: tuple[Input, ...] = field(factory=tuple)

    @classmethod
    def from_function(cls, name: str, func: TestCallable) -> "TestMethod":
        return cls(
            name=name,
            func=func,
            tags=get_tags(func),
            skip=get_marker(func, Skip),
            timeout=get_marker(func, Timeout),
            inputs=tuple(get_markers(func, Input)),
        )

    def parameter_sets(self) -> list[tuple[Any, ...]]:
        """One tuple per invocation; a single empty tuple when unparameterized."""
        if not self.inputs:
            return [()]
        return [marker.parameters for marker in self.inputs]


def tags_match(tags: tuple[str, ...], filter_tag: str | None) -> bool:
    """
    True when something carrying ``tags`` may run under ``filter_tag``.

    Untagged items always match; tags restrict, they are never required.
    """
    if filter_tag is None or not tags:
        return True
    wanted = filter_tag.casefold()
    return any(t.casefold() == wanted for t in tags)


def _ensure_class(cls: Any) -> type:
    if not isinstance(cls, type):
        raise DiscoveryError(
            f"Expected a test class, got {type(cls).__name__}: {cls!r}", target=cls
        )
    return cls


def _unwrap_static(attr: Any) -> TestCallable | None:
    """The coroutine function behind a staticmethod, otherwise None."""
    if not isinstance(attr, staticmethod):
        return None
    func = attr.__func__
    if not inspect.iscoroutinefunction(func):
        return None
    return func


def is_test_candidate(name: str, attr: Any) -> bool:
    if name.startswith("_") or name in RESERVED_NAMES:
        return False
    return _unwrap_static(attr) is not None


def discover_tests(cls: type) -> list[TestMethod]:
    """Returns the test methods of ``cls`` in declaration order."""
    _ensure_class(cls)
    tests = [
        TestMethod.from_function(name, _unwrap_static(attr))
        for name, attr in vars(cls).items()
        if is_test_candidate(name, attr)
    ]
    log.debug("Discovered test methods", test_class=cls.__name__, count=len(tests))
    return tests


def find_lifecycle_hook(cls: type, name: str) -> TestCallable | None:
    """Returns the ``setup``/``cleanup`` hook of ``cls`` if it is an async staticmethod."""
    _ensure_class(cls)
    return _unwrap_static(vars(cls).get(name))


def class_is_excluded(cls: type, filter_tag: str | None) -> bool:
    """True when the class carries tags and none match ``filter_tag``."""
    return not tags_match(get_tags(_ensure_class(cls)), filter_tag)


def display_class_name(cls: type) -> str:
    """Class name with the conventional ``Tests`` suffix removed."""
    name = _ensure_class(cls).__name__
    stripped = name.removesuffix(CLASS_NAME_SUFFIX)
    return stripped or name


# 🔼⚙️
