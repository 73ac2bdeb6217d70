#
# src/jaribu/markers.py
#
"""
Declarative modifiers for test classes and test methods.

Markers are attached with decorators and read back by discovery and the
engine::

    @tag("Parser")
    @clean()
    class ParserTests:
        @staticmethod
        @inputs(1, 2)
        @inputs(3, 4)
        @timeout(500)
        async def adds_numbers(a, b): ...

Markers live on the decorated object itself; a subclass does not inherit the
markers of its base class. Stacked markers are kept in top-to-bottom source
order.
"""
from collections.abc import Callable
from typing import Any, TypeAlias, TypeVar

from attrs import define, field

MARKERS_ATTR = "__jaribu_markers__"

T = TypeVar("T")


# --- Validators ---
def _validate_tags(inst: Any, attr: Any, value: tuple[str, ...]) -> None:
    """Validator ensures at least one non-blank tag string."""
    if not value:
        raise ValueError("At least one tag is required.")
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ValueError(f"Tags must be non-empty strings, got {item!r}")


def _validate_positive_int(inst: Any, attr: Any, value: int) -> None:
    """Validator ensures integer is positive."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"Field '{attr.name}' must be positive integer, got {value!r}")


# --- Marker values ---
@define(frozen=True, slots=True)
class Tag:
    """One or more labels used for tag filtering."""

    tags: tuple[str, ...] = field(converter=tuple, validator=_validate_tags)

    def matches(self, filter_tag: str) -> bool:
        wanted = filter_tag.casefold()
        return any(t.casefold() == wanted for t in self.tags)


@define(frozen=True, slots=True)
class Skip:
    """Never run the method; report it as skipped with ``reason``."""

    reason: str = field()


@define(frozen=True, slots=True)
class Timeout:
    """Upper bound for one invocation of the test body."""

    milliseconds: int = field(validator=_validate_positive_int)

    @property
    def seconds(self) -> float:
        return self.milliseconds / 1000


@define(frozen=True, slots=True)
class Input:
    """One parameter tuple driving one invocation of a test method."""

    parameters: tuple[Any, ...] = field(converter=tuple)


@define(frozen=True, slots=True)
class Clean:
    """Class-level request to clean the script's cache before running."""

    enabled: bool = field(default=True)


@define(frozen=True, slots=True)
class ClearRunfileCache:
    """Older spelling of :class:`Clean`; ``Clean`` wins when both are present."""

    enabled: bool = field(default=True)


Marker: TypeAlias = Tag | Skip | Timeout | Input | Clean | ClearRunfileCache
M = TypeVar("M", Tag, Skip, Timeout, Input, Clean, ClearRunfileCache)


# --- Attaching and reading markers ---
def _marker_target(obj: Any) -> Any:
    """Returns the object that physically stores markers for ``obj``."""
    if isinstance(obj, (staticmethod, classmethod)):
        return obj.__func__
    return obj


def attach_marker(obj: T, marker: Marker) -> T:
    """Prepends ``marker`` to the markers of ``obj`` and returns ``obj``."""
    target = _marker_target(obj)
    existing = vars(target).get(MARKERS_ATTR, ())
    setattr(target, MARKERS_ATTR, (marker, *existing))
    return obj


def get_markers(obj: Any, kind: type[M]) -> list[M]:
    """All markers of ``kind`` declared directly on ``obj``."""
    target = _marker_target(obj)
    try:
        declared = vars(target).get(MARKERS_ATTR, ())
    except TypeError:
        return []
    return [m for m in declared if isinstance(m, kind)]


def get_marker(obj: Any, kind: type[M]) -> M | None:
    """The top-most marker of ``kind`` on ``obj``, if any."""
    found = get_markers(obj, kind)
    return found[0] if found else None


def get_tags(obj: Any) -> tuple[str, ...]:
    """Flattened tag labels declared on ``obj``."""
    return tuple(t for marker in get_markers(obj, Tag) for t in marker.tags)


# --- Decorators ---
def _method_only(name: str, obj: Any) -> None:
    if isinstance(obj, type):
        raise TypeError(f"@{name} can only decorate test methods, not classes.")


def _class_only(name: str, obj: Any) -> None:
    if not isinstance(obj, type):
        raise TypeError(f"@{name} can only decorate test classes.")


def tag(*tags: str) -> Callable[[T], T]:
    """Labels a test class or test method."""
    marker = Tag(tags)

    def decorator(obj: T) -> T:
        return attach_marker(obj, marker)

    return decorator


def skip(reason: str) -> Callable[[T], T]:
    """Marks a test method as skipped."""
    marker = Skip(reason)

    def decorator(obj: T) -> T:
        _method_only("skip", obj)
        return attach_marker(obj, marker)

    return decorator


def timeout(milliseconds: int) -> Callable[[T], T]:
    """Fails a test method whose body runs longer than ``milliseconds``."""
    marker = Timeout(milliseconds)

    def decorator(obj: T) -> T:
        _method_only("timeout", obj)
        return attach_marker(obj, marker)

    return decorator


def inputs(*parameters: Any) -> Callable[[T], T]:
    """Adds one parameter set; stack the decorator for more invocations."""
    marker = Input(parameters)

    def decorator(obj: T) -> T:
        _method_only("inputs", obj)
        return attach_marker(obj, marker)

    return decorator


def clean(enabled: bool = True) -> Callable[[T], T]:
    """Requests a cache clean before the class's tests run."""
    marker = Clean(enabled)

    def decorator(obj: T) -> T:
        _class_only("clean", obj)
        return attach_marker(obj, marker)

    return decorator


def clear_runfile_cache(enabled: bool = True) -> Callable[[T], T]:
    marker = ClearRunfileCache(enabled)

    def decorator(obj: T) -> T:
        _class_only("clear_runfile_cache", obj)
        return attach_marker(obj, marker)

    return decorator


def clean_requested(cls: type) -> bool | None:
    """
    The class's own clean preference, or None if it declares none.

    ``Clean`` takes precedence over ``ClearRunfileCache``.
    """
    clean_marker = get_marker(cls, Clean)
    if clean_marker is not None:
        return clean_marker.enabled
    cache_marker = get_marker(cls, ClearRunfileCache)
    if cache_marker is not None:
        return cache_marker.enabled
    return None


# 🔼⚙️
