#
# src/jaribu/loading.py
#
"""
Imports standalone test scripts and collects their test classes.
"""
import hashlib
import importlib.util
import sys
from pathlib import Path
from types import ModuleType

import structlog

from jaribu.discovery import CLASS_NAME_SUFFIX
from jaribu.exceptions import DiscoveryError

log = structlog.get_logger("loading")

EXPLICIT_TESTS_ATTR = "__jaribu_tests__"


def _module_name(path: Path) -> str:
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:8]
    return f"jaribu_script_{path.stem.replace('-', '_')}_{digest}"


def load_script(path: Path | str) -> ModuleType:
    """
    Imports the script at ``path`` under a private module name.

    The script's ``if __name__ == "__main__"`` block does not run.

    Raises:
        DiscoveryError: if the file cannot be imported.
    """
    path = Path(path).resolve()
    module_name = _module_name(path)
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise DiscoveryError(f"Cannot import '{path}': not a Python source file", target=path)

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        del sys.modules[module_name]
        log.error("Failed to import test script", path=str(path), error=str(e))
        raise DiscoveryError(f"Failed to import '{path}': {type(e).__name__}: {e}", target=path) from e

    log.debug("Imported test script", path=str(path), module=module_name, emoji_key="discover")
    return module


def collect_test_classes(module: ModuleType) -> list[type]:
    """
    Test classes of ``module`` in declaration order.

    Classes listed in ``__jaribu_tests__`` come first, followed by classes
    defined in the module whose names end with ``Tests``.
    """
    explicit = list(getattr(module, EXPLICIT_TESTS_ATTR, ()))
    for item in explicit:
        if not isinstance(item, type):
            raise DiscoveryError(
                f"{EXPLICIT_TESTS_ATTR} may only contain classes, got {item!r}", target=module
            )

    by_convention = [
        obj
        for name, obj in vars(module).items()
        if isinstance(obj, type)
        and obj.__module__ == module.__name__
        and name.endswith(CLASS_NAME_SUFFIX)
    ]

    classes = []
    for cls in (*explicit, *by_convention):
        if not any(cls is seen for seen in classes):
            classes.append(cls)
    return classes


# 🔼⚙️
