import io
from unittest.mock import AsyncMock

import pytest
from rich.console import Console

from jaribu.cleaning import RunfileCleaner
from jaribu.config import FILTER_TAG_ENV_VAR
from jaribu.rendering import ResultsRenderer
from jaribu.runner import TestRunner


@pytest.fixture(autouse=True)
def no_jaribu_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Settings exported in the developer's shell would change every run.
    monkeypatch.delenv(FILTER_TAG_ENV_VAR, raising=False)
    for name in ("JARIBU_LOG_LEVEL", "JARIBU_CONF"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def console_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def renderer(console_buffer: io.StringIO) -> ResultsRenderer:
    """A renderer writing plain text into ``console_buffer``."""
    console = Console(file=console_buffer, width=160, color_system=None, force_terminal=False)
    return ResultsRenderer(console=console)


@pytest.fixture
def cleaner() -> AsyncMock:
    """A cleaner that never spawns processes."""
    mock_cleaner = AsyncMock(spec=RunfileCleaner)
    mock_cleaner.run_clean.return_value = True
    return mock_cleaner


@pytest.fixture
def runner(renderer: ResultsRenderer, cleaner: AsyncMock) -> TestRunner:
    return TestRunner(renderer=renderer, cleaner=cleaner)
