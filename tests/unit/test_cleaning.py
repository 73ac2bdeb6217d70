#
# tests/unit/test_cleaning.py
#
"""
Tests for the cache-cleaning collaborator and the subprocess command runner.
"""

import io
import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from rich.console import Console

from jaribu.cleaning import (
    RunfileCleaner,
    SubprocessCommandRunner,
    clear_all_bytecode_caches,
    clear_bytecode_cache,
)
from jaribu.exceptions import CommandExecutionError
from jaribu.protocols import CommandResult, CommandRunner


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def command_runner() -> AsyncMock:
    mock_runner = AsyncMock(spec=CommandRunner)
    mock_runner.run.return_value = CommandResult(success=True, exit_code=0, stdout="", stderr="")
    return mock_runner


@pytest.fixture
def cleaner(command_runner: AsyncMock, output: io.StringIO) -> RunfileCleaner:
    console = Console(file=output, width=160, color_system=None)
    return RunfileCleaner(
        command_runner=command_runner,
        clean_command=("cleaner-bin", "clean"),
        console=console,
    )


@pytest.mark.asyncio
class TestRunfileCleaner:
    """Best-effort cleaning never fails a run."""

    async def test_runs_clean_command_for_target(
        self, cleaner: RunfileCleaner, command_runner: AsyncMock, tmp_path: Path
    ):
        script = tmp_path / "sample_tests.py"
        script.write_text("")

        with patch("jaribu.cleaning.entry_point_path", return_value=tmp_path / "runner.py"):
            assert await cleaner.run_clean(script) is True

        command_runner.run.assert_awaited_once_with(
            ["cleaner-bin", "clean", str(script)], script.parent
        )

    async def test_refuses_to_clean_running_script(
        self,
        cleaner: RunfileCleaner,
        command_runner: AsyncMock,
        output: io.StringIO,
        tmp_path: Path,
    ):
        script = tmp_path / "self_tests.py"
        script.write_text("")

        with patch("jaribu.cleaning.entry_point_path", return_value=script.resolve()):
            assert await cleaner.run_clean(script) is False
            assert await cleaner.run_clean() is False

        command_runner.run.assert_not_called()
        assert "cannot clean currently executing script" in output.getvalue()

    async def test_nothing_to_clean_without_entry_point(
        self, cleaner: RunfileCleaner, command_runner: AsyncMock
    ):
        with patch("jaribu.cleaning.entry_point_path", return_value=None):
            assert await cleaner.run_clean() is False
        command_runner.run.assert_not_called()

    async def test_failed_command_is_not_fatal(
        self,
        cleaner: RunfileCleaner,
        command_runner: AsyncMock,
        output: io.StringIO,
        tmp_path: Path,
    ):
        command_runner.run.return_value = CommandResult(
            success=False, exit_code=2, stdout="", stderr="disk on fire"
        )
        with patch("jaribu.cleaning.entry_point_path", return_value=None):
            assert await cleaner.run_clean(tmp_path / "x.py") is False
        assert "Clean failed: disk on fire" in output.getvalue()

    async def test_unstartable_command_is_not_fatal(
        self, cleaner: RunfileCleaner, command_runner: AsyncMock, tmp_path: Path
    ):
        command_runner.run.side_effect = CommandExecutionError("Command not found")
        with patch("jaribu.cleaning.entry_point_path", return_value=None):
            assert await cleaner.run_clean(tmp_path / "x.py") is False


@pytest.mark.asyncio
class TestSubprocessCommandRunner:
    """Real subprocess execution."""

    async def test_captures_output_and_exit_code(self, tmp_path: Path):
        runner = SubprocessCommandRunner()
        result = await runner.run(
            [sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"],
            tmp_path,
        )

        assert result.success is False
        assert result.exit_code == 3
        assert result.stdout.strip() == "out"
        assert result.stderr.strip() == "err"

    async def test_missing_executable_raises(self):
        runner = SubprocessCommandRunner()
        with pytest.raises(CommandExecutionError, match="Command not found"):
            await runner.run(["definitely-not-a-real-command-xyz"])


class TestBytecodeCache:
    """Clearing cached bytecode for scripts."""

    def _make_cache(self, directory: Path, stem: str) -> list[Path]:
        cache = directory / "__pycache__"
        cache.mkdir(exist_ok=True)
        files = [cache / f"{stem}.cpython-311.pyc", cache / f"{stem}.cpython-312.opt-1.pyc"]
        for f in files:
            f.write_bytes(b"")
        return files

    def test_removes_only_matching_script(self, tmp_path: Path) -> None:
        script = tmp_path / "math_tests.py"
        script.write_text("")
        mine = self._make_cache(tmp_path, "math_tests")
        other = self._make_cache(tmp_path, "other_tests")

        removed = clear_bytecode_cache(script)

        assert sorted(removed) == sorted(mine)
        assert not any(f.exists() for f in mine)
        assert all(f.exists() for f in other)

    def test_missing_cache_is_fine(self, tmp_path: Path) -> None:
        script = tmp_path / "fresh.py"
        script.write_text("")
        assert clear_bytecode_cache(script) == []

    def test_clear_all_caches(self, tmp_path: Path) -> None:
        nested = tmp_path / "pkg"
        nested.mkdir()
        self._make_cache(tmp_path, "a")
        self._make_cache(nested, "b")

        removed = clear_all_bytecode_caches(tmp_path)

        assert len(removed) == 2
        assert not (tmp_path / "__pycache__").exists()
        assert not (nested / "__pycache__").exists()
