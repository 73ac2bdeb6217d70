#
# src/jaribu/cleaning.py
#
"""
Best-effort cache cleaning for test scripts.

``RunfileCleaner`` spawns the configured clean command (by default
``python -m jaribu clean <file>``) through a ``CommandRunner``. The command
itself ends up in ``clear_bytecode_cache``, which removes the cached
bytecode of one script.
"""
import asyncio
import os
import shutil
import sys
from collections.abc import Sequence
from pathlib import Path

import structlog
from rich.console import Console
from rich.markup import escape

from jaribu.exceptions import CommandExecutionError, JaribuError
from jaribu.protocols import CommandResult, CommandRunner

log = structlog.get_logger("cleaning")

DEFAULT_CLEAN_COMMAND: tuple[str, ...] = (sys.executable, "-m", "jaribu", "clean")
PYCACHE_DIR = "__pycache__"


class SubprocessCommandRunner(CommandRunner):
    """
    Implements the CommandRunner protocol with asyncio.subprocess.
    """
    async def run(
        self,
        command: list[str],
        working_dir: Path | None = None,
    ) -> CommandResult:
        """
        Executes ``command`` and captures its output.
        """
        runner_log = log.bind(
            command=" ".join(command),
            working_dir=str(working_dir) if working_dir else None,
        )
        runner_log.debug("Executing command")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=working_dir,
            )
            stdout_bytes, stderr_bytes = await process.communicate()
        except FileNotFoundError as e:
            runner_log.error("Command not found", command_executable=command[0])
            raise CommandExecutionError(
                f"Command not found: '{command[0]}'. Is it installed and in the system's PATH?",
                command=command,
                details=e,
            ) from e
        except OSError as e:
            runner_log.error("Failed to start command", error=str(e))
            raise CommandExecutionError("Failed to start command", command=command, details=e) from e

        exit_code = process.returncode if process.returncode is not None else -1
        result = CommandResult(
            success=exit_code == 0,
            exit_code=exit_code,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
        )
        runner_log.debug(
            "Command finished",
            exit_code=exit_code,
            success=result.success,
            stdout_len=len(result.stdout),
            stderr_len=len(result.stderr),
        )
        return result


def entry_point_path() -> Path | None:
    """Path of the script that started this process, if there is one."""
    main_module = sys.modules.get("__main__")
    main_file = getattr(main_module, "__file__", None)
    if not main_file:
        return None
    return Path(main_file).resolve()


def _same_path(a: Path, b: Path) -> bool:
    return os.path.normcase(str(a.resolve())) == os.path.normcase(str(b.resolve()))


class RunfileCleaner:
    """
    Runs the clean command for a test script before its tests execute.

    Cleaning is never fatal: failures are reported and the run continues.
    The currently executing script is never cleaned.
    """

    def __init__(
        self,
        command_runner: CommandRunner | None = None,
        clean_command: Sequence[str] = DEFAULT_CLEAN_COMMAND,
        console: Console | None = None,
    ):
        self.command_runner = command_runner or SubprocessCommandRunner()
        self.clean_command = tuple(clean_command)
        self.console = console or Console()

    async def run_clean(self, path: Path | str | None = None) -> bool:
        current = entry_point_path()
        target = Path(path) if path is not None else current
        if target is None:
            log.debug("No script to clean; not running from a file")
            return False

        if current is not None and _same_path(target, current):
            log.info("Refusing to clean the executing script", path=str(target))
            self.console.print(
                f"⚠ Skipping clean on {escape(target.name)} (cannot clean currently executing script)",
                style="yellow",
            )
            self.console.print("  Tip: Run 'jaribu clean <file>' before execution to ensure fresh compilation.")
            self.console.print()
            return False

        self.console.print(f"✓ Running clean on: {escape(target.name)}")
        command = [*self.clean_command, str(target)]
        try:
            result = await self.command_runner.run(command, target.parent)
        except JaribuError as e:
            log.warning("Clean command could not be started", path=str(target), error=str(e))
            self.console.print(f"  ⚠ Clean failed: {escape(str(e))}", style="yellow")
            self.console.print()
            return False

        if not result.success:
            log.warning(
                "Clean command failed",
                path=str(target),
                exit_code=result.exit_code,
                stderr=result.stderr.strip(),
            )
            self.console.print(f"  ⚠ Clean failed: {escape(result.stderr.strip())}", style="yellow")
            self.console.print()
            return False

        log.info("Clean command succeeded", path=str(target), emoji_key="clean")
        self.console.print()
        return True


def clear_bytecode_cache(file_path: Path | str) -> list[Path]:
    """
    Deletes cached bytecode for one script.

    Removes every ``__pycache__/<stem>.*.pyc`` next to ``file_path``,
    covering all interpreter versions and optimization levels. Entries that
    cannot be removed are logged and skipped. Returns the removed files.
    """
    path = Path(file_path)
    cache_dir = path.parent / PYCACHE_DIR
    if not path.is_file() or not cache_dir.is_dir():
        log.debug("No bytecode cache to clear", path=str(path))
        return []

    removed = []
    for cached in sorted(cache_dir.glob(f"{path.stem}.*.pyc")):
        try:
            cached.unlink()
        except OSError as e:
            log.warning("Could not remove cached bytecode", file=str(cached), error=str(e))
            continue
        removed.append(cached)

    log.info("Cleared bytecode cache", path=str(path), removed=len(removed), emoji_key="clean")
    return removed


def clear_all_bytecode_caches(root: Path | str) -> list[Path]:
    """Removes every ``__pycache__`` directory below ``root``."""
    removed = []
    for cache_dir in sorted(Path(root).rglob(PYCACHE_DIR)):
        if not cache_dir.is_dir():
            continue
        try:
            shutil.rmtree(cache_dir)
        except OSError as e:
            log.warning("Could not remove cache directory", directory=str(cache_dir), error=str(e))
            continue
        removed.append(cache_dir)

    log.info("Cleared bytecode caches", root=str(root), removed=len(removed), emoji_key="clean")
    return removed


# 🔼⚙️
