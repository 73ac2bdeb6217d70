#
# tests/unit/test_cli.py
#
"""
Comprehensive tests for CLI functionality.
"""

import json
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from jaribu.cli.main import cli

PASSING_SCRIPT = '''
from jaribu import tag


class CalculatorTests:
    @staticmethod
    async def adds():
        assert 1 + 1 == 2

    @staticmethod
    @tag("Slow")
    async def multiplies():
        assert 2 * 3 == 6
'''

FAILING_SCRIPT = '''
class BrokenTests:
    @staticmethod
    async def explodes():
        raise ValueError("boom")
'''


class TestMainCLI:
    """Test main CLI entry point."""

    def test_cli_help(self) -> None:
        """Test CLI help output."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "jaribu" in result.output.lower()
        assert "run" in result.output
        assert "clean" in result.output

    def test_cli_version(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0

    def test_global_log_level_option(self) -> None:
        runner = CliRunner()

        result = runner.invoke(cli, ["--log-level", "DEBUG", "run", "--help"])
        assert result.exit_code == 0

        result = runner.invoke(cli, ["--log-level", "INVALID", "run", "--help"])
        assert result.exit_code != 0

    def test_command_parsing(self) -> None:
        assert "run" in cli.commands
        assert "clean" in cli.commands


class TestRunCommand:
    """Test the 'run' command."""

    def test_run_help(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["run", "--help"])
        assert result.exit_code == 0
        assert "--tag" in result.output
        assert "--clear-cache" in result.output

    def test_run_passing_script(self, tmp_path: Path) -> None:
        script = tmp_path / "calculator_tests.py"
        script.write_text(PASSING_SCRIPT)

        runner = CliRunner()
        result = runner.invoke(cli, ["run", str(script)])

        assert result.exit_code == 0, result.output
        assert "Testing Calculator..." in result.output
        assert "Total: 2" in result.output

    def test_run_failing_script_exits_one(self, tmp_path: Path) -> None:
        script = tmp_path / "broken_tests.py"
        script.write_text(FAILING_SCRIPT)

        runner = CliRunner()
        result = runner.invoke(cli, ["run", str(script)])

        assert result.exit_code == 1
        assert "ValueError: boom" in result.output

    def test_run_several_scripts_prints_suite_table(self, tmp_path: Path) -> None:
        passing = tmp_path / "calculator_tests.py"
        passing.write_text(PASSING_SCRIPT)
        failing = tmp_path / "broken_tests.py"
        failing.write_text(FAILING_SCRIPT)

        runner = CliRunner()
        result = runner.invoke(cli, ["run", str(passing), str(failing)])

        assert result.exit_code == 1
        assert "Test Suite Summary" in result.output
        assert "TESTS FAILED" in result.output

    def test_run_with_tag(self, tmp_path: Path) -> None:
        script = tmp_path / "calculator_tests.py"
        script.write_text(PASSING_SCRIPT)

        runner = CliRunner()
        result = runner.invoke(cli, ["run", "--tag", "Fast", str(script)])

        assert result.exit_code == 0
        assert "No matching tag 'Fast'" in result.output
        assert "Skipped: 1" in result.output

    def test_run_with_env_tag(self, tmp_path: Path) -> None:
        script = tmp_path / "calculator_tests.py"
        script.write_text(PASSING_SCRIPT)

        runner = CliRunner()
        with patch.dict("os.environ", {"JARIBU_FILTER_TAG": "Fast"}):
            result = runner.invoke(cli, ["run", str(script)])

        assert result.exit_code == 0
        assert "(filtered by tag: Fast)" in result.output

    def test_run_with_invalid_config(self, tmp_path: Path) -> None:
        script = tmp_path / "calculator_tests.py"
        script.write_text(PASSING_SCRIPT)
        config_file = tmp_path / "jaribu.toml"
        config_file.write_text('[jaribu\nmissing = "bracket"')

        runner = CliRunner()
        result = runner.invoke(cli, ["run", "--config-path", str(config_file), str(script)])

        assert result.exit_code == 2
        assert "configuration problem" in result.output.lower()

    def test_run_unimportable_script(self, tmp_path: Path) -> None:
        script = tmp_path / "syntax_tests.py"
        script.write_text("def broken(:\n")

        runner = CliRunner()
        result = runner.invoke(cli, ["run", str(script)])

        assert result.exit_code == 2
        assert "Failed to import" in result.output

    def test_run_nonexistent_file(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["run", "/nonexistent/script.py"])
        assert result.exit_code != 0
        assert "does not exist" in result.output

    @patch("jaribu.cli.run_cmds._run_suite")
    def test_run_passes_options_to_suite(self, mock_run_suite, tmp_path: Path) -> None:
        mock_run_suite.return_value = 0
        script = tmp_path / "calculator_tests.py"
        script.write_text(PASSING_SCRIPT)

        runner = CliRunner()
        result = runner.invoke(cli, ["run", "--clear-cache", "--tag", "Slow", str(script)])

        assert result.exit_code == 0
        test_runner, clear_cache, filter_tag = mock_run_suite.call_args.args
        assert clear_cache is True
        assert filter_tag == "Slow"
        assert [c.__name__ for c in test_runner.registry] == ["CalculatorTests"]

    @patch("jaribu.cli.run_cmds._run_suite")
    def test_run_interrupted_exit_code(self, mock_run_suite, tmp_path: Path) -> None:
        mock_run_suite.return_value = 130
        script = tmp_path / "calculator_tests.py"
        script.write_text(PASSING_SCRIPT)

        runner = CliRunner()
        result = runner.invoke(cli, ["run", str(script)])

        assert result.exit_code == 130


class TestCleanCommand:
    """Test the 'clean' command."""

    def test_clean_script(self, tmp_path: Path) -> None:
        script = tmp_path / "calculator_tests.py"
        script.write_text(PASSING_SCRIPT)
        cache = tmp_path / "__pycache__"
        cache.mkdir()
        cached = cache / "calculator_tests.cpython-312.pyc"
        cached.write_bytes(b"")

        runner = CliRunner()
        result = runner.invoke(cli, ["clean", str(script)])

        assert result.exit_code == 0
        assert not cached.exists()
        assert "Cleared bytecode cache for calculator_tests.py" in result.output

    def test_clean_without_cache(self, tmp_path: Path) -> None:
        script = tmp_path / "fresh_tests.py"
        script.write_text("")

        runner = CliRunner()
        result = runner.invoke(cli, ["clean", str(script)])

        assert result.exit_code == 0
        assert "No bytecode cache found for fresh_tests.py" in result.output

    def test_clean_directory(self, tmp_path: Path) -> None:
        (tmp_path / "__pycache__").mkdir()

        runner = CliRunner()
        result = runner.invoke(cli, ["clean", str(tmp_path)])

        assert result.exit_code == 0
        assert not (tmp_path / "__pycache__").exists()


class TestLoggingOptions:
    """Logging options shared by every command."""

    def test_log_file_receives_json_records(self, tmp_path: Path) -> None:
        script = tmp_path / "calculator_tests.py"
        script.write_text(PASSING_SCRIPT)
        log_file = tmp_path / "jaribu.log"

        runner = CliRunner()
        result = runner.invoke(
            cli, ["--log-level", "INFO", "--log-file", str(log_file), "run", str(script)]
        )

        assert result.exit_code == 0
        records = [json.loads(line) for line in log_file.read_text().splitlines() if line.strip()]
        assert any("Running registered test classes" in r["event"] for r in records)
        assert all("level" in r for r in records)

    def test_config_file_log_level_applies(self, tmp_path: Path) -> None:
        script = tmp_path / "calculator_tests.py"
        script.write_text(PASSING_SCRIPT)
        config_file = tmp_path / "jaribu.toml"
        config_file.write_text('[jaribu]\nlog_level = "INFO"\n')
        quiet_log = tmp_path / "quiet.log"
        verbose_log = tmp_path / "verbose.log"

        runner = CliRunner()
        quiet = runner.invoke(cli, ["run", "--log-file", str(quiet_log), str(script)])
        verbose = runner.invoke(
            cli,
            ["run", "--log-file", str(verbose_log), "--config-path", str(config_file), str(script)],
        )

        assert quiet.exit_code == 0
        assert verbose.exit_code == 0
        assert "Running registered test classes" not in quiet_log.read_text()
        assert "Running registered test classes" in verbose_log.read_text()

    def test_cli_level_beats_config_file(self, tmp_path: Path) -> None:
        script = tmp_path / "calculator_tests.py"
        script.write_text(PASSING_SCRIPT)
        config_file = tmp_path / "jaribu.toml"
        config_file.write_text('[jaribu]\nlog_level = "INFO"\n')
        log_file = tmp_path / "jaribu.log"

        runner = CliRunner()
        result = runner.invoke(
            cli,
            [
                "run",
                "--log-level",
                "ERROR",
                "--log-file",
                str(log_file),
                "--config-path",
                str(config_file),
                str(script),
            ],
        )

        assert result.exit_code == 0
        assert "Running registered test classes" not in log_file.read_text()

# 🧪🖥️
