# tests/unit/test_cli_commands.py
"""Unit tests for the command-line interface."""

import sys
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from scenario_runner import __version__
from scenario_runner.cli.main import app
from scenario_runner.cli.utils import expand_bare_jobs, print_failure_table, split_command_line
from scenario_runner.execution import ExecutionOutcome, OutcomeStatus


@pytest.fixture
def cli_runner():
    """Provide CLI test runner."""
    return CliRunner()


def invoke(cli_runner, args, command=None, **kwargs):
    return cli_runner.invoke(app, [str(arg) for arg in args], obj={"command": command or []}, **kwargs)


def python_command(code):
    return [sys.executable, "-c", code]


@pytest.mark.unit
class TestSplitCommandLine:
    """Test separating tool options from the command."""

    def test_no_separator(self):
        assert split_command_line(["-j", "2", "a.ini"]) == (["-j", "2", "a.ini"], [])

    def test_separator(self):
        assert split_command_line(["a.ini", "--", "echo", "{}"]) == (["a.ini"], ["echo", "{}"])

    def test_only_first_separator_splits(self):
        """Test that a later '--' belongs to the command."""
        assert split_command_line(["a.ini", "--", "cmd", "--", "x"]) == (["a.ini"], ["cmd", "--", "x"])


@pytest.mark.unit
class TestPrintMode:
    """Test printing scenario names."""

    def test_print_names(self, cli_runner, numbers_file, letters_file):
        """Test that without a command all combined names are printed."""
        result = invoke(cli_runner, [numbers_file, letters_file])

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert len(lines) == 16
        assert lines[0] == "Number-One, A"
        assert lines[1] == "Number-One, B"
        assert lines[-1] == "Number-Four, D"

    def test_print_template(self, cli_runner, languages_file):
        """Test --print with a template."""
        result = invoke(cli_runner, ["--print", "results/{}.txt", languages_file])

        assert result.exit_code == 0
        assert result.stdout == "results/English.txt\nresults/German.txt\n"

    def test_print_overrides_command(self, cli_runner, languages_file):
        """Test that --print prints even when a command is given."""
        result = invoke(cli_runner, ["-p", "{}", languages_file], command=["false"])

        assert result.exit_code == 0
        assert result.stdout == "English\nGerman\n"

    def test_print0(self, cli_runner, languages_file):
        """Test NUL-separated output."""
        result = invoke(cli_runner, ["--print0", languages_file])

        assert result.exit_code == 0
        assert result.stdout == "English\0German\0"

    def test_delimiter(self, cli_runner, languages_file, letters_file):
        """Test a custom name delimiter."""
        result = invoke(cli_runner, ["-d", "_", languages_file, letters_file])

        assert result.exit_code == 0
        assert result.stdout.splitlines()[0] == "English_A"

    def test_choose(self, cli_runner, numbers_file, letters_file):
        """Test selecting a single combination by index."""
        result = invoke(cli_runner, ["--choose", "5", numbers_file, letters_file])

        assert result.exit_code == 0
        assert result.stdout == "Number-Two, B\n"

    def test_choose_out_of_range(self, cli_runner, numbers_file, letters_file):
        """Test that an invalid index is an error."""
        result = invoke(cli_runner, ["--choose", "16", numbers_file, letters_file])

        assert result.exit_code == 1
        assert "out of range" in result.output

    def test_exclude(self, cli_runner, numbers_file, letters_file):
        """Test skipping combinations by index."""
        result = invoke(cli_runner, ["-x", "0", "-x", "15", numbers_file, letters_file])

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert len(lines) == 14
        assert lines[0] == "Number-One, B"
        assert "Number-Four, D" not in lines

    def test_name_filters(self, cli_runner, numbers_file, letters_file):
        """Test choosing and excluding by name glob."""
        result = invoke(
            cli_runner,
            ["--choose-name", "Number-T*", "--exclude-name", "*, [AB]", numbers_file, letters_file],
        )

        assert result.exit_code == 0
        assert result.stdout.splitlines() == [
            "Number-Two, C", "Number-Two, D", "Number-Three, C", "Number-Three, D",
        ]

    def test_stdin(self, cli_runner, languages_file):
        """Test reading one scenario file from standard input."""
        result = invoke(cli_runner, [languages_file, "-"], input="[x]\n[y]\n")

        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["English, x", "English, y", "German, x", "German, y"]

    def test_empty_file(self, cli_runner, languages_file, empty_file):
        """Test that an empty scenario file yields no combinations."""
        result = invoke(cli_runner, ["-q", languages_file, empty_file])

        assert result.exit_code == 0
        assert result.stdout == ""


@pytest.mark.unit
class TestErrors:
    """Test error reporting and exit codes."""

    def test_no_files(self, cli_runner):
        """Test that scenario files are required."""
        result = invoke(cli_runner, [])

        assert result.exit_code == 1
        assert "no scenarios provided" in result.output

    def test_missing_file(self, cli_runner, tmp_path):
        """Test that a missing scenario file is an error."""
        result = invoke(cli_runner, [tmp_path / "nope.ini"])

        assert result.exit_code == 1
        assert "nope.ini" in result.output

    def test_syntax_error(self, cli_runner, tmp_path):
        """Test that a parse error names file and line."""
        path = tmp_path / "broken.ini"
        path.write_text("[ok]\nX=1\nbroken line\n")

        result = invoke(cli_runner, [path])

        assert result.exit_code == 1
        assert f"{path}:3:" in result.output

    def test_strict_conflict(self, cli_runner, tmp_path):
        """Test that --strict reports colliding variables."""
        first = tmp_path / "first.ini"
        second = tmp_path / "second.ini"
        first.write_text("[a]\nX=1\n")
        second.write_text("[b]\nX=2\n")

        lax = invoke(cli_runner, [first, second])
        assert lax.exit_code == 0

        strict = invoke(cli_runner, ["--strict", first, second])
        assert strict.exit_code == 1
        assert "conflicting variable definitions" in strict.output

    def test_invalid_jobs(self, cli_runner, languages_file):
        """Test that an invalid job count is rejected."""
        result = invoke(cli_runner, ["-j", "many", languages_file], command=["true"])

        assert result.exit_code == 1
        assert "jobs" in result.output

    def test_verbose_and_quiet(self, cli_runner, languages_file):
        result = invoke(cli_runner, ["-v", "-q", languages_file])
        assert result.exit_code == 1

    def test_version(self, cli_runner):
        result = invoke(cli_runner, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


@pytest.mark.unit
class TestExecuteMode:
    """Test running commands through the CLI."""

    def test_success(self, cli_runner, languages_file):
        """Test that succeeding commands exit with 0."""
        result = invoke(cli_runner, [languages_file], command=python_command("pass"))
        assert result.exit_code == 0

    def test_failure(self, cli_runner, languages_file):
        """Test that a failing command exits with 1 and names the scenario."""
        result = invoke(cli_runner, [languages_file], command=python_command("import sys; sys.exit(4)"))

        assert result.exit_code == 1
        assert "command returned non-zero exit code: 4" in result.output
        assert 'in scenario "English"' in result.output
        assert 'in scenario "German"' not in result.output

    def test_keep_going(self, cli_runner, languages_file):
        """Test that --keep-going reports every failure."""
        result = invoke(
            cli_runner,
            ["--keep-going", languages_file],
            command=python_command("import sys; sys.exit(1)"),
        )

        assert result.exit_code == 1
        assert 'in scenario "English"' in result.output
        assert 'in scenario "German"' in result.output

    def test_failure_only_in_one_scenario(self, cli_runner, languages_file):
        """Test that the environment decides which scenario fails."""
        code = "import os, sys; sys.exit(os.environ['example'] == 'Beispiel')"
        result = invoke(cli_runner, ["-k", "-j", "2", languages_file], command=python_command(code))

        assert result.exit_code == 1
        assert 'in scenario "German"' in result.output
        assert 'in scenario "English"' not in result.output

    def test_missing_program(self, cli_runner, languages_file, tmp_path):
        """Test that an unstartable command is reported per scenario."""
        program = str(tmp_path / "no-such-program")
        result = invoke(cli_runner, [languages_file], command=[program])

        assert result.exit_code == 1
        assert f"could not execute command: {program}" in result.output

    def test_choose_runs_one(self, cli_runner, numbers_file, letters_file, tmp_path):
        """Test that --choose runs exactly one combination."""
        marker = tmp_path / "ran"
        code = f"open({str(marker)!r}, 'a').write(__import__('os').environ['SCENARIOS_NAME'] + '\\n')"
        result = invoke(cli_runner, ["-c", "6", numbers_file, letters_file], command=python_command(code))

        assert result.exit_code == 0
        assert marker.read_text() == "Number-Two, C\n"

    def test_config_file(self, cli_runner, languages_file, letters_file, tmp_path):
        """Test settings from a configuration file."""
        config_path = tmp_path / "scenarios.yaml"
        config_path.write_text(yaml.dump({"merge": {"delimiter": " + "}}))

        result = invoke(cli_runner, ["--config", config_path, languages_file, letters_file])

        assert result.exit_code == 0
        assert result.stdout.splitlines()[0] == "English + A"

    def test_missing_config_file(self, cli_runner, languages_file, tmp_path):
        result = invoke(cli_runner, ["-C", tmp_path / "missing.yaml", languages_file])
        assert result.exit_code == 1


@pytest.mark.unit
def test_failure_table():
    """Test the keep-going failure summary."""
    from io import StringIO
    from rich.console import Console

    buffer = StringIO()
    console = Console(file=buffer, width=120)
    failures = [
        ExecutionOutcome("English, [A]", 0, OutcomeStatus.FAILURE, exit_code=2),
        ExecutionOutcome("German, B", 5, OutcomeStatus.LAUNCH_ERROR, reason="could not execute command: x: gone"),
    ]

    print_failure_table(failures, console=console)

    output = buffer.getvalue()
    assert "2 scenarios failed" in output
    assert "English, [A]" in output
    assert "command returned non-zero exit code: 2" in output
    assert "could not execute command: x: gone" in output


@pytest.mark.unit
class TestJobsOption:
    """Test `--jobs` with and without a count."""

    @pytest.mark.parametrize("args,expected", [
        (["--jobs", "a.ini"], ["--jobs=auto", "a.ini"]),
        (["a.ini", "-j"], ["a.ini", "--jobs=auto"]),
        (["-j", "-k", "a.ini"], ["--jobs=auto", "-k", "a.ini"]),
        (["-j", "4", "a.ini"], ["-j", "4", "a.ini"]),
        (["--jobs", "auto", "a.ini"], ["--jobs", "auto", "a.ini"]),
        (["--jobs=2", "a.ini"], ["--jobs=2", "a.ini"]),
        (["-p", "-j", "a.ini"], ["-p", "-j", "a.ini"]),
    ])
    def test_expand_bare_jobs(self, args, expected):
        assert expand_bare_jobs(args, value_options={"-p", "--print"}) == expected

    def test_bare_jobs_before_files(self, cli_runner, languages_file):
        """Test that a bare --jobs uses one job per CPU and keeps the file."""
        with patch("scenario_runner.core.config.psutil.cpu_count", return_value=3):
            result = invoke(cli_runner, ["-v", "--jobs", languages_file], command=python_command("pass"))

        assert result.exit_code == 0, result.output
        assert "with 3 jobs" in result.output

    def test_bare_jobs_last(self, cli_runner, languages_file):
        """Test a bare --jobs after the files."""
        result = invoke(cli_runner, [languages_file, "-j"], command=python_command("pass"))
        assert result.exit_code == 0, result.output


@pytest.mark.unit
class TestPrintSelection:
    """Test that print settings take precedence over a command."""

    def test_print0_with_command(self, cli_runner, languages_file, tmp_path):
        """Test that --print0 prints names instead of running the command."""
        marker = tmp_path / "ran"
        code = f"open({str(marker)!r}, 'w').write('ran')"

        result = invoke(cli_runner, ["--print0", languages_file], command=python_command(code))

        assert result.exit_code == 0
        assert result.stdout == "English\0German\0"
        assert not marker.exists()

    def test_config_template_with_command(self, cli_runner, languages_file, tmp_path):
        """Test that a print template from the config file selects print mode."""
        config_path = tmp_path / "scenarios.yaml"
        config_path.write_text(yaml.dump({"output": {"print_template": "log/{}.txt"}}))

        result = invoke(cli_runner, ["-C", config_path, languages_file], command=["false"])

        assert result.exit_code == 0
        assert result.stdout == "log/English.txt\nlog/German.txt\n"


@pytest.mark.unit
def test_keep_going_reports_in_order(cli_runner, numbers_file):
    """Test failure reports and the summary table with parallel jobs."""
    # Number-Two finishes last, after Number-Four has already failed
    code = (
        "import os, sys, time\n"
        "number = os.environ['NUMBER']\n"
        "time.sleep(0.5 if number == '2' else 0)\n"
        "sys.exit(1 if number in ('2', '4') else 0)\n"
    )

    result = invoke(cli_runner, ["-k", "--jobs", "4", numbers_file], command=python_command(code))

    assert result.exit_code == 1
    output = result.output
    second = output.index('in scenario "Number-Two"')
    fourth = output.index('in scenario "Number-Four"')
    table = output.index("2 scenarios failed")
    assert second < fourth < table
    assert "Number-One" not in output[:table]
    assert "Number-Two" in output[table:]
    assert "Number-Four" in output[table:]
    assert output[table:].count("command returned non-zero exit code: 1") == 2
