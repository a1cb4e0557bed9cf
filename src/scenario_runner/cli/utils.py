"""CLI utility functions."""

from typing import Collection, List, Optional, Sequence, Tuple
import logging
import re

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..execution import ExecutionOutcome

logger = logging.getLogger(__name__)

COMMAND_SEPARATOR = "--"
JOBS_OPTIONS = ("-j", "--jobs")
AUTO_JOBS = "auto"

_JOB_COUNT = re.compile(r"^(auto|-?\d+)$", re.IGNORECASE)


def split_command_line(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split argv at the first `--` into tool arguments and the command."""
    args = list(argv)
    if COMMAND_SEPARATOR not in args:
        return args, []
    position = args.index(COMMAND_SEPARATOR)
    return args[:position], args[position + 1:]


def report_failure(outcome: ExecutionOutcome, prog_name: str = "scenarios") -> None:
    """Print one failed scenario to stderr."""
    typer.echo(f"{prog_name}: {outcome.describe()}", err=True)
    typer.echo(f'\tin scenario "{outcome.scenario_name}"', err=True)


def print_failure_table(failures: Sequence[ExecutionOutcome], console: Optional[Console] = None) -> None:
    """Summarize failed scenarios as a table on stderr."""
    console = console or Console(stderr=True)
    table = Table(title=f"{len(failures)} scenarios failed")
    table.add_column("Index", justify="right")
    table.add_column("Scenario")
    table.add_column("Reason")
    for outcome in failures:
        table.add_row(str(outcome.linear_index), escape(outcome.scenario_name), escape(outcome.describe()))
    console.print(table)


def expand_bare_jobs(args: Sequence[str], value_options: Collection[str] = ()) -> List[str]:
    """
    Rewrite a `--jobs` given without a count as `--jobs=auto`.

    `--jobs` takes an optional value: the next argument is consumed only if
    it looks like a job count, so `--jobs a.ini` keeps `a.ini` as a file.

    Args:
        args: Tool arguments, without the command
        value_options: Other options whose next argument is their value
    """
    args = list(args)
    result: List[str] = []
    expect_value = False

    for i, arg in enumerate(args):
        if expect_value:
            result.append(arg)
            expect_value = False
            continue
        if arg == COMMAND_SEPARATOR:
            result.extend(args[i:])
            break

        if arg in JOBS_OPTIONS:
            following = args[i + 1] if i + 1 < len(args) else None
            if following is None or not _JOB_COUNT.match(following.strip()):
                logger.debug(f"{arg} without a count, using {AUTO_JOBS}")
                result.append(f"--jobs={AUTO_JOBS}")
                continue
            expect_value = True
        elif arg in value_options:
            expect_value = True
        result.append(arg)

    return result
