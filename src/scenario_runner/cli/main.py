"""
Scenarios command-line tool.

Main entry point for the `scenarios` command:

    scenarios [OPTIONS] FILE... [-- COMMAND [ARGS...]]
"""

import logging
import sys
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from typer.core import TyperCommand

from .. import __version__
from ..core import Config
from ..errors import ConfigurationError, ScenarioError
from ..execution import (
    CommandLine,
    ExecutionOutcome,
    ExecutionScheduler,
    FailurePolicy,
    ScenarioPrinter,
)
from ..scenarios import (
    CombinationSpace,
    FilterMode,
    MergedScenario,
    Merger,
    NameFilter,
    ScenarioLoader,
)
from .utils import expand_bare_jobs, print_failure_table, report_failure, split_command_line

PROG_NAME = "scenarios"

app = typer.Typer(
    name=PROG_NAME,
    help="Run a command once per combination of environment scenarios.",
    add_completion=False,
)

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool, quiet: bool, default_level: str = "WARNING") -> None:
    """Configure logging based on verbosity flags."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, default_level, logging.WARNING)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{PROG_NAME} version {__version__}")
        raise typer.Exit()


class ScenariosCommand(TyperCommand):
    """Command that lets `--jobs` be given without a count."""

    def parse_args(self, ctx, args):
        value_options = {
            opt
            for param in self.params
            if getattr(param, "param_type_name", "") == "option" and not getattr(param, "is_flag", False)
            for opt in param.opts
        }
        return super().parse_args(ctx, expand_bare_jobs(args, value_options))


def _select_scenarios(space: CombinationSpace,
                      exclude: List[int],
                      choose_name: Optional[str],
                      exclude_name: Optional[str]) -> Iterator[MergedScenario]:
    """Apply index exclusions and name filters, keeping enumeration order."""
    scenarios = space.with_exclusions(exclude)
    if choose_name is not None:
        scenarios = space.with_name_filter(NameFilter(choose_name, FilterMode.CHOOSE), scenarios)
    if exclude_name is not None:
        scenarios = space.with_name_filter(NameFilter(exclude_name, FilterMode.EXCLUDE), scenarios)
    return scenarios


@app.command(cls=ScenariosCommand, context_settings={"help_option_names": ["-h", "--help"]})
def run(
    ctx: typer.Context,
    files: Optional[List[str]] = typer.Argument(None, help="Scenario files to combine ('-' reads stdin)"),
    jobs: Optional[str] = typer.Option(None, "--jobs", "-j", help="Commands to run in parallel; without N, 'auto' or 0 for one per CPU", metavar="[N]"),
    keep_going: bool = typer.Option(False, "--keep-going", "-k", help="Don't stop admitting scenarios after a failure"),
    choose: Optional[int] = typer.Option(None, "--choose", "-c", help="Only process the combination with this index"),
    exclude: Optional[List[int]] = typer.Option(None, "--exclude", "-x", help="Skip the combination with this index (repeatable)"),
    choose_name: Optional[str] = typer.Option(None, "--choose-name", help="Only process scenarios whose name matches this glob"),
    exclude_name: Optional[str] = typer.Option(None, "--exclude-name", help="Skip scenarios whose name matches this glob"),
    print_template: Optional[str] = typer.Option(None, "--print", "-p", help="Print TEMPLATE per scenario, '{}' replaced by its name"),
    print0: bool = typer.Option(False, "--print0", help="Separate printed names with NUL instead of newline"),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", "-d", help="Delimiter between combined scenario names"),
    strict: Optional[bool] = typer.Option(None, "--strict/--lax", "-s/-l", help="Fail on variables defined in more than one file"),
    ignore_env: bool = typer.Option(False, "--ignore-env", "-I", help="Don't pass the current environment to COMMAND"),
    no_insert_name: bool = typer.Option(False, "--no-insert-name", help="Don't replace '{}' in COMMAND with the scenario name"),
    no_export_name: bool = typer.Option(False, "--no-export-name", help="Don't export SCENARIOS_NAME to COMMAND"),
    config: Optional[Path] = typer.Option(None, "--config", "-C", help="YAML configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"),
):
    """Run COMMAND once per combination of the scenarios in FILE..., or print their names."""
    if verbose and quiet:
        typer.echo("error: cannot use both --verbose and --quiet", err=True)
        raise typer.Exit(1)

    command: List[str] = list((ctx.obj or {}).get("command", []))

    try:
        settings = Config(config_path=config)
        settings.override(
            execution__jobs=jobs,
            execution__keep_going=True if keep_going else None,
            merge__delimiter=delimiter,
            merge__strict=strict,
            command__ignore_env=True if ignore_env else None,
            command__insert_name=False if no_insert_name else None,
            command__export_name=False if no_export_name else None,
            output__print_template=print_template,
            output__print0=True if print0 else None,
        )
    except (ConfigurationError, OSError) as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)

    _configure_logging(verbose, quiet, settings.output.log_level)

    if not files:
        typer.echo("error: no scenarios provided", err=True)
        raise typer.Exit(1)

    try:
        axes = ScenarioLoader().load_axes(files)
        space = CombinationSpace(axes, Merger(settings.merge.delimiter, settings.merge.strict))
        logger.info(f"{space.size()} combinations from {len(axes)} files")

        if command and not settings.output.printing:
            exit_code = _execute(space, command, settings, choose, exclude or [], choose_name, exclude_name, quiet)
        else:
            _print(space, settings, choose, exclude or [], choose_name, exclude_name)
            exit_code = 0
    except (ConfigurationError, ScenarioError) as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)

    if exit_code != 0:
        raise typer.Exit(exit_code)


def _print(space: CombinationSpace,
           settings: Config,
           choose: Optional[int],
           exclude: List[int],
           choose_name: Optional[str],
           exclude_name: Optional[str]) -> None:
    printer = ScenarioPrinter(settings.output.template, settings.output.terminator)
    if choose is not None:
        printer.print_scenario(space.at(choose))
    else:
        printer.print_all(_select_scenarios(space, exclude, choose_name, exclude_name))


def _execute(space: CombinationSpace,
             command: List[str],
             settings: Config,
             choose: Optional[int],
             exclude: List[int],
             choose_name: Optional[str],
             exclude_name: Optional[str],
             quiet: bool) -> int:
    command_line = CommandLine(
        command,
        insert_name=settings.command.insert_name,
        export_name=settings.command.export_name,
        ignore_env=settings.command.ignore_env,
        strict=settings.merge.strict,
    )

    def on_outcome(outcome: ExecutionOutcome) -> None:
        if not outcome.succeeded:
            report_failure(outcome, PROG_NAME)

    policy = FailurePolicy.KEEP_GOING if settings.execution.keep_going else FailurePolicy.FAIL_FAST

    if choose is not None:
        scheduler = ExecutionScheduler(command_line, concurrency=1, policy=policy, on_outcome=on_outcome)
        result = scheduler.run_single(space, choose)
    else:
        scheduler = ExecutionScheduler(
            command_line,
            concurrency=settings.execution.resolve_jobs(),
            policy=policy,
            on_outcome=on_outcome,
        )
        result = scheduler.run(_select_scenarios(space, exclude, choose_name, exclude_name))

    if result.failed > 1 and policy is FailurePolicy.KEEP_GOING and not quiet:
        print_failure_table(result.failures)

    return result.exit_code


def main(argv: Optional[List[str]] = None) -> None:
    """Console entry point; everything after `--` is the command to run."""
    args = sys.argv[1:] if argv is None else argv
    options, command = split_command_line(args)
    app(args=options, prog_name=PROG_NAME, obj={"command": command})


if __name__ == "__main__":
    main()
