"""Building and launching the command for one scenario."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from ..errors import ConfigurationError, LaunchError, ReservedVariableError
from ..scenarios.models import MergedScenario

logger = logging.getLogger(__name__)

NAME_PLACEHOLDER = "{}"
SCENARIOS_NAME = "SCENARIOS_NAME"


@dataclass
class PreparedCommand:
    """A fully resolved command line and environment for one scenario."""
    argv: List[str]
    env: Dict[str, str]
    name: str = ""

    @property
    def program(self) -> str:
        return self.argv[0]


class CommandLine:
    """Turns merged scenarios into prepared commands."""

    def __init__(self,
                 argv: Sequence[str],
                 insert_name: bool = True,
                 export_name: bool = True,
                 ignore_env: bool = False,
                 strict: bool = False,
                 base_env: Optional[Mapping[str, str]] = None):
        """
        Initialize the command line builder.

        Args:
            argv: Program and arguments; `{}` in arguments is replaced by
                the scenario name when `insert_name` is set
            insert_name: Replace `{}` in the arguments
            export_name: Set SCENARIOS_NAME in the child environment
            ignore_env: Start from an empty environment instead of the
                current one
            strict: Refuse scenarios that define SCENARIOS_NAME themselves
            base_env: Environment to inherit (default: os.environ)
        """
        if not argv:
            raise ConfigurationError("no command given")

        self.argv = list(argv)
        self.insert_name = insert_name
        self.export_name = export_name
        self.ignore_env = ignore_env
        self.strict = strict
        self._base_env = base_env

    def build(self, scenario: MergedScenario) -> PreparedCommand:
        """
        Prepare the command for `scenario`.

        Raises:
            ReservedVariableError: If the scenario defines SCENARIOS_NAME
                while the name is exported in strict mode
        """
        program, args = self.argv[0], self.argv[1:]
        if self.insert_name:
            args = [arg.replace(NAME_PLACEHOLDER, scenario.name) for arg in args]

        if self.ignore_env:
            env: Dict[str, str] = {}
        else:
            env = dict(os.environ if self._base_env is None else self._base_env)

        if self.export_name and self.strict and SCENARIOS_NAME in scenario.env:
            raise ReservedVariableError(SCENARIOS_NAME)

        env.update(scenario.env)
        if self.export_name:
            env[SCENARIOS_NAME] = scenario.name

        return PreparedCommand(argv=[program, *args], env=env, name=scenario.name)


class ProcessLauncher:
    """Runs one prepared command to completion."""

    def launch(self, command: PreparedCommand) -> int:
        """
        Run `command` with inherited stdio and wait for it.

        Returns:
            The exit code; negative if the process was killed by a signal

        Raises:
            LaunchError: If the process could not be started, including
                arguments or variables the OS rejects (e.g. embedded NUL)
        """
        logger.debug(f"Launching {command.argv!r} for scenario {command.name!r}")
        try:
            completed = subprocess.run(command.argv, env=command.env, check=False)
        except OSError as e:
            raise LaunchError(e.strerror or str(e), program=command.program) from e
        except ValueError as e:
            raise LaunchError(str(e), program=command.program) from e

        logger.debug(f"Scenario {command.name!r} exited with {completed.returncode}")
        return completed.returncode
