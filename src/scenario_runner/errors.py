"""Exception hierarchy for scenario runs."""

from __future__ import annotations

from typing import Optional


class ScenariosError(Exception):
    """Base class for all errors raised by scenario_runner."""
    pass


class ConfigurationError(ScenariosError):
    """Fatal error detected before any command is launched."""
    pass


class ConfigValidationError(ConfigurationError, ValueError):
    """A configuration value is out of range or malformed."""
    pass


class IndexOutOfRange(ConfigurationError, IndexError):
    """A linear index does not address any combination."""

    def __init__(self, index: int, total: int):
        self.index = index
        self.total = total
        if total == 0:
            message = f"index {index} out of range: there are no combinations"
        else:
            message = f"index {index} out of range: expected a value in [0, {total})"
        super().__init__(message)


class ScenarioParseError(ConfigurationError):
    """A scenario file could not be parsed."""

    def __init__(self, source: str, line: int, message: str):
        self.source = source
        self.line = line
        self.message = message
        super().__init__(f"{source}:{line}: {message}")


class ScenarioError(ScenariosError):
    """A scenario or one of its variables is invalid."""
    pass


class MergeConflictError(ScenarioError):
    """Two scenarios define the same variable and strict mode is enabled."""

    def __init__(self, varname: str, left: str, right: str):
        self.varname = varname
        self.left = left
        self.right = right
        super().__init__(
            f'conflicting variable definitions: "{varname}" defined by '
            f'scenarios "{left}" and "{right}"'
        )


class LaunchError(ScenariosError):
    """The command for a scenario could not be started."""

    def __init__(self, reason: str, program: Optional[str] = None):
        self.reason = reason
        self.program = program
        if program:
            super().__init__(f"could not execute command: {program}: {reason}")
        else:
            super().__init__(reason)


class ReservedVariableError(LaunchError):
    """A scenario defines SCENARIOS_NAME while the name is exported."""

    def __init__(self, varname: str):
        self.varname = varname
        super().__init__(f"bad variable name: {varname}")
