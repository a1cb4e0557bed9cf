"""Configuration parsing and validation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import psutil
import yaml

from ..errors import ConfigValidationError

logger = logging.getLogger(__name__)

AUTO_JOBS = "auto"
DEFAULT_PRINT_TEMPLATE = "{}"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def parse_bool(value: Any) -> bool:
    """Interpret a YAML or environment value as a boolean."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ConfigValidationError(f"Invalid boolean value: {value!r}")


def cpu_count() -> int:
    """Number of logical cores, at least 1."""
    return psutil.cpu_count(logical=True) or 1


@dataclass
class ExecutionConfig:
    """Configuration for command execution."""
    jobs: str = "1"
    keep_going: bool = False

    def validate(self) -> None:
        """Validate execution configuration."""
        self.resolve_jobs()

    def resolve_jobs(self) -> int:
        """Number of parallel jobs; `auto` and `0` mean one per core."""
        text = str(self.jobs).strip().lower()
        if text == AUTO_JOBS:
            return cpu_count()
        try:
            jobs = int(text)
        except ValueError:
            raise ConfigValidationError(f"jobs must be a non-negative integer or '{AUTO_JOBS}': {self.jobs!r}")
        if jobs < 0:
            raise ConfigValidationError(f"jobs must be a non-negative integer or '{AUTO_JOBS}': {self.jobs!r}")
        return jobs if jobs > 0 else cpu_count()


@dataclass
class MergeConfig:
    """How scenarios from different files are combined."""
    delimiter: str = ", "
    strict: bool = False

    def validate(self) -> None:
        """Validate merge configuration."""
        if not isinstance(self.delimiter, str):
            raise ConfigValidationError(f"delimiter must be a string: {self.delimiter!r}")


@dataclass
class CommandConfig:
    """How the command line and environment are built."""
    insert_name: bool = True
    export_name: bool = True
    ignore_env: bool = False

    def validate(self) -> None:
        pass


@dataclass
class OutputConfig:
    """Output configuration.

    Setting `print_template` or `print0` selects print mode even when a
    command is given.
    """
    print_template: Optional[str] = None
    print0: bool = False
    log_level: str = "WARNING"

    def validate(self) -> None:
        """Validate output configuration."""
        if self.log_level not in LOG_LEVELS:
            raise ConfigValidationError(f"Invalid log level: {self.log_level}")

    @property
    def printing(self) -> bool:
        return self.print_template is not None or self.print0

    @property
    def template(self) -> str:
        return DEFAULT_PRINT_TEMPLATE if self.print_template is None else self.print_template

    @property
    def terminator(self) -> str:
        return "\0" if self.print0 else "\n"


class Config:
    """Main configuration container.

    Values come from, in increasing precedence: defaults, the YAML file,
    SCENARIOS_* environment variables, and explicit overrides (CLI flags)
    applied with `override()`.
    """

    def __init__(self, config_path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None):
        """Initialize configuration."""
        self.config_path = config_path
        self.data: Dict[str, Any] = {}
        self._environ = os.environ if environ is None else environ

        # Initialize with defaults
        self.execution = ExecutionConfig()
        self.merge = MergeConfig()
        self.command = CommandConfig()
        self.output = OutputConfig()

        if config_path:
            self.load()
        else:
            self._merge_env_vars()
            self._update_from_dict()
            self.validate()

    def load(self) -> None:
        """Load configuration from file."""
        if not self.config_path:
            raise ValueError("No configuration path specified")

        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        logger.info(f"Loading configuration from {self.config_path}")

        try:
            with open(self.config_path, 'r') as f:
                self.data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML configuration: {e}")
            raise ConfigValidationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(self.data, dict):
            raise ConfigValidationError(f"Configuration must be a mapping: {self.config_path}")

        self._merge_env_vars()
        self._update_from_dict()
        self.validate()

        logger.info("Configuration loaded successfully")

    def _merge_env_vars(self) -> None:
        """Merge SCENARIOS_* environment variables into configuration."""
        env = self._environ
        if "SCENARIOS_JOBS" in env:
            self.data.setdefault("execution", {})["jobs"] = env["SCENARIOS_JOBS"]
        if "SCENARIOS_KEEP_GOING" in env:
            self.data.setdefault("execution", {})["keep_going"] = env["SCENARIOS_KEEP_GOING"]
        if "SCENARIOS_DELIMITER" in env:
            self.data.setdefault("merge", {})["delimiter"] = env["SCENARIOS_DELIMITER"]
        if "SCENARIOS_LOG_LEVEL" in env:
            self.data.setdefault("output", {})["log_level"] = env["SCENARIOS_LOG_LEVEL"].upper()

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.data.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigValidationError(f"Configuration section '{name}' must be a mapping")
        return section

    def _update_from_dict(self) -> None:
        """Update configuration objects from loaded data."""
        execution_data = self._section("execution")
        self.execution = ExecutionConfig(
            jobs=str(execution_data.get("jobs", self.execution.jobs)),
            keep_going=parse_bool(execution_data.get("keep_going", self.execution.keep_going)),
        )

        merge_data = self._section("merge")
        self.merge = MergeConfig(
            delimiter=merge_data.get("delimiter", self.merge.delimiter),
            strict=parse_bool(merge_data.get("strict", self.merge.strict)),
        )

        command_data = self._section("command")
        self.command = CommandConfig(
            insert_name=parse_bool(command_data.get("insert_name", self.command.insert_name)),
            export_name=parse_bool(command_data.get("export_name", self.command.export_name)),
            ignore_env=parse_bool(command_data.get("ignore_env", self.command.ignore_env)),
        )

        output_data = self._section("output")
        self.output = OutputConfig(
            print_template=output_data.get("print_template", self.output.print_template),
            print0=parse_bool(output_data.get("print0", self.output.print0)),
            log_level=str(output_data.get("log_level", self.output.log_level)).upper(),
        )

    def override(self, **values: Any) -> None:
        """
        Apply explicit overrides, e.g. from command-line flags.

        Keys are `section__field` (for instance `execution__jobs`); None
        values are ignored.
        """
        for key, value in values.items():
            if value is None:
                continue
            section_name, _, field_name = key.partition("__")
            section = getattr(self, section_name, None)
            if section is None or not hasattr(section, field_name):
                raise ConfigValidationError(f"Unknown configuration key: {key}")
            setattr(section, field_name, value)
        self.validate()

    def validate(self) -> None:
        """Validate all configuration sections."""
        try:
            self.execution.validate()
            self.merge.validate()
            self.command.validate()
            self.output.validate()
        except ConfigValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "execution": {
                "jobs": self.execution.jobs,
                "keep_going": self.execution.keep_going,
            },
            "merge": {
                "delimiter": self.merge.delimiter,
                "strict": self.merge.strict,
            },
            "command": {
                "insert_name": self.command.insert_name,
                "export_name": self.command.export_name,
                "ignore_env": self.command.ignore_env,
            },
            "output": {
                "print_template": self.output.print_template,
                "print0": self.output.print0,
                "log_level": self.output.log_level,
            },
        }
