"""Scenario file parser."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, TextIO, Tuple

import yaml

from .models import Scenario, ScenarioAxis, is_valid_variable_name
from ..errors import ConfigurationError, ScenarioParseError

logger = logging.getLogger(__name__)

STDIN_PATH = "-"
YAML_SUFFIXES = (".yaml", ".yml")


class ScenarioLoader:
    """Loads scenario axes from INI-like or YAML scenario files.

    The INI-like format looks like this::

        # comment
        [English]
        greeting = Hello

        [German]
        greeting = Hallo

    YAML files map scenario names to mappings of variables.
    """

    def __init__(self, stdin: Optional[TextIO] = None):
        """Initialize scenario loader."""
        self._stdin = stdin

    def load_axes(self, paths: Iterable[str]) -> List[ScenarioAxis]:
        """Load one axis per path, in order."""
        axes = [self.load_axis(path) for path in paths]
        if not axes:
            raise ConfigurationError("no scenarios provided")
        return axes

    def load_axis(self, path: str) -> ScenarioAxis:
        """Load all scenarios of one file; `-` reads standard input."""
        if str(path) == STDIN_PATH:
            stream = self._stdin or sys.stdin
            return self.parse_text(stream.read(), source="<stdin>")

        file_path = Path(path)
        logger.info(f"Loading scenarios from: {file_path}")

        try:
            text = file_path.read_text()
        except OSError as e:
            raise ScenarioParseError(str(file_path), 0, e.strerror or str(e)) from e

        if file_path.suffix.lower() in YAML_SUFFIXES:
            return self.parse_yaml(text, source=str(file_path))
        return self.parse_text(text, source=str(file_path))

    def parse_text(self, text: str, source: str = "<memory>") -> ScenarioAxis:
        """Parse the INI-like scenario format."""
        # Variables are collected per header and frozen into a Scenario at the end
        sections: List[Tuple[str, Dict[str, str]]] = []
        current: Optional[Dict[str, str]] = None
        seen = set()

        for lineno, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue

            if line.startswith("["):
                name = self._parse_header(line, source, lineno)
                if name in seen:
                    raise ScenarioParseError(source, lineno, f'duplicate scenario name: "{name}"')
                seen.add(name)
                current = {}
                sections.append((name, current))
                continue

            if "=" not in line:
                raise ScenarioParseError(
                    source, lineno,
                    f'syntax error: missing equals sign "=" in variable definition: "{line}"'
                )

            key, _, value = line.partition("=")
            key = key.rstrip()
            value = value.lstrip()

            if current is None:
                raise ScenarioParseError(
                    source, lineno, f"variable definition before the first header: {key}"
                )
            if not is_valid_variable_name(key):
                raise ScenarioParseError(source, lineno, f"the variable name is invalid: {key!r}")
            if key in current:
                raise ScenarioParseError(
                    source, lineno, f"a variable of this name has been added before: {key!r}"
                )
            current[key] = value

        scenarios = [Scenario(name=name, env=env) for name, env in sections]
        return self._make_axis(scenarios, source)

    def parse_yaml(self, text: str, source: str = "<memory>") -> ScenarioAxis:
        """Parse a YAML scenario file."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            line = 0
            mark = getattr(e, "problem_mark", None)
            if mark is not None:
                line = mark.line + 1
            raise ScenarioParseError(source, line, f"invalid YAML: {e}") from e

        if data is None:
            entries: List[Tuple[Any, Any]] = []
        elif isinstance(data, dict):
            entries = list(data.items())
        elif isinstance(data, list):
            entries = []
            for i, item in enumerate(data):
                if not isinstance(item, dict) or "name" not in item:
                    raise ScenarioParseError(source, 0, f"item {i}: expected a mapping with a 'name' field")
                entries.append((item["name"], item.get("env")))
        else:
            raise ScenarioParseError(source, 0, "expected a mapping of scenario names to variables")

        scenarios: List[Scenario] = []
        for name, variables in entries:
            if name is None or str(name).strip() == "":
                raise ScenarioParseError(source, 0, f"the scenario name is invalid: {name!r}")
            if variables is None:
                variables = {}
            if not isinstance(variables, dict):
                raise ScenarioParseError(source, 0, f'scenario "{name}": variables must be a mapping')

            env: Dict[str, str] = {}
            for key, value in variables.items():
                key = str(key)
                if not is_valid_variable_name(key):
                    raise ScenarioParseError(source, 0, f'scenario "{name}": the variable name is invalid: {key!r}')
                env[key] = _to_env_value(value)
            scenarios.append(Scenario(name=str(name).strip(), env=env))

        return self._make_axis(scenarios, source)

    def _parse_header(self, line: str, source: str, lineno: int) -> str:
        if not line.endswith("]"):
            if "]" not in line:
                message = f'syntax error: bracket "[" not closed in header line: "{line}"'
            else:
                message = f'syntax error: text after closing bracket "]" of a header line: "{line}"'
            raise ScenarioParseError(source, lineno, message)

        name = line[1:-1].strip()
        if not name:
            raise ScenarioParseError(source, lineno, f"the scenario name is invalid: {name!r}")
        return name

    @staticmethod
    def _make_axis(scenarios: List[Scenario], source: str) -> ScenarioAxis:
        seen = set()
        for scenario in scenarios:
            if scenario.name in seen:
                raise ScenarioParseError(source, 0, f'duplicate scenario name: "{scenario.name}"')
            seen.add(scenario.name)

        if not scenarios:
            logger.warning(f"No scenarios found in {source}")
        logger.info(f"Loaded {len(scenarios)} scenarios from {source}")
        return ScenarioAxis(source=source, entries=tuple(scenarios))


def _to_env_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
