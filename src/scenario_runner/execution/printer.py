"""Printing scenario names instead of running commands."""

from __future__ import annotations

import sys
from typing import Iterable, Optional, TextIO

from ..scenarios.models import MergedScenario

PLACEHOLDER = "{}"


class ScenarioPrinter:
    """Prints a template per scenario with `{}` replaced by its name."""

    def __init__(self,
                 template: str = PLACEHOLDER,
                 terminator: str = "\n",
                 stream: Optional[TextIO] = None):
        self.template = template
        self.terminator = terminator
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def format(self, name: str) -> str:
        return self.template.replace(PLACEHOLDER, name) + self.terminator

    def print_scenario(self, scenario: MergedScenario) -> None:
        self.stream.write(self.format(scenario.name))
        self.stream.flush()

    def print_all(self, scenarios: Iterable[MergedScenario]) -> int:
        """Print every scenario; return how many were printed."""
        count = 0
        for scenario in scenarios:
            self.print_scenario(scenario)
            count += 1
        return count
