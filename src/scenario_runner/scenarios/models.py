"""Data models for scenarios and their combinations."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Tuple

from ..errors import ScenarioError

_VARIABLE_NAME = re.compile(r"^[_A-Za-z][_A-Za-z0-9]*$")


def is_valid_variable_name(name: str) -> bool:
    """Return True if `name` can be exported as an environment variable."""
    return bool(_VARIABLE_NAME.match(name))


@dataclass(frozen=True)
class Scenario:
    """A named set of environment variable assignments."""
    name: str
    env: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Copy so later changes to the caller's dict cannot leak in
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    def validate(self) -> None:
        """Validate scenario name and variable names."""
        if not self.name:
            raise ScenarioError(f"the scenario name is invalid: {self.name!r}")

        for key in self.env:
            if not is_valid_variable_name(key):
                raise ScenarioError(f"the variable name is invalid: {key!r}")

    def __str__(self) -> str:
        return f'Scenario "{self.name}"'


@dataclass(frozen=True)
class ScenarioAxis:
    """One input list of scenarios, contributing one dimension to the product."""
    source: str
    entries: Tuple[Scenario, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> Scenario:
        return self.entries[index]

    def __iter__(self) -> Iterator[Scenario]:
        return iter(self.entries)

    def names(self) -> Tuple[str, ...]:
        """Scenario names in file order."""
        return tuple(scenario.name for scenario in self.entries)


@dataclass(frozen=True)
class MergedScenario:
    """The scenario produced by combining one entry from every axis."""
    name: str
    env: Dict[str, str]
    linear_index: int
    combination: Tuple[int, ...] = ()

    def __str__(self) -> str:
        return f'Scenario "{self.name}" (#{self.linear_index})'
