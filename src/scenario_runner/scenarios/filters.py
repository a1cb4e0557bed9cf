"""Glob-based filtering of merged scenarios by name."""

from __future__ import annotations

from enum import Enum
from fnmatch import fnmatchcase
from typing import Optional

from .models import MergedScenario


class FilterMode(Enum):
    """How a NameFilter treats matching names."""
    CHOOSE = "choose"
    EXCLUDE = "exclude"


class NameFilter:
    """Lets scenarios pass depending on whether their name matches a pattern.

    In CHOOSE mode only matching scenarios pass; without a pattern nothing
    passes. In EXCLUDE mode matching scenarios are dropped; without a
    pattern everything passes. Patterns are case-sensitive shell globs
    (`*`, `?`, `[...]`, `[!...]`).
    """

    def __init__(self, pattern: Optional[str] = None, mode: FilterMode = FilterMode.EXCLUDE):
        self.pattern = pattern
        self.mode = mode

    def matches(self, name: str) -> bool:
        if self.pattern is None:
            return False
        return fnmatchcase(name, self.pattern)

    def is_allowed(self, scenario: MergedScenario) -> bool:
        """Return True if `scenario` passes this filter."""
        matched = self.matches(scenario.name)
        if self.mode is FilterMode.CHOOSE:
            return matched
        return not matched

    def __repr__(self) -> str:
        return f"NameFilter(pattern={self.pattern!r}, mode={self.mode.value})"
