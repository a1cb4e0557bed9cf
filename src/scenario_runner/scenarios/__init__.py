"""Scenario definitions and their combination space."""

from .models import Scenario, ScenarioAxis, MergedScenario
from .loader import ScenarioLoader
from .merger import Merger, DEFAULT_DELIMITER
from .filters import NameFilter, FilterMode
from .space import CombinationSpace

__all__ = [
    "Scenario",
    "ScenarioAxis",
    "MergedScenario",
    "ScenarioLoader",
    "Merger",
    "DEFAULT_DELIMITER",
    "NameFilter",
    "FilterMode",
    "CombinationSpace",
]
