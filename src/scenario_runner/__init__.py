"""Run a command once per combination of environment scenarios."""

__version__ = "0.1.0"

from .scenarios import (
    CombinationSpace,
    MergedScenario,
    Merger,
    Scenario,
    ScenarioAxis,
    ScenarioLoader,
)
from .execution import (
    AggregateResult,
    CommandLine,
    ExecutionOutcome,
    ExecutionScheduler,
    FailurePolicy,
    ProcessLauncher,
)

__all__ = [
    "__version__",
    "CombinationSpace",
    "MergedScenario",
    "Merger",
    "Scenario",
    "ScenarioAxis",
    "ScenarioLoader",
    "AggregateResult",
    "CommandLine",
    "ExecutionOutcome",
    "ExecutionScheduler",
    "FailurePolicy",
    "ProcessLauncher",
]
