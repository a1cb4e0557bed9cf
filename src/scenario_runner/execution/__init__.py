"""Command execution for merged scenarios."""

from .launcher import CommandLine, PreparedCommand, ProcessLauncher, SCENARIOS_NAME
from .printer import ScenarioPrinter
from .scheduler import (
    AggregateResult,
    ExecutionOutcome,
    ExecutionScheduler,
    FailurePolicy,
    OrderedDrain,
    OutcomeStatus,
)

__all__ = [
    "CommandLine",
    "PreparedCommand",
    "ProcessLauncher",
    "SCENARIOS_NAME",
    "ScenarioPrinter",
    "AggregateResult",
    "ExecutionOutcome",
    "ExecutionScheduler",
    "FailurePolicy",
    "OrderedDrain",
    "OutcomeStatus",
]
