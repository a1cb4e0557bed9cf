"""Bounded-concurrency execution of merged scenarios."""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .launcher import CommandLine, ProcessLauncher
from ..errors import LaunchError, ScenarioError
from ..scenarios.models import MergedScenario
from ..scenarios.space import CombinationSpace

logger = logging.getLogger(__name__)


class FailurePolicy(Enum):
    """What to do with the remaining scenarios after a failure."""
    FAIL_FAST = "fail-fast"
    KEEP_GOING = "keep-going"


class OutcomeStatus(Enum):
    """Result category of one scenario run."""
    SUCCESS = "success"
    FAILURE = "failure"
    LAUNCH_ERROR = "launch_error"


@dataclass(frozen=True)
class ExecutionOutcome:
    """Result of running the command for one scenario."""
    scenario_name: str
    linear_index: int
    status: OutcomeStatus
    exit_code: Optional[int] = None
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def describe(self) -> str:
        """Human-readable failure reason."""
        if self.status is OutcomeStatus.SUCCESS:
            return "command finished successfully"
        if self.status is OutcomeStatus.LAUNCH_ERROR:
            return self.reason or "could not execute command"
        if self.exit_code is not None and self.exit_code < 0:
            return f"command was terminated by signal {-self.exit_code}"
        return f"command returned non-zero exit code: {self.exit_code}"


@dataclass
class AggregateResult:
    """Summary of a whole run."""
    dispatched: int = 0
    failed: int = 0
    failures: List[ExecutionOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failed == 0

    @property
    def first_failure(self) -> Optional[ExecutionOutcome]:
        """The lowest-ordered failed outcome, if any."""
        return self.failures[0] if self.failures else None

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def record(self, outcome: ExecutionOutcome) -> None:
        if not outcome.succeeded:
            self.failed += 1
            self.failures.append(outcome)

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary for reporting."""
        return {
            "dispatched": self.dispatched,
            "failed": self.failed,
            "success": self.success,
            "first_failure": self.first_failure.scenario_name if self.first_failure else None,
        }


class OrderedDrain:
    """Releases outcomes in dispatch order, buffering early completions."""

    def __init__(self):
        self._pending: Dict[int, ExecutionOutcome] = {}
        self._next = 0

    def push(self, position: int, outcome: ExecutionOutcome) -> List[ExecutionOutcome]:
        """Add the outcome at `position`; return everything now releasable."""
        self._pending[position] = outcome
        released = []
        while self._next in self._pending:
            released.append(self._pending.pop(self._next))
            self._next += 1
        return released

    @property
    def buffered(self) -> int:
        return len(self._pending)


OutcomeCallback = Callable[[ExecutionOutcome], None]


class ExecutionScheduler:
    """Dispatches merged scenarios to a bounded pool of command launches."""

    def __init__(self,
                 command_line: CommandLine,
                 concurrency: int = 1,
                 policy: FailurePolicy = FailurePolicy.FAIL_FAST,
                 launcher: Optional[ProcessLauncher] = None,
                 on_outcome: Optional[OutcomeCallback] = None):
        """
        Initialize scheduler.

        Args:
            command_line: Builds argv and environment per scenario
            concurrency: Maximum number of commands running at once
            policy: Stop admitting after the first failure, or keep going
            launcher: Runs prepared commands (default: ProcessLauncher)
            on_outcome: Called with every outcome, in dispatch order
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1: {concurrency}")

        self.command_line = command_line
        self.concurrency = concurrency
        self.policy = policy
        self.launcher = launcher or ProcessLauncher()
        self.on_outcome = on_outcome

        # Per-run state, reset by run()
        self._drain = OrderedDrain()
        self._result = AggregateResult()

        logger.info(f"Initialized scheduler with {self.concurrency} jobs, policy {self.policy.value}")

    def run(self, scenarios: Iterable[MergedScenario]) -> AggregateResult:
        """
        Run the command once per scenario.

        Blocks until every admitted scenario has finished. Outcomes are
        passed to `on_outcome` in the order of `scenarios`.

        Raises:
            ScenarioError: If producing the next scenario fails (e.g. a
                strict merge conflict); admitted commands are drained first
        """
        self._drain = OrderedDrain()
        self._result = AggregateResult()

        iterator: Iterator[MergedScenario] = iter(scenarios)
        in_flight: Dict[concurrent.futures.Future, int] = {}
        admitting = True
        pending_error: Optional[ScenarioError] = None

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.concurrency,
            thread_name_prefix="scenario",
        ) as executor:
            while True:
                while admitting and len(in_flight) < self.concurrency:
                    try:
                        scenario = next(iterator)
                    except StopIteration:
                        admitting = False
                        break
                    except ScenarioError as e:
                        logger.error(f"Cannot produce next scenario: {e}")
                        pending_error = e
                        admitting = False
                        break

                    future = executor.submit(self._execute, scenario)
                    in_flight[future] = self._result.dispatched
                    self._result.dispatched += 1

                if not in_flight:
                    break

                done, _ = concurrent.futures.wait(
                    in_flight, return_when=concurrent.futures.FIRST_COMPLETED
                )
                # Complete in dispatch order so a batch is buffered predictably.
                for future in sorted(done, key=in_flight.__getitem__):
                    position = in_flight.pop(future)
                    outcome = future.result()
                    if not outcome.succeeded and self.policy is FailurePolicy.FAIL_FAST and admitting:
                        logger.info("Stopping after first failure, waiting for running commands")
                        admitting = False
                    for released in self._drain.push(position, outcome):
                        self._report(released)

        if pending_error is not None:
            raise pending_error

        logger.info(f"Run finished: {self._result.dispatched} dispatched, {self._result.failed} failed")
        return self._result

    def run_single(self, space: CombinationSpace, index: int) -> AggregateResult:
        """
        Run exactly the combination at `index`.

        Raises:
            IndexOutOfRange: If `index` is not in the space; nothing runs
        """
        scenario = space.at(index)
        return self.run([scenario])

    def _execute(self, scenario: MergedScenario) -> ExecutionOutcome:
        """Worker body: launch one command and classify its result."""
        try:
            command = self.command_line.build(scenario)
            exit_code = self.launcher.launch(command)
        except LaunchError as e:
            return ExecutionOutcome(
                scenario_name=scenario.name,
                linear_index=scenario.linear_index,
                status=OutcomeStatus.LAUNCH_ERROR,
                reason=str(e),
            )

        status = OutcomeStatus.SUCCESS if exit_code == 0 else OutcomeStatus.FAILURE
        return ExecutionOutcome(
            scenario_name=scenario.name,
            linear_index=scenario.linear_index,
            status=status,
            exit_code=exit_code,
        )

    def _report(self, outcome: ExecutionOutcome) -> None:
        self._result.record(outcome)
        if not outcome.succeeded:
            logger.debug(f"Scenario {outcome.scenario_name!r} failed: {outcome.describe()}")
        if self.on_outcome is not None:
            self.on_outcome(outcome)
