"""Combining one scenario per axis into a single merged scenario."""

from __future__ import annotations

import logging
from typing import Dict, Sequence, Tuple

from .models import MergedScenario, Scenario
from ..errors import MergeConflictError, ScenarioError

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = ", "


class Merger:
    """Merges scenarios left to right.

    Names are joined with `delimiter`. Variables are merged in axis order:
    in lax mode a variable of a later scenario overwrites the same variable
    of an earlier one, in strict mode such a collision raises
    MergeConflictError.
    """

    def __init__(self, delimiter: str = DEFAULT_DELIMITER, strict: bool = False):
        self.delimiter = delimiter
        self.strict = strict

    def merge(self,
              scenarios: Sequence[Scenario],
              linear_index: int = 0,
              combination: Tuple[int, ...] = ()) -> MergedScenario:
        """
        Merge a combination of scenarios.

        Args:
            scenarios: One scenario per axis, in axis order
            linear_index: Position of this combination in the enumeration
            combination: Per-axis indices of `scenarios`

        Returns:
            MergedScenario carrying the combined name and environment

        Raises:
            ScenarioError: If `scenarios` is empty
            MergeConflictError: On a variable collision in strict mode
        """
        if not scenarios:
            raise ScenarioError("scenario merge: no scenarios provided")

        env: Dict[str, str] = {}
        owners: Dict[str, str] = {}
        for scenario in scenarios:
            for key, value in scenario.env.items():
                if key in env:
                    if self.strict:
                        raise MergeConflictError(key, owners[key], scenario.name)
                    logger.debug(f"{scenario.name} overrides {key} set by {owners[key]}")
                env[key] = value
                owners[key] = scenario.name

        name = self.delimiter.join(scenario.name for scenario in scenarios)
        return MergedScenario(
            name=name,
            env=env,
            linear_index=linear_index,
            combination=tuple(combination),
        )
