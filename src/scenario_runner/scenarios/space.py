"""Lazy, addressable Cartesian product of scenario axes."""

from __future__ import annotations

import itertools
import logging
from typing import AbstractSet, Iterable, Iterator, List, Optional, Sequence, Tuple

from .filters import NameFilter
from .merger import Merger
from .models import MergedScenario, ScenarioAxis
from ..errors import ConfigurationError, IndexOutOfRange

logger = logging.getLogger(__name__)


class CombinationSpace:
    """The product of several scenario axes, never materialized in memory.

    Combinations are numbered by a linear index in mixed radix: the last
    axis varies fastest, the first axis slowest. Enumeration, direct
    indexing and exclusion all use this numbering, so `space.at(i)` is
    always the i-th element of `iter(space)`.
    """

    def __init__(self, axes: Sequence[ScenarioAxis], merger: Optional[Merger] = None):
        """
        Initialize the space.

        Args:
            axes: Scenario axes in command-line order
            merger: Merger used to combine scenarios (default: lax, ", ")

        Raises:
            ConfigurationError: If no axes are given
        """
        if not axes:
            raise ConfigurationError("no scenarios provided")

        self.axes: Tuple[ScenarioAxis, ...] = tuple(axes)
        self.merger = merger or Merger()
        self._radices: Tuple[int, ...] = tuple(len(axis) for axis in self.axes)

        total = 1
        for radix in self._radices:
            total *= radix
        self._total = total

        logger.debug(f"Combination space over {len(self.axes)} axes "
                     f"{self._radices} has {self._total} combinations")

    def size(self) -> int:
        """Total number of combinations (0 if any axis is empty)."""
        return self._total

    def __len__(self) -> int:
        return self._total

    def __iter__(self) -> Iterator[MergedScenario]:
        return self.enumerate()

    def enumerate(self) -> Iterator[MergedScenario]:
        """Yield every merged scenario in ascending linear index order."""
        return self._iterate(excluded=frozenset())

    def with_exclusions(self, indices: Iterable[int]) -> Iterator[MergedScenario]:
        """
        Yield merged scenarios in order, skipping the given linear indices.

        Indices outside [0, size()) are ignored.
        """
        excluded = frozenset(i for i in indices if 0 <= i < self._total)
        if excluded:
            logger.debug(f"Excluding {len(excluded)} of {self._total} combinations")
        return self._iterate(excluded=excluded)

    def with_name_filter(self,
                         name_filter: NameFilter,
                         scenarios: Optional[Iterable[MergedScenario]] = None) -> Iterator[MergedScenario]:
        """Yield the merged scenarios (default: all) that pass `name_filter`."""
        source = self.enumerate() if scenarios is None else scenarios
        return (scenario for scenario in source if name_filter.is_allowed(scenario))

    def at(self, linear_index: int) -> MergedScenario:
        """
        Return the merged scenario at `linear_index`.

        The cost is proportional to the number of axes, independent of
        the size of the space.

        Raises:
            IndexOutOfRange: If `linear_index` is not in [0, size())
        """
        combination = self.decode(linear_index)
        scenarios = [axis[i] for axis, i in zip(self.axes, combination)]
        return self.merger.merge(scenarios, linear_index, combination)

    def decode(self, linear_index: int) -> Tuple[int, ...]:
        """Split a linear index into one index per axis."""
        if not 0 <= linear_index < self._total:
            raise IndexOutOfRange(linear_index, self._total)

        digits: List[int] = []
        remainder = linear_index
        for radix in reversed(self._radices):
            remainder, digit = divmod(remainder, radix)
            digits.append(digit)
        return tuple(reversed(digits))

    def encode(self, combination: Sequence[int]) -> int:
        """Combine one index per axis into a linear index."""
        if len(combination) != len(self._radices):
            raise ValueError(
                f"expected {len(self._radices)} axis indices, got {len(combination)}"
            )

        linear_index = 0
        for digit, radix in zip(combination, self._radices):
            if not 0 <= digit < radix:
                raise IndexOutOfRange(digit, radix)
            linear_index = linear_index * radix + digit
        return linear_index

    def _iterate(self, excluded: AbstractSet[int]) -> Iterator[MergedScenario]:
        # itertools.product keeps the last axis fastest, matching decode().
        index_ranges = [range(radix) for radix in self._radices]
        for linear_index, combination in enumerate(itertools.product(*index_ranges)):
            if linear_index in excluded:
                continue
            scenarios = [axis[i] for axis, i in zip(self.axes, combination)]
            yield self.merger.merge(scenarios, linear_index, combination)
