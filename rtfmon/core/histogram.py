from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..errors import InvalidRangeError, InvalidSampleError


@dataclass(frozen=True)
class HistogramState:
    num_bins: int
    range_min: float
    range_max: float
    counts: Tuple[int, ...]

    @property
    def bin_width(self) -> float:
        return (self.range_max - self.range_min) / self.num_bins

    def bin_lower_edge(self, index: int) -> float:
        return self.range_min + index * self.bin_width

    @property
    def total(self) -> int:
        return sum(self.counts)


def validate_config(num_bins: int, range_min: float, range_max: float) -> None:
    if isinstance(num_bins, bool) or not isinstance(num_bins, int) or num_bins <= 0:
        raise InvalidRangeError(f"bin count must be a positive integer, got {num_bins!r}")
    if not (math.isfinite(range_min) and math.isfinite(range_max)):
        raise InvalidRangeError(f"range bounds must be finite, got [{range_min}, {range_max}]")
    if range_min >= range_max:
        raise InvalidRangeError(f"range min must be below max, got [{range_min}, {range_max}]")
    width = (range_max - range_min) / num_bins
    if not math.isfinite(width) or width <= 0.0:
        raise InvalidRangeError(
            f"bin width over [{range_min}, {range_max}] with {num_bins} bins is not representable"
        )


class Histogram:
    """Fixed-bin histogram over [range_min, range_max].

    Bins are half-open except the last one, which also holds values equal to
    ``range_max``. Values below the range or strictly above it are dropped and
    tallied in ``underflow`` / ``overflow``.
    """

    def __init__(self, num_bins: int, range_min: float, range_max: float) -> None:
        self._num_bins = 0
        self._range_min = 0.0
        self._range_max = 0.0
        self._bin_width = 0.0
        self._counts: List[int] = []
        self.underflow = 0
        self.overflow = 0
        self.configure(num_bins, range_min, range_max)

    @classmethod
    def from_state(cls, state: HistogramState) -> "Histogram":
        hist = cls(state.num_bins, state.range_min, state.range_max)
        if len(state.counts) != state.num_bins:
            raise InvalidRangeError(
                f"state declares {state.num_bins} bins but carries {len(state.counts)} counts"
            )
        hist._counts = [int(c) for c in state.counts]
        return hist

    @property
    def num_bins(self) -> int:
        return self._num_bins

    @property
    def range_min(self) -> float:
        return self._range_min

    @property
    def range_max(self) -> float:
        return self._range_max

    @property
    def bin_width(self) -> float:
        return self._bin_width

    def configure(self, num_bins: int, range_min: float, range_max: float) -> None:
        range_min = float(range_min)
        range_max = float(range_max)
        validate_config(num_bins, range_min, range_max)
        self._num_bins = num_bins
        self._range_min = range_min
        self._range_max = range_max
        self._bin_width = (range_max - range_min) / num_bins
        self._counts = [0] * num_bins
        self.underflow = 0
        self.overflow = 0

    def bin_index(self, x: float) -> Optional[int]:
        """Return the bin ``x`` falls in, or None when it is out of range."""
        if x < self._range_min or x > self._range_max:
            return None
        if x == self._range_max:
            return self._num_bins - 1
        index = int(math.floor((x - self._range_min) / self._bin_width))
        # (x - min) / width can round up to num_bins just below the top edge
        return min(index, self._num_bins - 1)

    def insert(self, x: float) -> Optional[int]:
        value = float(x)
        if not math.isfinite(value):
            raise InvalidSampleError(f"non-finite sample: {x!r}")
        index = self.bin_index(value)
        if index is None:
            if value < self._range_min:
                self.underflow += 1
            else:
                self.overflow += 1
            return None
        self._counts[index] += 1
        return index

    def reset(self) -> None:
        self._counts = [0] * self._num_bins
        self.underflow = 0
        self.overflow = 0

    def counts(self) -> Tuple[int, ...]:
        return tuple(self._counts)

    def state(self) -> HistogramState:
        return HistogramState(
            num_bins=self._num_bins,
            range_min=self._range_min,
            range_max=self._range_max,
            counts=tuple(self._counts),
        )
