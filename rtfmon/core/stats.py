from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ..errors import InvalidSampleError, MalformedRecordError


@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time view of a StatsAccumulator.

    When ``count`` is 0 the remaining fields are ``None``; callers check
    ``count`` before reading them.
    """

    count: int
    mean: Optional[float] = None
    variance: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def empty(self) -> bool:
        return self.count == 0


class StatsAccumulator:
    """Single-pass count/mean/variance/min/max using Welford's update.

    Variance is the population variance (M2 / count), not the sample variance
    (M2 / (count - 1)).
    """

    def __init__(self) -> None:
        self._count: int = 0
        self._mean: float = 0.0
        self._m2: float = 0.0
        self._min: float = math.inf
        self._max: float = -math.inf

    @classmethod
    def from_snapshot(cls, snapshot: StatsSnapshot) -> "StatsAccumulator":
        acc = cls()
        if snapshot.count == 0:
            return acc
        if None in (snapshot.mean, snapshot.variance, snapshot.min, snapshot.max):
            raise MalformedRecordError(f"snapshot with count={snapshot.count} is missing fields")
        acc._count = snapshot.count
        acc._mean = snapshot.mean
        acc._m2 = snapshot.variance * snapshot.count
        acc._min = snapshot.min
        acc._max = snapshot.max
        return acc

    @property
    def count(self) -> int:
        return self._count

    def insert(self, x: float) -> None:
        value = float(x)
        if not math.isfinite(value):
            raise InvalidSampleError(f"non-finite sample: {x!r}")
        self._count += 1
        delta = value - self._mean
        self._mean += delta / self._count
        self._m2 += delta * (value - self._mean)
        if value < self._min:
            self._min = value
        if value > self._max:
            self._max = value

    def reset(self) -> None:
        self._count = 0
        self._mean = 0.0
        self._m2 = 0.0
        self._min = math.inf
        self._max = -math.inf

    def snapshot(self) -> StatsSnapshot:
        if self._count == 0:
            return StatsSnapshot(count=0)
        return StatsSnapshot(
            count=self._count,
            mean=self._mean,
            variance=self._m2 / self._count,
            min=self._min,
            max=self._max,
        )
