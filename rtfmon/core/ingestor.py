from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import List, Tuple

from ..errors import InvalidSampleError
from .buffers import BoundedWindow
from .histogram import Histogram, HistogramState
from .record import PersistedRecord
from .stats import StatsAccumulator, StatsSnapshot


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestorSnapshot:
    stats: StatsSnapshot
    histogram: HistogramState
    window: List[float]


class SampleIngestor:
    """Fans each sample out to the statistics, histogram and trend window.

    One lock guards the three components together, so a reader never sees
    a histogram that disagrees with the statistics count. The clock source
    thread is the only producer; the CLI poll loop is the only consumer.
    """

    def __init__(
        self,
        num_bins: int,
        range_min: float,
        range_max: float,
        window_capacity: int,
    ) -> None:
        self._lock = threading.RLock()
        self._stats = StatsAccumulator()
        self._histogram = Histogram(num_bins, range_min, range_max)
        self._window = BoundedWindow(window_capacity)
        self.accepted = 0
        self.rejected = 0

    @classmethod
    def from_record(cls, record: PersistedRecord, window_capacity: int) -> "SampleIngestor":
        """Build an ingestor holding a previously persisted state.

        The trend window is not persisted and starts empty.
        """
        hist = record.histogram
        ingestor = cls(hist.num_bins, hist.range_min, hist.range_max, window_capacity)
        ingestor._stats = StatsAccumulator.from_snapshot(record.stats)
        ingestor._histogram = Histogram.from_state(hist)
        return ingestor

    def on_sample(self, x: float) -> None:
        value = float(x)
        if not math.isfinite(value):
            with self._lock:
                self.rejected += 1
            raise InvalidSampleError(f"non-finite sample: {x!r}")
        with self._lock:
            self._stats.insert(value)
            if self._histogram.insert(value) is None:
                logger.debug("Sample %s outside histogram range", value)
            self._window.push(value)
            self.accepted += 1

    def reset(self) -> None:
        with self._lock:
            self._stats.reset()
            self._histogram.reset()
        logger.info("Statistics and histogram reset")

    def stats_snapshot(self) -> StatsSnapshot:
        with self._lock:
            return self._stats.snapshot()

    def counts(self) -> Tuple[int, ...]:
        with self._lock:
            return self._histogram.counts()

    def values(self) -> List[float]:
        with self._lock:
            return self._window.values()

    def out_of_range(self) -> Tuple[int, int]:
        """Return (underflow, overflow) drop counts since the last reset."""
        with self._lock:
            return self._histogram.underflow, self._histogram.overflow

    def snapshot(self) -> IngestorSnapshot:
        with self._lock:
            return IngestorSnapshot(
                stats=self._stats.snapshot(),
                histogram=self._histogram.state(),
                window=self._window.values(),
            )

    def to_record(self, sim_time: float, real_time: float) -> PersistedRecord:
        with self._lock:
            return PersistedRecord(
                sim_time=float(sim_time),
                real_time=float(real_time),
                stats=self._stats.snapshot(),
                histogram=self._histogram.state(),
            )
