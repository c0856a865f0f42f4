from __future__ import annotations

from dataclasses import dataclass

from .histogram import HistogramState
from .stats import StatsSnapshot


@dataclass(frozen=True)
class PersistedRecord:
    """Accumulated state written at shutdown and read back for inspection."""

    sim_time: float
    real_time: float
    stats: StatsSnapshot
    histogram: HistogramState
