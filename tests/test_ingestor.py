from __future__ import annotations

import math
import threading

import pytest

from rtfmon.core.ingestor import SampleIngestor
from rtfmon.errors import InvalidRangeError, InvalidSampleError


def make_ingestor(capacity: int = 4) -> SampleIngestor:
    return SampleIngestor(num_bins=2, range_min=0.0, range_max=2.0, window_capacity=capacity)


def test_fans_out_to_all_components() -> None:
    ing = make_ingestor()
    for x in [0.5, 1.5, 1.9, 2.0]:
        ing.on_sample(x)
    snap = ing.snapshot()
    assert snap.stats.count == 4
    assert snap.histogram.counts == (1, 3)
    assert snap.window == [0.5, 1.5, 1.9, 2.0]
    assert ing.accepted == 4


def test_out_of_range_sample_still_counted() -> None:
    ing = make_ingestor()
    ing.on_sample(3.5)
    assert ing.stats_snapshot().count == 1
    assert ing.stats_snapshot().max == 3.5
    assert ing.counts() == (0, 0)
    assert ing.values() == [3.5]
    assert ing.out_of_range() == (0, 1)


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_non_finite_leaves_everything_unchanged(bad: float) -> None:
    ing = make_ingestor()
    ing.on_sample(1.0)
    before = ing.snapshot()
    with pytest.raises(InvalidSampleError):
        ing.on_sample(bad)
    assert ing.snapshot() == before
    assert ing.rejected == 1
    assert ing.accepted == 1


def test_reset_clears_stats_and_histogram_not_window() -> None:
    ing = make_ingestor()
    for x in [0.5, 1.0, 1.5]:
        ing.on_sample(x)
    ing.reset()
    ing.reset()
    snap = ing.snapshot()
    assert snap.stats.count == 0
    assert snap.histogram.counts == (0, 0)
    assert snap.window == [0.5, 1.0, 1.5]


def test_to_record_and_back() -> None:
    ing = make_ingestor()
    for x in [0.25, 0.75, 1.75]:
        ing.on_sample(x)
    record = ing.to_record(12.5, 13.0)
    assert record.sim_time == 12.5
    assert record.real_time == 13.0
    assert record.histogram.counts == (2, 1)

    restored = SampleIngestor.from_record(record, window_capacity=4)
    assert restored.stats_snapshot() == record.stats
    assert restored.counts() == (2, 1)
    assert restored.values() == []


def test_concurrent_producer_and_reader_stay_consistent() -> None:
    ing = SampleIngestor(num_bins=10, range_min=0.0, range_max=1.0, window_capacity=8)
    stop = threading.Event()
    mismatches = []

    def produce() -> None:
        for i in range(5000):
            ing.on_sample((i % 100) / 100.0)
        stop.set()

    def read() -> None:
        while not stop.is_set():
            snap = ing.snapshot()
            if snap.stats.count != sum(snap.histogram.counts):
                mismatches.append(snap)

    reader = threading.Thread(target=read)
    reader.start()
    produce()
    reader.join()
    assert mismatches == []
    assert ing.stats_snapshot().count == 5000


def test_unrepresentable_histogram_range_rejected_before_ingesting() -> None:
    with pytest.raises(InvalidRangeError):
        SampleIngestor(num_bins=2, range_min=-1e308, range_max=1e308, window_capacity=4)
