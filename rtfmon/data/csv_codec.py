"""Text codec for PersistedRecord.

Layout, every field followed by a comma and every line by a newline::

    <simTime>,<realTime>,
    <count>,<mean>,<variance>,<min>,<max>,
    <numBins>,<rangeMin>,<rangeMax>,
    <count of bin 0>,
    ...
    <count of bin numBins-1>,

Floats are written with ``repr`` so they parse back to the same value.
Decoding is strict and all-or-nothing: any deviation raises
MalformedRecordError and nothing is returned.
"""

from __future__ import annotations

import logging
import math
import re
from pathlib import Path
from typing import List, Sequence, Union

from ..core.histogram import HistogramState, validate_config
from ..core.record import PersistedRecord
from ..core.stats import StatsSnapshot
from ..errors import InvalidRangeError, MalformedRecordError


logger = logging.getLogger(__name__)

SEPARATOR = ","

_INT_RE = re.compile(r"\d+")
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _fmt_float(value: float) -> str:
    return repr(float(value))


def _line(fields: Sequence[str]) -> str:
    return "".join(f"{f}{SEPARATOR}" for f in fields) + "\n"


def encode(record: PersistedRecord) -> str:
    stats = record.stats
    hist = record.histogram
    if stats.count == 0:
        stat_fields = ["0.0"] * 4
    else:
        stat_fields = [
            _fmt_float(stats.mean),  # type: ignore[arg-type]
            _fmt_float(stats.variance),  # type: ignore[arg-type]
            _fmt_float(stats.min),  # type: ignore[arg-type]
            _fmt_float(stats.max),  # type: ignore[arg-type]
        ]
    parts = [
        _line([_fmt_float(record.sim_time), _fmt_float(record.real_time)]),
        _line([str(int(stats.count))] + stat_fields),
        _line([str(int(hist.num_bins)), _fmt_float(hist.range_min), _fmt_float(hist.range_max)]),
    ]
    parts.extend(_line([str(int(c))]) for c in hist.counts)
    return "".join(parts)


class _LineReader:
    def __init__(self, text: str) -> None:
        self._lines = text.split("\n")
        self._pos = 0

    def fields(self, expected: int, what: str) -> List[str]:
        lineno = self._pos + 1
        if self._pos >= len(self._lines) or self._lines[self._pos] == "":
            raise MalformedRecordError(f"line {lineno}: expected {what}, found end of input")
        line = self._lines[self._pos]
        self._pos += 1
        if not line.endswith(SEPARATOR):
            raise MalformedRecordError(f"line {lineno}: {what} is not terminated by '{SEPARATOR}'")
        tokens = line[: -len(SEPARATOR)].split(SEPARATOR)
        if len(tokens) != expected:
            raise MalformedRecordError(
                f"line {lineno}: {what} has {len(tokens)} fields, expected {expected}"
            )
        return tokens

    def ensure_exhausted(self) -> None:
        rest = self._lines[self._pos:]
        if any(rest):
            raise MalformedRecordError(
                f"line {self._pos + 1}: unexpected trailing content {rest[0][:32]!r}"
            )


def _parse_int(token: str, name: str) -> int:
    if not _INT_RE.fullmatch(token):
        raise MalformedRecordError(f"{name}: {token!r} is not an unsigned integer")
    return int(token)


def _parse_float(token: str, name: str) -> float:
    if not _FLOAT_RE.fullmatch(token):
        raise MalformedRecordError(f"{name}: {token!r} is not a finite number")
    value = float(token)
    # the grammar still admits overflowing exponents such as 1e999
    if not math.isfinite(value):
        raise MalformedRecordError(f"{name}: {token!r} is not a finite number")
    return value


def decode(text: str) -> PersistedRecord:
    reader = _LineReader(text)

    sim_tok, real_tok = reader.fields(2, "time line")
    sim_time = _parse_float(sim_tok, "simTime")
    real_time = _parse_float(real_tok, "realTime")

    count_tok, *stat_toks = reader.fields(5, "statistics line")
    count = _parse_int(count_tok, "count")
    mean, variance, vmin, vmax = (
        _parse_float(tok, name)
        for tok, name in zip(stat_toks, ("mean", "variance", "min", "max"))
    )
    if count == 0:
        stats = StatsSnapshot(count=0)
    else:
        if variance < 0.0:
            raise MalformedRecordError(f"variance: negative value {variance!r}")
        if vmin > vmax:
            raise MalformedRecordError(f"min {vmin!r} exceeds max {vmax!r}")
        stats = StatsSnapshot(count=count, mean=mean, variance=variance, min=vmin, max=vmax)

    bins_tok, lo_tok, hi_tok = reader.fields(3, "histogram header")
    num_bins = _parse_int(bins_tok, "numBins")
    range_min = _parse_float(lo_tok, "rangeMin")
    range_max = _parse_float(hi_tok, "rangeMax")
    try:
        validate_config(num_bins, range_min, range_max)
    except InvalidRangeError as exc:
        raise MalformedRecordError(f"histogram header: {exc}") from exc

    counts = []
    for i in range(num_bins):
        (tok,) = reader.fields(1, f"histogram bin {i}")
        counts.append(_parse_int(tok, f"bin {i}"))
    reader.ensure_exhausted()

    return PersistedRecord(
        sim_time=sim_time,
        real_time=real_time,
        stats=stats,
        histogram=HistogramState(
            num_bins=num_bins,
            range_min=range_min,
            range_max=range_max,
            counts=tuple(counts),
        ),
    )


def write_record(path: Union[str, Path], record: PersistedRecord) -> None:
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(encode(record))
    logger.info("Wrote record to %s", path, extra={"samples": record.stats.count})


def read_record(path: Union[str, Path]) -> PersistedRecord:
    with open(path, "r", encoding="utf-8", newline="") as fh:
        text = fh.read()
    return decode(text)
