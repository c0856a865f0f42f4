from __future__ import annotations

import csv
import logging
import math
import threading
from typing import IO, Optional, Tuple

import requests

from ..config import ClockSourceConfig
from ..core.ingestor import SampleIngestor
from ..utils.retry import with_retries


logger = logging.getLogger(__name__)


class ClockRatioSampler:
    """Turns successive (simTime, realTime) pairs into real-time-factor samples.

    The first pair only sets the baseline. Every later pair yields
    ``delta_sim / delta_real`` against the previous pair. Ratios that cannot
    be formed (zero real delta) or are not finite never reach the ingestor.
    """

    def __init__(self, ingestor: SampleIngestor) -> None:
        self.ingestor = ingestor
        self._lock = threading.Lock()
        self._prev: Optional[Tuple[float, float]] = None
        self._paused = False
        self.skipped = 0
        self.last_sim_time = 0.0
        self.last_real_time = 0.0

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def on_clock(self, sim_time: float, real_time: float) -> Optional[float]:
        """Feed one clock reading; return the ratio ingested, if any."""
        with self._lock:
            prev = self._prev
            self._prev = (sim_time, real_time)
            self.last_sim_time = sim_time
            self.last_real_time = real_time
            if prev is None:
                return None
            real_dt = real_time - prev[1]
            sim_dt = sim_time - prev[0]
            if real_dt == 0.0:
                self.skipped += 1
                logger.debug("Skipping clock pair with zero real-time delta at sim=%s", sim_time)
                return None
            ratio = sim_dt / real_dt
            if not math.isfinite(ratio):
                self.skipped += 1
                logger.debug("Skipping non-finite ratio %s at sim=%s", ratio, sim_time)
                return None
            if self._paused:
                return None
        self.ingestor.on_sample(ratio)
        return ratio


class StreamClockSource:
    """Reads ``sim,real`` CSV lines from a text stream on a background thread.

    Stops on its own at end of stream. Unparseable lines are skipped.
    """

    def __init__(self, stream: IO[str], sampler: ClockRatioSampler) -> None:
        self.stream = stream
        self.sampler = sampler
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.lines_read = 0
        self.lines_rejected = 0

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="StreamClockSource", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=5)

    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the stream to be drained."""
        if self._thread:
            self._thread.join(timeout=timeout)

    def _run(self) -> None:
        reader = csv.reader(self.stream)
        for row in reader:
            if self._stop.is_set():
                break
            if not row:
                continue
            self.lines_read += 1
            pair = self._parse_row(row)
            if pair is None:
                self.lines_rejected += 1
                logger.warning("Ignoring malformed clock line %s", reader.line_num, extra={"row": row})
                continue
            self.sampler.on_clock(*pair)
        logger.info("Clock stream finished", extra={"lines": self.lines_read})

    @staticmethod
    def _parse_row(row: list) -> Optional[Tuple[float, float]]:
        # Format: sim,real (a trailing empty field from a terminating comma is allowed)
        fields = [f for f in row if f != ""]
        if len(fields) != 2:
            return None
        try:
            sim, real = float(fields[0]), float(fields[1])
        except ValueError:
            return None
        if not (math.isfinite(sim) and math.isfinite(real)):
            return None
        return sim, real


class HttpClockSource:
    """Polls an HTTP endpoint returning ``{"sim": float, "real": float}``."""

    def __init__(self, config: ClockSourceConfig, sampler: ClockRatioSampler) -> None:
        if not config.url:
            raise ValueError("HTTP clock source requires a url")
        self.config = config
        self.sampler = sampler
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.failures = 0

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="HttpClockSource", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=5)

    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def fetch(self, session: requests.Session) -> Tuple[float, float]:
        resp = session.get(self.config.url, timeout=self.config.network_timeout_sec)  # type: ignore[arg-type]
        resp.raise_for_status()
        payload = resp.json()
        return float(payload["sim"]), float(payload["real"])

    def _run(self) -> None:
        session = requests.Session()
        session.headers.update({"User-Agent": "rtfmon/0.1"})
        cfg = self.config
        while not self._stop.is_set():
            try:
                sim, real = with_retries(
                    lambda: self.fetch(session),
                    max_attempts=cfg.max_retries,
                    base_seconds=cfg.backoff_base_sec,
                    cap_seconds=cfg.backoff_cap_sec,
                    sleep=self._stop.wait,
                )
            except (requests.RequestException, KeyError, TypeError, ValueError) as exc:
                self.failures += 1
                logger.warning("Clock poll failed: %s", exc, extra={"url": cfg.url})
            else:
                if math.isfinite(sim) and math.isfinite(real):
                    self.sampler.on_clock(sim, real)
            self._stop.wait(timeout=cfg.poll_interval_sec)
        session.close()
