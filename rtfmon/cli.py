from __future__ import annotations

import logging
import signal
import threading
from pathlib import Path
from typing import Optional, Union

import typer

from .config import AppConfig, load_config
from .core.histogram import HistogramState
from .core.ingestor import SampleIngestor
from .core.stats import StatsSnapshot
from .data.clock_source import ClockRatioSampler, HttpClockSource, StreamClockSource
from .data.csv_codec import read_record, write_record
from .errors import MalformedRecordError, RtfMonError
from .utils.logging import setup_logging


logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Real-time-factor statistics monitor.")


def format_stats(stats: StatsSnapshot) -> str:
    if stats.empty:
        return "count=0 (no data)"
    return (
        f"count={stats.count} mean={stats.mean:.4f} var={stats.variance:.6f} "
        f"min={stats.min:.4f} max={stats.max:.4f}"
    )


def format_histogram(hist: HistogramState, max_width: int = 40) -> str:
    """Render non-empty bins as text bars, one per line."""
    peak = max(hist.counts) if hist.counts else 0
    if peak == 0:
        return "  (empty histogram)"
    lines = []
    for i, count in enumerate(hist.counts):
        if count == 0:
            continue
        bar = "#" * max(1, round(count / peak * max_width))
        lines.append(f"  [{hist.bin_lower_edge(i):8.4f}) {count:8d} {bar}")
    return "\n".join(lines)


def _open_clock_stream(path: str):
    if path == "-":
        return typer.get_text_stream("stdin")
    return open(path, "r", encoding="utf-8", newline="")


def _replay(input_path: Path, cfg: AppConfig) -> None:
    try:
        record = read_record(input_path)
    except (MalformedRecordError, OSError) as exc:
        logger.error("Cannot load %s: %s", input_path, exc)
        typer.echo(f"error: cannot load {input_path}: {exc}", err=True)
        raise typer.Exit(code=1)
    ingestor = SampleIngestor.from_record(record, cfg.runtime.window.capacity)
    snap = ingestor.snapshot()
    typer.echo(f"replay of {input_path}: sim={record.sim_time} real={record.real_time}")
    typer.echo(format_stats(snap.stats))


@app.command()
def run(
    input_path: Optional[Path] = typer.Option(None, "--input", "-i", help="Load a saved record instead of sampling"),
    output_path: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the accumulated record on exit"),
    clock_file: Optional[str] = typer.Option(None, "--clock-file", help="CSV of sim,real pairs; '-' for stdin"),
    clock_url: Optional[str] = typer.Option(None, "--clock-url", help="Poll this URL for clock readings"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML runtime configuration"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
) -> None:
    """Sample the clock until interrupted, then optionally persist the result.

    SIGINT/SIGTERM stop sampling; SIGUSR1 resets statistics and histogram;
    SIGUSR2 toggles pausing, during which clock readings are dropped.
    """
    try:
        cfg = load_config(config_path)
    except ValueError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2)
    setup_logging(log_level or cfg.env.LOG_LEVEL)

    if input_path is not None:
        _replay(input_path, cfg)
        return

    hist_cfg = cfg.runtime.histogram
    try:
        ingestor = SampleIngestor(
            hist_cfg.num_bins,
            hist_cfg.range_min,
            hist_cfg.range_max,
            cfg.runtime.window.capacity,
        )
    except RtfMonError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2)
    sampler = ClockRatioSampler(ingestor)

    clock_cfg = cfg.runtime.clock
    if clock_url:
        clock_cfg.kind, clock_cfg.url = "http", clock_url
    elif clock_file:
        clock_cfg.kind, clock_cfg.path = "file", clock_file

    stream = None
    source: Union[HttpClockSource, StreamClockSource]
    if clock_cfg.kind == "http":
        try:
            source = HttpClockSource(clock_cfg, sampler)
        except ValueError as exc:
            typer.echo(f"error: {exc} (set clock.url, CLOCK_URL or --clock-url)", err=True)
            raise typer.Exit(code=2)
    else:
        try:
            stream = _open_clock_stream(clock_cfg.path)
        except OSError as exc:
            typer.echo(f"error: cannot open clock file: {exc}", err=True)
            raise typer.Exit(code=1)
        source = StreamClockSource(stream, sampler)

    stop_event = threading.Event()
    reset_event = threading.Event()
    pause_event = threading.Event()

    def handle_stop(signum, frame):  # noqa: ANN001, D401
        stop_event.set()

    def handle_reset(signum, frame):  # noqa: ANN001, D401
        reset_event.set()

    def handle_pause(signum, frame):  # noqa: ANN001, D401
        pause_event.set()

    previous = {sig: signal.signal(sig, handle_stop) for sig in (signal.SIGINT, signal.SIGTERM)}
    if hasattr(signal, "SIGUSR1"):
        previous[signal.SIGUSR1] = signal.signal(signal.SIGUSR1, handle_reset)
    if hasattr(signal, "SIGUSR2"):
        previous[signal.SIGUSR2] = signal.signal(signal.SIGUSR2, handle_pause)

    source.start()
    logger.info("Sampling started", extra={"source": clock_cfg.kind})
    try:
        while not stop_event.is_set() and source.is_running():
            if reset_event.is_set():
                reset_event.clear()
                ingestor.reset()
            if pause_event.is_set():
                pause_event.clear()
                if sampler.paused:
                    sampler.resume()
                else:
                    sampler.pause()
                logger.info("Sampling %s", "paused" if sampler.paused else "resumed")
            typer.echo(format_stats(ingestor.stats_snapshot()))
            stop_event.wait(timeout=cfg.runtime.report_interval_sec)
    finally:
        # producer stops before the final flush
        source.stop()
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        if stream is not None and clock_cfg.path != "-":
            stream.close()

    snap = ingestor.snapshot()
    typer.echo(format_stats(snap.stats))
    low, high = ingestor.out_of_range()
    if low or high:
        typer.echo(f"outside histogram range: {low} below, {high} above")
    if output_path is not None:
        try:
            write_record(output_path, ingestor.to_record(sampler.last_sim_time, sampler.last_real_time))
        except OSError as exc:
            logger.error("Cannot write %s: %s", output_path, exc)
            typer.echo(f"error: cannot write {output_path}: {exc}", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"wrote {output_path}")


@app.command()
def inspect(
    input_path: Path = typer.Argument(..., help="Record written by 'run --output'"),
) -> None:
    """Print the statistics and non-empty histogram bins of a saved record."""
    try:
        record = read_record(input_path)
    except (MalformedRecordError, OSError) as exc:
        typer.echo(f"error: cannot load {input_path}: {exc}", err=True)
        raise typer.Exit(code=1)
    hist = record.histogram
    typer.echo(f"sim_time={record.sim_time} real_time={record.real_time}")
    typer.echo(format_stats(record.stats))
    typer.echo(
        f"histogram: {hist.num_bins} bins over [{hist.range_min}, {hist.range_max}], "
        f"{hist.total} samples binned"
    )
    typer.echo(format_histogram(hist))


if __name__ == "__main__":
    app()
