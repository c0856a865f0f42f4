"""Real-time-factor monitor package.

Ingests the ratio of simulation time to wall-clock time sampled from a clock
signal, keeps running statistics, a fixed-bin histogram and a short trend
window, and persists the accumulated state as a small comma-terminated text
record that can be inspected later without the live clock.
"""

__all__ = [
    "config",
    "core",
    "data",
    "errors",
    "utils",
]
