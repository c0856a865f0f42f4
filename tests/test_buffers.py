from __future__ import annotations

import pytest

from rtfmon.core.buffers import BoundedWindow
from rtfmon.errors import InvalidCapacityError


def test_bounded_window_basic() -> None:
    win = BoundedWindow(capacity=3)
    win.push(1.0)
    win.push(2.0)
    win.push(3.0)
    assert len(win) == 3
    win.push(4.0)
    assert len(win) == 3
    assert win.values() == [2.0, 3.0, 4.0]


def test_keeps_last_capacity_elements_in_order() -> None:
    win = BoundedWindow(capacity=7)
    data = [float(i) for i in range(50)]
    for x in data:
        win.push(x)
    assert win.values() == data[-7:]


def test_partial_fill() -> None:
    win = BoundedWindow(capacity=5)
    assert win.values() == []
    win.push(0.5)
    win.push(0.25)
    assert win.values() == [0.5, 0.25]


@pytest.mark.parametrize("capacity", [0, -3])
def test_invalid_capacity(capacity: int) -> None:
    with pytest.raises(InvalidCapacityError):
        BoundedWindow(capacity)


def test_failed_configure_keeps_buffer() -> None:
    win = BoundedWindow(capacity=2)
    win.push(1.0)
    with pytest.raises(InvalidCapacityError):
        win.configure(0)
    assert win.capacity == 2
    assert win.values() == [1.0]


def test_configure_clears() -> None:
    win = BoundedWindow(capacity=2)
    win.push(1.0)
    win.configure(4)
    assert win.capacity == 4
    assert win.values() == []
