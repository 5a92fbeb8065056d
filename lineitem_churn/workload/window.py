#!filepath: lineitem_churn/workload/window.py
from __future__ import annotations

import random


class WindowState:
    """
    Trailing window over order numbers.

    The active window is [cursor - width, cursor). The inserter moves the
    cursor forward; updaters sample inside the window. No inserter means
    the window never moves.

    One writer, many readers, no lock: rebinding an int attribute is a
    single atomic store and a reader sees either the old or the new
    cursor. Updaters on other threads may sample against a cursor a few
    inserts behind.

    cursor < width yields negative keys; not guarded here.
    """

    __slots__ = ("_cursor", "_width")

    def __init__(self, width: int, starting_point: int):
        if width <= 0:
            raise ValueError(f"window width must be > 0, got {width}")
        self._width = int(width)
        self._cursor = int(starting_point)

    @property
    def width(self) -> int:
        return self._width

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def window(self) -> range:
        cursor = self._cursor
        return range(cursor - self._width, cursor)

    def sample(self, rng: random.Random | None = None) -> int:
        """Uniform key in the active window as of the cursor read."""
        cursor = self._cursor
        return (rng or random).randrange(self._width) + (cursor - self._width)

    def advance(self, new_cursor: int) -> None:
        """Single producer only; the coordinator enforces it."""
        self._cursor = new_cursor

    def __repr__(self) -> str:
        return f"WindowState(cursor={self._cursor}, width={self._width})"
