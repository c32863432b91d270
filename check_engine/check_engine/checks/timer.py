"""Monotonic timing helper for check and run durations."""

from __future__ import annotations

import time


class Timer:
    """Simple monotonic timer for measuring execution duration."""

    def __init__(self) -> None:
        self._start: float = 0.0

    def start(self) -> None:
        self._start = time.monotonic()

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._start) * 1000)
