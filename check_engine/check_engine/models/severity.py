"""Severity levels shared by check definitions, results and distribution lists.

The five levels form a total order from least to most urgent::

    Debug < Info < Warn < Error < Fatal

Filtering and classification depend only on this order.
"""

from __future__ import annotations

import logging
from enum import Enum


class Severity(str, Enum):
    """How urgent a check outcome is."""

    DEBUG = "Debug"
    INFO = "Info"
    WARN = "Warn"
    ERROR = "Error"
    FATAL = "Fatal"

    @property
    def rank(self) -> int:
        """Position in the total order, 0 (Debug) through 4 (Fatal)."""
        return _ORDER.index(self)

    @property
    def logging_level(self) -> int:
        """The stdlib :mod:`logging` level matching this severity."""
        return _LOGGING_LEVELS[self]

    @classmethod
    def ordered(cls) -> list[Severity]:
        """Return all levels from least to most urgent."""
        return list(_ORDER)

    @classmethod
    def parse(cls, label: object) -> Severity | None:
        """Parse *label* case-insensitively.

        Returns ``None`` for missing or unrecognised labels.
        """
        if isinstance(label, Severity):
            return label
        if not isinstance(label, str):
            return None
        return _LABELS.get(label.strip().lower())

    @classmethod
    def coerce(cls, label: object) -> Severity:
        """Parse *label*, raising :class:`ValueError` when it is unknown."""
        level = cls.parse(label)
        if level is None:
            allowed = ", ".join(s.value for s in _ORDER)
            raise ValueError(f"Unknown severity {label!r}; expected one of: {allowed}")
        return level

    def __str__(self) -> str:
        return self.value


_ORDER: tuple[Severity, ...] = (
    Severity.DEBUG,
    Severity.INFO,
    Severity.WARN,
    Severity.ERROR,
    Severity.FATAL,
)

_LABELS: dict[str, Severity] = {s.value.lower(): s for s in _ORDER}
_LABELS["warning"] = Severity.WARN
_LABELS["critical"] = Severity.FATAL

_LOGGING_LEVELS: dict[Severity, int] = {
    Severity.DEBUG: logging.DEBUG,
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.FATAL: logging.CRITICAL,
}
