"""Severity to recipient mapping used for email fan-out."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from check_engine.models.severity import Severity


class DistributionList(BaseModel):
    """Recipient addresses per severity level.

    Absent or empty levels are valid and simply suppress delivery for that
    level.
    """

    model_config = ConfigDict(frozen=True)

    entries: dict[Severity, tuple[str, ...]] = Field(default_factory=dict)

    def recipients(self, level: Severity) -> tuple[str, ...]:
        return self.entries.get(level, ())

    def levels(self) -> list[Severity]:
        """Levels with at least one recipient, least urgent first."""
        return [level for level in Severity.ordered() if self.entries.get(level)]
