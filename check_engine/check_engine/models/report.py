"""Result models produced by the executor and consumed by the report layer."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from check_engine.models.severity import Severity


class CheckStatus(str, Enum):
    """Semantic outcome of a check that could be evaluated."""

    PASS = "PASS"
    FAIL = "FAIL"


class ResultElement(BaseModel):
    """The outcome of executing one check."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Name of the originating check.")
    severity: str = Field(..., description="Severity label of the originating check.")
    status: CheckStatus = Field(..., description="PASS or FAIL.")
    message: str = Field(default="", description="Free-text explanation of the outcome.")
    description: str = Field(default="", description="Description copied from the check definition.")

    @property
    def severity_level(self) -> Severity | None:
        """The parsed severity, or ``None`` when the label is unrecognised."""
        return Severity.parse(self.severity)

    @property
    def passed(self) -> bool:
        return self.status == CheckStatus.PASS


class ExecutionError(BaseModel):
    """A check that could not be evaluated at all.

    The severity is copied from the check definition when the error is
    recorded, so classification never has to inspect the message text.
    """

    model_config = ConfigDict(frozen=True)

    check_name: str
    severity: Severity
    message: str

    def __str__(self) -> str:
        return f"{self.severity.value.upper()}: {self.check_name}: {self.message}"


class ResultSet(BaseModel):
    """Ordered result elements plus free-form run metadata.

    Built once per run.  Filtering produces new instances; an existing
    result set is never mutated.
    """

    model_config = ConfigDict(frozen=True)

    elements: tuple[ResultElement, ...] = Field(default_factory=tuple)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.elements)

    @property
    def failed(self) -> list[ResultElement]:
        return [e for e in self.elements if not e.passed]

    def with_metadata(self, **updates: Any) -> ResultSet:
        """Return a copy whose metadata is extended with *updates*."""
        merged = dict(self.metadata)
        merged.update(updates)
        return ResultSet(elements=self.elements, metadata=merged)
