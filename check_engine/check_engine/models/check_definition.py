"""Declarative check definitions.

A :class:`CheckDefinition` pairs a SQL query with the expectation its reply
must meet and the severity of a failure.  A :class:`CheckSet` is the named,
ordered collection loaded from a definition file; its order is the execution
order and therefore the order of every report built from it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from check_engine.models.severity import Severity


class CheckDefinition(BaseModel):
    """A single SQL-backed predicate."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Identifier, unique within the check set.")
    query: str = Field(..., min_length=1, description="SQL text executed against the connection.")
    severity: Severity = Field(..., description="Severity label attached to the outcome.")
    description: str = Field(default="", description="Human-readable summary of what is checked.")
    expected: str | None = Field(
        default=None,
        description=(
            "Scalar expected in the first column of the first row.  "
            "None means the query must return zero rows."
        ),
    )
    equal: bool = Field(
        default=True,
        description="When false the check passes iff the scalar differs from ``expected``.",
    )

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, v: object) -> Severity:
        return Severity.coerce(v)

    @field_validator("expected", mode="before")
    @classmethod
    def _stringify_expected(cls, v: object) -> str | None:
        # YAML turns ``expected: true`` / ``expected: 3`` into native types.
        if v is None:
            return None
        if isinstance(v, bool):
            return "true" if v else "false"
        return str(v)

    @property
    def expects_scalar(self) -> bool:
        """True when the check compares a scalar rather than counting rows."""
        return self.expected is not None


class CheckSet(BaseModel):
    """Named, ordered collection of checks.  Read-only after loading."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    checks: tuple[CheckDefinition, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _unique_names(self) -> CheckSet:
        seen: set[str] = set()
        duplicates: list[str] = []
        for check in self.checks:
            if check.name in seen:
                duplicates.append(check.name)
            seen.add(check.name)
        if duplicates:
            raise ValueError(f"Duplicate check names: {', '.join(sorted(set(duplicates)))}")
        return self

    def __len__(self) -> int:
        return len(self.checks)
