"""Check executor -- run every check in a set and classify the replies.

Checks run one at a time, in set order, against a single shared
SQLAlchemy connection.  Each query runs inside its own transaction block so
a failing statement is rolled back without affecting the checks after it.

Two expectation styles are supported:

- ``expected`` unset:  the query returns offending rows; zero rows passes.
- ``expected`` set:    the first column of the first row is compared with
                       ``expected`` (or must differ from it when
                       ``equal: false``).

A check whose query cannot run, or whose reply has no scalar to compare,
produces an :class:`ExecutionError` instead of a :class:`ResultElement`.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from check_engine.checks.timer import Timer
from check_engine.models.check_definition import CheckDefinition, CheckSet
from check_engine.models.report import (
    CheckStatus,
    ExecutionError,
    ResultElement,
    ResultSet,
)

logger = logging.getLogger(__name__)

# Scalars compared case-insensitively; drivers disagree on their spelling.
_CASE_INSENSITIVE_LITERALS = frozenset({"true", "false", "null", "t", "f"})
_BOOLEAN_ALIASES = {"t": "true", "f": "false"}


class CheckEvaluationError(Exception):
    """Raised when a query reply cannot be classified."""


def normalise_scalar(value: Any) -> str:
    """Render a driver value as comparable text."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        # Decimal('3.0') and Decimal('3') should both read as 3.
        normalised = value.normalize()
        return format(normalised, "f")
    return str(value).strip()


def scalars_match(actual: str, expected: str) -> bool:
    """Compare a normalised reply with the expected value."""
    actual = actual.strip()
    expected = expected.strip()
    if actual.lower() in _CASE_INSENSITIVE_LITERALS and expected.lower() in _CASE_INSENSITIVE_LITERALS:
        a = _BOOLEAN_ALIASES.get(actual.lower(), actual.lower())
        e = _BOOLEAN_ALIASES.get(expected.lower(), expected.lower())
        return a == e
    return actual == expected


class CheckExecutor:
    """Execute a :class:`CheckSet` against an open connection.

    Parameters
    ----------
    connection:
        An open SQLAlchemy connection with no transaction in progress.
        The executor never closes it; the caller owns its lifetime.
    """

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    def execute(
        self,
        check_set: CheckSet,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[ResultSet, list[ExecutionError]]:
        """Run every check and return the results plus execution errors.

        Never stops early: a check that cannot be evaluated is recorded and
        the remaining checks still run.
        """
        elements: list[ResultElement] = []
        errors: list[ExecutionError] = []
        timer = Timer()
        timer.start()

        for check in check_set.checks:
            try:
                element = self.execute_check(check)
            except (SQLAlchemyError, CheckEvaluationError) as exc:
                error = ExecutionError(
                    check_name=check.name,
                    severity=check.severity,
                    message=_describe_exception(exc),
                )
                logger.warning(
                    "Check %s could not be evaluated: %s",
                    check.name,
                    error.message,
                    extra={"check": check.name},
                )
                errors.append(error)
                continue

            logger.debug(
                "Check %s: %s (%s)",
                check.name,
                element.status.value,
                element.message,
                extra={"check": check.name},
            )
            elements.append(element)

        logger.info(
            "Executed %d checks from %r in %dms: %d passed, %d failed, %d errors",
            len(check_set),
            check_set.name,
            timer.elapsed_ms(),
            sum(1 for e in elements if e.passed),
            sum(1 for e in elements if not e.passed),
            len(errors),
        )
        result_set = ResultSet(elements=tuple(elements), metadata=dict(metadata or {}))
        return result_set, errors

    def execute_check(self, check: CheckDefinition) -> ResultElement:
        """Run a single check and classify its reply.

        Raises
        ------
        SQLAlchemyError
            If the query cannot be executed.
        CheckEvaluationError
            If a scalar expectation receives no value to compare.
        """
        with self._connection.begin():
            result = self._connection.execute(text(check.query))
            if not result.returns_rows:
                raise CheckEvaluationError("query did not return a result set")
            if check.expects_scalar:
                row = result.first()
                if row is None or len(row) == 0:
                    raise CheckEvaluationError(f"expected a scalar {check.expected!r} but the query returned no rows")
                actual = normalise_scalar(row[0])
            else:
                row_count = len(result.fetchall())

        if check.expects_scalar:
            return _classify_scalar(check, actual)
        return _classify_rows(check, row_count)


def _classify_scalar(check: CheckDefinition, actual: str) -> ResultElement:
    expected = check.expected or ""
    matched = scalars_match(actual, expected)
    passed = matched == check.equal
    comparison = "==" if check.equal else "!="
    if passed:
        message = f"{actual!r} {comparison} {expected!r}"
    else:
        message = f"expected {comparison} {expected!r}, got {actual!r}"
    return ResultElement(
        name=check.name,
        severity=check.severity.value,
        status=CheckStatus.PASS if passed else CheckStatus.FAIL,
        message=message,
        description=check.description,
    )


def _classify_rows(check: CheckDefinition, row_count: int) -> ResultElement:
    passed = row_count == 0
    message = "no offending rows" if passed else f"{row_count} offending row(s)"
    return ResultElement(
        name=check.name,
        severity=check.severity.value,
        status=CheckStatus.PASS if passed else CheckStatus.FAIL,
        message=message,
        description=check.description,
    )


def _describe_exception(exc: Exception) -> str:
    # DBAPIError's str() repeats the full statement; keep the driver message.
    orig = getattr(exc, "orig", None)
    if orig is not None:
        return f"{type(orig).__name__}: {orig}"
    return f"{type(exc).__name__}: {exc}"
