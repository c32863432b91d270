"""Check execution -- run a check set against a connection and classify replies.

Quick start::

    from check_engine.checks import CheckExecutor

    result_set, errors = CheckExecutor(connection).execute(check_set)
"""

from check_engine.checks.executor import (
    CheckEvaluationError,
    CheckExecutor,
    normalise_scalar,
    scalars_match,
)
from check_engine.checks.timer import Timer

__all__ = [
    "CheckEvaluationError",
    "CheckExecutor",
    "Timer",
    "normalise_scalar",
    "scalars_match",
]
