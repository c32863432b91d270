"""Severity filter for result sets."""

from __future__ import annotations

from check_engine.models.report import ResultSet
from check_engine.models.severity import Severity


def filter_result_set(result_set: ResultSet, threshold: Severity | str) -> ResultSet:
    """Return the elements at or above *threshold*, preserving order.

    Elements whose severity label is missing or unrecognised are kept only
    when *threshold* is the lowest level.  The input is never modified and
    its metadata is carried through unchanged.

    Raises
    ------
    ValueError
        If *threshold* is not a known severity label.
    """
    level = Severity.coerce(threshold)
    if level.rank == 0:
        kept = result_set.elements
    else:
        kept = tuple(
            e for e in result_set.elements if e.severity_level is not None and e.severity_level.rank >= level.rank
        )
    return ResultSet(elements=tuple(kept), metadata=dict(result_set.metadata))
