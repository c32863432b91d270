"""Domain models for the pipecheck engine."""

from check_engine.models.check_definition import CheckDefinition, CheckSet
from check_engine.models.distribution import DistributionList
from check_engine.models.report import (
    CheckStatus,
    ExecutionError,
    ResultElement,
    ResultSet,
)
from check_engine.models.severity import Severity

__all__ = [
    "CheckDefinition",
    "CheckSet",
    "CheckStatus",
    "DistributionList",
    "ExecutionError",
    "ResultElement",
    "ResultSet",
    "Severity",
]
