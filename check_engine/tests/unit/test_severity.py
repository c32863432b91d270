"""Unit tests for check_engine.models.severity."""

from __future__ import annotations

import logging

import pytest

from check_engine.models.severity import Severity


class TestOrdering:
    def test_ordered_least_to_most_urgent(self):
        assert Severity.ordered() == [
            Severity.DEBUG,
            Severity.INFO,
            Severity.WARN,
            Severity.ERROR,
            Severity.FATAL,
        ]

    def test_ranks_are_strictly_increasing(self):
        ranks = [s.rank for s in Severity.ordered()]
        assert ranks == [0, 1, 2, 3, 4]

    def test_logging_levels(self):
        assert Severity.DEBUG.logging_level == logging.DEBUG
        assert Severity.WARN.logging_level == logging.WARNING
        assert Severity.FATAL.logging_level == logging.CRITICAL


class TestParse:
    @pytest.mark.parametrize("label", ["fatal", "FATAL", "Fatal", "  fatal "])
    def test_case_insensitive(self, label):
        assert Severity.parse(label) == Severity.FATAL

    def test_aliases(self):
        assert Severity.parse("warning") == Severity.WARN
        assert Severity.parse("critical") == Severity.FATAL

    def test_unknown_returns_none(self):
        assert Severity.parse("urgent") is None
        assert Severity.parse(None) is None
        assert Severity.parse(3) is None

    def test_passes_through_enum(self):
        assert Severity.parse(Severity.INFO) is Severity.INFO

    def test_coerce_raises_on_unknown(self):
        with pytest.raises(ValueError, match="Unknown severity"):
            Severity.coerce("loud")

    def test_str_is_label(self):
        assert str(Severity.WARN) == "Warn"
