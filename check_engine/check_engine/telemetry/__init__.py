"""Logging setup: plain-text or JSON-lines handlers at an explicit level."""

from check_engine.telemetry.json_formatter import JSONFormatter
from check_engine.telemetry.logging_config import configure_logging

__all__ = ["JSONFormatter", "configure_logging"]
