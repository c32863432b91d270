"""Logger construction from an explicit severity level.

The minimum level is passed in by the caller (normally from
:class:`~check_engine.config.Settings`) rather than read from shared state.
"""

from __future__ import annotations

import logging
from typing import TextIO

from check_engine.models.severity import Severity
from check_engine.telemetry.json_formatter import JSONFormatter

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Loggers owned by this project; third-party loggers are left alone.
_PROJECT_LOGGERS = ("check_engine", "cli")


def configure_logging(
    level: Severity | str,
    *,
    structured: bool = False,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install a single stream handler on the project loggers.

    Calling this again replaces the previously installed handler, so it is
    safe to call once per run.

    Parameters
    ----------
    level:
        Minimum severity to emit.
    structured:
        Emit one JSON object per line instead of plain text.
    stream:
        Destination stream; defaults to stderr.

    Returns
    -------
    logging.Handler
        The installed handler.
    """
    severity = Severity.coerce(level)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter() if structured else logging.Formatter(_TEXT_FORMAT))
    handler.set_name("pipecheck")

    for name in _PROJECT_LOGGERS:
        project_logger = logging.getLogger(name)
        for existing in list(project_logger.handlers):
            if existing.get_name() == "pipecheck":
                project_logger.removeHandler(existing)
        project_logger.addHandler(handler)
        project_logger.setLevel(severity.logging_level)

    return handler
