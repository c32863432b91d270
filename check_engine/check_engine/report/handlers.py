"""Report handlers -- console, file, database table and email delivery.

Each handler catches its own destination's failure modes and returns a
failed :class:`DeliveryResult`, so one broken destination never prevents
the orchestrator from attempting the others.
"""

from __future__ import annotations

import logging
import re
import sys
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path
from typing import TextIO

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, insert
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from check_engine.report.base import (
    DeliveryResult,
    RenderError,
    ReportHandler,
    ReportStream,
)
from check_engine.report.mail import MailTransport, MailTransportError
from check_engine.report.renderers import parse_structured_report

logger = logging.getLogger(__name__)

# Table and schema names cannot be bound as parameters, so only plain
# identifiers are accepted.
_SAFE_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def validate_identifier(name: str, label: str) -> str:
    if not _SAFE_IDENTIFIER_RE.match(name):
        raise ValueError(f"Unsafe SQL identifier for {label}: {name!r}")
    return name


# ---------------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------------


class ConsoleHandler(ReportHandler):
    """Write the report to a text stream (standard output by default)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def describe(self) -> str:
        return "console"

    def deliver(self, stream: ReportStream) -> DeliveryResult:
        try:
            body = stream.read_text()
        except RenderError as exc:
            return self._failed(exc)
        out = self._stream if self._stream is not None else sys.stdout
        out.write(body)
        out.flush()
        return self._ok()


# ---------------------------------------------------------------------------
# File
# ---------------------------------------------------------------------------


class FileHandler(ReportHandler):
    """Write the report to *path*, creating or truncating the file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def describe(self) -> str:
        return f"file {self.path}"

    def deliver(self, stream: ReportStream) -> DeliveryResult:
        # Render fully before truncating so a failed render keeps the previous report.
        try:
            body = stream.read()
        except RenderError as exc:
            return self._failed(exc)

        try:
            self.path.write_bytes(body)
        except OSError as exc:
            logger.debug("Writing report to %s failed", self.path, exc_info=True)
            return self._failed(exc)
        logger.info("Wrote report to %s", self.path)
        return self._ok()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


def build_results_table(table_name: str, schema: str | None = None) -> Table:
    """Describe the table that stores written-back check results."""
    return Table(
        validate_identifier(table_name, "table"),
        MetaData(),
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("set_name", String(256), nullable=False),
        Column("run_timestamp", String(64), nullable=False),
        Column("check_name", String(256), nullable=False),
        Column("description", Text, nullable=False, default=""),
        Column("severity", String(16), nullable=False),
        Column("status", String(8), nullable=False),
        Column("message", Text, nullable=False, default=""),
        schema=validate_identifier(schema, "schema") if schema else None,
    )


class DatabaseHandler(ReportHandler):
    """Write a structured report into a database table.

    The stream must be the output of
    :class:`~check_engine.report.renderers.JSONRenderer`.  The table is
    created when missing and one row is inserted per result element, all in
    a single transaction.

    Parameters
    ----------
    connection:
        Open connection with no transaction in progress; shared with the
        executor and never closed here.
    table:
        Target table name.
    schema:
        Optional schema qualifying *table*.
    """

    def __init__(self, connection: Connection, table: str, schema: str | None = None) -> None:
        self._connection = connection
        self._table = build_results_table(table, schema)

    @property
    def table(self) -> Table:
        return self._table

    def describe(self) -> str:
        return f"database table {self._table.fullname}"

    def deliver(self, stream: ReportStream) -> DeliveryResult:
        try:
            result_set = parse_structured_report(stream.read())
        except RenderError as exc:
            return self._failed(exc)

        set_name = str(result_set.metadata.get("name", ""))
        run_timestamp = str(result_set.metadata.get("timestamp", ""))
        rows = [
            {
                "set_name": set_name,
                "run_timestamp": run_timestamp,
                "check_name": e.name,
                "description": e.description,
                "severity": e.severity,
                "status": e.status.value,
                "message": e.message,
            }
            for e in result_set.elements
        ]

        try:
            with self._connection.begin():
                self._table.create(self._connection, checkfirst=True)
                if rows:
                    self._connection.execute(insert(self._table), rows)
        except SQLAlchemyError as exc:
            logger.debug("Writing report to %s failed", self._table.fullname, exc_info=True)
            return self._failed(exc)

        logger.info("Saved %d check results to %s", len(rows), self._table.fullname)
        return self._ok()


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------


class EmailHandler(ReportHandler):
    """Send the report as the body of an email.

    Sending to zero recipients is a successful no-op: the transport is not
    called.
    """

    def __init__(
        self,
        transport: MailTransport,
        *,
        sender: str,
        recipients: list[str] | tuple[str, ...],
        subject: str,
        html: bool = True,
        sender_name: str = "",
    ) -> None:
        self._transport = transport
        self._sender = sender
        self._sender_name = sender_name
        self.recipients = tuple(recipients)
        self.subject = subject
        self._html = html

    def describe(self) -> str:
        return f"email to {', '.join(self.recipients) or '(nobody)'}"

    def deliver(self, stream: ReportStream) -> DeliveryResult:
        if not self.recipients:
            logger.debug("No recipients for %r; skipping email", self.subject)
            return self._ok()

        try:
            body = stream.read_text()
        except RenderError as exc:
            return self._failed(exc)

        message = EmailMessage()
        message["Subject"] = self.subject
        message["From"] = formataddr((self._sender_name, self._sender)) if self._sender_name else self._sender
        message["To"] = ", ".join(self.recipients)
        if self._html:
            message.set_content("This report is best viewed in an HTML-capable mail client.")
            message.add_alternative(body, subtype="html")
        else:
            message.set_content(body)

        try:
            self._transport.send(message)
        except MailTransportError as exc:
            return self._failed(exc)

        logger.info("Sent %r to %s", self.subject, ", ".join(self.recipients))
        return self._ok()
