"""Shared fixtures for check_engine tests.

Database tests run against an in-memory SQLite database through
SQLAlchemy, seeded with a small orders/items schema.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from email.message import EmailMessage
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection

from check_engine.report.mail import MailTransportError

_SEED_SQL = [
    "CREATE TABLE orders (id INTEGER PRIMARY KEY, customer TEXT, amount NUMERIC)",
    "CREATE TABLE items (id INTEGER PRIMARY KEY, order_id INTEGER, sku TEXT)",
    "INSERT INTO orders (id, customer, amount) VALUES (1, 'acme', 10.5), (2, 'globex', 20), (3, NULL, 5)",
    "INSERT INTO items (id, order_id, sku) VALUES (1, 1, 'A'), (2, 2, 'B'), (3, 99, 'C')",
]


@pytest.fixture()
def connection() -> Iterator[Connection]:
    """An open connection to a seeded in-memory SQLite database."""
    engine = create_engine("sqlite://")
    with engine.connect() as conn:
        with conn.begin():
            for statement in _SEED_SQL:
                conn.execute(text(statement))
        yield conn
    engine.dispose()


@pytest.fixture(autouse=True)
def _reset_project_loggers() -> Iterator[None]:
    """Undo handlers and levels installed by configure_logging."""
    yield
    for name in ("check_engine", "cli"):
        project_logger = logging.getLogger(name)
        for handler in list(project_logger.handlers):
            if handler.get_name() == "pipecheck":
                project_logger.removeHandler(handler)
        project_logger.setLevel(logging.NOTSET)


class RecordingTransport:
    """Mail transport that records messages instead of sending them."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[EmailMessage] = []
        self.fail = fail

    def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise MailTransportError("relay rejected message")
        self.sent.append(message)


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def failing_transport() -> RecordingTransport:
    return RecordingTransport(fail=True)


# Six checks that evaluate (one per level, two at Warn) and twelve that
# fail to execute because their table does not exist.
HEALTHCHECK_SET_YAML = """\
name: warehouse
checks:
  - {name: debug_rows, severity: Debug, query: "SELECT id FROM orders WHERE amount < 0"}
  - {name: info_count, severity: Info, query: "SELECT COUNT(*) FROM orders", expected: 3}
  - {name: warn_orphans, severity: Warn, query: "SELECT id FROM items WHERE order_id NOT IN (SELECT id FROM orders)"}
  - {name: warn_customer, severity: Warn, query: "SELECT customer FROM orders WHERE id = 3", expected: "null"}
  - {name: error_amount, severity: Error, query: "SELECT amount FROM orders WHERE id = 2", expected: 20}
  - {name: fatal_items, severity: Fatal, query: "SELECT COUNT(*) FROM items", expected: 0, equal: false}
  - {name: missing_01, severity: Error, query: "SELECT * FROM missing_01"}
  - {name: missing_02, severity: Error, query: "SELECT * FROM missing_02"}
  - {name: missing_03, severity: Error, query: "SELECT * FROM missing_03"}
  - {name: missing_04, severity: Error, query: "SELECT * FROM missing_04"}
  - {name: missing_05, severity: Error, query: "SELECT * FROM missing_05"}
  - {name: missing_06, severity: Fatal, query: "SELECT * FROM missing_06"}
  - {name: missing_07, severity: Warn, query: "SELECT * FROM missing_07"}
  - {name: missing_08, severity: Warn, query: "SELECT * FROM missing_08"}
  - {name: missing_09, severity: Warn, query: "SELECT * FROM missing_09"}
  - {name: missing_10, severity: Info, query: "SELECT * FROM missing_10"}
  - {name: missing_11, severity: Info, query: "SELECT * FROM missing_11"}
  - {name: missing_12, severity: Debug, query: "SELECT * FROM missing_12"}
"""

PASSING_SET_YAML = """\
name: clean
checks:
  - {name: no_negative_amounts, severity: Error, query: "SELECT id FROM orders WHERE amount < 0"}
  - {name: order_count, severity: Warn, query: "SELECT COUNT(*) FROM orders", expected: 3}
  - {name: orphan_items, severity: Info, query: "SELECT id FROM items WHERE order_id NOT IN (SELECT id FROM orders)"}
"""


@pytest.fixture()
def healthcheck_path(tmp_path: Path) -> Path:
    """The eighteen-check definition file."""
    path = tmp_path / "warehouse.yml"
    path.write_text(HEALTHCHECK_SET_YAML, encoding="utf-8")
    return path


@pytest.fixture()
def passing_path(tmp_path: Path) -> Path:
    """A check set whose checks all evaluate (one of them fails)."""
    path = tmp_path / "clean.yml"
    path.write_text(PASSING_SET_YAML, encoding="utf-8")
    return path
