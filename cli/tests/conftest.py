"""Shared fixtures for CLI tests.

Commands run against a seeded SQLite file database so that the full
load, execute and deliver path is exercised through the Typer app.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from rich.console import Console
from sqlalchemy import create_engine, text

_SEED_SQL = [
    "CREATE TABLE orders (id INTEGER PRIMARY KEY, customer TEXT, amount NUMERIC)",
    "INSERT INTO orders (id, customer, amount) VALUES (1, 'acme', 10.5), (2, 'globex', 20), (3, NULL, 5)",
]

CLEAN_SET_YAML = """\
name: clean
checks:
  - name: no_negative_amounts
    description: Amounts are never negative
    severity: Error
    query: SELECT id FROM orders WHERE amount < 0
  - name: order_count
    severity: Warn
    query: SELECT COUNT(*) FROM orders
    expected: 3
"""

BROKEN_SET_YAML = """\
name: broken
checks:
  - {name: order_count, severity: Info, query: "SELECT COUNT(*) FROM orders", expected: 3}
  - {name: ghost_rows, severity: Fatal, query: "SELECT * FROM ghost"}
"""


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path) -> Iterator[None]:
    """Drop PIPECHECK_* variables, avoid stray .env files and reset logging."""
    for key in list(os.environ):
        if key.startswith("PIPECHECK_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    # Wide output keeps table cells and messages on one line for assertions.
    monkeypatch.setattr("cli.app.console", Console(stderr=True, width=250))
    yield
    for name in ("check_engine", "cli"):
        project_logger = logging.getLogger(name)
        for handler in list(project_logger.handlers):
            if handler.get_name() == "pipecheck":
                project_logger.removeHandler(handler)
        project_logger.setLevel(logging.NOTSET)


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    """URL of a seeded SQLite file database."""
    url = f"sqlite:///{tmp_path / 'warehouse.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        for statement in _SEED_SQL:
            conn.execute(text(statement))
    engine.dispose()
    return url


@pytest.fixture()
def clean_checks(tmp_path: Path) -> Path:
    path = tmp_path / "clean.yml"
    path.write_text(CLEAN_SET_YAML, encoding="utf-8")
    return path


@pytest.fixture()
def broken_checks(tmp_path: Path) -> Path:
    path = tmp_path / "broken.yml"
    path.write_text(BROKEN_SET_YAML, encoding="utf-8")
    return path
