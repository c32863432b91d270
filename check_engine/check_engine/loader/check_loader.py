"""Check definition loader -- YAML files into :class:`CheckSet` instances.

Expected layout::

    name: Nightly warehouse checks
    checks:
      - name: orders_not_empty
        description: Orders table has rows
        severity: Error
        query: SELECT COUNT(*) > 0 FROM orders
        expected: "true"

``tests`` is accepted in place of ``checks``, ``level`` in place of
``severity`` and ``title`` in place of ``description`` so that older
healthcheck files load unchanged.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from check_engine.models.check_definition import CheckDefinition, CheckSet

logger = logging.getLogger(__name__)


class CheckLoadError(Exception):
    """Raised when a check definition file cannot be loaded."""


_FIELD_ALIASES: dict[str, str] = {
    "level": "severity",
    "title": "description",
}


def load_check_set(path: str | Path) -> CheckSet:
    """Load and validate a check set from a YAML file.

    Raises
    ------
    CheckLoadError
        If the file is missing, is not valid YAML, or does not describe a
        well-formed, non-empty check set.
    """
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CheckLoadError(f"Cannot read check definitions from {file_path}: {exc}") from exc

    check_set = parse_check_set(text, source=str(file_path))
    logger.info("Loaded %d checks from %s (set %r)", len(check_set), file_path, check_set.name)
    return check_set


def parse_check_set(text: str, *, source: str = "<string>") -> CheckSet:
    """Parse YAML *text* into a :class:`CheckSet`."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CheckLoadError(f"Failed to parse {source}: {exc}") from exc

    if not isinstance(data, dict):
        raise CheckLoadError(f"{source}: top level must be a mapping with 'name' and 'checks'")

    raw_checks = data.get("checks", data.get("tests"))
    if not isinstance(raw_checks, list) or not raw_checks:
        raise CheckLoadError(f"{source}: 'checks' must be a non-empty list")

    checks: list[CheckDefinition] = []
    for index, entry in enumerate(raw_checks):
        if not isinstance(entry, dict):
            raise CheckLoadError(f"{source}: check #{index + 1} must be a mapping")
        try:
            checks.append(CheckDefinition.model_validate(_normalise_entry(entry)))
        except ValidationError as exc:
            label = entry.get("name") or f"#{index + 1}"
            raise CheckLoadError(f"{source}: invalid check {label}: {_summarise(exc)}") from exc

    try:
        return CheckSet(name=str(data.get("name") or Path(source).stem), checks=tuple(checks))
    except ValidationError as exc:
        raise CheckLoadError(f"{source}: {_summarise(exc)}") from exc


def _normalise_entry(entry: dict[str, Any]) -> dict[str, Any]:
    normalised: dict[str, Any] = {}
    for key, value in entry.items():
        canonical = _FIELD_ALIASES.get(str(key).lower(), str(key).lower())
        normalised.setdefault(canonical, value)
    return normalised


def _summarise(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)
