"""Distribution list loader -- severity to recipient mappings from YAML.

Example::

    Fatal: [oncall@example.com, lead@example.com]
    Error: data-team@example.com
    Debug:
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml  # type: ignore[import-untyped]

from check_engine.models.distribution import DistributionList
from check_engine.models.severity import Severity

logger = logging.getLogger(__name__)


class DistributionLoadError(Exception):
    """Raised when a distribution list cannot be loaded."""


def load_distribution_list(path: str | Path) -> DistributionList:
    """Load a distribution list from a YAML file."""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DistributionLoadError(f"Cannot read distribution list from {file_path}: {exc}") from exc
    return parse_distribution_list(text, source=str(file_path))


def parse_distribution_list(text: str, *, source: str = "<string>") -> DistributionList:
    """Parse YAML *text* into a :class:`DistributionList`.

    Raises
    ------
    DistributionLoadError
        On invalid YAML, unknown severity labels, or recipient values that
        are neither a string nor a list of strings.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise DistributionLoadError(f"Failed to parse {source}: {exc}") from exc

    if data is None:
        return DistributionList()
    if not isinstance(data, dict):
        raise DistributionLoadError(f"{source}: top level must map severity labels to recipients")

    entries: dict[Severity, tuple[str, ...]] = {}
    for label, value in data.items():
        level = Severity.parse(label)
        if level is None:
            raise DistributionLoadError(f"{source}: unknown severity level {label!r}")

        if value is None:
            addresses: list[str] = []
        elif isinstance(value, str):
            addresses = [value]
        elif isinstance(value, list) and all(isinstance(v, str) for v in value):
            addresses = list(value)
        else:
            raise DistributionLoadError(f"{source}: recipients for {label!r} must be a list of addresses")

        # "warning" and "warn" both map to WARN, so merge without duplicates.
        merged = list(entries.get(level, ()))
        for address in (a.strip() for a in addresses):
            if address and address not in merged:
                merged.append(address)
        entries[level] = tuple(merged)

    logger.debug(
        "Loaded distribution list from %s: %s",
        source,
        {level.value: len(addrs) for level, addrs in entries.items()},
    )
    return DistributionList(entries=entries)
