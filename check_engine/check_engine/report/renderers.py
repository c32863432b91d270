"""Report renderers -- Jinja2 templates and deterministic JSON.

:class:`TemplateRenderer` binds run metadata and result elements into a
caller-supplied template.  Every variable the template references must be
provided; a missing binding is a :class:`RenderError`, never an empty string.

:class:`JSONRenderer` produces the machine-readable form consumed by the
database handler and by :func:`parse_structured_report`.  Output uses sorted
keys and 2-space indentation so identical result sets always serialise to
identical bytes.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError, meta
from pydantic import ValidationError

from check_engine.models.report import ResultSet
from check_engine.report.base import RenderError, ReportRenderer, ReportStream

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Template renderer
# ---------------------------------------------------------------------------


class TemplateRenderer(ReportRenderer):
    """Render a result set through a Jinja2 template.

    The template sees every metadata key as a top-level variable, plus
    ``elements`` (a list of element dicts with ``name``, ``severity``,
    ``status``, ``message``, ``description`` and ``passed``) and
    ``metadata`` (the raw mapping).

    Parameters
    ----------
    source:
        Template text.
    content_type:
        MIME type of the rendered body.  HTML output is autoescaped.
    """

    def __init__(self, source: str, *, content_type: str = "text/html") -> None:
        self.content_type = content_type
        self._env = Environment(
            undefined=StrictUndefined,
            autoescape=content_type == "text/html",
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        try:
            ast = self._env.parse(source)
            self._template = self._env.from_string(source)
        except TemplateError as exc:
            raise RenderError(f"Invalid report template: {exc}") from exc
        self._required = meta.find_undeclared_variables(ast) - set(self._env.globals)

    @classmethod
    def from_file(cls, path: str | Path, *, content_type: str | None = None) -> TemplateRenderer:
        """Load a template from *path*.  ``.html``/``.htm`` files render as HTML."""
        file_path = Path(path)
        try:
            source = file_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RenderError(f"Cannot read report template {file_path}: {exc}") from exc
        if content_type is None:
            content_type = "text/html" if file_path.suffix.lower() in (".html", ".htm") else "text/plain"
        return cls(source, content_type=content_type)

    @property
    def required_bindings(self) -> frozenset[str]:
        """Names the template reads from its context."""
        return frozenset(self._required)

    def render(self, result_set: ResultSet) -> ReportStream:
        context = self._build_context(result_set)
        missing = sorted(self._required - context.keys())
        if missing:
            raise RenderError(f"Report template has unresolved bindings: {', '.join(missing)}")
        return ReportStream(self._generate(context), content_type=self.content_type)

    def _generate(self, context: dict[str, Any]) -> Iterator[bytes]:
        try:
            for chunk in self._template.generate(**context):
                yield chunk.encode("utf-8")
        except TemplateError as exc:
            raise RenderError(f"Report template failed to render: {exc}") from exc

    @staticmethod
    def _build_context(result_set: ResultSet) -> dict[str, Any]:
        elements = []
        for element in result_set.elements:
            data = element.model_dump(mode="json")
            data["passed"] = element.passed
            elements.append(data)
        context: dict[str, Any] = dict(result_set.metadata)
        context["metadata"] = dict(result_set.metadata)
        context["elements"] = elements
        return context


# ---------------------------------------------------------------------------
# Structured renderer
# ---------------------------------------------------------------------------


class JSONRenderer(ReportRenderer):
    """Serialise a result set as deterministic JSON.

    Document shape::

        {
          "elements": [
            {"description": ..., "message": ..., "name": ...,
             "severity": ..., "status": "PASS" | "FAIL"}
          ],
          "metadata": {...}
        }

    Metadata values that are not JSON-native (datetimes, paths) are
    serialised with ``str``.
    """

    content_type = "application/json"

    def render(self, result_set: ResultSet) -> ReportStream:
        document = {
            "elements": [e.model_dump(mode="json") for e in result_set.elements],
            "metadata": dict(result_set.metadata),
        }
        encoder = json.JSONEncoder(indent=2, sort_keys=True, ensure_ascii=False, default=str)
        return ReportStream(_encode_chunks(encoder.iterencode(document)), content_type=self.content_type)


def _encode_chunks(chunks: Iterator[str]) -> Iterator[bytes]:
    for chunk in chunks:
        yield chunk.encode("utf-8")
    yield b"\n"


def parse_structured_report(data: bytes | str) -> ResultSet:
    """Parse a document produced by :class:`JSONRenderer` back into a result set.

    Raises
    ------
    RenderError
        If *data* is not valid JSON or does not match the report shape.
    """
    try:
        return ResultSet.model_validate_json(data)
    except ValidationError as exc:
        raise RenderError(f"Malformed structured report: {exc.error_count()} validation error(s): {exc}") from exc
