"""Unit tests for the template and JSON renderers."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest

from check_engine.models.report import CheckStatus, ResultElement, ResultSet
from check_engine.report.base import RenderError, ReportStream
from check_engine.report.content import FOOTER_TEXT, HEALTHCHECK_HTML_TEMPLATE
from check_engine.report.renderers import JSONRenderer, TemplateRenderer, parse_structured_report


@pytest.fixture()
def result_set() -> ResultSet:
    return ResultSet(
        elements=(
            ResultElement(name="order_count", severity="Warn", status=CheckStatus.PASS, message="'3' == '3'"),
            ResultElement(
                name="orphans",
                severity="Error",
                status=CheckStatus.FAIL,
                message="1 offending row(s)",
                description="Items <without> orders",
            ),
        ),
        metadata={"name": "warehouse", "db_name": "analytics", "status": "OK"},
    )


def _html_metadata(**overrides) -> dict:
    metadata = {
        "name": "warehouse",
        "db_name": "analytics",
        "host": "db.example.com",
        "timestamp": "Mon Oct 19 06:00:00 2026",
        "status": "OK",
        "schema": "",
        "table": "",
        "footer": FOOTER_TEXT,
    }
    metadata.update(overrides)
    return metadata


# ---------------------------------------------------------------------------
# Report stream
# ---------------------------------------------------------------------------


class TestReportStream:
    def test_consumed_once(self):
        stream = ReportStream(iter([b"a", b"b"]), content_type="text/plain")
        assert stream.read() == b"ab"
        assert stream.consumed
        with pytest.raises(RuntimeError, match="already been consumed"):
            stream.read()

    def test_lazy_until_consumed(self):
        produced = []

        def chunks():
            produced.append("started")
            yield b"x"

        stream = ReportStream(chunks())
        assert produced == []
        assert stream.read_text() == "x"
        assert produced == ["started"]


# ---------------------------------------------------------------------------
# Template renderer
# ---------------------------------------------------------------------------


class TestTemplateRenderer:
    def test_binds_metadata_and_elements(self, result_set):
        renderer = TemplateRenderer(
            "{{ name }}@{{ db_name }}:{% for e in elements %} {{ e.name }}={{ e.status }}{% endfor %}",
            content_type="text/plain",
        )
        body = renderer.render(result_set).read_text()
        assert body == "warehouse@analytics: order_count=PASS orphans=FAIL"

    def test_required_bindings(self):
        renderer = TemplateRenderer("{{ name }} {% for e in elements %}{{ e.name }}{% endfor %}")
        assert renderer.required_bindings == frozenset({"name", "elements"})

    def test_missing_binding_raises(self, result_set):
        renderer = TemplateRenderer("{{ name }} on {{ host }}", content_type="text/plain")
        with pytest.raises(RenderError, match="unresolved bindings: host"):
            renderer.render(result_set)

    def test_html_is_escaped(self, result_set):
        renderer = TemplateRenderer("{% for e in elements %}{{ e.description }}{% endfor %}")
        assert "Items &lt;without&gt; orders" in renderer.render(result_set).read_text()

    def test_plain_text_not_escaped(self, result_set):
        renderer = TemplateRenderer("{% for e in elements %}{{ e.description }}{% endfor %}", content_type="text/plain")
        assert renderer.render(result_set).read_text() == "Items <without> orders"

    def test_invalid_template_syntax(self):
        with pytest.raises(RenderError, match="Invalid report template"):
            TemplateRenderer("{% for e in elements %}")

    def test_runtime_failure_surfaces_on_read(self, result_set):
        renderer = TemplateRenderer("{{ elements[5].name }}", content_type="text/plain")
        stream = renderer.render(result_set)
        with pytest.raises(RenderError, match="failed to render"):
            stream.read()

    def test_default_template_with_elements(self, result_set):
        renderer = TemplateRenderer(HEALTHCHECK_HTML_TEMPLATE)
        body = renderer.render(result_set.with_metadata(**_html_metadata())).read_text()
        assert "<h2>warehouse</h2>" in body
        assert '<td class="FAIL">FAIL</td>' in body
        assert FOOTER_TEXT in body

    def test_default_template_empty_set(self):
        renderer = TemplateRenderer(HEALTHCHECK_HTML_TEMPLATE)
        body = renderer.render(ResultSet(metadata=_html_metadata())).read_text()
        assert "No checks at this level." in body

    def test_default_template_save_target(self, result_set):
        renderer = TemplateRenderer(HEALTHCHECK_HTML_TEMPLATE)
        metadata = _html_metadata(schema="audit", table="healthchecks")
        body = renderer.render(result_set.with_metadata(**metadata)).read_text()
        assert "Saved to: audit.healthchecks" in body

    def test_from_file_content_type(self, tmp_path: Path):
        html = tmp_path / "report.html"
        html.write_text("<p>{{ name }}</p>")
        txt = tmp_path / "report.txt"
        txt.write_text("{{ name }}")
        assert TemplateRenderer.from_file(html).content_type == "text/html"
        assert TemplateRenderer.from_file(txt).content_type == "text/plain"

    def test_from_missing_file(self, tmp_path: Path):
        with pytest.raises(RenderError, match="Cannot read report template"):
            TemplateRenderer.from_file(tmp_path / "absent.html")


# ---------------------------------------------------------------------------
# JSON renderer
# ---------------------------------------------------------------------------


class TestJSONRenderer:
    def test_content_type(self, result_set):
        assert JSONRenderer().render(result_set).content_type == "application/json"

    def test_document_shape(self, result_set):
        document = json.loads(JSONRenderer().render(result_set).read())
        assert list(document) == ["elements", "metadata"]
        assert document["elements"][1] == {
            "description": "Items <without> orders",
            "message": "1 offending row(s)",
            "name": "orphans",
            "severity": "Error",
            "status": "FAIL",
        }
        assert document["metadata"]["db_name"] == "analytics"

    def test_deterministic(self, result_set):
        first = JSONRenderer().render(result_set).read()
        second = JSONRenderer().render(result_set).read()
        assert first == second
        assert first.endswith(b"}\n")

    def test_round_trip(self, result_set):
        parsed = parse_structured_report(JSONRenderer().render(result_set).read())
        assert parsed == result_set

    def test_empty_set(self):
        document = json.loads(JSONRenderer().render(ResultSet()).read())
        assert document == {"elements": [], "metadata": {}}

    def test_non_json_metadata_stringified(self):
        stamp = datetime(2026, 10, 19, 6, 0)
        document = json.loads(JSONRenderer().render(ResultSet(metadata={"at": stamp})).read())
        assert document["metadata"]["at"] == str(stamp)

    def test_malformed_report(self):
        with pytest.raises(RenderError, match="Malformed structured report"):
            parse_structured_report(b"not json")
