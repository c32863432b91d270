"""Default report text: HTML template, footer, status line and email subject."""

from __future__ import annotations

from check_engine.models.severity import Severity

FOOTER_TEXT = (
    "This report was generated automatically by pipecheck. "
    "Checks listed at or above the report level are included; "
    "checks that could not be evaluated are listed in the run log."
)

HEALTHCHECK_HTML_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{{ name }} - {{ db_name }}</title>
<style>
  body { font-family: sans-serif; font-size: 14px; }
  table { border-collapse: collapse; }
  th, td { border: 1px solid #ccc; padding: 4px 8px; text-align: left; }
  .PASS { color: #2e7d32; }
  .FAIL { color: #c62828; font-weight: bold; }
</style>
</head>
<body>
<h2>{{ name }}</h2>
<p>
  Database: <b>{{ db_name }}</b><br>
  Generated: {{ timestamp }}<br>
  Status: <b>{{ status }}</b>
  {% if schema and table %}<br>Saved to: {{ schema }}.{{ table }}{% elif table %}<br>Saved to: {{ table }}{% endif %}

</p>
<table>
  <tr><th>Check</th><th>Severity</th><th>Status</th><th>Message</th><th>Description</th></tr>
{% for element in elements %}
  <tr>
    <td>{{ element.name }}</td>
    <td>{{ element.severity }}</td>
    <td class="{{ element.status }}">{{ element.status }}</td>
    <td>{{ element.message }}</td>
    <td>{{ element.description }}</td>
  </tr>
{% else %}
  <tr><td colspan="5">No checks at this level.</td></tr>
{% endfor %}
</table>
<p><small>{{ footer }}</small></p>
</body>
</html>
"""


def status_summary(error_count: int, fatal: bool) -> str:
    """One-word run status derived from classified execution errors."""
    if fatal:
        return "FATAL"
    if error_count > 0:
        return f"ERRORS: {error_count}"
    return "OK"


def email_subject(
    set_name: str,
    db_name: str,
    host: str,
    level: Severity,
    error_count: int,
    fatal: bool,
) -> str:
    """Subject line for the email sent at *level*."""
    status = status_summary(error_count, fatal)
    return f"[{status}] {set_name} healthchecks on {db_name}@{host} ({level.value} report)"
