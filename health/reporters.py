# ============================================================================
# HEALTH REPORTERS
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Report rendering
# PURPOSE: Serialize reports as JSON payloads and HTML pages
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Reporters

Reporters turn a HealthReport into a response body. They never mutate the
report.

Reporters:
- JsonReporter: native payload ({"status": "healthy", "checks": {...}})
- UIJsonReporter: HealthChecks-UI compatible payload
  ({"status": "Healthy", "totalDuration": "00:00:00.0120000", "entries": {...}})
- HtmlReporter: single report as an HTML page (Jinja2)
- DashboardReporter: stored history of every dashboard endpoint (Jinja2)

parse_report() reads either JSON shape back into a HealthReport; the
dashboard poller uses it on remote responses.
"""

import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from health.core import HealthCheckResult, HealthReport, HealthStatus, ReportEntry

TEMPLATES_DIR = Path(__file__).parent / "templates"

_TIMESPAN_PATTERN = re.compile(
    r"^(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{2}):(?P<seconds>\d{2})(?:\.(?P<fraction>\d+))?$"
)


def format_timespan(duration_ms: float) -> str:
    """Format milliseconds as a .NET-style timespan ("00:00:01.2500000")."""
    ticks = int(round(duration_ms * 10_000))  # 100ns ticks
    seconds, fraction = divmod(ticks, 10_000_000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{fraction:07d}"


def parse_timespan(value: Any) -> float:
    """Parse a timespan string (or a number of ms) back into milliseconds."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    match = _TIMESPAN_PATTERN.match(str(value).strip())
    if not match:
        raise ValueError(f"Invalid timespan: {value!r}")
    parts = match.groupdict()
    fraction = parts["fraction"] or "0"
    seconds = (
        int(parts["days"] or 0) * 86400
        + int(parts["hours"]) * 3600
        + int(parts["minutes"]) * 60
        + int(parts["seconds"])
        + int(fraction) / (10 ** len(fraction))
    )
    return seconds * 1000


_template_env: Optional[Environment] = None


def get_template_env() -> Environment:
    """Shared Jinja2 environment for the HTML reporters."""
    global _template_env
    if _template_env is None:
        _template_env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(["html"]),
        )
        _template_env.filters["timespan"] = format_timespan
    return _template_env


# ============================================================================
# REPORTERS
# ============================================================================

class Reporter(ABC):
    """Renders a report into a response body."""

    name: str = "reporter"
    media_type: str = "text/plain"

    @abstractmethod
    def render(self, report: HealthReport) -> str:
        """Render the report. Must not mutate it."""
        pass


class JsonReporter(Reporter):
    """
    Native machine-readable payload.

    Args:
        extra: Static fields merged into every payload (service, version)
    """

    name = "json"
    media_type = "application/json"

    def __init__(self, extra: Optional[Mapping[str, Any]] = None):
        self.extra = dict(extra or {})

    def to_payload(self, report: HealthReport) -> Dict[str, Any]:
        payload = report.to_dict()
        payload["summary"] = report.counts()
        payload.update(self.extra)
        return payload

    def render(self, report: HealthReport) -> str:
        return json.dumps(self.to_payload(report), default=str)


class UIJsonReporter(Reporter):
    """HealthChecks-UI compatible payload, consumed by dashboard pollers."""

    name = "ui"
    media_type = "application/json"

    def to_payload(self, report: HealthReport) -> Dict[str, Any]:
        entries = {}
        for entry in report.entries:
            result = entry.result
            item = {
                "data": dict(result.details),
                "description": result.message,
                "duration": format_timespan(result.duration_ms),
                "status": result.status.display,
                "tags": sorted(entry.tags),
            }
            if "exception_type" in result.details:
                item["exception"] = result.details["exception_type"]
            entries[entry.name] = item
        return {
            "status": report.status.display,
            "totalDuration": format_timespan(report.total_duration_ms),
            "entries": entries,
        }

    def render(self, report: HealthReport) -> str:
        return json.dumps(self.to_payload(report), default=str)


class HtmlReporter(Reporter):
    """Single report rendered as an HTML page."""

    name = "html"
    media_type = "text/html"
    template_name = "report.html"

    def __init__(self, title: str = "Health Report"):
        self.title = title

    def render(self, report: HealthReport) -> str:
        template = get_template_env().get_template(self.template_name)
        return template.render(title=self.title, report=report)


class DashboardReporter:
    """Dashboard page listing the stored history of every endpoint."""

    media_type = "text/html"
    template_name = "dashboard.html"

    def __init__(self, title: str = "Health Checks"):
        self.title = title

    def render(
        self,
        history: Mapping[str, List[HealthReport]],
        host: Optional[Mapping[str, Any]] = None,
        interval_seconds: Optional[float] = None,
    ) -> str:
        """
        Args:
            history: endpoint name -> reports, oldest first
            host: Optional host resource snapshot for the header panel
            interval_seconds: Poll interval shown on the page
        """
        template = get_template_env().get_template(self.template_name)
        endpoints = [
            {
                "name": name,
                "latest": reports[-1] if reports else None,
                "history": list(reversed(reports)),
            }
            for name, reports in history.items()
        ]
        return template.render(
            title=self.title,
            endpoints=endpoints,
            host=host,
            interval_seconds=interval_seconds,
        )


REPORTERS = {
    JsonReporter.name: JsonReporter,
    UIJsonReporter.name: UIJsonReporter,
    HtmlReporter.name: HtmlReporter,
}


def get_reporter(name: str, **kwargs) -> Reporter:
    """Instantiate a reporter by its configuration name."""
    try:
        return REPORTERS[name](**kwargs)
    except KeyError:
        raise ValueError(f"Unknown reporter: {name} (expected one of {sorted(REPORTERS)})")


# ============================================================================
# PARSING
# ============================================================================

def _parse_ui_entry(name: str, item: Mapping[str, Any]) -> ReportEntry:
    details = dict(item.get("data") or {})
    if item.get("exception") and "exception_type" not in details:
        details["exception_type"] = item["exception"]
    result = HealthCheckResult(
        status=HealthStatus.parse(item.get("status", "unhealthy")),
        message=item.get("description"),
        details=details,
        duration_ms=parse_timespan(item.get("duration")),
    )
    return ReportEntry(name=name, result=result, tags=frozenset(item.get("tags") or ()))


def parse_report(payload: Mapping[str, Any]) -> HealthReport:
    """
    Read a native or HealthChecks-UI payload into a report.

    Raises:
        ValueError: If the payload is neither shape, or a field has the
            wrong type (entries not an object, null durations, ...)
    """
    if not isinstance(payload, Mapping):
        raise ValueError("Health payload must be a JSON object")

    try:
        return _parse_payload(payload)
    except (TypeError, AttributeError, KeyError) as e:
        raise ValueError(f"Malformed health payload: {type(e).__name__}: {e}") from e


def _parse_payload(payload: Mapping[str, Any]) -> HealthReport:
    if "entries" in payload:
        entries = [
            _parse_ui_entry(name, item)
            for name, item in (payload.get("entries") or {}).items()
        ]
        report = HealthReport.from_entries(
            entries,
            total_duration_ms=parse_timespan(payload.get("totalDuration")),
        )
        if not entries and payload.get("status"):
            report = HealthReport(
                status=HealthStatus.parse(payload["status"]),
                entries=(),
                total_duration_ms=report.total_duration_ms,
                generated_at=report.generated_at,
            )
        return report

    if "checks" in payload or "status" in payload:
        return HealthReport.from_dict(payload)

    raise ValueError("Unrecognized health payload")


__all__ = [
    "Reporter",
    "JsonReporter",
    "UIJsonReporter",
    "HtmlReporter",
    "DashboardReporter",
    "REPORTERS",
    "get_reporter",
    "parse_report",
    "format_timespan",
    "parse_timespan",
    "get_template_env",
    "TEMPLATES_DIR",
]
