"""Report presentations for the HTTP endpoint and the CLI.

Both read status straight from the same ProbeResult fields.
"""

from __future__ import annotations

from typing import Any

from vitals.health.models import HealthReport, ProbeResult, ProbeStatus

_STATUS_LINE = {True: "✅ HEALTHY", False: "❌ UNHEALTHY"}
_GLYPH = {ProbeStatus.UP: "🟢", ProbeStatus.DOWN: "🔴"}


def result_to_dict(result: ProbeResult) -> dict[str, Any]:
    data: dict[str, Any] = {"status": result.status.value}
    data.update(result.detail)
    if result.error is not None:
        data["error"] = result.error
    return data


def to_machine_readable(report: HealthReport) -> dict[str, Any]:
    """JSON-ready mapping; check keys are the probe names."""
    return {
        "status": report.status.value,
        "timestamp": report.timestamp,
        "checks": {name: result_to_dict(r) for name, r in report.checks.items()},
    }


def _display_name(name: str) -> str:
    return name[:1].upper() + name[1:]


def to_human_readable(report: HealthReport) -> list[str]:
    lines = [
        f"System Status: {_STATUS_LINE[report.is_healthy]}",
        f"Timestamp: {report.timestamp}",
        "",
    ]
    for name, result in report.checks.items():
        lines.append(f"{_GLYPH[result.status]} {_display_name(name):<15} {result.status.value}")
        if result.error:
            lines.append(f"   ↳ Error: {result.error}")
    return lines
