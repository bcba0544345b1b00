"""Tests for result and report models."""

from __future__ import annotations

from datetime import datetime

from vitals.health.models import (
    HealthReport,
    OverallStatus,
    ProbeResult,
    ProbeStatus,
    aggregate_status,
)


class TestProbeResult:
    def test_up(self) -> None:
        r = ProbeResult.up(driver="redis")
        assert r.status == ProbeStatus.UP
        assert r.detail == {"driver": "redis"}
        assert r.error is None
        assert r.is_up

    def test_down_with_error(self) -> None:
        r = ProbeResult.down(error="Connection refused", table_name="migrations")
        assert r.status == ProbeStatus.DOWN
        assert r.error == "Connection refused"
        assert r.detail == {"table_name": "migrations"}
        assert not r.is_up


class TestAggregation:
    def test_empty_is_unhealthy(self) -> None:
        assert aggregate_status({}) == OverallStatus.UNHEALTHY

    def test_all_up_is_healthy(self) -> None:
        checks = {"a": ProbeResult.up(), "b": ProbeResult.up()}
        assert aggregate_status(checks) == OverallStatus.HEALTHY

    def test_one_down_is_unhealthy(self) -> None:
        checks = {"a": ProbeResult.up(), "b": ProbeResult.down()}
        assert aggregate_status(checks) == OverallStatus.UNHEALTHY


class TestHealthReport:
    def test_from_checks_stamps_iso_timestamp(self) -> None:
        report = HealthReport.from_checks({"a": ProbeResult.up()})
        parsed = datetime.fromisoformat(report.timestamp)
        assert parsed.tzinfo is not None
        assert report.is_healthy

    def test_from_checks_copies_mapping(self) -> None:
        checks = {"a": ProbeResult.up()}
        report = HealthReport.from_checks(checks)
        checks["b"] = ProbeResult.down()
        assert list(report.checks) == ["a"]
