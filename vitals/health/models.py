"""Health report models: probe names, per-probe results and the aggregate report."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ProbeName(str, Enum):
    """Built-in probe names, in the order reports list them."""

    ENV_CONFIG = "env-config"
    DATABASE = "database"
    REDIS = "redis"
    CACHE = "cache"
    STORAGE = "storage"
    QUEUE = "queue"
    MAIL = "mail"
    DISK_SPACE = "disk-space"
    MIGRATIONS = "migrations"
    EXTENSIONS = "extensions"
    LOKI = "loki"
    LOGGING = "logging"


class ProbeStatus(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


class OverallStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ProbeResult:
    """Outcome of a single probe execution.

    ``error`` carries the fault message when the probe raised or could not
    reach its dependency. A deliberate DOWN (threshold exceeded, debug mode
    on) leaves it unset.
    """

    status: ProbeStatus
    detail: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def up(cls, **detail: Any) -> ProbeResult:
        return cls(status=ProbeStatus.UP, detail=detail)

    @classmethod
    def down(cls, error: str | None = None, **detail: Any) -> ProbeResult:
        return cls(status=ProbeStatus.DOWN, detail=detail, error=error)

    @property
    def is_up(self) -> bool:
        return self.status == ProbeStatus.UP


def aggregate_status(checks: Mapping[str, ProbeResult]) -> OverallStatus:
    """HEALTHY only when at least one probe ran and every probe is UP.

    An empty check set is UNHEALTHY so an "everything disabled" configuration
    never reports as healthy.
    """
    if checks and all(r.is_up for r in checks.values()):
        return OverallStatus.HEALTHY
    return OverallStatus.UNHEALTHY


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class HealthReport:
    """Aggregate result of one orchestration run."""

    status: OverallStatus
    timestamp: str
    checks: dict[str, ProbeResult] = field(default_factory=dict)

    @classmethod
    def from_checks(cls, checks: dict[str, ProbeResult]) -> HealthReport:
        """Aggregate ``checks`` and stamp the report at construction time."""
        return cls(
            status=aggregate_status(checks),
            timestamp=utc_timestamp(),
            checks=dict(checks),
        )

    @property
    def is_healthy(self) -> bool:
        return self.status == OverallStatus.HEALTHY
