"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from vitals.config import Settings
from vitals.health.models import ProbeName, ProbeResult
from vitals.health.registry import ProbeRegistry
from vitals.health.selector import flag_field

ALL_DISABLED = {flag_field(name): False for name in ProbeName}


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from any .env file, every check disabled unless overridden."""
    values: dict[str, Any] = dict(ALL_DISABLED)
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings


@pytest.fixture
def tmp_settings(tmp_path: Path) -> Callable[..., Settings]:
    """Settings whose storage, log and database paths live under tmp_path."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "storage_root": str(tmp_path / "storage"),
            "log_path": str(tmp_path / "logs" / "health_check.log"),
            "database_url": f"sqlite:///{tmp_path / 'vitals.db'}",
        }
        values.update(overrides)
        return make_settings(**values)

    return _make


@pytest.fixture
def stub_registry() -> ProbeRegistry:
    """Registry of trivial probes for orchestrator tests."""
    registry = ProbeRegistry()
    registry.register(ProbeName.ENV_CONFIG, lambda s: ProbeResult.up(debug_mode=False))
    registry.register(ProbeName.DATABASE, lambda s: ProbeResult.up(total_tables=3))
    registry.register(ProbeName.CACHE, lambda s: ProbeResult.up(driver="memory"))
    registry.register(ProbeName.QUEUE, lambda s: ProbeResult.up(default_connection="sync"))
    return registry


# ── Stand-in backends ────────────────────────────────────────────────────────


class StubCache:
    """Cache that can be told to return a different value than was stored."""

    driver = "stub"

    def __init__(self, override: str | None = None) -> None:
        self.data: dict[str, str] = {}
        self.override = override
        self.deleted: list[str] = []

    def put(self, key: str, value: str, ttl: int) -> None:
        self.data[key] = value

    def get(self, key: str) -> str | None:
        if self.override is not None:
            return self.override
        return self.data.get(key)

    def delete(self, key: str) -> None:
        self.deleted.append(key)
        self.data.pop(key, None)


class StubStorage:
    disk = "stub"
    root = "/stub"

    def __init__(self, exists: bool = True, fail_delete: bool = False) -> None:
        self._exists = exists
        self._fail_delete = fail_delete
        self.objects: dict[str, str] = {}
        self.deleted: list[str] = []

    def put(self, name: str, contents: str) -> None:
        self.objects[name] = contents

    def exists(self, name: str) -> bool:
        return self._exists and name in self.objects

    def delete(self, name: str) -> None:
        self.deleted.append(name)
        if self._fail_delete:
            raise PermissionError(f"cannot delete {name}")
        self.objects.pop(name, None)


class StubLogSink:
    path = "/stub/health_check.log"

    def __init__(self) -> None:
        self.lines: list[str] = []

    def write_line(self, line: str) -> None:
        self.lines.append(line)


@pytest.fixture
def stub_cache() -> StubCache:
    return StubCache()


@pytest.fixture
def mismatched_cache() -> StubCache:
    return StubCache(override="not-test")


@pytest.fixture
def stub_storage() -> StubStorage:
    return StubStorage()


@pytest.fixture
def missing_storage() -> StubStorage:
    return StubStorage(exists=False)


@pytest.fixture
def undeletable_storage() -> StubStorage:
    return StubStorage(fail_delete=True)


@pytest.fixture
def stub_log_sink() -> StubLogSink:
    return StubLogSink()
