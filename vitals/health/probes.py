"""Built-in probes, one function per dependency.

Each probe takes the run's settings snapshot (plus whatever capability it was
bound to in the registry) and returns a ProbeResult. Probes are allowed to
raise when a dependency is unreachable; the orchestrator turns the exception
into a DOWN result. Any transient artifact a probe creates is removed before
it returns.
"""

from __future__ import annotations

import importlib.util
import logging
import uuid
from collections.abc import Callable
from typing import Any

import httpx
import psutil
import redis
import sqlalchemy as sa
from sqlalchemy.engine import Engine

from vitals.config import Settings
from vitals.health.backends import CacheBackend, LogSink, MailTransport, StorageBackend
from vitals.health.errors import ConfigurationGap, ProbeFault
from vitals.health.models import ProbeResult, utc_timestamp

logger = logging.getLogger(__name__)

Probe = Callable[[Settings], ProbeResult]

CACHE_TEST_VALUE = "test"
STORAGE_TEST_CONTENTS = "Storage health check"
LOKI_BUILDINFO_PATH = "/loki/api/v1/status/buildinfo"

BYTE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


def _artifact_name(suffix: str = "") -> str:
    return f"health_check_{uuid.uuid4().hex}{suffix}"


def format_bytes(size: float, precision: int = 0) -> str:
    """Render a byte count in 1024-based units, e.g. ``1048576 -> "1 MB"``."""
    value = float(max(size, 0))
    power = 0
    while value >= 1024 and power < len(BYTE_UNITS) - 1:
        value /= 1024
        power += 1
    text = f"{value:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {BYTE_UNITS[power]}"


# ── Application ──────────────────────────────────────────────────────────────


def check_env_config(settings: Settings) -> ProbeResult:
    """Debug mode in a running deployment counts as unhealthy."""
    detail = {
        "debug_mode": settings.app_debug,
        "timezone": settings.app_timezone,
        "environment": settings.app_env,
    }
    if settings.app_debug:
        return ProbeResult.down(**detail)
    return ProbeResult.up(**detail)


def _is_importable(name: str) -> bool:
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


def check_extensions(
    settings: Settings,
    is_available: Callable[[str], bool] = _is_importable,
) -> ProbeResult:
    """Report presence of each required runtime module; UP only if all are present."""
    presence = {name: is_available(name) for name in settings.required_extensions}
    if all(presence.values()):
        return ProbeResult.up(**presence)
    return ProbeResult.down(**presence)


# ── Database ─────────────────────────────────────────────────────────────────


def check_database(settings: Settings, engine_factory: Callable[[Settings], Engine]) -> ProbeResult:
    """Open the primary connection and count tables in the configured schema."""
    engine = engine_factory(settings)
    try:
        with engine.connect() as conn:
            tables = sa.inspect(conn).get_table_names(schema=settings.database_schema)
        return ProbeResult.up(
            database=engine.url.database,
            schema=settings.database_schema,
            database_type=engine.dialect.name,
            total_tables=len(tables),
        )
    finally:
        engine.dispose()


def _migrations_table(name: str) -> sa.TableClause:
    schema, _, table = name.rpartition(".")
    return sa.table(table, schema=schema or None)


def check_migrations(settings: Settings, engine_factory: Callable[[Settings], Engine]) -> ProbeResult:
    """UP when the migration-tracking table holds at least one row."""
    table = settings.migrations_table
    try:
        engine = engine_factory(settings)
        try:
            with engine.connect() as conn:
                total = conn.execute(
                    sa.select(sa.func.count()).select_from(_migrations_table(table))
                ).scalar_one()
        finally:
            engine.dispose()
    except Exception as e:
        logger.warning("Migrations query on %s failed: %s: %s", table, type(e).__name__, e)
        return ProbeResult.down(error=str(e) or type(e).__name__, table_name=table)

    if total > 0:
        return ProbeResult.up(table_name=table, total_migrations=total)
    return ProbeResult.down(table_name=table, total_migrations=total)


# ── Redis / cache ────────────────────────────────────────────────────────────


def check_redis(settings: Settings, redis_factory: Callable[[Settings], redis.Redis]) -> ProbeResult:
    client = redis_factory(settings)
    try:
        info: dict[str, Any] = client.info()
    finally:
        client.close()

    memory = info.get("Memory", info)
    return ProbeResult.up(
        version=info.get("redis_version", "NA"),
        service=info.get("executable", "NA"),
        memory={
            "used": memory.get("used_memory_human", "NA"),
            "peak": memory.get("used_memory_peak_human", "NA"),
        },
    )


def check_cache(settings: Settings, cache_factory: Callable[[Settings], CacheBackend]) -> ProbeResult:
    """Round-trip a uniquely named key; UP only if the exact value comes back."""
    cache = cache_factory(settings)
    key = _artifact_name()
    try:
        cache.put(key, CACHE_TEST_VALUE, settings.cache_ttl_seconds)
        value = cache.get(key)
    finally:
        cache.delete(key)

    if value == CACHE_TEST_VALUE:
        return ProbeResult.up(driver=cache.driver)
    return ProbeResult.down(driver=cache.driver)


# ── Storage / disk ───────────────────────────────────────────────────────────


def check_storage(settings: Settings, storage_factory: Callable[[Settings], StorageBackend]) -> ProbeResult:
    """Write, stat and delete a throwaway object. Cleanup failure does not flip status."""
    storage = storage_factory(settings)
    name = _artifact_name(".txt")
    try:
        storage.put(name, STORAGE_TEST_CONTENTS)
        exists = storage.exists(name)
    finally:
        try:
            storage.delete(name)
        except Exception:
            logger.warning("Storage probe could not delete %s", name, exc_info=True)

    detail = {"default_disk": storage.disk, "root_path": storage.root}
    if exists:
        return ProbeResult.up(**detail)
    return ProbeResult.down(**detail)


def check_disk_space(
    settings: Settings,
    disk_usage: Callable[[str], Any] = psutil.disk_usage,
) -> ProbeResult:
    """DOWN when used space on the configured path crosses the threshold."""
    usage = disk_usage(settings.disk_path)
    total, free = usage[0], usage[2]
    used_percentage = round((1 - free / total) * 100, 2)

    detail = {
        "total_space": format_bytes(total, settings.disk_precision),
        "free_space": format_bytes(free, settings.disk_precision),
        "used_percentage": f"{used_percentage}%",
        "threshold": f"{settings.disk_threshold}%",
    }
    if used_percentage > settings.disk_threshold:
        return ProbeResult.down(**detail)
    return ProbeResult.up(**detail)


# ── Queue / mail ─────────────────────────────────────────────────────────────


def check_queue(settings: Settings) -> ProbeResult:
    """Presence check only: a default queue connection must be configured."""
    if not settings.queue_connection:
        raise ConfigurationGap("QUEUE_CONNECTION is not configured")
    return ProbeResult.up(default_connection=settings.queue_connection)


def check_mail(settings: Settings, mail_factory: Callable[[Settings], MailTransport]) -> ProbeResult:
    transport = mail_factory(settings)
    return ProbeResult.up(mailer=transport.scheme, transport=str(transport))


# ── Telemetry / logging ──────────────────────────────────────────────────────


def check_loki(settings: Settings) -> ProbeResult:
    """Query Loki's build-info endpoint with a short timeout."""
    if not settings.loki_url:
        return ProbeResult.down(error="Loki URL not configured")

    url = settings.loki_url.rstrip("/") + LOKI_BUILDINFO_PATH
    try:
        with httpx.Client(timeout=settings.loki_timeout) as client:
            resp = client.get(url)
    except httpx.TimeoutException as e:
        raise ProbeFault(f"Loki request timed out ({settings.loki_timeout}s)") from e
    except httpx.HTTPError as e:
        raise ProbeFault(f"Loki connection error: {e}") from e

    if not resp.is_success:
        return ProbeResult.down(error="Loki unreachable", url=url, status_code=resp.status_code)

    try:
        data = resp.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}
    return ProbeResult.up(
        url=url,
        build_date=data.get("buildDate", "unknown"),
        version=data.get("version", "unknown"),
        go_version=data.get("goVersion", data.get("go_version", "unknown")),
    )


def check_logging(settings: Settings, log_sink_factory: Callable[[Settings], LogSink]) -> ProbeResult:
    """Append a test line to the log file and route it through logging."""
    sink = log_sink_factory(settings)
    sink.write_line(f"[{utc_timestamp()}] Health check log test")
    return ProbeResult.up(log_path=sink.path)
