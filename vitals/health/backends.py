"""Backend capabilities handed to probes at construction.

Probes never reach for process-wide clients. Each one receives the narrow
capability it needs (get/put/delete, put/exists/delete, write-line, a
resolved mail transport) so tests can swap in stand-ins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import redis
import sqlalchemy as sa
from sqlalchemy.engine import Engine

from vitals.config import Settings
from vitals.health.errors import ConfigurationGap

logger = logging.getLogger(__name__)

LOG_TEST_LOGGER = "vitals.health.log_test"


# ── Protocols ────────────────────────────────────────────────────────────────


class CacheBackend(Protocol):
    driver: str

    def put(self, key: str, value: str, ttl: int) -> None: ...

    def get(self, key: str) -> str | None: ...

    def delete(self, key: str) -> None: ...


class StorageBackend(Protocol):
    disk: str

    @property
    def root(self) -> str: ...

    def put(self, name: str, contents: str) -> None: ...

    def exists(self, name: str) -> bool: ...

    def delete(self, name: str) -> None: ...


class LogSink(Protocol):
    @property
    def path(self) -> str: ...

    def write_line(self, line: str) -> None: ...


class MailTransport(Protocol):
    @property
    def scheme(self) -> str: ...


# ── Cache ────────────────────────────────────────────────────────────────────


class RedisCache:
    """Cache backed by a redis connection."""

    driver = "redis"

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    def put(self, key: str, value: str, ttl: int) -> None:
        self._client.set(key, value, ex=ttl)

    def get(self, key: str) -> str | None:
        raw = self._client.get(key)
        if raw is None:
            return None
        return raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)

    def delete(self, key: str) -> None:
        self._client.delete(key)


# ── Storage ──────────────────────────────────────────────────────────────────


class LocalStorage:
    """Files under a root directory on the local disk."""

    def __init__(self, root: Path | str, disk: str = "local") -> None:
        self._root = Path(root)
        self.disk = disk

    @property
    def root(self) -> str:
        return str(self._root.resolve())

    def _path(self, name: str) -> Path:
        return self._root / name

    def put(self, name: str, contents: str) -> None:
        path = self._path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents, encoding="utf-8")

    def exists(self, name: str) -> bool:
        return self._path(name).is_file()

    def delete(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)


# ── Log sink ─────────────────────────────────────────────────────────────────


class FileLogSink:
    """Appends lines to a log file, then routes them through ``logging``."""

    def __init__(self, path: Path | str, logger_name: str = LOG_TEST_LOGGER) -> None:
        self._path = Path(path)
        self._logger = logging.getLogger(logger_name)

    @property
    def path(self) -> str:
        return str(self._path)

    def write_line(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
        self._logger.info(line)


# ── Mail ─────────────────────────────────────────────────────────────────────


@dataclass
class SmtpTransport:
    host: str
    port: int = 587
    username: str = ""

    @property
    def scheme(self) -> str:
        return "smtp"

    def __str__(self) -> str:
        user = f"{self.username}@" if self.username else ""
        return f"smtp://{user}{self.host}:{self.port}"


class LogTransport:
    """Mail goes to the application log instead of a server."""

    scheme = "log"

    def __str__(self) -> str:
        return "log"


def make_mail_transport(settings: Settings) -> MailTransport:
    """Resolve the configured mail transport without opening a connection."""
    mailer = settings.mail_mailer.lower()
    if mailer == "smtp":
        if not settings.mail_host:
            raise ConfigurationGap("MAIL_HOST is not configured for the smtp mailer")
        return SmtpTransport(
            host=settings.mail_host,
            port=settings.mail_port,
            username=settings.mail_username,
        )
    if mailer == "log":
        return LogTransport()
    raise ConfigurationGap(f"Unsupported mail transport: {settings.mail_mailer}")


# ── Connection factories ─────────────────────────────────────────────────────


def make_engine(settings: Settings) -> Engine:
    """Create an engine for the configured database with a bounded connect wait."""
    if not settings.database_url:
        raise ConfigurationGap("DATABASE_URL is not configured")
    url = sa.engine.make_url(settings.database_url)
    connect_args: dict[str, int] = {}
    if url.get_backend_name() in ("postgresql", "mysql", "mariadb"):
        connect_args["connect_timeout"] = settings.database_timeout
    return sa.create_engine(url, connect_args=connect_args, pool_pre_ping=True)


def make_redis(settings: Settings) -> redis.Redis:
    if not settings.redis_url:
        raise ConfigurationGap("REDIS_URL is not configured")
    return redis.Redis.from_url(
        settings.redis_url,
        socket_timeout=settings.redis_timeout,
        socket_connect_timeout=settings.redis_timeout,
    )


def make_cache(settings: Settings) -> CacheBackend:
    """Connect to the shared cache store the application uses."""
    driver = settings.cache_driver.lower()
    if driver != "redis":
        raise ConfigurationGap(f"Unsupported cache driver: {settings.cache_driver}")
    if not settings.redis_url:
        raise ConfigurationGap("No cache backend configured: REDIS_URL is not set")
    return RedisCache(make_redis(settings))


def make_storage(settings: Settings) -> StorageBackend:
    return LocalStorage(settings.storage_root, disk=settings.filesystem_disk)


def make_log_sink(settings: Settings) -> LogSink:
    return FileLogSink(settings.log_path)


# ── Bundle ───────────────────────────────────────────────────────────────────


@dataclass
class Backends:
    """Factories for everything the built-in probes need from outside.

    Each factory receives the settings snapshot of the current run and is
    called inside the probe, so a construction failure only affects that probe.
    """

    cache_factory: Callable[[Settings], CacheBackend] = make_cache
    storage_factory: Callable[[Settings], StorageBackend] = make_storage
    log_sink_factory: Callable[[Settings], LogSink] = make_log_sink
    engine_factory: Callable[[Settings], Engine] = make_engine
    redis_factory: Callable[[Settings], redis.Redis] = make_redis
    mail_factory: Callable[[Settings], MailTransport] = make_mail_transport
