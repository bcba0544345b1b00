from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("healthcheck.yaml")

DEFAULT_REQUIRED_EXTENSIONS = ["sqlite3", "json", "ssl", "zlib", "hashlib", "decimal"]

# Probe names accepted in config files besides the canonical ones.
PROBE_ALIASES = {"php-extensions": "extensions"}


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file.

    Immutable once built. A run reads one instance from start to finish;
    reloading means building a new instance.
    """

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }

    # Core checks
    healthcheck_database: bool = True
    healthcheck_cache: bool = True
    healthcheck_queue: bool = True
    healthcheck_mail: bool = False
    healthcheck_migrations: bool = True
    healthcheck_env_config: bool = True
    healthcheck_extensions: bool = Field(
        default=False,
        validation_alias=AliasChoices("healthcheck_extensions", "healthcheck_php_extensions"),
    )

    # Infrastructure checks
    healthcheck_redis: bool = False
    healthcheck_storage: bool = True
    healthcheck_disk_space: bool = True
    healthcheck_logging: bool = True
    healthcheck_loki: bool = False

    # Application
    app_env: str = "production"
    app_debug: bool = False
    app_timezone: str = "UTC"

    # Database
    database_url: str = "sqlite:///vitals.db"
    database_schema: str | None = None
    database_timeout: int = 5  # seconds, passed as connect_timeout where supported
    migrations_table: str = "alembic_version"

    # Redis / cache
    redis_url: str = ""
    redis_timeout: float = 3.0
    cache_driver: str = "redis"  # the cache probe round-trips through REDIS_URL
    cache_ttl_seconds: int = 60

    # Storage
    filesystem_disk: str = "local"
    storage_root: str = "storage/app"

    # Queue
    queue_connection: str = "sync"

    # Mail
    mail_mailer: str = "smtp"  # smtp | log
    mail_host: str = ""
    mail_port: int = 587
    mail_username: str = ""

    # Disk space
    disk_path: str = "/"
    disk_threshold: float = 90.0  # percent used above which the probe is DOWN
    disk_precision: int = 2

    # External telemetry (Loki)
    loki_url: str | None = None
    loki_timeout: float = 3.0

    # Runtime capabilities
    required_extensions: Annotated[list[str], NoDecode] = list(DEFAULT_REQUIRED_EXTENSIONS)

    # Logging
    log_path: str = "storage/logs/health_check.log"
    log_level: str = "INFO"

    # Orchestrator
    vitals_run_timeout: float | None = None  # overall deadline per run, seconds
    vitals_max_workers: int = 8

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    health_route: str = "/health"

    @field_validator("required_extensions", mode="before")
    @classmethod
    def _split_extensions(cls, value: Any) -> Any:
        # REQUIRED_EXTENSIONS=sqlite3,json,ssl
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("health_route")
    @classmethod
    def _check_route(cls, value: str) -> str:
        route = "/" + value.strip("/")
        if route == "/":
            raise ValueError("health_route must not be the root path")
        return route


def _flatten(data: dict[str, Any]) -> dict[str, Any]:
    """Flatten the grouped YAML layout into Settings field names.

    ``core`` and ``infrastructure`` map probe names to enabled flags
    (``disk-space: true`` -> ``healthcheck_disk_space``). ``services`` holds
    plain parameters. The grouping carries no meaning beyond organisation.
    """
    flat: dict[str, Any] = {}
    for group in ("core", "infrastructure"):
        for name, enabled in (data.get(group) or {}).items():
            name = PROBE_ALIASES.get(str(name), str(name))
            flat["healthcheck_" + name.replace("-", "_")] = bool(enabled)
    for key, value in (data.get("services") or {}).items():
        flat[str(key).replace("-", "_")] = value
    for key, value in data.items():
        if key not in ("core", "infrastructure", "services"):
            flat[str(key).replace("-", "_")] = value
    return flat


def load_settings(path: Path | str | None = None, **overrides: Any) -> Settings:
    """Build Settings from environment, optionally overlaid with a YAML file.

    The file path comes from ``path``, then ``VITALS_CONFIG_FILE``, then
    ``healthcheck.yaml`` in the working directory. Values in the file take
    precedence over the environment; keyword overrides win over both.
    """
    config_path = Path(path or os.getenv("VITALS_CONFIG_FILE") or DEFAULT_CONFIG_FILE)
    values: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config file must hold a mapping: {config_path}")
        values = _flatten(raw)
        logger.info("Loaded health check config from %s", config_path)
    elif path is not None:
        logger.warning("Config file not found: %s", config_path)

    values.update(overrides)
    return Settings(**values)
