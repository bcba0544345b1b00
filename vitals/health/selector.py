"""Check selector: which probes the configuration enables, in a stable order."""

from __future__ import annotations

from vitals.config import Settings
from vitals.health.models import ProbeName

# Informal grouping, mirrors the config file layout. No behaviour attached.
CORE_CHECKS: tuple[ProbeName, ...] = (
    ProbeName.DATABASE,
    ProbeName.CACHE,
    ProbeName.QUEUE,
    ProbeName.MAIL,
    ProbeName.MIGRATIONS,
    ProbeName.ENV_CONFIG,
    ProbeName.EXTENSIONS,
)

INFRASTRUCTURE_CHECKS: tuple[ProbeName, ...] = (
    ProbeName.REDIS,
    ProbeName.STORAGE,
    ProbeName.DISK_SPACE,
    ProbeName.LOGGING,
    ProbeName.LOKI,
)


def flag_field(name: ProbeName | str) -> str:
    """Settings field holding the enabled flag, e.g. ``disk-space -> healthcheck_disk_space``."""
    value = name.value if isinstance(name, ProbeName) else name
    return "healthcheck_" + value.replace("-", "_")


def enabled_flags(settings: Settings) -> dict[str, bool]:
    """Every known probe name mapped to its enabled flag, in declaration order."""
    return {p.value: bool(getattr(settings, flag_field(p), False)) for p in ProbeName}


def select_enabled(settings: Settings) -> list[str]:
    """Names of the enabled probes in declaration order."""
    return [name for name, enabled in enabled_flags(settings).items() if enabled]
