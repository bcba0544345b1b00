"""Probe registry: static mapping from probe name to implementation.

Built once at startup. The selector decides what runs; the registry only
knows what exists.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from vitals.health.backends import Backends
from vitals.health.errors import DuplicateProbe, UnknownProbe
from vitals.health.models import ProbeName
from vitals.health.probes import (
    Probe,
    check_cache,
    check_database,
    check_disk_space,
    check_env_config,
    check_extensions,
    check_logging,
    check_loki,
    check_mail,
    check_migrations,
    check_queue,
    check_redis,
    check_storage,
)

logger = logging.getLogger(__name__)


class ProbeRegistry:
    """Named probes in registration order."""

    def __init__(self) -> None:
        self._probes: dict[str, Probe] = {}

    def register(self, name: str | ProbeName, probe: Probe) -> None:
        key = name.value if isinstance(name, ProbeName) else name
        if key in self._probes:
            raise DuplicateProbe(f"Probe already registered: {key}")
        self._probes[key] = probe

    def resolve(self, name: str | ProbeName) -> Probe:
        key = name.value if isinstance(name, ProbeName) else name
        try:
            return self._probes[key]
        except KeyError:
            raise UnknownProbe(key) from None

    def names(self) -> list[str]:
        return list(self._probes)

    def __contains__(self, name: object) -> bool:
        key = name.value if isinstance(name, ProbeName) else name
        return key in self._probes

    def __iter__(self) -> Iterator[str]:
        return iter(self._probes)

    def __len__(self) -> int:
        return len(self._probes)


def build_registry(backends: Backends | None = None) -> ProbeRegistry:
    """Register every built-in probe against the given backends."""
    b = backends or Backends()
    registry = ProbeRegistry()

    registry.register(ProbeName.ENV_CONFIG, check_env_config)
    registry.register(ProbeName.DATABASE, lambda s: check_database(s, b.engine_factory))
    registry.register(ProbeName.REDIS, lambda s: check_redis(s, b.redis_factory))
    registry.register(ProbeName.CACHE, lambda s: check_cache(s, b.cache_factory))
    registry.register(ProbeName.STORAGE, lambda s: check_storage(s, b.storage_factory))
    registry.register(ProbeName.QUEUE, check_queue)
    registry.register(ProbeName.MAIL, lambda s: check_mail(s, b.mail_factory))
    registry.register(ProbeName.DISK_SPACE, check_disk_space)
    registry.register(ProbeName.MIGRATIONS, lambda s: check_migrations(s, b.engine_factory))
    registry.register(ProbeName.EXTENSIONS, check_extensions)
    registry.register(ProbeName.LOKI, check_loki)
    registry.register(ProbeName.LOGGING, lambda s: check_logging(s, b.log_sink_factory))

    logger.debug("Probe registry built: %s", ", ".join(registry.names()))
    return registry
