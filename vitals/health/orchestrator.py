"""Health orchestrator. Runs the enabled probes and aggregates one report.

Each probe runs on its own daemon thread, at most ``max_workers`` at a time.
``execute_probe`` is the isolation boundary: whatever a probe raises becomes
a DOWN result there, so a failing probe never stops its siblings and
``run()`` never raises. A probe still hanging at the deadline is abandoned
and does not keep the process alive.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, wait

from vitals.config import Settings
from vitals.health.errors import UnknownProbe
from vitals.health.models import HealthReport, ProbeResult
from vitals.health.probes import Probe
from vitals.health.registry import ProbeRegistry
from vitals.health.selector import select_enabled

logger = logging.getLogger(__name__)


def _fault_message(exc: BaseException) -> str:
    message = str(exc)
    return message if message else type(exc).__name__


def execute_probe(name: str, probe: Probe, settings: Settings) -> ProbeResult:
    """Run one probe, converting any exception into a DOWN result."""
    t0 = time.perf_counter()
    try:
        result = probe(settings)
    except Exception as e:
        logger.warning("Probe %s failed: %s: %s", name, type(e).__name__, e)
        return ProbeResult.down(error=_fault_message(e))

    if not isinstance(result, ProbeResult):
        logger.error("Probe %s returned %s instead of a ProbeResult", name, type(result).__name__)
        return ProbeResult.down(error=f"Probe returned {type(result).__name__}, expected a result")

    logger.debug(
        "Probe %s: %s (%.1fms)", name, result.status.value, (time.perf_counter() - t0) * 1000,
    )
    return result


def _spawn(
    name: str,
    probe: Probe,
    settings: Settings,
    slots: threading.BoundedSemaphore,
) -> Future[ProbeResult]:
    future: Future[ProbeResult] = Future()

    def _target() -> None:
        with slots:
            # Cancelled while queued for a slot: the run already gave up on it.
            if not future.set_running_or_notify_cancel():
                return
            future.set_result(execute_probe(name, probe, settings))

    threading.Thread(target=_target, name=f"probe-{name}", daemon=True).start()
    return future


class HealthOrchestrator:
    """Answers one "run now" request at a time. Keeps no state between runs."""

    def __init__(
        self,
        settings: Settings,
        registry: ProbeRegistry,
        max_workers: int | None = None,
        selector: Callable[[Settings], list[str]] = select_enabled,
    ) -> None:
        self._settings = settings
        self.registry = registry
        self._max_workers = max_workers or settings.vitals_max_workers
        self._select = selector

    @property
    def settings(self) -> Settings:
        return self._settings

    def reload(self, settings: Settings) -> None:
        """Swap the configuration used by subsequent runs."""
        self._settings = settings

    def run(self, timeout: float | None = None) -> HealthReport:
        """Run every enabled probe and return the aggregated report.

        ``timeout`` bounds the whole run in seconds (defaults to
        ``vitals_run_timeout``). Probes still running at the deadline are
        reported DOWN; the report is always complete.
        """
        settings = self._settings
        if timeout is None:
            timeout = settings.vitals_run_timeout

        names = self._select(settings)
        logger.info("Health run started: %d checks enabled", len(names))

        results: dict[str, ProbeResult] = {}
        futures: dict[str, Future[ProbeResult]] = {}
        slots = threading.BoundedSemaphore(max(1, self._max_workers))

        for name in names:
            try:
                probe = self.registry.resolve(name)
            except UnknownProbe as e:
                logger.error("Configuration error: %s", e)
                results[name] = ProbeResult.down(error=str(e))
                continue
            futures[name] = _spawn(name, probe, settings, slots)

        done, _ = wait(futures.values(), timeout=timeout)

        for name, future in futures.items():
            if future in done:
                results[name] = future.result()
            else:
                future.cancel()
                logger.warning("Probe %s did not finish within %ss", name, timeout)
                results[name] = ProbeResult.down(error=f"Timed out after {timeout}s")

        checks = {name: results[name] for name in names}
        report = HealthReport.from_checks(checks)
        logger.info(
            "Health run finished: %s (%d/%d up)",
            report.status.value,
            sum(1 for r in checks.values() if r.is_up),
            len(checks),
        )
        return report

    async def arun(self, timeout: float | None = None) -> HealthReport:
        """Run from async code without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.run, timeout)
