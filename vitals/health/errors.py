"""Exceptions raised by probes and the probe registry."""

from __future__ import annotations


class HealthCheckError(Exception):
    """Base class for health subsystem errors."""


class ProbeFault(HealthCheckError):
    """Raised when a probed dependency is unreachable or misbehaves."""


class ConfigurationGap(ProbeFault):
    """Raised when a probe is missing a required configuration parameter."""


class UnknownProbe(HealthCheckError, KeyError):
    """Raised when no probe is registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"No probe registered for '{self.name}'"


class DuplicateProbe(HealthCheckError, ValueError):
    """Raised when a probe name is registered twice."""
