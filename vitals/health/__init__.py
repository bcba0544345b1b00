"""Health subsystem: probes, registry, selection, orchestration and formatting."""

from .errors import ConfigurationGap, ProbeFault, UnknownProbe
from .formatter import to_human_readable, to_machine_readable
from .models import HealthReport, OverallStatus, ProbeName, ProbeResult, ProbeStatus
from .orchestrator import HealthOrchestrator, execute_probe
from .registry import ProbeRegistry, build_registry
from .selector import select_enabled
