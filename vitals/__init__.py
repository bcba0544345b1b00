"""vitals: pluggable health-check orchestrator."""

__version__ = "0.1.0"
