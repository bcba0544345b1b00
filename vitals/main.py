"""Entry point for the `vitals` console script."""

from __future__ import annotations

import argparse
import json
import logging
import sys

import uvicorn
from rich.console import Console
from rich.table import Table

from vitals.api.server import create_app
from vitals.config import Settings, load_settings
from vitals.health.formatter import to_human_readable, to_machine_readable
from vitals.health.orchestrator import HealthOrchestrator
from vitals.health.registry import build_registry
from vitals.health.selector import enabled_flags

console = Console()
err_console = Console(stderr=True)


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def run_check(settings: Settings, raw: bool = False, timeout: float | None = None) -> int:
    """Run all enabled checks once. Returns the process exit code."""
    orchestrator = HealthOrchestrator(settings, build_registry())

    if raw:
        report = orchestrator.run(timeout=timeout)
        print(json.dumps(to_machine_readable(report), indent=2, ensure_ascii=False))
    else:
        with err_console.status("[bold green]Running system health checks..."):
            report = orchestrator.run(timeout=timeout)
        console.print()
        for line in to_human_readable(report):
            console.print(line, markup=False, highlight=False)

    return 0 if report.is_healthy else 1


def list_checks(settings: Settings) -> int:
    """Print every known probe with its enabled flag."""
    table = Table(title="Health checks")
    table.add_column("Check")
    table.add_column("Enabled")
    for name, enabled in enabled_flags(settings).items():
        table.add_row(name, "[green]yes[/green]" if enabled else "[dim]no[/dim]")
    console.print(table)
    return 0


def run_server(settings: Settings) -> None:
    """Start the FastAPI server."""
    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run configured system health checks")
    parser.add_argument("--config", help="YAML config file (overrides environment)")
    sub = parser.add_subparsers(dest="command")

    check_parser = sub.add_parser("check", help="Run all enabled health checks")
    check_parser.add_argument("--json", action="store_true", help="Output as JSON")
    check_parser.add_argument("--timeout", type=float, default=None, help="Overall deadline in seconds")

    sub.add_parser("list", help="Show known checks and whether they are enabled")
    sub.add_parser("serve", help="Start the health API server")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    settings = load_settings(args.config)
    _configure_logging(settings)

    if args.command == "check":
        return run_check(settings, raw=args.json, timeout=args.timeout)
    if args.command == "list":
        return list_checks(settings)
    run_server(settings)
    return 0


if __name__ == "__main__":
    sys.exit(main())
