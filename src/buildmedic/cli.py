"""buildmedic CLI

Usage:
    buildmedic recover [--project-root DIR] [--max-attempts N] [--history FILE] [--json-logs]
    buildmedic stats [--project-root DIR] [--history FILE] [--json]

``recover`` exits 0 when the build is healthy and 1 when manual
intervention is required, so it can be dropped into a CI pipeline step.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.table import Table

from .attempt_log import JsonlAttemptLog
from .config_loader import load_settings
from .exceptions import ConfigError
from .logging_config import configure_logging
from .recovery_controller import RecoveryController

EXIT_SUCCESS = 0
EXIT_MANUAL_INTERVENTION = 1
EXIT_CONFIG_ERROR = 2


def _load(project_root: Optional[Path], history: Optional[Path]):
    overrides: Dict[str, Any] = {}
    if history is not None:
        # relative to the invoking directory, not --project-root
        overrides["history_path"] = history.resolve()
    try:
        return load_settings(project_root, **overrides)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)


@click.group()
@click.version_option(package_name="buildmedic", prog_name="buildmedic")
def cli() -> None:
    """buildmedic - diagnose and remediate build pipeline failures."""
    pass


@cli.command(name="recover")
@click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project checkout to operate on (default: current directory)",
)
@click.option(
    "--max-attempts",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Run up to N recovery attempts, stopping at the first success",
)
@click.option(
    "--history",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSONL file to append attempt history to (relative to the current directory)",
)
@click.option("--json-logs", is_flag=True, help="Emit structured JSON log lines")
def recover_command(
    project_root: Optional[Path],
    max_attempts: int,
    history: Optional[Path],
    json_logs: bool,
) -> None:
    """Diagnose build failures, apply fixes and re-verify."""
    settings = _load(project_root, history)
    configure_logging(log_path=settings.log_path, log_level=settings.log_level, structured=json_logs)

    controller = RecoveryController.from_settings(settings)

    success = False
    for _ in range(max_attempts):
        success = controller.recover()
        if success:
            break

    if success:
        click.echo("Recovery successful - build is now working")
        sys.exit(EXIT_SUCCESS)
    click.echo("Recovery failed - manual intervention required", err=True)
    sys.exit(EXIT_MANUAL_INTERVENTION)


@cli.command(name="stats")
@click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project checkout whose history to read",
)
@click.option(
    "--history",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSONL attempt history file (relative to the current directory)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats_command(project_root: Optional[Path], history: Optional[Path], as_json: bool) -> None:
    """Show aggregate statistics over recorded recovery attempts."""
    settings = _load(project_root, history)
    history_path = settings.resolved_history_path()
    if history_path is None:
        click.echo("Error: no attempt history configured (use --history or history_path)", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    stats = JsonlAttemptLog(history_path).stats()

    if as_json:
        click.echo(json.dumps(stats.to_report(), indent=2))
        return

    console = Console()
    table = Table(title="Recovery statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Total attempts", str(stats.total_attempts))
    table.add_row("Success rate", f"{stats.success_rate:.1%}")
    table.add_row("Average duration", f"{stats.average_duration:.0f} ms")
    console.print(table)

    if stats.common_errors:
        console.print("[bold]Most common errors:[/bold]")
        for i, message in enumerate(stats.common_errors, start=1):
            console.print(f"  {i}. {message}", markup=False, highlight=False)


def main(argv: Optional[list] = None) -> int:
    """Console-script entry point."""
    return cli.main(args=argv, prog_name="buildmedic", standalone_mode=True)


if __name__ == "__main__":
    main()
