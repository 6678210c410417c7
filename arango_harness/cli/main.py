"""arango-harness CLI - Main entry point.

Operational commands against the deployment described by the TEST_*
environment (optionally layered over a config file). All commands output
JSON.

    arango-harness ready --timeout 60        # Wait until the server is available
    arango-harness version --details         # Server version and license
    arango-harness health                    # Reachability of every endpoint
    arango-harness jobs list pending         # Async job IDs by state
    arango-harness jobs status <id>          # done | pending
    arango-harness jobs cancel <id>          # Cancel a pending job
    arango-harness jobs delete all           # Delete job results by scope
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

import typer

from ..client import DeleteScope, JobStatus
from ..config import ConfigValidationError, HarnessConfig, load_harness_config
from ..logging.logging import LogManager, _validate_log_level
from .decorators import cli_command
from .output import CLIResponse, ErrorCode

app = typer.Typer(
    name="arango-harness",
    help="ArangoDB test harness CLI.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

jobs_app = typer.Typer(
    name="jobs",
    help="List, inspect, cancel and delete async jobs.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
app.add_typer(jobs_app, name="jobs")


def _load_config(ctx: typer.Context) -> HarnessConfig:
    obj = ctx.obj or {}
    config = load_harness_config(obj.get("config_path"))
    if level := obj.get("log_level"):
        try:
            _validate_log_level(level)
        except ValueError as e:
            raise ConfigValidationError("Invalid --log-level", [str(e)]) from e
        config.log_level = level
    LogManager.setup(config.log_level)
    return config


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Path = typer.Option(None, "--config", "-c", help="YAML or JSON harness configuration"),
    log_level: str = typer.Option(None, "--log-level", help="Override TEST_LOG_LEVEL"),
    version: bool = typer.Option(False, "--version", "-v", help="Show version and exit", is_eager=True),
) -> None:
    """ArangoDB test harness CLI."""
    if version:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as get_version

        try:
            print(f"arango-harness {get_version('arango-harness')}", file=sys.stderr)
        except PackageNotFoundError:
            print("arango-harness 0.1.0", file=sys.stderr)
        raise typer.Exit()

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["log_level"] = log_level

    if ctx.invoked_subcommand is None:
        print(ctx.get_help(), file=sys.stderr)
        raise typer.Exit()


@app.command("ready")
@cli_command("ready", ErrorCode.TIMEOUT)
def ready(
    ctx: typer.Context,
    timeout: float = typer.Option(60.0, "--timeout", "-t", help="Seconds to wait"),
    interval: float = typer.Option(2.0, "--interval", "-i", help="Seconds between probes"),
    start_time: float = typer.Option(0.0, hidden=True),  # Injected by decorator
) -> CLIResponse:
    """Wait until the server reports itself available."""
    from .commands import wait_ready

    return wait_ready(_load_config(ctx), timeout, interval, start_time)


@app.command("version")
@cli_command("version", ErrorCode.SERVER_ERROR)
def version_command(
    ctx: typer.Context,
    details: bool = typer.Option(False, "--details", "-d", help="Include build details"),
    start_time: float = typer.Option(0.0, hidden=True),  # Injected by decorator
) -> CLIResponse:
    """Show server version and license."""
    from .commands import get_version

    return get_version(_load_config(ctx), details, start_time)


@app.command("health")
@cli_command("health", ErrorCode.NETWORK_ERROR)
def health(
    ctx: typer.Context,
    start_time: float = typer.Option(0.0, hidden=True),  # Injected by decorator
) -> CLIResponse:
    """Probe every configured endpoint; fails if none is reachable."""
    from .commands import get_health

    return get_health(_load_config(ctx), start_time)


@jobs_app.command("list")
@cli_command("jobs.list", ErrorCode.JOB_ERROR)
def jobs_list(
    ctx: typer.Context,
    status: JobStatus = typer.Argument(..., help="done or pending"),
    count: int = typer.Option(None, "--count", "-n", help="Maximum number of IDs"),
    start_time: float = typer.Option(0.0, hidden=True),  # Injected by decorator
) -> CLIResponse:
    """List async job IDs in a state."""
    from .commands import list_jobs

    return list_jobs(_load_config(ctx), status, count, start_time)


@jobs_app.command("status")
@cli_command("jobs.status", ErrorCode.JOB_ERROR)
def jobs_status(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Async job ID", metavar="JOB_ID"),
    start_time: float = typer.Option(0.0, hidden=True),  # Injected by decorator
) -> CLIResponse:
    """Show whether a job is done or pending."""
    from .commands import job_status

    return job_status(_load_config(ctx), job_id, start_time)


@jobs_app.command("cancel")
@cli_command("jobs.cancel", ErrorCode.JOB_ERROR)
def jobs_cancel(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Async job ID", metavar="JOB_ID"),
    start_time: float = typer.Option(0.0, hidden=True),  # Injected by decorator
) -> CLIResponse:
    """Cancel a pending job."""
    from .commands import cancel_job

    return cancel_job(_load_config(ctx), job_id, start_time)


@jobs_app.command("delete")
@cli_command("jobs.delete", ErrorCode.JOB_ERROR)
def jobs_delete(
    ctx: typer.Context,
    scope: DeleteScope = typer.Argument(..., help="single, done, all or expired"),
    job_id: str = typer.Option(None, "--id", help="Job ID for the single scope"),
    stamp: datetime = typer.Option(None, "--stamp", help="Cut-off time for the expired scope"),
    start_time: float = typer.Option(0.0, hidden=True),  # Injected by decorator
) -> CLIResponse:
    """Delete async job results."""
    from .commands import delete_jobs

    return delete_jobs(_load_config(ctx), scope, job_id, stamp, start_time)


if __name__ == "__main__":
    app()
