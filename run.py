#!/usr/bin/env python3
"""
NoteSphere command line.

Usage:
    python run.py --help
    python run.py --action server --reload --verbose
    python run.py --action init-db
    python run.py --action sweep --retention-days 30
    python run.py --action config
"""

import asyncio
import subprocess
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import click

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from notesphere.backend.core.logging import get_logger, setup_logging

ACTIONS = {
    "server": "Start the API server",
    "init-db": "Create tables and the full-text index",
    "sweep": "Purge expired notes from the trash once",
    "config": "Display configuration",
    "info": "Show this information",
}


def validate_project_root() -> Path:
    """Exit unless the .project_root marker sits next to this script."""
    if not (PROJECT_ROOT / ".project_root").exists():
        fail("Error: .project_root not found. Run from project root.")
    return PROJECT_ROOT


def fail(message: str) -> None:
    click.echo(click.style(message, fg="red"), err=True)
    sys.exit(1)


def run_async(logger, label: str, work: Callable[[], Awaitable[Any]]) -> Any:
    """
    Run one coroutine against the database and always dispose the engine.

    Any failure is logged and turns into exit status 1.
    """
    from notesphere.backend.core.database import dispose_engine

    async def _guarded() -> Any:
        try:
            return await work()
        finally:
            await dispose_engine()

    try:
        return asyncio.run(_guarded())
    except Exception as e:
        logger.error(f"{label} failed", extra={"error": str(e)})
        fail(f"{label} failed: {e}")


@click.command()
@click.option("--action", type=click.Choice(list(ACTIONS)), default="info", help="Action to perform.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output (INFO level logging).")
@click.option("--debug", "-d", is_flag=True, help="Enable debug output (DEBUG level logging).")
@click.option("--host", default=None, help="Server host (for server action).")
@click.option("--port", default=None, type=int, help="Server port (for server action).")
@click.option("--reload", is_flag=True, help="Enable auto-reload (for server action).")
@click.option(
    "--retention-days",
    default=None,
    type=click.IntRange(min=1),
    help="Override retention window (for sweep action).",
)
def main(
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    retention_days: int | None,
) -> None:
    """
    NoteSphere entry point.

    Examples:

        # Start development server
        python run.py --action server --reload --verbose

        # Create tables and the full-text index
        python run.py --action init-db

        # Purge expired trash once, outside the server
        python run.py --action sweep -v
    """
    validate_project_root()

    log_level = "DEBUG" if debug else "INFO" if verbose else "WARNING"
    setup_logging(level=log_level, format_type="console")
    logger = get_logger(__name__)
    logger.debug("Running action", extra={"action": action, "log_level": log_level})

    handlers = {
        "server": lambda: run_server(logger, host, port, reload),
        "init-db": lambda: run_init_db(logger),
        "sweep": lambda: run_sweep_once(logger, retention_days),
        "config": lambda: show_config(logger),
        "info": lambda: show_info(logger),
    }
    handlers[action]()


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    from notesphere.backend.core.config import get_app_config

    server = get_app_config().application.server
    bind_host = host or server.host
    bind_port = port or server.port

    cmd = [
        sys.executable, "-m", "uvicorn", "notesphere.backend.main:app",
        "--host", bind_host,
        "--port", str(bind_port),
    ]
    if reload:
        cmd.append("--reload")

    logger.info("Starting server", extra={"host": bind_host, "port": bind_port, "reload": reload})
    click.echo(f"Serving NoteSphere on http://{bind_host}:{bind_port} (Ctrl+C to stop)\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server exited with an error", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def run_init_db(logger) -> None:
    """Wait for the database, then create the schema and full-text index."""
    from notesphere.backend.core.database import init_database

    run_async(logger, "Database initialization", init_database)
    click.echo(click.style("Database initialized.", fg="green"))


def run_sweep_once(logger, retention_days: int | None) -> None:
    from notesphere.backend.core.config import get_app_config
    from notesphere.backend.core.database import get_session_factory
    from notesphere.backend.tasks.retention import run_sweep

    days = retention_days or get_app_config().retention.retention_days
    purged = run_async(logger, "Retention sweep", lambda: run_sweep(get_session_factory(), days))
    click.echo(f"Purged {purged} note(s) deleted more than {days} day(s) ago.")


def show_config(logger) -> None:
    """Print every YAML section. Secrets live in the environment and are never shown."""
    from notesphere.backend.core.config import get_app_config

    try:
        app_config = get_app_config()
    except Exception as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        fail(f"Error loading configuration: {e}")

    click.echo("Application Configuration:\n")
    for field_name, section in app_config:
        click.echo(f"{field_name.replace('_', ' ').title()} (from YAML):")
        click.echo("-" * 40)
        _echo_mapping(section.model_dump(), indent=2)
        click.echo()


def _echo_mapping(values: dict, indent: int) -> None:
    pad = " " * indent
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{pad}{key}:")
            _echo_mapping(value, indent + 2)
        else:
            click.echo(f"{pad}{key}: {value}")


def show_info(logger) -> None:
    from notesphere.backend.core.config import get_app_config

    try:
        application = get_app_config().application
        click.echo(f"{application.name} {application.version}")
        click.echo("=" * 40)
        click.echo(application.description)
    except Exception as e:
        logger.debug("Configuration unavailable", extra={"error": str(e)})
        click.echo("NoteSphere")
        click.echo("=" * 40)

    click.echo()
    click.echo("Available Actions:")
    for name, summary in ACTIONS.items():
        click.echo(f"  --action {name:<9}{summary}")
    click.echo()
    click.echo("Logging Options:")
    click.echo("  --verbose, -v     Enable INFO level logging")
    click.echo("  --debug, -d       Enable DEBUG level logging")


if __name__ == "__main__":
    main()
