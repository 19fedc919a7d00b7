#!/usr/bin/env python3
"""
botplay entry script.

    python run.py --action server --reload -v   # uvicorn on botplay.main:app
    python run.py --action health               # config, bot options, handler registry
    python run.py --action config               # YAML settings (secrets never shown)
    python run.py                               # info
"""

import subprocess
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from botplay.core.logging import get_logger, setup_logging

logger = get_logger("run")


def validate_project_root() -> Path:
    """Exit unless run.py sits next to the .project_root marker."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.secho("Error: .project_root not found. Run from project root.", fg="red", err=True)
        sys.exit(1)
    return PROJECT_ROOT


def run_server(host: str | None, port: int | None, reload: bool) -> None:
    """Serve botplay.main:app with uvicorn; the bot starts with the app."""
    from botplay.core.config import get_app_config

    server = get_app_config().application.server
    host = host or server.host
    port = port or server.port

    cmd = [sys.executable, "-m", "uvicorn", "botplay.main:app", "--host", host, "--port", str(port)]
    if reload:
        cmd.append("--reload")

    logger.info("Starting server", extra={"host": host, "port": port, "reload": reload})
    click.echo(f"Serving on http://{host}:{port} (Ctrl+C to stop)")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server exited with error", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def _check_config() -> str:
    from botplay.core.config import get_app_config

    return f"app {get_app_config().application.name}"


def _check_bot_options() -> str:
    from botplay.telegram.options import load_bot_options

    return f"mode {load_bot_options().connection_method.value}"


def _check_handler_registry() -> str:
    from botplay.telegram.handlers import ExampleUpdateHandler

    return ", ".join(sorted(t.value for t in ExampleUpdateHandler.registry.handled_types))


HEALTH_CHECKS: list[tuple[str, Callable[[], str]]] = [
    ("YAML configuration", _check_config),
    ("Bot options", _check_bot_options),
    ("Handler registry", _check_handler_registry),
]


def check_health() -> None:
    """Run every startup check without contacting Telegram; exit 1 on any failure."""
    failed = False
    for name, check in HEALTH_CHECKS:
        try:
            detail = check()
        except Exception as e:
            logger.error("Health check failed", extra={"check": name, "error": str(e)})
            click.echo(f"  {click.style('FAIL', fg='red')}  {name}: {e}")
            failed = True
        else:
            click.echo(f"  {click.style('PASS', fg='green')}  {name} ({detail})")

    if failed:
        click.secho("Some checks failed. Is TELEGRAM_BOT_TOKEN set in config/.env?", fg="yellow")
        sys.exit(1)
    click.secho("All checks passed!", fg="green")


def _echo_section(title: str, values: dict[str, Any], indent: int = 2) -> None:
    if title:
        click.secho(title, bold=True)
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_section("", value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def show_config() -> None:
    """Print the validated YAML settings. .env secrets are not part of them."""
    from botplay.core.config import get_app_config

    try:
        config = get_app_config()
    except Exception as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        click.secho(f"Error loading configuration: {e}", fg="red")
        sys.exit(1)

    _echo_section("application.yaml", config.application.model_dump())
    _echo_section("logging.yaml", config.logging.model_dump())
    _echo_section("telegram.yaml", config.telegram.model_dump())


def show_info() -> None:
    from botplay.core.config import get_app_config

    application = get_app_config().application
    click.echo(f"{application.name} {application.version}: {application.description}")
    click.echo()
    click.echo("Actions: server, health, config, info (default)")
    click.echo("Logging: -v for INFO, -d for DEBUG")


@click.command()
@click.option(
    "--action",
    type=click.Choice(["server", "health", "config", "info"]),
    default="info",
    help="What to run.",
)
@click.option("--verbose", "-v", is_flag=True, help="INFO level logging.")
@click.option("--debug", "-d", is_flag=True, help="DEBUG level logging.")
@click.option("--host", default=None, help="Server host (server action).")
@click.option("--port", default=None, type=int, help="Server port (server action).")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes (server action).")
def main(action: str, verbose: bool, debug: bool, host: str | None, port: int | None, reload: bool) -> None:
    """Run the botplay Telegram bot server or inspect its configuration."""
    validate_project_root()
    setup_logging(level="DEBUG" if debug else "INFO" if verbose else "WARNING", format_type="console")

    if action == "server":
        run_server(host, port, reload)
    elif action == "health":
        check_health()
    elif action == "config":
        show_config()
    else:
        show_info()


if __name__ == "__main__":
    main()
