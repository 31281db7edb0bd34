"""Init command for writing a starter configuration."""

from __future__ import annotations

from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.panel import Panel

from helm_release_tasks.core.config.models import DEFAULT_CONFIG_FILE, starter_config

console = Console()
logger = structlog.get_logger()


def init(
    config_file: Path = typer.Option(
        DEFAULT_CONFIG_FILE,
        "--config",
        "-c",
        help="Configuration file to create.",
    ),
    artifact_id: str | None = typer.Option(
        None,
        "--artifact-id",
        "-a",
        help="Project artifact id. Defaults to the working directory name.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration.",
    ),
) -> None:
    """Write a starter helm-tasks.yaml."""
    logger.info("initializing_config", path=str(config_file))

    if config_file.exists() and not force:
        console.print(f"[yellow]Configuration already exists at {config_file}[/yellow]")
        console.print("Use --force to overwrite.")
        raise typer.Exit(code=1)

    config = starter_config(artifact_id)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(config.to_yaml())

    console.print(
        Panel(
            f"[green]Configuration initialized successfully![/green]\n\n"
            f"Configuration created at: {config_file}\n\n"
            f"Next steps:\n"
            f"  1. Edit {config_file} to describe your releases\n"
            f"  2. Run [bold]helm-tasks tasks[/bold] to see the task kinds\n"
            f"  3. Run [bold]helm-tasks run install[/bold]",
            title="helm-tasks init",
            border_style="green",
        )
    )

    logger.info("config_initialized", config_file=str(config_file))
