"""Main CLI entry point using Typer."""

from __future__ import annotations

import typer
from rich.console import Console

from helm_release_tasks import __version__
from helm_release_tasks.cli.commands import init, run
from helm_release_tasks.core.plugins.manager import get_plugin_manager
from helm_release_tasks.logging.config import configure_logging

app = typer.Typer(
    name="helm-tasks",
    help="Run Helm release tasks against a Kubernetes cluster.",
    add_completion=True,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"helm-tasks version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Write console logs as JSON.",
    ),
) -> None:
    """helm-tasks - Helm release management as configurable tasks."""
    configure_logging(verbose=verbose, debug=debug, json_output=json_logs)


app.command()(run.run)
app.command()(init.init)
get_plugin_manager().register_commands(app)


if __name__ == "__main__":
    app()
