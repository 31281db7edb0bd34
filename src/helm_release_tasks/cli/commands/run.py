"""Run command: execute configured tasks in order."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import typer
import yaml
from rich.console import Console
from rich.markup import escape

from helm_release_tasks.core.config.models import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    build_config,
    load_config,
)
from helm_release_tasks.core.plugins.manager import get_plugin_manager
from helm_release_tasks.tasks.exceptions import (
    TaskConfigurationError,
    TaskError,
    TaskInterruptedError,
)
from helm_release_tasks.tasks.executor import TaskExecutor

console = Console()
logger = structlog.get_logger()

EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2
EXIT_INTERRUPTED = 130


def parse_defines(defines: list[str] | None) -> dict[str, Any]:
    """Parse ``key=value`` overrides.

    Values spelled as YAML booleans, integers or lists are converted;
    anything else stays a string.

    Raises:
        typer.BadParameter: If an override has no ``=`` or an empty key.
    """
    overrides: dict[str, Any] = {}
    for define in defines or []:
        key, sep, raw = define.partition("=")
        key = key.strip()
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {define!r}", param_hint="--define")
        value: Any = raw
        if raw:
            try:
                parsed = yaml.safe_load(raw)
            except yaml.YAMLError:
                parsed = raw
            if isinstance(parsed, bool | int | list):
                value = parsed
        overrides[key] = value
    return overrides


def scope_overrides(
    overrides: dict[str, Any],
    executions: list[str],
) -> dict[str, dict[str, Any]]:
    """Split overrides per execution id.

    A plain ``field`` key applies to every execution. A ``execution.field``
    key applies only to that execution and wins over a plain key.

    Raises:
        typer.BadParameter: If a scoped key names an execution not being run.
    """
    shared = {key: value for key, value in overrides.items() if "." not in key}
    scoped = {execution_id: dict(shared) for execution_id in executions}
    for key, value in overrides.items():
        if "." not in key:
            continue
        execution_id, _, field = key.rpartition(".")
        if execution_id not in scoped or not field:
            raise typer.BadParameter(
                f"{key!r} does not name a field of an execution in this run",
                param_hint="--define",
            )
        scoped[execution_id][field] = value
    return scoped


def _report(error: TaskError) -> None:
    console.print(f"[red]ERROR:[/red] {escape(str(error))}")
    if isinstance(error, TaskConfigurationError):
        for field, message in error.errors.items():
            console.print(f"  [yellow]{escape(field)}[/yellow]: {escape(message)}")
    if error.__cause__ is not None and str(error.__cause__) != error.message:
        console.print(f"  caused by: {escape(repr(error.__cause__))}")
    for suppressed in error.suppressed:
        console.print(f"  suppressed: {escape(repr(suppressed))}")


def run(
    executions: list[str] = typer.Argument(
        ...,
        help="Execution ids (keys under 'tasks') or task kinds, run in order.",
    ),
    config_file: Path = typer.Option(
        DEFAULT_CONFIG_FILE,
        "--config",
        "-c",
        help="Configuration file.",
    ),
    defines: list[str] | None = typer.Option(
        None,
        "--define",
        "-D",
        help=(
            "Override a task field, as key=value for every execution or "
            "execution.key=value for one. May be repeated."
        ),
    ),
) -> None:
    """Run task executions, stopping at the first failure."""
    overrides = scope_overrides(parse_defines(defines), executions)

    try:
        config = load_config(config_file)
        if config is None:
            logger.info("config_file_missing", path=str(config_file))
            config = build_config()
    except ConfigError as e:
        console.print(f"[red]Configuration invalid:[/red] {escape(str(e))}")
        raise typer.Exit(code=EXIT_CONFIGURATION) from e

    manager = get_plugin_manager()
    manager.initialize_all(config.plugins)
    executor = TaskExecutor(
        manager.build_task_registry(),
        manager.build_listener_registry(),
        config,
    )

    try:
        for execution_id in executions:
            executor.execute(execution_id, overrides[execution_id])
            console.print(f"[green]OK:[/green] {escape(execution_id)}")
    except TaskConfigurationError as e:
        _report(e)
        raise typer.Exit(code=EXIT_CONFIGURATION) from e
    except TaskInterruptedError as e:
        _report(e)
        raise typer.Exit(code=EXIT_INTERRUPTED) from e
    except TaskError as e:
        _report(e)
        raise typer.Exit(code=EXIT_FAILURE) from e
    finally:
        manager.cleanup_all()
