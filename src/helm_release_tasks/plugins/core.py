"""Built-in core plugin providing the release tasks."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from helm_release_tasks.core.plugins.base import Plugin, hookimpl
from helm_release_tasks.tasks import operations
from helm_release_tasks.tasks.config import (
    ContentConfig,
    HistoryConfig,
    InstallConfig,
    ListConfig,
    PackageConfig,
    RollbackConfig,
    StatusConfig,
    TestConfig,
    UninstallConfig,
    UpgradeConfig,
)
from helm_release_tasks.tasks.events import LoggingListener
from helm_release_tasks.tasks.registry import ListenerRegistry, TaskDefinition, TaskRegistry

console = Console()

LOG_LISTENER = "log"

CORE_TASKS = (
    TaskDefinition("install", InstallConfig, operations.install, "Install a chart as a new release"),
    TaskDefinition("upgrade", UpgradeConfig, operations.upgrade, "Upgrade a release to a new chart"),
    TaskDefinition("rollback", RollbackConfig, operations.rollback, "Roll a release back"),
    TaskDefinition("uninstall", UninstallConfig, operations.uninstall, "Uninstall a release"),
    TaskDefinition("status", StatusConfig, operations.status, "Report a release's status"),
    TaskDefinition("content", ContentConfig, operations.content, "Report a release's content"),
    TaskDefinition("history", HistoryConfig, operations.history, "Report a release's history"),
    TaskDefinition("list", ListConfig, operations.list_releases, "Report releases"),
    TaskDefinition("test", TestConfig, operations.test, "Run a release's tests"),
    TaskDefinition("package", PackageConfig, operations.package, "Package a chart archive"),
)


class CorePlugin(Plugin):
    """Core plugin providing the helm release tasks and the log listener."""

    name = "core"
    version = "0.1.0"
    description = "Helm release tasks"

    @hookimpl
    def register_tasks(self, registry: TaskRegistry) -> None:
        """Register the release tasks."""
        for definition in CORE_TASKS:
            registry.register(definition)

    @hookimpl
    def register_listeners(self, registry: ListenerRegistry) -> None:
        """Register the logging listener."""
        registry.register(LOG_LISTENER, LoggingListener)

    @hookimpl
    def register_commands(self, app: typer.Typer) -> None:
        """Register commands describing what plugins contribute."""
        from helm_release_tasks.core.plugins.manager import get_plugin_manager

        @app.command("tasks")
        def list_tasks() -> None:
            """List the available task kinds."""
            registry = get_plugin_manager().build_task_registry()
            table = Table(title="Task Kinds")
            table.add_column("Kind", style="cyan", no_wrap=True)
            table.add_column("Configuration", style="green")
            table.add_column("Description")
            for definition in registry:
                table.add_row(
                    definition.kind,
                    definition.config_model.__name__,
                    definition.description,
                )
            console.print(table)

        @app.command("listeners")
        def list_listeners() -> None:
            """List the named listeners."""
            registry = get_plugin_manager().build_listener_registry()
            table = Table(title="Listeners")
            table.add_column("Name", style="cyan", no_wrap=True)
            for name in registry.names():
                table.add_row(name)
            console.print(table)
            console.print("Listeners may also be given as [bold]package.module:attribute[/bold].")

        @app.command("plugins")
        def list_plugins() -> None:
            """List the loaded plugins."""
            table = Table(title="Installed Plugins")
            table.add_column("Name", style="cyan")
            table.add_column("Version", style="green")
            table.add_column("Description")
            for info in get_plugin_manager().list_plugins():
                table.add_row(info["name"], info["version"], info["description"])
            console.print(table)
