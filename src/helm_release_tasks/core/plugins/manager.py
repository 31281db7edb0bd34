"""Plugin manager for loading plugins and collecting what they contribute."""

from __future__ import annotations

import functools
import importlib.metadata
from typing import TYPE_CHECKING, Any

import pluggy
import structlog

from helm_release_tasks.core.plugins.base import Plugin, _PluginSpec
from helm_release_tasks.tasks.registry import ListenerRegistry, TaskRegistry

if TYPE_CHECKING:
    import typer

logger = structlog.get_logger()


class PluginManager:
    """Manages plugin discovery, loading, and lifecycle.

    The built-in core plugin is always available; further plugins are
    discovered from the ``helm_release_tasks.plugins`` entry-point group.
    """

    NAMESPACE = "helm_release_tasks.plugins"

    def __init__(self) -> None:
        """Initialize the plugin manager."""
        self._pm = pluggy.PluginManager("helm_release_tasks")
        self._pm.add_hookspecs(_PluginSpec)
        self._plugins: dict[str, Plugin] = {}
        self._initialized = False

    def register(self, plugin: Plugin) -> None:
        """Register a plugin instance under its own name.

        Raises:
            ValueError: If a plugin with that name is already registered.
        """
        if plugin.name in self._plugins:
            raise ValueError(f"Plugin already registered: {plugin.name}")
        self._pm.register(plugin, name=plugin.name)
        self._plugins[plugin.name] = plugin
        logger.debug("plugin_registered", name=plugin.name, version=plugin.version)

    def load_builtin(self) -> None:
        """Register the core plugin if it is not loaded yet."""
        from helm_release_tasks.plugins.core import CorePlugin

        if CorePlugin.name not in self._plugins:
            self.register(CorePlugin())

    def discover_plugins(self) -> list[str]:
        """Discover available plugins from entry points.

        Returns:
            List of discovered plugin names.
        """
        discovered = []
        try:
            for ep in importlib.metadata.entry_points(group=self.NAMESPACE):
                discovered.append(ep.name)
                logger.debug("plugin_discovered", name=ep.name, value=ep.value)
        except Exception as e:
            logger.warning("plugin_discovery_failed", error=str(e))
        return discovered

    def load_plugin(self, name: str) -> bool:
        """Load a plugin by name from entry points.

        Args:
            name: The plugin name to load.

        Returns:
            True if loaded successfully, False otherwise.
        """
        if name in self._plugins:
            logger.debug("plugin_already_loaded", name=name)
            return True

        try:
            for ep in importlib.metadata.entry_points(group=self.NAMESPACE):
                if ep.name == name:
                    plugin_class = ep.load()
                    plugin = plugin_class() if callable(plugin_class) else plugin_class
                    self.register(plugin)
                    logger.info("plugin_loaded", name=name, version=plugin.version)
                    return True

            logger.warning("plugin_not_found", name=name)
            return False
        except Exception as e:
            logger.error("plugin_load_failed", name=name, error=str(e))
            return False

    def load_all(self) -> list[str]:
        """Load the core plugin and every discovered plugin.

        Returns:
            Names of the loaded plugins.
        """
        self.load_builtin()
        for name in self.discover_plugins():
            self.load_plugin(name)
        return list(self._plugins)

    def initialize_all(self, config: dict[str, Any]) -> None:
        """Initialize all loaded plugins with their configuration sections.

        Args:
            config: Plugin name to plugin configuration.
        """
        for name, plugin in self._plugins.items():
            try:
                plugin.initialize(config.get(name, {}))
                logger.debug("plugin_initialized", name=name)
            except Exception as e:
                logger.error("plugin_initialize_failed", name=name, error=str(e))

        self._initialized = True

    def build_task_registry(self) -> TaskRegistry:
        """Collect task kinds from all loaded plugins."""
        registry = TaskRegistry()
        self._pm.hook.register_tasks(registry=registry)
        return registry

    def build_listener_registry(self) -> ListenerRegistry:
        """Collect named listeners from all loaded plugins."""
        registry = ListenerRegistry()
        self._pm.hook.register_listeners(registry=registry)
        return registry

    def register_commands(self, app: typer.Typer) -> None:
        """Register commands from all loaded plugins.

        Args:
            app: The Typer application to register commands with.
        """
        try:
            self._pm.hook.register_commands(app=app)
        except Exception as e:
            logger.error("plugin_commands_failed", error=str(e))

    def cleanup_all(self) -> None:
        """Cleanup all loaded plugins."""
        try:
            self._pm.hook.cleanup()
        except Exception as e:
            logger.error("plugin_cleanup_failed", error=str(e))
        self._initialized = False

    def get_plugin(self, name: str) -> Plugin | None:
        """Get a loaded plugin by name."""
        return self._plugins.get(name)

    def list_plugins(self) -> list[dict[str, Any]]:
        """List all loaded plugins with their info."""
        return [
            {
                "name": p.name,
                "version": p.version,
                "description": p.description,
                "initialized": p.is_initialized,
            }
            for p in self._plugins.values()
        ]


@functools.cache
def get_plugin_manager() -> PluginManager:
    """The process-wide plugin manager, with every plugin loaded."""
    manager = PluginManager()
    manager.load_all()
    return manager
