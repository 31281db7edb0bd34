"""Plugin system for helm_release_tasks."""

from helm_release_tasks.core.plugins.base import Plugin, hookimpl, hookspec
from helm_release_tasks.core.plugins.manager import PluginManager, get_plugin_manager

__all__ = ["Plugin", "PluginManager", "get_plugin_manager", "hookimpl", "hookspec"]
