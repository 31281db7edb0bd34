"""Configuration management with Pydantic validation."""

from helm_release_tasks.core.config.models import (
    DEFAULT_CONFIG_FILE,
    ClusterConfig,
    ConfigError,
    HelmConfig,
    HelmTasksConfig,
    ProjectConfig,
    build_config,
    load_config,
    load_raw_config,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ClusterConfig",
    "ConfigError",
    "HelmConfig",
    "HelmTasksConfig",
    "ProjectConfig",
    "build_config",
    "load_config",
    "load_raw_config",
]
