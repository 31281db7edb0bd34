"""Project configuration models loaded from ``helm-tasks.yaml``."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_CONFIG_FILE = Path("helm-tasks.yaml")

GENERATED_CHARTS_DIR = Path("generated-sources") / "helm" / "charts"

ENV_PREFIX = "HELM_TASKS_"

HelmDriver = Literal["secret", "configmap", "memory", "sql"]

# (section, field, variable suffix)
ENV_OVERRIDES = (
    ("cluster", "kubeconfig", "KUBECONFIG"),
    ("cluster", "context", "CONTEXT"),
    ("cluster", "namespace", "NAMESPACE"),
    ("helm", "binary_path", "HELM_BINARY"),
    ("helm", "driver", "DRIVER"),
    ("project", "build_directory", "BUILD_DIRECTORY"),
)


class ConfigError(ValueError):
    """Raised when a configuration document cannot be read or validated."""


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ProjectConfig(_ConfigModel):
    """Build project coordinates used to derive default chart locations."""

    build_directory: Path = Path("target")
    artifact_id: str = Field(default_factory=lambda: Path.cwd().name)

    @property
    def generated_charts_directory(self) -> Path:
        """Directory chart generators write into."""
        return self.build_directory / GENERATED_CHARTS_DIR

    @property
    def default_chart_directory(self) -> Path:
        """Chart directory used when a task names no chart."""
        return self.generated_charts_directory / self.artifact_id


class ClusterConfig(_ConfigModel):
    """Kubernetes cluster selection."""

    kubeconfig: str | None = None
    context: str | None = None
    namespace: str | None = None

    @field_validator("kubeconfig")
    @classmethod
    def expand_kubeconfig(cls, v: str | None) -> str | None:
        """Expand ``~`` in the kubeconfig path."""
        return os.path.expanduser(v) if v else v


class HelmConfig(_ConfigModel):
    """Helm binary and release storage settings."""

    binary_path: str | None = None
    driver: HelmDriver = "secret"


class HelmTasksConfig(_ConfigModel):
    """Complete configuration document.

    ``tasks`` maps an execution id to its raw field values; the task
    registry validates each entry against the model of its task kind.
    """

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    cluster: ClusterConfig = ClusterConfig()
    helm: HelmConfig = HelmConfig()
    plugins: dict[str, dict[str, Any]] = Field(default_factory=dict)
    tasks: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @field_validator("plugins", "tasks", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        """Treat an empty YAML section as an empty mapping."""
        return {} if v is None else v

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> HelmTasksConfig:
        """Create configuration with environment variable overrides.

        Environment variables take precedence over base_config values.

        Supported environment variables:
            HELM_TASKS_KUBECONFIG: Kubeconfig path
            HELM_TASKS_CONTEXT: Kubeconfig context
            HELM_TASKS_NAMESPACE: Default namespace
            HELM_TASKS_HELM_BINARY: Path to the helm binary
            HELM_TASKS_DRIVER: Helm storage driver
            HELM_TASKS_BUILD_DIRECTORY: Project build directory
        """
        config_dict = dict(base_config) if base_config else {}
        project = dict(config_dict.get("project") or {})
        cluster = dict(config_dict.get("cluster") or {})
        helm = dict(config_dict.get("helm") or {})

        for section, field, variable in ENV_OVERRIDES:
            if value := os.environ.get(f"{ENV_PREFIX}{variable}"):
                target = {"project": project, "cluster": cluster, "helm": helm}[section]
                target.pop(to_camel(field), None)
                target[field] = value

        config_dict.update(project=project, cluster=cluster, helm=helm)
        return cls.model_validate(config_dict)

    def to_yaml(self) -> str:
        """Render the document with a comment header, camelCase keys."""
        data = self.model_dump(mode="json", by_alias=True)
        header = (
            "# helm-tasks configuration\n"
            "# Each entry under 'tasks' is an execution id; 'task' names the\n"
            "# task kind and defaults to the id itself.\n\n"
        )
        return header + yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


def starter_config(artifact_id: str | None = None) -> HelmTasksConfig:
    """A document with one execution per commonly used task."""
    project = ProjectConfig(artifact_id=artifact_id) if artifact_id else ProjectConfig()
    release = project.artifact_id
    return HelmTasksConfig(
        project=project,
        tasks={
            "install": {"releaseName": release, "lenient": True},
            "upgrade": {"releaseName": release},
            "status": {"releaseName": release, "version": 0, "listeners": ["log"]},
            "test": {"releaseName": release, "listeners": ["log"]},
            "package": {"chartContentsUri": str(project.default_chart_directory)},
        },
    )


def load_raw_config(path: Path | None = None) -> dict[str, Any]:
    """Load the configuration document without validation.

    Returns an empty dict when the file does not exist.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    config_path = path or DEFAULT_CONFIG_FILE
    if not config_path.exists():
        return {}
    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid configuration in {config_path}: expected a mapping")
    return data


def load_config(path: Path | None = None) -> HelmTasksConfig | None:
    """Load and validate the configuration document.

    Args:
        path: Configuration file. Defaults to ``helm-tasks.yaml`` in the
            working directory.

    Returns:
        The validated configuration, or None when the file does not exist.

    Raises:
        ConfigError: If the file is malformed or fails validation.
    """
    config_path = path or DEFAULT_CONFIG_FILE
    if not config_path.exists():
        return None
    return build_config(load_raw_config(config_path), source=str(config_path))


def build_config(
    raw: dict[str, Any] | None = None,
    *,
    source: str = "environment",
) -> HelmTasksConfig:
    """Validate a raw document with environment overrides applied.

    Raises:
        ConfigError: If the merged document fails validation.
    """
    try:
        return HelmTasksConfig.from_env(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {source}: {e}") from e
