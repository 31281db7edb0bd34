"""Unit tests for core config models."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml
from pydantic import ValidationError

from helm_release_tasks.core.config.models import (
    ClusterConfig,
    ConfigError,
    HelmConfig,
    HelmTasksConfig,
    ProjectConfig,
    build_config,
    load_config,
    load_raw_config,
    starter_config,
)


@pytest.mark.unit
class TestProjectConfig:
    """Tests for ProjectConfig model."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """The artifact id defaults to the working directory name."""
        workdir = tmp_path / "shop-api"
        workdir.mkdir()
        monkeypatch.chdir(workdir)

        config = ProjectConfig()

        assert config.build_directory == Path("target")
        assert config.artifact_id == "shop-api"

    def test_default_chart_directory(self) -> None:
        config = ProjectConfig(build_directory=Path("build"), artifact_id="my-app")
        assert config.default_chart_directory == Path(
            "build/generated-sources/helm/charts/my-app"
        )

    def test_accepts_camel_case(self) -> None:
        config = ProjectConfig.model_validate({"buildDirectory": "out", "artifactId": "x"})
        assert config.build_directory == Path("out")
        assert config.artifact_id == "x"


@pytest.mark.unit
class TestClusterAndHelmConfig:
    """Tests for ClusterConfig and HelmConfig."""

    def test_kubeconfig_home_is_expanded(self) -> None:
        config = ClusterConfig(kubeconfig="~/.kube/config")
        assert config.kubeconfig == str(Path.home() / ".kube" / "config")

    def test_driver_default(self) -> None:
        assert HelmConfig().driver == "secret"

    def test_rejects_unknown_driver(self) -> None:
        with pytest.raises(ValidationError):
            HelmConfig(driver="etcd")

    def test_rejects_unknown_field(self) -> None:
        with pytest.raises(ValidationError):
            ClusterConfig.model_validate({"server": "https://k8s"})


@pytest.mark.unit
class TestHelmTasksConfig:
    """Tests for HelmTasksConfig model."""

    def test_empty_sections_become_empty_mappings(self) -> None:
        config = HelmTasksConfig.model_validate({"tasks": None, "plugins": None})
        assert config.tasks == {}
        assert config.plugins == {}

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment variables take precedence over the document."""
        monkeypatch.setenv("HELM_TASKS_NAMESPACE", "from-env")
        monkeypatch.setenv("HELM_TASKS_DRIVER", "memory")
        monkeypatch.setenv("HELM_TASKS_HELM_BINARY", "/opt/helm")
        monkeypatch.setenv("HELM_TASKS_BUILD_DIRECTORY", "build")

        config = HelmTasksConfig.from_env(
            {
                "cluster": {"namespace": "from-file"},
                "helm": {"binaryPath": "/usr/bin/helm"},
                "project": {"buildDirectory": "target", "artifactId": "my-app"},
            }
        )

        assert config.cluster.namespace == "from-env"
        assert config.helm.driver == "memory"
        assert config.helm.binary_path == "/opt/helm"
        assert config.project.build_directory == Path("build")
        assert config.project.artifact_id == "my-app"

    def test_from_env_without_document(self) -> None:
        config = HelmTasksConfig.from_env()
        assert config.tasks == {}

    def test_to_yaml_round_trips(self) -> None:
        config = starter_config("my-app")

        text = config.to_yaml()

        assert text.startswith("# helm-tasks configuration")
        data = yaml.safe_load(text)
        assert data["project"]["artifactId"] == "my-app"
        assert HelmTasksConfig.model_validate(data).tasks == config.tasks

    def test_starter_config_tasks(self) -> None:
        config = starter_config("my-app")
        assert config.tasks["install"] == {"releaseName": "my-app", "lenient": True}
        assert config.tasks["status"]["listeners"] == ["log"]


@pytest.mark.unit
class TestLoadConfig:
    """Tests for load_config() function."""

    def test_returns_none_when_file_absent(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "nonexistent.yaml") is None

    def test_parses_valid_document(self, tmp_path: Path) -> None:
        config_file = tmp_path / "helm-tasks.yaml"
        config_file.write_text(
            "project:\n  artifactId: my-app\n"
            "tasks:\n  install:\n    releaseName: my-app\n"
        )

        config = load_config(config_file)

        assert isinstance(config, HelmTasksConfig)
        assert config.tasks["install"]["releaseName"] == "my-app"

    def test_empty_document_is_default(self, tmp_path: Path) -> None:
        config_file = tmp_path / "helm-tasks.yaml"
        config_file.write_text("")
        assert isinstance(load_config(config_file), HelmTasksConfig)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "helm-tasks.yaml"
        config_file.write_text("key: [\nunclosed bracket")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(config_file)

    def test_invalid_document(self, tmp_path: Path) -> None:
        config_file = tmp_path / "helm-tasks.yaml"
        config_file.write_text("helm:\n  driver: etcd\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(config_file)

    def test_config_error_is_value_error(self) -> None:
        assert issubclass(ConfigError, ValueError)

    def test_uses_default_path_when_none_given(self) -> None:
        fake_path = MagicMock(spec=Path)
        fake_path.exists.return_value = False
        with patch("helm_release_tasks.core.config.models.DEFAULT_CONFIG_FILE", fake_path):
            assert load_config() is None
        fake_path.exists.assert_called_once()


@pytest.mark.unit
class TestBuildConfig:
    """Tests for build_config() function."""

    def test_defaults_without_document(self) -> None:
        assert build_config().helm.driver == "secret"

    def test_invalid_environment_raises_config_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("HELM_TASKS_DRIVER", "etcd")
        with pytest.raises(ConfigError, match="Invalid configuration in environment"):
            build_config()

    def test_names_source_in_error(self) -> None:
        with pytest.raises(ConfigError, match="helm-tasks.yaml"):
            build_config({"helm": {"driver": "etcd"}}, source="helm-tasks.yaml")


@pytest.mark.unit
class TestLoadRawConfig:
    """Tests for load_raw_config() function."""

    def test_returns_empty_dict_when_file_absent(self, tmp_path: Path) -> None:
        assert load_raw_config(tmp_path / "nonexistent.yaml") == {}

    def test_rejects_non_mapping(self, tmp_path: Path) -> None:
        config_file = tmp_path / "helm-tasks.yaml"
        config_file.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="expected a mapping"):
            load_raw_config(config_file)
