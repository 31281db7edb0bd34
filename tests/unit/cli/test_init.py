"""Tests for the init command."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from helm_release_tasks.cli.main import app
from helm_release_tasks.core.config.models import load_config


class TestInitCommand:
    """Test init command."""

    @pytest.mark.unit
    def test_writes_starter_config(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "helm-tasks.yaml"

        result = cli_runner.invoke(app, ["init", "-c", str(config_file), "-a", "shop-api"])

        assert result.exit_code == 0
        assert "initialized successfully" in result.stdout
        config = load_config(config_file)
        assert config is not None
        assert config.project.artifact_id == "shop-api"
        assert config.tasks["upgrade"] == {"releaseName": "shop-api"}

    @pytest.mark.unit
    def test_creates_parent_directories(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "deploy" / "helm-tasks.yaml"

        result = cli_runner.invoke(app, ["init", "--config", str(config_file)])

        assert result.exit_code == 0
        assert config_file.exists()

    @pytest.mark.unit
    def test_refuses_to_overwrite(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "helm-tasks.yaml"
        config_file.write_text("tasks: {}\n")

        result = cli_runner.invoke(app, ["init", "-c", str(config_file)])

        assert result.exit_code == 1
        assert "already exists" in result.stdout
        assert config_file.read_text() == "tasks: {}\n"

    @pytest.mark.unit
    def test_force_overwrites(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "helm-tasks.yaml"
        config_file.write_text("tasks: {}\n")

        result = cli_runner.invoke(app, ["init", "-c", str(config_file), "-a", "my-app", "--force"])

        assert result.exit_code == 0
        assert "install" in yaml.safe_load(config_file.read_text())["tasks"]
