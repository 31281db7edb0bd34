"""Shared pytest fixtures for helm_release_tasks tests."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from helm_release_tasks.charts.models import Chart, ChartFile, ChartMetadata
from helm_release_tasks.core.config.models import ProjectConfig
from helm_release_tasks.tasks.context import TaskContext


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables for each test."""
    for key in list(os.environ.keys()):
        if key.startswith("HELM_TASKS_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def isolated_log_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Keep the persistent log file out of the user's home directory."""
    log_file = tmp_path / "logs" / "helm-tasks.log"
    monkeypatch.setattr("helm_release_tasks.logging.config.LOG_FILE", log_file)
    return log_file


@pytest.fixture
def chart() -> Chart:
    """A small chart with a template, a plain file and one sub-chart."""
    return Chart(
        metadata=ChartMetadata(name="my-app", version="1.2.3", app_version="2.0"),
        values="replicas: 1\n",
        templates=[ChartFile(path="templates/deployment.yaml", data=b"kind: Deployment\n")],
        files=[ChartFile(path="README.md", data=b"# my-app\n")],
        dependencies=[
            Chart(
                metadata=ChartMetadata(name="redis", version="0.1.0"),
                templates=[ChartFile(path="templates/service.yaml", data=b"kind: Service\n")],
            )
        ],
    )


@pytest.fixture
def chart_dir(tmp_path: Path) -> Path:
    """A chart directory on disk."""
    root = tmp_path / "charts" / "my-app"
    (root / "templates").mkdir(parents=True)
    (root / "Chart.yaml").write_text("apiVersion: v2\nname: my-app\nversion: 1.2.3\n")
    (root / "values.yaml").write_text("replicas: 1\n")
    (root / "templates" / "deployment.yaml").write_text("kind: Deployment\n")
    return root


@pytest.fixture
def project(tmp_path: Path) -> ProjectConfig:
    """Project coordinates rooted in a temporary build directory."""
    return ProjectConfig(build_directory=tmp_path / "target", artifact_id="my-app")


@pytest.fixture
def listener() -> MagicMock:
    """A recording listener."""
    return MagicMock(spec=["handle"])


@pytest.fixture
def task_context(project: ProjectConfig, listener: MagicMock) -> TaskContext:
    """A task context with one recording listener."""
    return TaskContext(name="exec", project=project, log=MagicMock(), listeners=(listener,))


@pytest.fixture
def manager() -> MagicMock:
    """A mocked release manager."""
    mock: Any = MagicMock()
    mock.default_namespace = "default"
    return mock
