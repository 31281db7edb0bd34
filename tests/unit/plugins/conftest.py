"""Fixtures for CLI tests."""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest


@pytest.fixture(autouse=True)
def configure_logging() -> Generator[MagicMock]:
    """Keep CLI invocations from installing handlers on the root logger."""
    with patch("helm_release_tasks.cli.main.configure_logging") as mock:
        yield mock
