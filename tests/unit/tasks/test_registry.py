"""Unit tests for the task and listener registries."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from helm_release_tasks.tasks.config import InstallConfig, UpgradeConfig
from helm_release_tasks.tasks.events import LoggingListener, ReleaseEvent
from helm_release_tasks.tasks.exceptions import TaskConfigurationError
from helm_release_tasks.tasks.registry import ListenerRegistry, TaskDefinition, TaskRegistry


class RecordingListener:
    """Importable listener class for reference resolution."""

    def __init__(self) -> None:
        self.events: list[ReleaseEvent[object]] = []

    def handle(self, event: ReleaseEvent[object]) -> None:
        self.events.append(event)


SHARED_LISTENER = RecordingListener()
NOT_A_LISTENER = object()

MODULE = __name__


@pytest.fixture
def tasks() -> TaskRegistry:
    registry = TaskRegistry()
    registry.register(TaskDefinition("install", InstallConfig, MagicMock(), "Install"))
    registry.register(TaskDefinition("upgrade", UpgradeConfig, MagicMock(), "Upgrade"))
    return registry


@pytest.mark.unit
class TestTaskRegistry:
    """Tests for TaskRegistry."""

    def test_register_and_get(self, tasks: TaskRegistry) -> None:
        assert tasks.get("install").config_model is InstallConfig
        assert "upgrade" in tasks
        assert len(tasks) == 2

    def test_iterates_sorted_by_kind(self) -> None:
        registry = TaskRegistry()
        registry.register(TaskDefinition("upgrade", UpgradeConfig, MagicMock()))
        registry.register(TaskDefinition("install", InstallConfig, MagicMock()))
        assert [d.kind for d in registry] == ["install", "upgrade"]

    def test_rejects_duplicate_kind(self, tasks: TaskRegistry) -> None:
        with pytest.raises(ValueError, match="already registered"):
            tasks.register(TaskDefinition("install", InstallConfig, MagicMock()))

    def test_unknown_kind(self, tasks: TaskRegistry) -> None:
        with pytest.raises(TaskConfigurationError, match="Unknown task kind: deploy") as exc_info:
            tasks.get("deploy")
        assert exc_info.value.errors == {"task": "must be one of: install, upgrade"}

    def test_resolve_uses_execution_id_as_kind(self, tasks: TaskRegistry) -> None:
        definition, config = tasks.resolve("upgrade", {"releaseName": "my-app"})

        assert definition.kind == "upgrade"
        assert isinstance(config, UpgradeConfig)
        assert config.release_name == "my-app"

    def test_resolve_reads_task_field(self, tasks: TaskRegistry) -> None:
        fields = {"task": "upgrade", "releaseName": "my-app"}

        definition, _ = tasks.resolve("upgrade-prod", fields)

        assert definition.kind == "upgrade"
        assert fields == {"task": "upgrade", "releaseName": "my-app"}

    def test_resolve_unknown_kind_names_execution(self, tasks: TaskRegistry) -> None:
        with pytest.raises(TaskConfigurationError) as exc_info:
            tasks.resolve("deploy-prod", {"task": "deploy"})
        assert exc_info.value.task == "deploy-prod"

    def test_resolve_invalid_fields(self, tasks: TaskRegistry) -> None:
        with pytest.raises(TaskConfigurationError) as exc_info:
            tasks.resolve("upgrade-prod", {"task": "upgrade"})
        assert exc_info.value.task == "upgrade-prod"
        assert "releaseName" in exc_info.value.errors


@pytest.mark.unit
class TestListenerRegistry:
    """Tests for ListenerRegistry."""

    def test_resolves_registered_name(self) -> None:
        registry = ListenerRegistry()
        registry.register("log", LoggingListener)

        assert isinstance(registry.resolve("log"), LoggingListener)
        assert registry.names() == ["log"]

    def test_rejects_colon_in_name(self) -> None:
        with pytest.raises(ValueError, match="must not contain"):
            ListenerRegistry().register("a:b", LoggingListener)

    def test_rejects_duplicate_name(self) -> None:
        registry = ListenerRegistry()
        registry.register("log", LoggingListener)
        with pytest.raises(ValueError, match="already registered"):
            registry.register("log", LoggingListener)

    def test_unknown_name(self) -> None:
        with pytest.raises(TaskConfigurationError, match="Unknown listener: audit"):
            ListenerRegistry().resolve("audit")

    def test_instantiates_imported_class(self) -> None:
        listener = ListenerRegistry().resolve(f"{MODULE}:RecordingListener")
        assert isinstance(listener, RecordingListener)
        assert listener is not SHARED_LISTENER

    def test_returns_imported_instance(self) -> None:
        assert ListenerRegistry().resolve(f"{MODULE}:SHARED_LISTENER") is SHARED_LISTENER

    def test_follows_dotted_attributes(self) -> None:
        listener = ListenerRegistry().resolve("helm_release_tasks.tasks:events.LoggingListener")
        assert isinstance(listener, LoggingListener)

    @pytest.mark.parametrize(
        "reference",
        ["no_such_module_anywhere:Listener", f"{MODULE}:MissingListener"],
    )
    def test_unimportable_reference(self, reference: str) -> None:
        with pytest.raises(TaskConfigurationError, match="Cannot import listener"):
            ListenerRegistry().resolve(reference)

    def test_rejects_non_listener(self) -> None:
        with pytest.raises(TaskConfigurationError, match="Not a listener"):
            ListenerRegistry().resolve(f"{MODULE}:NOT_A_LISTENER")

    def test_resolve_all_keeps_order(self) -> None:
        registry = ListenerRegistry()
        registry.register("log", LoggingListener)

        listeners = registry.resolve_all(["log", f"{MODULE}:SHARED_LISTENER"])

        assert isinstance(listeners[0], LoggingListener)
        assert listeners[1] is SHARED_LISTENER
