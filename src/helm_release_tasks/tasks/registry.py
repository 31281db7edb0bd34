"""Registries of task kinds and listeners contributed by plugins."""

from __future__ import annotations

import importlib
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from helm_release_tasks.tasks.config import TaskConfig, parse_task_config
from helm_release_tasks.tasks.events import Listener
from helm_release_tasks.tasks.exceptions import TaskConfigurationError

if TYPE_CHECKING:
    from helm_release_tasks.integrations.helm.release_manager import ReleaseManager
    from helm_release_tasks.tasks.context import TaskContext

logger = structlog.get_logger()

TASK_KIND_KEY = "task"

Connect = Callable[[], "ReleaseManager"]
Operation = Callable[[Any, "TaskContext", Connect], None]
ListenerFactory = Callable[[], Listener[Any]]


@dataclass(frozen=True)
class TaskDefinition:
    """A task kind: its configuration model and the operation it runs."""

    kind: str
    config_model: type[TaskConfig]
    operation: Operation
    description: str = ""


class TaskRegistry:
    """Task kinds by name."""

    def __init__(self) -> None:
        self._definitions: dict[str, TaskDefinition] = {}

    def register(self, definition: TaskDefinition) -> None:
        """Register a task kind.

        Raises:
            ValueError: If the kind is already registered.
        """
        if definition.kind in self._definitions:
            raise ValueError(f"Task kind already registered: {definition.kind}")
        self._definitions[definition.kind] = definition
        logger.debug("task_registered", kind=definition.kind)

    def get(self, kind: str) -> TaskDefinition:
        """Look up a task kind.

        Raises:
            TaskConfigurationError: If the kind is unknown.
        """
        try:
            return self._definitions[kind]
        except KeyError:
            raise TaskConfigurationError(
                f"Unknown task kind: {kind}",
                errors={TASK_KIND_KEY: f"must be one of: {', '.join(sorted(self._definitions))}"},
            ) from None

    def resolve(self, execution_id: str, fields: dict[str, Any]) -> tuple[TaskDefinition, TaskConfig]:
        """Validate an execution's fields against its task kind.

        The kind is read from the ``task`` field and defaults to the
        execution id.

        Raises:
            TaskConfigurationError: If the kind is unknown or a field is invalid.
        """
        data = dict(fields)
        kind = data.pop(TASK_KIND_KEY, execution_id)
        try:
            definition = self.get(kind)
        except TaskConfigurationError as e:
            e.task = execution_id
            raise
        config = parse_task_config(definition.config_model, data, task=execution_id)
        return definition, config

    def __contains__(self, kind: object) -> bool:
        return kind in self._definitions

    def __iter__(self) -> Iterator[TaskDefinition]:
        return iter(sorted(self._definitions.values(), key=lambda d: d.kind))

    def __len__(self) -> int:
        return len(self._definitions)


class ListenerRegistry:
    """Listener factories by name, plus import-path resolution."""

    def __init__(self) -> None:
        self._factories: dict[str, ListenerFactory] = {}

    def register(self, name: str, factory: ListenerFactory) -> None:
        """Register a listener factory.

        Raises:
            ValueError: If the name is taken or contains ``:``.
        """
        if ":" in name:
            raise ValueError(f"Listener name must not contain ':': {name}")
        if name in self._factories:
            raise ValueError(f"Listener already registered: {name}")
        self._factories[name] = factory

    def names(self) -> list[str]:
        """Registered listener names, sorted."""
        return sorted(self._factories)

    def resolve(self, reference: str) -> Listener[Any]:
        """Turn a listener reference into a listener instance.

        Args:
            reference: A registered name, or ``package.module:attribute``
                naming a listener class (instantiated without arguments)
                or instance.

        Raises:
            TaskConfigurationError: If the reference cannot be resolved.
        """
        if reference in self._factories:
            return self._factories[reference]()
        if ":" not in reference:
            raise TaskConfigurationError(
                f"Unknown listener: {reference}",
                errors={"listeners": f"unknown listener {reference!r}"},
            )

        module_name, _, attribute = reference.partition(":")
        try:
            target = importlib.import_module(module_name)
            for part in attribute.split("."):
                target = getattr(target, part)
        except (ImportError, AttributeError) as e:
            raise TaskConfigurationError(
                f"Cannot import listener: {reference}",
                errors={"listeners": str(e)},
            ) from e

        listener = target() if isinstance(target, type) else target
        if not isinstance(listener, Listener):
            raise TaskConfigurationError(
                f"Not a listener: {reference}",
                errors={"listeners": f"{reference!r} has no handle(event) method"},
            )
        return listener

    def resolve_all(self, references: tuple[str, ...] | list[str]) -> tuple[Listener[Any], ...]:
        """Resolve several references, keeping their order."""
        return tuple(self.resolve(reference) for reference in references)
