"""Release tasks: configuration, operations, execution and events."""

from helm_release_tasks.tasks.context import TaskContext
from helm_release_tasks.tasks.events import Listener, LoggingListener, ReleaseEvent, dispatch
from helm_release_tasks.tasks.exceptions import (
    TaskConfigurationError,
    TaskError,
    TaskExecutionError,
    TaskFailureError,
    TaskInterruptedError,
)
from helm_release_tasks.tasks.executor import TaskExecutor
from helm_release_tasks.tasks.registry import ListenerRegistry, TaskDefinition, TaskRegistry

__all__ = [
    "Listener",
    "ListenerRegistry",
    "LoggingListener",
    "ReleaseEvent",
    "TaskConfigurationError",
    "TaskContext",
    "TaskDefinition",
    "TaskError",
    "TaskExecutionError",
    "TaskExecutor",
    "TaskFailureError",
    "TaskInterruptedError",
    "TaskRegistry",
    "dispatch",
]
