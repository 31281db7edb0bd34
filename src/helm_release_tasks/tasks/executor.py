"""Task executor: the contract every task execution follows.

1. A skipped task returns without connecting.
2. A reporting task without listeners returns without connecting.
3. The operation runs with a lazily opened release connection.
4. Failures are normalized to ``TaskError`` subclasses.
5. The connection is closed on every path. A close failure is attached to
   the primary error, or raised on its own when there is none.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from helm_release_tasks.integrations.helm.connection import (
    LazyReleaseConnection,
    ReleaseServiceFactory,
)
from helm_release_tasks.tasks.config import ListeningTaskConfig, TaskConfig
from helm_release_tasks.tasks.context import TaskContext
from helm_release_tasks.tasks.exceptions import (
    TaskConfigurationError,
    TaskError,
    TaskExecutionError,
    TaskInterruptedError,
)

if TYPE_CHECKING:
    from helm_release_tasks.core.config.models import HelmTasksConfig
    from helm_release_tasks.integrations.helm.connection import ConnectionFactory
    from helm_release_tasks.tasks.registry import ListenerRegistry, TaskDefinition, TaskRegistry

logger = structlog.get_logger()


class TaskExecutor:
    """Runs configured task executions.

    Example:
        ```python
        executor = TaskExecutor(tasks, listeners, config)
        executor.execute("install")
        ```
    """

    def __init__(
        self,
        tasks: TaskRegistry,
        listeners: ListenerRegistry,
        config: HelmTasksConfig,
        connection_factory: ConnectionFactory | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            tasks: Registered task kinds.
            listeners: Registered listeners.
            config: The loaded configuration document.
            connection_factory: Opens release managers. Defaults to one
                bound to the configured cluster and helm settings.
        """
        self._tasks = tasks
        self._listeners = listeners
        self._config = config
        self._factory = connection_factory or ReleaseServiceFactory(config.cluster, config.helm)

    def execution_fields(self, execution_id: str) -> dict[str, Any]:
        """Raw fields of an execution.

        A task kind with no entry of its own runs with default fields.

        Raises:
            TaskConfigurationError: If the id is neither configured nor a kind.
        """
        if execution_id in self._config.tasks:
            return dict(self._config.tasks[execution_id])
        if execution_id in self._tasks:
            return {}
        raise TaskConfigurationError(
            f"Unknown task execution: {execution_id}",
            errors={"tasks": f"no execution named {execution_id!r} is configured"},
            task=execution_id,
        )

    def execute(self, execution_id: str, overrides: dict[str, Any] | None = None) -> None:
        """Validate and run one configured execution.

        Args:
            execution_id: Key under ``tasks`` in the configuration, or a task kind.
            overrides: Field values replacing the configured ones.

        Raises:
            TaskError: If configuration is invalid or the task fails.
        """
        fields = {**self.execution_fields(execution_id), **(overrides or {})}
        definition, config = self._tasks.resolve(execution_id, fields)
        self.run(definition, config, execution_id)

    def run(self, definition: TaskDefinition, config: TaskConfig, name: str) -> None:
        """Run an operation under the execution contract."""
        log = logger.bind(task=name, kind=definition.kind)
        if config.skip:
            log.debug("task_skipped")
            return

        listeners: tuple[Any, ...] = ()
        if isinstance(config, ListeningTaskConfig):
            if not config.listeners:
                log.debug("task_without_listeners_skipped")
                return
            try:
                listeners = self._listeners.resolve_all(config.listeners)
            except TaskError as e:
                e.task = e.task or name
                raise

        context = TaskContext(
            name=name,
            project=self._config.project,
            log=log,
            listeners=listeners,
        )
        connection = LazyReleaseConnection(self._factory)

        log.info("task_started")
        try:
            definition.operation(config, context, connection)
        except TaskError as e:
            e.task = e.task or name
            _close_after_failure(connection, e)
            log.error("task_failed", error=str(e))
            raise
        except KeyboardInterrupt as e:
            error = TaskInterruptedError("Task interrupted", task=name)
            _close_after_failure(connection, error)
            log.warning("task_interrupted")
            raise error from e
        except Exception as e:
            error = TaskExecutionError(str(e) or type(e).__name__, task=name)
            _close_after_failure(connection, error)
            log.error("task_failed", error=str(error), error_type=type(e).__name__)
            raise error from e

        try:
            connection.close()
        except Exception as e:
            raise TaskExecutionError(
                f"Failed to close release connection: {e}",
                task=name,
            ) from e
        log.info("task_completed")


def _close_after_failure(connection: LazyReleaseConnection, error: TaskError) -> None:
    try:
        connection.close()
    except Exception as close_error:
        error.add_suppressed(close_error)
