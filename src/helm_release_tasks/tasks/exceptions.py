"""Task failure hierarchy.

Every failure a task reports is a ``TaskError``. Errors raised while
releasing resources after a primary failure are attached to it as
suppressed errors instead of replacing it.
"""

from __future__ import annotations

from collections.abc import Mapping


class TaskError(Exception):
    """Base exception for task execution.

    Attributes:
        message: Human-readable error message.
        task: Execution id of the failing task (if known).
        suppressed: Secondary errors raised while cleaning up.
    """

    def __init__(self, message: str, task: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.task = task
        self.suppressed: list[BaseException] = []

    def add_suppressed(self, error: BaseException) -> None:
        """Attach a secondary error raised while handling this one."""
        self.suppressed.append(error)
        self.add_note(f"Suppressed: {error!r}")

    def __str__(self) -> str:
        if self.task:
            return f"{self.message} [task/{self.task}]"
        return self.message


class TaskConfigurationError(TaskError):
    """Raised when a task's configuration is invalid.

    Attributes:
        errors: Field name to validation message.
    """

    def __init__(
        self,
        message: str,
        errors: Mapping[str, str] | None = None,
        task: str | None = None,
    ) -> None:
        super().__init__(message, task=task)
        self.errors = dict(errors or {})

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        details = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        return f"{base} ({details})"


class TaskExecutionError(TaskError):
    """Raised when a task fails while running.

    The underlying error, if any, is the ``__cause__``.
    """


class TaskInterruptedError(TaskError):
    """Raised when a task is interrupted before it completes."""


class TaskFailureError(TaskError):
    """Raised when a task ran to completion but reported failure."""
