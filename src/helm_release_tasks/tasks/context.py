"""Per-execution task context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from helm_release_tasks.core.config.models import ProjectConfig
    from helm_release_tasks.tasks.events import Listener


@dataclass(frozen=True)
class TaskContext:
    """What an operation knows about the execution it runs in.

    Attributes:
        name: Execution id.
        project: Build project coordinates.
        log: Logger bound to the execution id.
        listeners: Resolved listeners, in dispatch order.
    """

    name: str
    project: ProjectConfig
    log: Any
    listeners: tuple[Listener[Any], ...] = field(default=())
