"""Release events and the listeners they are dispatched to."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

ResponseT = TypeVar("ResponseT")


@dataclass(frozen=True)
class ReleaseEvent(Generic[ResponseT]):
    """One response from the release service, as seen by listeners.

    Attributes:
        source: Execution id of the task that produced the response.
        response: The response value.
        log: Logger bound to the producing task.
    """

    source: str
    response: ResponseT
    log: Any


@runtime_checkable
class Listener(Protocol[ResponseT]):
    """Receives release events."""

    def handle(self, event: ReleaseEvent[ResponseT]) -> None: ...


class LoggingListener:
    """Logs each response at info level through the task's logger."""

    def handle(self, event: ReleaseEvent[Any]) -> None:
        event.log.info(
            "release_event",
            source=event.source,
            response_type=type(event.response).__name__,
            response=str(event.response),
        )


def dispatch(
    listeners: Iterable[Listener[ResponseT]],
    event: ReleaseEvent[ResponseT],
) -> None:
    """Deliver ``event`` to each listener in order.

    A listener that raises stops delivery; the error propagates.
    """
    for listener in listeners:
        listener.handle(event)

