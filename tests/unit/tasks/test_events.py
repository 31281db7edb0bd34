"""Unit tests for release events and listeners."""

from __future__ import annotations

from unittest.mock import MagicMock, call

import pytest

from helm_release_tasks.integrations.helm.models import Release, ReleaseResponse
from helm_release_tasks.tasks.events import (
    Listener,
    LoggingListener,
    ReleaseEvent,
    dispatch,
)


@pytest.fixture
def event() -> ReleaseEvent[ReleaseResponse]:
    return ReleaseEvent(
        source="install",
        response=ReleaseResponse(Release(name="my-app", namespace="default", version=1)),
        log=MagicMock(),
    )


@pytest.mark.unit
class TestDispatch:
    """Tests for dispatch."""

    def test_delivers_in_order(self, event: ReleaseEvent[ReleaseResponse]) -> None:
        recorder = MagicMock()
        first = MagicMock(spec=["handle"])
        second = MagicMock(spec=["handle"])
        recorder.attach_mock(first.handle, "first")
        recorder.attach_mock(second.handle, "second")

        dispatch([first, second], event)

        assert recorder.mock_calls == [call.first(event), call.second(event)]

    def test_listener_error_stops_delivery(self, event: ReleaseEvent[ReleaseResponse]) -> None:
        failing = MagicMock(spec=["handle"])
        failing.handle.side_effect = RuntimeError("listener broke")
        after = MagicMock(spec=["handle"])

        with pytest.raises(RuntimeError, match="listener broke"):
            dispatch([failing, after], event)

        after.handle.assert_not_called()

    def test_no_listeners(self, event: ReleaseEvent[ReleaseResponse]) -> None:
        dispatch([], event)


@pytest.mark.unit
class TestLoggingListener:
    """Tests for LoggingListener."""

    def test_is_a_listener(self) -> None:
        assert isinstance(LoggingListener(), Listener)

    def test_logs_response(self, event: ReleaseEvent[ReleaseResponse]) -> None:
        LoggingListener().handle(event)

        event.log.info.assert_called_once_with(
            "release_event",
            source="install",
            response_type="ReleaseResponse",
            response=str(event.response),
        )

    def test_objects_without_handle_are_not_listeners(self) -> None:
        assert not isinstance(object(), Listener)
