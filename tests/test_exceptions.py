"""Tests for custom exception hierarchy."""

import pytest

from maid.container import Maid
from maid.exceptions import (
    MaidAsyncTaskInSyncContextError,
    MaidDisposalError,
    MaidError,
    MaidInvalidBindingError,
    MaidInvalidTaskError,
)
from maid.types import TaskKind


class TestMaidInvalidTaskError:
    def test_raises_for_unsupported_value(self, container: Maid) -> None:
        with pytest.raises(MaidInvalidTaskError) as exc_info:
            container.give_task(3.5)

        assert exc_info.value.task == 3.5
        assert "Cannot register 3.5 as a cleanup task" in str(exc_info.value)


class TestMaidInvalidBindingError:
    def test_raises_for_instance_without_signal(self, container: Maid) -> None:
        instance = object()

        with pytest.raises(MaidInvalidBindingError) as exc_info:
            container.bind_to_instance(instance)

        assert exc_info.value.instance is instance
        assert "no 'terminated' signal" in str(exc_info.value)


class TestMaidDisposalError:
    def test_reports_every_failure(self, container: Maid) -> None:
        class BrokenWidget:
            def destroy(self) -> None:
                raise OSError("handle closed")

        def fail() -> None:
            raise ValueError("bad state")

        widget = BrokenWidget()
        container.add(widget, fail)

        with pytest.raises(MaidDisposalError) as exc_info:
            container.do_cleaning()

        error = exc_info.value
        assert [failure.task.kind for failure in error.failures] == [
            TaskKind.DESTRUCTIBLE,
            TaskKind.CALLABLE,
        ]
        assert [type(e) for e in error.errors] == [OSError, ValueError]
        assert "2 task(s) failed during cleanup" in str(error)
        assert error.__cause__ is error.errors[0]


class TestMaidAsyncTaskInSyncContextError:
    def test_message_points_to_async_cleaning(self, container: Maid) -> None:
        async def cleanup() -> None:
            pass

        container.give_task(cleanup)

        with pytest.raises(MaidDisposalError) as exc_info:
            container.do_cleaning()

        error = exc_info.value.errors[0]
        assert isinstance(error, MaidAsyncTaskInSyncContextError)
        assert "ado_cleaning" in str(error)


@pytest.mark.parametrize(
    "error_type",
    [
        MaidAsyncTaskInSyncContextError,
        MaidDisposalError,
        MaidInvalidBindingError,
        MaidInvalidTaskError,
    ],
)
def test_all_errors_derive_from_maid_error(error_type: type[Exception]) -> None:
    assert issubclass(error_type, MaidError)
