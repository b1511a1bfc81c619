from __future__ import annotations

import asyncio
import concurrent.futures
import functools
from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest

from maid._internal.tasks import BackgroundCleanups, Task, classify, discharge
from maid.container import Maid
from maid.exceptions import MaidAsyncTaskInSyncContextError, MaidInvalidTaskError
from maid.types import TaskKind


class _Subscription:
    def __init__(self) -> None:
        self.disconnected = False

    def disconnect(self) -> None:
        self.disconnected = True


class _Owned:
    def __init__(self) -> None:
        self.destroyed = False

    def destroy(self) -> None:
        self.destroyed = True


class _Both(_Subscription, _Owned):
    def __init__(self) -> None:
        _Subscription.__init__(self)
        _Owned.__init__(self)


class _CallableSubscription(_Subscription):
    def __init__(self) -> None:
        super().__init__()
        self.called = False

    def __call__(self) -> None:
        self.called = True


class _MaidLike:
    """Structural maid without a destroy() method."""

    def __init__(self) -> None:
        self.cleaned = False

    @property
    def is_cleaned(self) -> bool:
        return self.cleaned

    def do_cleaning(self) -> None:
        self.cleaned = True

    async def ado_cleaning(self) -> None:
        self.cleaned = True


def _no_schedule(task: Task, awaitable: Any) -> None:
    raise AssertionError(f"unexpected async cleanup for {task!r}")


def _generator() -> Generator[int, None, None]:
    yield 1
    yield 2


async def _coroutine() -> None:
    await asyncio.sleep(0)


class TestClassify:
    def test_zero_argument_function(self) -> None:
        def cleanup() -> None:
            pass

        assert classify(cleanup).kind is TaskKind.CALLABLE

    def test_lambda_with_defaults_is_zero_argument(self) -> None:
        assert classify(lambda value=1: value).kind is TaskKind.CALLABLE

    def test_partial_with_bound_arguments(self) -> None:
        assert classify(functools.partial(print, "bye")).kind is TaskKind.CALLABLE

    def test_callable_requiring_arguments_is_rejected(self) -> None:
        def cleanup(reason: str) -> None:
            pass

        with pytest.raises(MaidInvalidTaskError):
            classify(cleanup)

    def test_disconnect_capability(self) -> None:
        assert classify(_Subscription()).kind is TaskKind.DISPOSABLE

    def test_destroy_capability(self) -> None:
        assert classify(_Owned()).kind is TaskKind.DESTRUCTIBLE

    def test_disconnect_wins_over_destroy(self) -> None:
        assert classify(_Both()).kind is TaskKind.DISPOSABLE

    def test_callable_wins_over_disconnect(self) -> None:
        assert classify(_CallableSubscription()).kind is TaskKind.CALLABLE

    def test_generator_is_closeable(self) -> None:
        assert classify(_generator()).kind is TaskKind.CLOSEABLE

    def test_coroutine_is_closeable(self) -> None:
        coroutine = _coroutine()
        try:
            assert classify(coroutine).kind is TaskKind.CLOSEABLE
        finally:
            coroutine.close()

    def test_concurrent_future_is_closeable(self) -> None:
        assert classify(concurrent.futures.Future()).kind is TaskKind.CLOSEABLE

    def test_maid_is_nested(self) -> None:
        assert classify(Maid()).kind is TaskKind.NESTED

    def test_structural_maid_is_nested(self) -> None:
        assert classify(_MaidLike()).kind is TaskKind.NESTED

    @pytest.mark.parametrize("value", [42, "text", object(), [], {"a": 1}])
    def test_unsupported_values(self, value: object) -> None:
        with pytest.raises(MaidInvalidTaskError) as exc_info:
            classify(value)

        assert exc_info.value.task is value

    def test_non_callable_disconnect_attribute_is_ignored(self) -> None:
        class Flagged:
            disconnect = True

        with pytest.raises(MaidInvalidTaskError):
            classify(Flagged())

    def test_classification_has_no_side_effects(self) -> None:
        subscription = _Subscription()
        classify(subscription)

        assert not subscription.disconnected


class TestDischarge:
    def test_callable_is_invoked(self) -> None:
        calls: list[str] = []

        discharge(classify(lambda: calls.append("done")), _no_schedule)

        assert calls == ["done"]

    def test_disposable_is_disconnected(self) -> None:
        subscription = _Subscription()

        discharge(classify(subscription), _no_schedule)

        assert subscription.disconnected

    def test_destructible_is_destroyed(self) -> None:
        owned = _Owned()

        discharge(classify(owned), _no_schedule)

        assert owned.destroyed

    def test_both_capabilities_only_disconnects(self) -> None:
        both = _Both()

        discharge(classify(both), _no_schedule)

        assert both.disconnected
        assert not both.destroyed

    def test_generator_is_closed(self) -> None:
        generator = _generator()
        next(generator)

        discharge(classify(generator), _no_schedule)

        with pytest.raises(StopIteration):
            next(generator)

    def test_finished_generator_close_is_a_no_op(self) -> None:
        generator = _generator()
        list(generator)

        discharge(classify(generator), _no_schedule)

    def test_coroutine_is_closed(self) -> None:
        coroutine = _coroutine()

        discharge(classify(coroutine), _no_schedule)

        assert coroutine.cr_frame is None

    def test_future_is_cancelled(self) -> None:
        future: concurrent.futures.Future[int] = concurrent.futures.Future()

        discharge(classify(future), _no_schedule)

        assert future.cancelled()

    def test_finished_future_cancel_is_a_no_op(self) -> None:
        future: concurrent.futures.Future[int] = concurrent.futures.Future()
        future.set_result(1)

        discharge(classify(future), _no_schedule)

        assert future.result() == 1

    def test_nested_maid_is_cleaned(self) -> None:
        nested = _MaidLike()

        discharge(classify(nested), _no_schedule)

        assert nested.cleaned

    def test_async_generator_without_loop_fails(self) -> None:
        async def agen() -> AsyncGenerator[int, None]:
            yield 1

        with pytest.raises(MaidAsyncTaskInSyncContextError):
            discharge(classify(agen()), BackgroundCleanups().schedule)

    def test_async_callable_without_loop_fails(self) -> None:
        async def cleanup() -> None:
            pass

        with pytest.raises(MaidAsyncTaskInSyncContextError) as exc_info:
            discharge(classify(cleanup), BackgroundCleanups().schedule)

        assert exc_info.value.task.value is cleanup

