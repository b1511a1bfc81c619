from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Any, TypeAlias

from maid._internal.type_checks import (
    has_capability,
    is_cooperative_unit,
    is_maid,
    is_zero_argument_callable,
)
from maid.exceptions import MaidAsyncTaskInSyncContextError, MaidInvalidTaskError
from maid.types import TaskKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Task:
    """A classified cleanup obligation.

    The kind is decided once at registration time, discharge never inspects
    the value's shape again.
    """

    kind: TaskKind
    value: Any


@dataclass(frozen=True, slots=True)
class DischargeFailure:
    """One task that raised while being discharged."""

    key: Hashable
    task: Task
    error: Exception


@dataclass(frozen=True, slots=True)
class TaskId:
    """Key generated for a task registered without a name.

    Only a registry creates these, so generated keys never collide with
    caller-chosen names.
    """

    value: int

    def __repr__(self) -> str:
        return f"TaskId({self.value})"


AwaitableScheduler: TypeAlias = Callable[[Task, Awaitable[Any]], None]


def classify(value: Any) -> Task:
    """Classify a value into exactly one task kind.

    Checks run in a fixed order and the first match wins:

    1. zero-argument callable,
    2. ``disconnect()`` capability,
    3. ``destroy()`` capability (maids are reported as nested here, their
       ``destroy`` is their drain),
    4. generator, coroutine, async generator or future,
    5. maid-like container.

    Args:
        value: Value passed for registration.

    Raises:
        MaidInvalidTaskError: If the value matches no task kind.

    """
    if is_zero_argument_callable(value):
        return Task(kind=TaskKind.CALLABLE, value=value)
    if has_capability(value, "disconnect"):
        return Task(kind=TaskKind.DISPOSABLE, value=value)
    if has_capability(value, "destroy"):
        kind = TaskKind.NESTED if is_maid(value) else TaskKind.DESTRUCTIBLE
        return Task(kind=kind, value=value)
    if is_cooperative_unit(value):
        return Task(kind=TaskKind.CLOSEABLE, value=value)
    if is_maid(value):
        return Task(kind=TaskKind.NESTED, value=value)
    raise MaidInvalidTaskError(value)


def discharge(task: Task, schedule: AwaitableScheduler) -> None:
    """Run the synchronous disposal action for a task.

    Work that can only finish by being awaited is handed to ``schedule``.
    """
    value = task.value
    if task.kind is TaskKind.CALLABLE:
        result = value()
        if inspect.isawaitable(result):
            schedule(task, result)
    elif task.kind is TaskKind.DISPOSABLE:
        value.disconnect()
    elif task.kind is TaskKind.DESTRUCTIBLE:
        value.destroy()
    elif task.kind is TaskKind.CLOSEABLE:
        if inspect.isasyncgen(value):
            schedule(task, value.aclose())
        else:
            _close_unit(value)
    else:
        value.do_cleaning()


async def adischarge(task: Task) -> None:
    """Run the disposal action for a task, awaiting async work inline."""
    value = task.value
    if task.kind is TaskKind.CALLABLE:
        result = value()
        if inspect.isawaitable(result):
            await result
    elif task.kind is TaskKind.DISPOSABLE:
        value.disconnect()
    elif task.kind is TaskKind.DESTRUCTIBLE:
        value.destroy()
    elif task.kind is TaskKind.CLOSEABLE:
        if inspect.isasyncgen(value):
            await value.aclose()
        else:
            _close_unit(value)
    else:
        await value.ado_cleaning()


def _close_unit(value: Any) -> None:
    # close() and cancel() are both no-ops on finished units.
    if inspect.isgenerator(value) or inspect.iscoroutine(value):
        value.close()
    else:
        value.cancel()


class BackgroundCleanups:
    """Schedule async cleanups requested by synchronous drains.

    Scheduled futures are referenced until they finish so that the event loop
    does not garbage collect them halfway.
    """

    __slots__ = ("_pending",)

    def __init__(self) -> None:
        self._pending: set[asyncio.Future[Any]] = set()

    def __len__(self) -> int:
        return len(self._pending)

    def schedule(self, task: Task, awaitable: Awaitable[Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            close = getattr(awaitable, "close", None)
            if callable(close):
                close()
            raise MaidAsyncTaskInSyncContextError(task) from None

        future = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(future)
        future.add_done_callback(functools.partial(self._on_done, task))

    def _on_done(self, task: Task, future: asyncio.Future[Any]) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning(
                "Background cleanup of %s task %r failed",
                task.kind.value,
                task.value,
                exc_info=error,
            )


__all__ = [
    "AwaitableScheduler",
    "BackgroundCleanups",
    "DischargeFailure",
    "Task",
    "adischarge",
    "classify",
    "discharge",
]
