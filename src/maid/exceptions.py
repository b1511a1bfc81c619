from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from maid._internal.tasks import DischargeFailure, Task


class MaidError(Exception):
    """Represent a base class for all maid-specific failures.

    Catch this type when you want to handle any maid error path without
    matching each concrete exception class individually.
    """


class MaidInvalidTaskError(MaidError):
    """Signal a value that cannot be registered as a cleanup task.

    Raised by ``Maid.give_task``, ``Maid.add`` and named assignment
    (``maid[name] = task``) when the value is ``None`` or matches none of the
    supported task kinds. The value is not registered.

    Typical fixes include passing a zero-argument callable, an object with a
    ``disconnect()`` or ``destroy()`` method, a coroutine/generator/future, or
    another ``Maid``. Callables that require arguments can be wrapped with
    ``functools.partial``.
    """

    def __init__(self, task: Any) -> None:
        self.task = task
        super().__init__(
            f"Cannot register {task!r} as a cleanup task: expected a zero-argument "
            "callable, an object with disconnect() or destroy(), a cooperative unit "
            "(generator, coroutine, future) or a Maid",
        )


class MaidInvalidBindingError(MaidError):
    """Signal a binding target without a usable termination signal.

    Raised by ``Maid.bind_to_instance`` when the instance does not expose a
    ``terminated`` attribute whose ``connect(callback)`` returns a
    disconnectable subscription.

    Typical fix is binding to an object implementing the lifecycle contract,
    for example ``maid.signals.Lifecycle``.
    """

    def __init__(self, instance: Any) -> None:
        self.instance = instance
        super().__init__(
            f"Cannot bind to {instance!r}: it has no 'terminated' signal with connect()",
        )


class MaidAsyncTaskInSyncContextError(MaidError):
    """Signal an async-only discharge requested by a synchronous drain.

    Reported as a discharge failure by ``Maid.do_cleaning`` when a task needs
    to be awaited (an async generator, or a callable that returned an
    awaitable) and no event loop is running in the current thread.

    Typical fix is draining with ``await maid.ado_cleaning()`` or
    ``async with Maid() as maid: ...``.
    """

    def __init__(self, task: Task) -> None:
        self.task = task
        super().__init__(
            f"Task {task.value!r} requires asynchronous cleanup but no event loop is "
            "running; use 'await maid.ado_cleaning()' instead",
        )


class MaidDisposalError(MaidError):
    """Signal that one or more tasks failed while being discharged.

    Raised at the end of ``Maid.do_cleaning``/``Maid.ado_cleaning`` (and by
    registration calls on an already cleaned maid) after every other task was
    still discharged. The maid is cleaned regardless.

    ``failures`` holds one ``DischargeFailure`` per failed task in discharge
    order; ``errors`` holds the underlying exceptions.
    """

    def __init__(self, failures: tuple[DischargeFailure, ...]) -> None:
        self.failures = failures
        details = "; ".join(
            f"{failure.task.kind.value} {failure.task.value!r}: {failure.error!r}"
            for failure in failures
        )
        super().__init__(f"{len(failures)} task(s) failed during cleanup: {details}")

    @property
    def errors(self) -> tuple[BaseException, ...]:
        return tuple(failure.error for failure in self.failures)
