from __future__ import annotations

import functools
import logging
import weakref
from collections.abc import Hashable
from contextlib import AbstractAsyncContextManager, AbstractContextManager
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from typing_extensions import Self

from maid._internal.binding import bind_to_instance
from maid._internal.registry import RegistryState, TaskRegistry
from maid._internal.tasks import DischargeFailure, Task, classify
from maid.defaults import DEFAULT_LOCK_MODE
from maid.exceptions import MaidDisposalError, MaidInvalidTaskError
from maid.lock_mode import LockMode
from maid.types import TaskKey

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _clean_on_collect(registry: TaskRegistry) -> None:
    try:
        registry.drain()
    except MaidDisposalError:
        logger.warning("Maid was garbage collected and failed to clean up", exc_info=True)


class Maid:
    """Collect cleanup tasks and discharge each of them exactly once.

    A task is any of: a zero-argument callable, an object with
    ``disconnect()`` (subscriptions), an object with ``destroy()`` (owned
    objects), a generator/coroutine/future (closed or cancelled) or another
    ``Maid`` (cleaned recursively). The kind is decided when the task is
    given, so unsupported values fail immediately.

    ``do_cleaning`` (alias ``destroy``) discharges every task in the order it
    was given and leaves the maid cleaned for good. Tasks given to a cleaned
    maid are discharged before the call returns. A failing task never stops
    the others; failures are reported together as ``MaidDisposalError`` once
    everything was attempted.

    A maid that is garbage collected while still holding tasks cleans itself
    up, logging any failure.
    """

    __slots__ = ("__weakref__", "_finalizer", "_name", "_registry")

    def __init__(
        self,
        *,
        name: str | None = None,
        lock_mode: LockMode = DEFAULT_LOCK_MODE,
    ) -> None:
        """Initialize an empty, active maid.

        Args:
            name: Optional label used in ``repr`` and log messages.
            lock_mode: ``LockMode.THREAD`` to make registration and cleaning
                safe across threads, ``LockMode.NONE`` for single-threaded use.

        """
        self._name = name
        self._registry = TaskRegistry(name=name, lock_mode=lock_mode)
        self._finalizer = weakref.finalize(self, _clean_on_collect, self._registry)

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def state(self) -> RegistryState:
        return self._registry.state

    @property
    def is_cleaned(self) -> bool:
        return self._registry.is_cleaned

    def give_task(self, task: Any) -> TaskKey:
        """Register one task and return the key it is stored under.

        Args:
            task: Value to clean up later.

        Returns:
            Key accepted by ``remove``.

        Raises:
            MaidInvalidTaskError: If ``task`` is ``None`` or not a supported kind.
            MaidDisposalError: If the maid is already cleaned and discharging
                ``task`` right away failed.

        """
        return self._registry.insert(self._classify(task))

    def add(self, *tasks: Any) -> tuple[TaskKey, ...]:
        """Register several tasks and return their keys in order.

        Every value is validated before any of them is registered, so one
        unsupported value leaves the maid untouched.

        Raises:
            MaidInvalidTaskError: If any value is ``None`` or not a supported kind.
            MaidDisposalError: If the maid is already cleaned and discharging
                one or more of the tasks failed.

        """
        classified = [self._classify(task) for task in tasks]
        keys: list[TaskKey] = []
        failures: list[DischargeFailure] = []
        for task in classified:
            try:
                keys.append(self._registry.insert(task))
            except MaidDisposalError as error:
                keys.append(error.failures[0].key)
                failures.extend(error.failures)
        if failures:
            raise MaidDisposalError(tuple(failures)) from failures[0].error
        return tuple(keys)

    def remove(self, key: Hashable) -> Any | None:
        """Detach a task without cleaning it up.

        Returns:
            The value given for ``key``, or ``None`` when nothing is stored
            under it (unknown key, already removed or already cleaned).

        """
        task = self._registry.remove(key)
        return None if task is None else task.value

    def bind_to_instance(self, instance: Any) -> TaskKey | None:
        """Clean this maid when ``instance`` terminates.

        The instance must expose a ``terminated`` signal with
        ``connect(callback)``. The subscription is kept as a regular task, so
        cleaning the maid first also unsubscribes it. If the instance reports
        ``is_terminated``, the maid is cleaned right away.

        Returns:
            Key of the subscription task, or ``None`` when the maid was cleaned
            immediately.

        Raises:
            MaidInvalidBindingError: If ``instance`` has no usable ``terminated`` signal.

        """
        binding = bind_to_instance(instance, self._registry.drain)
        if binding is None:
            return None
        return self.give_task(binding)

    def enter_context(self, cm: AbstractContextManager[T]) -> T:
        """Enter a context manager and exit it when the maid is cleaned."""
        cm_type = type(cm)
        result = cm_type.__enter__(cm)
        self.give_task(functools.partial(cm_type.__exit__, cm, None, None, None))
        return result

    async def enter_async_context(self, cm: AbstractAsyncContextManager[T]) -> T:
        """Enter an async context manager and exit it when the maid is cleaned.

        The exit has to be awaited, so clean the maid with ``ado_cleaning``.
        """
        cm_type = type(cm)
        result = await cm_type.__aenter__(cm)
        self.give_task(functools.partial(cm_type.__aexit__, cm, None, None, None))
        return result

    def do_cleaning(self) -> None:
        """Discharge every task and switch to the cleaned state.

        Calling it again does nothing.

        Raises:
            MaidDisposalError: After every task was attempted, if any failed.

        """
        try:
            self._registry.drain()
        finally:
            self._finalizer.detach()

    def destroy(self) -> None:
        """Alias of ``do_cleaning``."""
        self.do_cleaning()

    async def ado_cleaning(self) -> None:
        """Discharge every task, awaiting async callbacks and async generators."""
        try:
            await self._registry.adrain()
        finally:
            self._finalizer.detach()

    def __setitem__(self, key: Hashable, task: Any) -> None:
        """Store a task under a name, cleaning up the task it replaces."""
        self._registry.insert(self._classify(task), key=key)

    def __getitem__(self, key: Hashable) -> Any:
        task = self._registry.get(key)
        if task is None:
            raise KeyError(key)
        return task.value

    def __delitem__(self, key: Hashable) -> None:
        """Clean up the task stored under ``key`` right away."""
        task = self._registry.remove(key)
        if task is None:
            raise KeyError(key)
        self._registry.discharge_all([(key, task)])

    def __contains__(self, key: Hashable) -> bool:
        return key in self._registry

    def __len__(self) -> int:
        return len(self._registry)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.do_cleaning()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.ado_cleaning()

    def __repr__(self) -> str:
        return f"Maid(name={self._name!r}, state={self.state.value}, tasks={len(self)})"

    @staticmethod
    def _classify(task: Any) -> Task:
        if task is None:
            raise MaidInvalidTaskError(task)
        return classify(task)
