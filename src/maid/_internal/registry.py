from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Hashable
from contextlib import AbstractContextManager, nullcontext
from enum import Enum

from maid._internal.tasks import (
    BackgroundCleanups,
    DischargeFailure,
    Task,
    TaskId,
    adischarge,
    discharge,
)
from maid.exceptions import MaidDisposalError
from maid.lock_mode import LockMode
from maid.types import TaskKey

logger = logging.getLogger(__name__)


class RegistryState(str, Enum):
    """Lifecycle state of a task registry."""

    ACTIVE = "active"
    """Accepting and holding tasks."""

    CLEANED = "cleaned"
    """Terminal. Every held task was discharged, late tasks are discharged on arrival."""


class TaskRegistry:
    """Ordered, keyed collection of live tasks.

    State changes (insert, remove and the take-all step of a drain) happen
    under one lock, discharge always happens after it is released. Tasks are
    discharged in insertion order.
    """

    __slots__ = ("_background", "_key_counter", "_lock", "_name", "_state", "_tasks")

    def __init__(
        self,
        *,
        name: str | None = None,
        lock_mode: LockMode = LockMode.THREAD,
    ) -> None:
        self._name = name
        self._tasks: dict[TaskKey, Task] = {}
        self._state = RegistryState.ACTIVE
        self._key_counter = itertools.count()
        self._lock: AbstractContextManager[object] = (
            threading.Lock() if lock_mode is LockMode.THREAD else nullcontext()
        )
        self._background = BackgroundCleanups()

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._tasks

    @property
    def state(self) -> RegistryState:
        return self._state

    @property
    def is_cleaned(self) -> bool:
        return self._state is RegistryState.CLEANED

    def get(self, key: Hashable) -> Task | None:
        return self._tasks.get(key)

    def insert(self, task: Task, key: Hashable | None = None) -> TaskKey:
        """Store a classified task and return its key.

        Without ``key`` a fresh ``TaskId`` is generated, it never replaces
        anything. With an explicit ``key`` the task previously stored under it is
        replaced and discharged. On a cleaned registry the task is discharged
        before this method returns.

        Raises:
            MaidDisposalError: If an immediate or replacement discharge failed.

        """
        replaced: Task | None = None
        with self._lock:
            if self._state is RegistryState.ACTIVE:
                if key is None:
                    key = self._next_key()
                else:
                    replaced = self._tasks.pop(key, None)
                self._tasks[key] = task
                if replaced is None or replaced.value is task.value:
                    return key
                late = False
            else:
                if key is None:
                    key = self._next_key()
                late = True

        if late:
            logger.debug(
                "Maid %s is already cleaned, discharging %s task %r immediately",
                self._label(),
                task.kind.value,
                task.value,
            )
            self.discharge_all([(key, task)])
        elif replaced is not None:
            self.discharge_all([(key, replaced)])
        return key

    def remove(self, key: Hashable) -> Task | None:
        """Detach a task without discharging it."""
        with self._lock:
            return self._tasks.pop(key, None)

    def take_all(self) -> list[tuple[TaskKey, Task]]:
        """Take ownership of every held task and switch to the cleaned state.

        Returns an empty list when the registry is already cleaned.
        """
        with self._lock:
            if self._state is RegistryState.CLEANED:
                return []
            self._state = RegistryState.CLEANED
            taken = list(self._tasks.items())
            self._tasks.clear()
        return taken

    def drain(self) -> None:
        """Discharge every held task once and leave the registry cleaned.

        Raises:
            MaidDisposalError: After all tasks were attempted, if any of them
                failed.

        """
        taken = self.take_all()
        if taken:
            logger.debug("Cleaning maid %s: %d task(s)", self._label(), len(taken))
        self.discharge_all(taken)

    async def adrain(self) -> None:
        """Asynchronous counterpart of ``drain`` that awaits async cleanups.

        If the drain is cancelled, the tasks not yet reached are still
        discharged synchronously and the cancellation propagates.
        """
        taken = self.take_all()
        if taken:
            logger.debug("Cleaning maid %s asynchronously: %d task(s)", self._label(), len(taken))
        failures: list[DischargeFailure] = []
        pending = iter(taken)
        try:
            for key, task in pending:
                try:
                    await adischarge(task)
                except Exception as error:
                    failures.append(self._record_failure(key, task, error))
        except BaseException:
            # Cancelled mid-drain. The registry is already cleaned, so the
            # remaining tasks are discharged synchronously before re-raising.
            self._discharge_quietly(list(pending))
            raise
        self._raise_failures(failures)

    def discharge_all(self, tasks: list[tuple[TaskKey, Task]]) -> None:
        failures: list[DischargeFailure] = []
        for key, task in tasks:
            try:
                discharge(task, self._background.schedule)
            except Exception as error:
                failures.append(self._record_failure(key, task, error))
        self._raise_failures(failures)

    def _discharge_quietly(self, tasks: list[tuple[TaskKey, Task]]) -> None:
        for key, task in tasks:
            try:
                discharge(task, self._background.schedule)
            except Exception as error:
                self._record_failure(key, task, error)

    def _record_failure(self, key: TaskKey, task: Task, error: Exception) -> DischargeFailure:
        logger.warning(
            "Maid %s failed to discharge %s task %r",
            self._label(),
            task.kind.value,
            task.value,
            exc_info=error,
        )
        return DischargeFailure(key=key, task=task, error=error)

    @staticmethod
    def _raise_failures(failures: list[DischargeFailure]) -> None:
        if failures:
            raise MaidDisposalError(tuple(failures)) from failures[0].error

    def _next_key(self) -> TaskId:
        key = TaskId(next(self._key_counter))
        while key in self._tasks:
            key = TaskId(next(self._key_counter))
        return key

    def _label(self) -> str:
        return self._name if self._name is not None else hex(id(self))
