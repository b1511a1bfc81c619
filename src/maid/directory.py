from __future__ import annotations

import threading
import weakref
from collections.abc import Hashable
from typing import Generic, TypeVar

from maid._internal.tasks import DischargeFailure
from maid.container import Maid
from maid.defaults import DEFAULT_LOCK_MODE
from maid.exceptions import MaidDisposalError
from maid.lock_mode import LockMode

EntityT = TypeVar("EntityT", bound=Hashable)


class MaidDirectory(Generic[EntityT]):
    """Own one maid per external entity.

    ``get`` creates the entity's maid on first use and binds it to the
    entity's ``terminated`` signal. The entry disappears as soon as that maid
    is cleaned, whether by termination, ``clean`` or ``clean_all``.

    The mapping is owned by the directory instance, nothing is shared
    process-wide.
    """

    def __init__(self, *, lock_mode: LockMode = DEFAULT_LOCK_MODE) -> None:
        self._lock_mode = lock_mode
        self._maids: dict[EntityT, Maid] = {}
        self._lock = threading.Lock()

    def __contains__(self, entity: EntityT) -> bool:
        return entity in self._maids

    def __len__(self) -> int:
        return len(self._maids)

    def get(self, entity: EntityT) -> Maid:
        """Return the entity's maid, creating and binding it when missing.

        Raises:
            MaidInvalidBindingError: If the entity has no ``terminated`` signal.

        """
        with self._lock:
            maid = self._maids.get(entity)
            if maid is not None:
                return maid
            maid = Maid(name=repr(entity), lock_mode=self._lock_mode)
            self._maids[entity] = maid

        maid_ref = weakref.ref(maid)
        maid.give_task(lambda: self._forget(entity, maid_ref()))
        try:
            maid.bind_to_instance(entity)
        except Exception:
            maid.do_cleaning()
            raise
        return maid

    def pop(self, entity: EntityT) -> Maid | None:
        """Stop owning the entity's maid without cleaning it.

        Like any maid, a popped maid that is no longer referenced is cleaned
        when garbage collected.
        """
        with self._lock:
            return self._maids.pop(entity, None)

    def clean(self, entity: EntityT) -> None:
        """Clean the entity's maid now. Unknown entities are ignored."""
        maid = self.pop(entity)
        if maid is not None:
            maid.do_cleaning()

    def clean_all(self) -> None:
        """Clean every owned maid.

        Raises:
            MaidDisposalError: After every maid was cleaned, if any task failed.

        """
        with self._lock:
            maids = list(self._maids.values())
            self._maids.clear()

        failures: list[DischargeFailure] = []
        for maid in maids:
            try:
                maid.do_cleaning()
            except MaidDisposalError as error:
                failures.extend(error.failures)
        if failures:
            raise MaidDisposalError(tuple(failures)) from failures[0].error

    def _forget(self, entity: EntityT, maid: Maid | None) -> None:
        with self._lock:
            if maid is not None and self._maids.get(entity) is maid:
                del self._maids[entity]
