from maid._internal.tasks import DischargeFailure
from maid.container import Maid
from maid.directory import MaidDirectory
from maid.exceptions import (
    MaidAsyncTaskInSyncContextError,
    MaidDisposalError,
    MaidError,
    MaidInvalidBindingError,
    MaidInvalidTaskError,
)
from maid.lock_mode import LockMode
from maid.signals import Connection, Lifecycle, Signal
from maid.types import TaskKind

__all__ = [
    "Connection",
    "DischargeFailure",
    "Lifecycle",
    "LockMode",
    "Maid",
    "MaidAsyncTaskInSyncContextError",
    "MaidDirectory",
    "MaidDisposalError",
    "MaidError",
    "MaidInvalidBindingError",
    "MaidInvalidTaskError",
    "Signal",
    "TaskKind",
]
