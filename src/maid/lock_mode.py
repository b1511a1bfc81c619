from __future__ import annotations

from enum import Enum


class LockMode(Enum):
    """Select locking behavior for task registry bookkeeping.

    The lock only guards registration, removal and the take-all step of a
    drain. Discharge actions always run outside of it.
    """

    THREAD = "thread"
    """Guard registry state with ``threading.Lock`` (safe across threads)."""

    NONE = "none"
    """Disable locking for single-threaded or purely cooperative hosts."""
