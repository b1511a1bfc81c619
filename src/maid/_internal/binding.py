from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from maid._internal.type_checks import has_capability
from maid.exceptions import MaidInvalidBindingError
from maid.types import SupportsDisconnect

logger = logging.getLogger(__name__)


class InstanceBinding:
    """One-shot subscription that cleans a maid when an instance terminates.

    The first signal firing disconnects the subscription and then runs the
    callback. Any later firing, or a firing after ``disconnect``, is ignored.
    """

    __slots__ = ("_connection", "_fired", "_instance_repr", "_lock", "_on_terminated")

    def __init__(self, instance: Any, on_terminated: Callable[[], None]) -> None:
        self._on_terminated = on_terminated
        self._instance_repr = repr(instance)
        self._fired = False
        self._lock = threading.Lock()
        self._connection: SupportsDisconnect | None = None

    def attach(self, connection: SupportsDisconnect) -> None:
        with self._lock:
            if not self._fired:
                self._connection = connection
                return
        # Fired (or disconnected) while connect() was still running.
        connection.disconnect()

    @property
    def connected(self) -> bool:
        return not self._fired

    def disconnect(self) -> None:
        with self._lock:
            self._fired = True
            connection, self._connection = self._connection, None
        if connection is not None:
            connection.disconnect()

    def notify(self, *_args: Any) -> None:
        with self._lock:
            if self._fired:
                return
            self._fired = True
            connection, self._connection = self._connection, None
        if connection is not None:
            connection.disconnect()
        logger.debug("Instance %s terminated, cleaning bound maid", self._instance_repr)
        self._on_terminated()

    def __repr__(self) -> str:
        return f"InstanceBinding({self._instance_repr}, connected={self.connected})"


def is_terminated(instance: Any) -> bool:
    state = getattr(instance, "is_terminated", False)
    if callable(state):
        state = state()
    return bool(state)


def bind_to_instance(
    instance: Any,
    on_terminated: Callable[[], None],
) -> InstanceBinding | None:
    """Run ``on_terminated`` once when ``instance`` fires its ``terminated`` signal.

    Args:
        instance: Object implementing the lifecycle contract.
        on_terminated: Callback to run on termination, normally a drain.

    Returns:
        The binding to store as a disposable task, or ``None`` when the
        instance was already terminated and ``on_terminated`` ran immediately.

    Raises:
        MaidInvalidBindingError: If the instance has no connectable
            ``terminated`` signal.

    """
    signal = getattr(instance, "terminated", None)
    if signal is None or not has_capability(signal, "connect"):
        raise MaidInvalidBindingError(instance)

    if is_terminated(instance):
        logger.debug("Instance %r is already terminated, cleaning bound maid", instance)
        on_terminated()
        return None

    binding = InstanceBinding(instance, on_terminated)
    connection = signal.connect(binding.notify)
    if not has_capability(connection, "disconnect"):
        raise MaidInvalidBindingError(instance)
    binding.attach(connection)
    # Termination may have fired between the check above and connect().
    if is_terminated(instance):
        binding.notify()
    return binding
