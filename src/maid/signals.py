"""Minimal signal and lifecycle objects.

Hosts usually bring their own event system; these implement the capability
contracts a ``Maid`` consumes so that plain Python objects can take part:

    lifecycle = Lifecycle()
    maid = Maid()
    maid.bind_to_instance(lifecycle)
    maid.give_task(lifecycle.terminated.connect(on_terminated))

    lifecycle.terminate()  # cleans the maid
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class Connection:
    """Subscription returned by ``Signal.connect``."""

    __slots__ = ("_handler", "_signal")

    def __init__(self, signal: Signal, handler: Callable[..., Any]) -> None:
        self._signal: Signal | None = signal
        self._handler = handler

    @property
    def connected(self) -> bool:
        return self._signal is not None

    @property
    def handler(self) -> Callable[..., Any]:
        return self._handler

    def disconnect(self) -> None:
        """Stop receiving the signal. Calling it again does nothing."""
        signal, self._signal = self._signal, None
        if signal is not None:
            signal._discard(self)

    def __repr__(self) -> str:
        return f"Connection({self._handler!r}, connected={self.connected})"


class Signal:
    """Synchronous multi-subscriber signal.

    Handlers run in connection order on the firing thread. A failing handler
    is logged and does not stop the remaining handlers.
    """

    __slots__ = ("_connections", "_lock", "_name")

    def __init__(self, name: str | None = None) -> None:
        self._name = name
        self._connections: list[Connection] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._connections)

    def connect(self, handler: Callable[..., Any]) -> Connection:
        connection = Connection(self, handler)
        with self._lock:
            self._connections.append(connection)
        return connection

    def fire(self, *args: Any) -> None:
        with self._lock:
            connections = list(self._connections)
        for connection in connections:
            # Disconnected by an earlier handler of this same firing.
            if not connection.connected:
                continue
            try:
                connection.handler(*args)
            except Exception:
                logger.warning(
                    "Handler %r of signal %s failed",
                    connection.handler,
                    self._name or hex(id(self)),
                    exc_info=True,
                )

    def disconnect_all(self) -> None:
        with self._lock:
            connections, self._connections = self._connections, []
        for connection in connections:
            connection.disconnect()

    def _discard(self, connection: Connection) -> None:
        with self._lock:
            if connection in self._connections:
                self._connections.remove(connection)

    def __repr__(self) -> str:
        return f"Signal({self._name!r}, connections={len(self)})"


class Lifecycle:
    """Object with a one-shot ``terminated`` signal.

    Satisfies the lifecycle contract expected by ``Maid.bind_to_instance``.
    """

    __slots__ = ("_lock", "_terminated", "terminated")

    def __init__(self, name: str | None = None) -> None:
        self.terminated = Signal(name)
        self._terminated = False
        self._lock = threading.Lock()

    @property
    def is_terminated(self) -> bool:
        return self._terminated

    def terminate(self) -> None:
        """Fire ``terminated`` once and drop every subscriber."""
        with self._lock:
            if self._terminated:
                return
            self._terminated = True
        self.terminated.fire()
        self.terminated.disconnect_all()

    def __repr__(self) -> str:
        return f"Lifecycle(terminated={self._terminated})"
