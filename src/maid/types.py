from __future__ import annotations

from collections.abc import Callable, Hashable
from enum import Enum
from typing import Any, Protocol, TypeAlias, runtime_checkable

TaskKey: TypeAlias = Hashable
"""Key a task is stored under: a caller-chosen name or a generated ``TaskId``."""


class TaskKind(str, Enum):
    """Defines how a registered task is discharged."""

    CALLABLE = "callable"
    """A zero-argument callable that is invoked."""

    DISPOSABLE = "disposable"
    """An object whose ``disconnect()`` is invoked, typically a subscription."""

    DESTRUCTIBLE = "destructible"
    """An owned object whose ``destroy()`` is invoked."""

    CLOSEABLE = "closeable"
    """A generator, coroutine or future that is closed or cancelled."""

    NESTED = "nested"
    """Another maid that is drained as a whole."""


@runtime_checkable
class SupportsDisconnect(Protocol):
    """Subscription-like object. ``disconnect`` must be idempotent."""

    def disconnect(self) -> Any: ...


@runtime_checkable
class SupportsDestroy(Protocol):
    """Owned object. ``destroy`` must be idempotent."""

    def destroy(self) -> Any: ...


@runtime_checkable
class SupportsCleaning(Protocol):
    """Maid-like container that can be nested into another one."""

    @property
    def is_cleaned(self) -> bool: ...

    def do_cleaning(self) -> None: ...

    async def ado_cleaning(self) -> None: ...


class SignalLike(Protocol):
    """Signal a binding subscribes to."""

    def connect(self, handler: Callable[..., Any]) -> SupportsDisconnect: ...


class SupportsTermination(Protocol):
    """External object whose end of life triggers a bound maid.

    ``terminated`` fires once when the object goes away. Objects may also
    expose ``is_terminated`` so that binding to an already terminated object
    cleans immediately.
    """

    @property
    def terminated(self) -> SignalLike: ...
