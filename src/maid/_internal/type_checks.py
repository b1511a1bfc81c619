from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
from typing import TypeGuard

from maid.types import SupportsCleaning


def is_zero_argument_callable(candidate: object) -> bool:
    """Return true when candidate can be invoked without arguments.

    Callables whose signature cannot be introspected (some builtins and
    extension types) are accepted as-is.

    Args:
        candidate: Value being checked.

    """
    if not callable(candidate):
        return False
    try:
        signature = inspect.signature(candidate)
    except (TypeError, ValueError):
        return True
    try:
        signature.bind()
    except TypeError:
        return False
    return True


def has_capability(candidate: object, name: str) -> bool:
    """Return true when candidate exposes a callable attribute called ``name``."""
    return callable(getattr(candidate, name, None))


def is_cooperative_unit(candidate: object) -> bool:
    """Return true for generators, coroutines, async generators and futures."""
    return (
        inspect.isgenerator(candidate)
        or inspect.iscoroutine(candidate)
        or inspect.isasyncgen(candidate)
        or asyncio.isfuture(candidate)
        or isinstance(candidate, concurrent.futures.Future)
    )


def is_maid(candidate: object) -> TypeGuard[SupportsCleaning]:
    """Return true when candidate is a maid-like container instance."""
    return not isinstance(candidate, type) and isinstance(candidate, SupportsCleaning)


__all__ = [
    "has_capability",
    "is_cooperative_unit",
    "is_maid",
    "is_zero_argument_callable",
]
