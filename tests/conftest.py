"""Shared pytest fixtures for maid tests."""

import pytest

from maid.container import Maid
from maid.lock_mode import LockMode
from maid.signals import Lifecycle


@pytest.fixture()
def container() -> Maid:
    """Default thread-safe maid."""
    return Maid(name="test")


@pytest.fixture()
def container_unlocked() -> Maid:
    """Maid with locking disabled."""
    return Maid(name="test-unlocked", lock_mode=LockMode.NONE)


@pytest.fixture()
def lifecycle() -> Lifecycle:
    """External object with a one-shot terminated signal."""
    return Lifecycle("instance")
