from __future__ import annotations

from collections.abc import Iterator

import pytest

from maid.container import Maid


@pytest.fixture()
def maid(request: pytest.FixtureRequest) -> Iterator[Maid]:
    """Provide a per-test maid that is cleaned after the test.

    Give it anything the test sets up (patches, subscriptions, temporary
    objects) and it is torn down during fixture finalization. A failing task
    surfaces as an error of the test teardown.

    Yields:
        A new ``Maid`` named after the test node.

    """
    test_maid = Maid(name=request.node.nodeid)
    yield test_maid
    test_maid.do_cleaning()
