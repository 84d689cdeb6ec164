"""Shared fixtures for emitter tests."""

from collections.abc import Generator

import pytest

from artoo.emitter import Emitter


@pytest.fixture
def emitter() -> Generator[Emitter, None, None]:
    """Create a fresh emitter.

    Yields:
        An empty, enabled Emitter. It is killed after the test if the test
        did not kill it.
    """
    emitter = Emitter()
    yield emitter
    emitter.kill()


@pytest.fixture
def tree() -> tuple[Emitter, Emitter, Emitter]:
    """Build a three-level tree: parent, child, grandchild.

    Returns:
        The (parent, child, grandchild) emitters.
    """
    parent = Emitter()
    child = parent.child()
    grandchild = child.child()
    return parent, child, grandchild
