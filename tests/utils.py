"""Test utilities for emitter tests.

This module provides reusable recording handlers for asserting on what an
emitter delivered and in which order.
"""

import logging
from collections.abc import Callable
from typing import Any

from artoo.emitter import Event

logger = logging.getLogger(__name__)


def collect_events() -> tuple[Callable[[Event], None], list[Event]]:
    """Create a handler that collects the events it receives in a list.

    Returns:
        A tuple of (handler_function, events_list).
        The handler appends each Event to the events list.

    Example:
        handler, events = collect_events()
        emitter.on("page", handler)
        emitter.emit("page", {"n": 1})
        assert events[0].data == {"n": 1}
    """
    events: list[Event] = []

    def handler(event: Event) -> None:
        events.append(event)

    return handler, events


def recorder(log: list[Any], label: Any) -> Callable[[Event], None]:
    """Create a handler that appends ``label`` to a shared log when called.

    Several recorders sharing one log capture delivery order across
    handlers and emitters.

    Args:
        log: The shared list to append to.
        label: The value recorded for each call.

    Returns:
        The handler function.
    """

    def handler(event: Event) -> None:
        log.append(label)

    handler.__qualname__ = f"recorder[{label}]"
    return handler


def raise_error(message: str = "handler failed") -> Callable[[Event], None]:
    """Create a handler that raises a RuntimeError with ``message``."""

    def handler(event: Event) -> None:
        logger.debug(f"Raising from handler for '{event.type}'")
        raise RuntimeError(message)

    return handler
