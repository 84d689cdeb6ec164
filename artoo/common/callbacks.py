"""Callback functions for the emitter's on_handler_error parameter.

By default an exception raised by a handler propagates out of emit(). An
on_handler_error callback replaces that behavior: it receives a HandlerError
and returns True to keep dispatching or False to stop the current emit.

Example::

    from artoo.common.callbacks import log_handler_error_and_continue
    from artoo.emitter import Emitter

    emitter = Emitter(on_handler_error=log_handler_error_and_continue)
    emitter.on("page", flaky_handler)
    emitter.emit("page", {"url": url})  # flaky_handler errors are logged
"""

import logging
from collections.abc import Callable

from artoo.common.exceptions import HandlerError

logger = logging.getLogger(__name__)


def _error_extra(error: HandlerError) -> dict:
    return {
        "event_type": error.event.type,
        "handler": getattr(error.callback, "__qualname__", repr(error.callback)),
        "once": error.binding.once,
        "exception_type": type(error.exception).__name__,
    }


def log_handler_error_and_continue(error: HandlerError) -> bool:
    """Log a handler failure and keep dispatching.

    Args:
        error: The failure reported by the emitter.

    Returns:
        True, so the remaining handlers still run.
    """
    logger.error(
        f"Handler failed for event '{error.event.type}': {error.exception}",
        extra=_error_extra(error),
        exc_info=error.exception,
    )
    return True


def log_handler_error_and_stop(error: HandlerError) -> bool:
    """Log a handler failure and stop the current emit.

    Args:
        error: The failure reported by the emitter.

    Returns:
        False, so no further handlers, events or children receive the emit.
    """
    logger.error(
        f"Handler failed for event '{error.event.type}', stopping emit: "
        f"{error.exception}",
        extra=_error_extra(error),
        exc_info=error.exception,
    )
    return False


def collect_handler_errors() -> tuple[
    Callable[[HandlerError], bool], list[HandlerError]
]:
    """Create a callback that records handler failures and continues.

    Returns:
        A tuple of (callback_function, errors_list). The list fills up as
        handlers fail and can be inspected after emitting.

    Example::

        callback, errors = collect_handler_errors()
        emitter = Emitter(on_handler_error=callback)
        emitter.emit("page")
        for error in errors:
            print(error.event.type, error.exception)
    """
    errors: list[HandlerError] = []

    def callback(error: HandlerError) -> bool:
        errors.append(error)
        return True

    return callback, errors
