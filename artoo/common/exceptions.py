"""Exception types for emitter errors.

This module defines the exception hierarchy raised at the emitter's call
boundary. Argument and option errors are raised before any binding is
stored; state errors are raised when a killed emitter is used again.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from artoo.common.bindings import Binding
    from artoo.emitter import Event


class EmitterException(Exception):
    """Base class for emitter errors.

    Carries a human-readable message and an optional dict of context that
    is appended to the formatted message.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the error.
            context: Optional dict of additional context (operation, option, etc).
        """
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context.

        Returns:
            Formatted error message string.
        """
        parts = [self.message]

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class InvalidArguments(EmitterException, TypeError):
    """Raised when on()/once() is called with arguments matching no call shape.

    The accepted shapes are an event name, a list of event names, a mapping
    of event names to callbacks, or a lone callback. Nothing is stored when
    this is raised.
    """

    def __init__(
        self,
        message: str = "Wrong arguments.",
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)


class UnrecognizedOption(EmitterException, ValueError):
    """Raised when a binding options mapping holds an unknown key.

    Only ``once`` and ``scope`` are recognized. The error is raised before
    any binding of the offending call is stored.

    Attributes:
        option: The unrecognized option name.
    """

    def __init__(self, option: str) -> None:
        """Initialize the exception.

        Args:
            option: The unrecognized option name.
        """
        self.option = option
        super().__init__(
            f'The option "{option}" is not recognized.',
            {"option": option, "allowed": "once, scope"},
        )


class InvalidState(EmitterException, RuntimeError):
    """Raised when an operation is attempted on a killed emitter.

    Killing is terminal: a dead emitter never accepts bindings, emits,
    children, or gate changes again.

    Attributes:
        operation: Name of the rejected operation.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"Cannot call {operation}() on a killed emitter.",
            {"operation": operation, "state": "dead"},
        )


@dataclass
class HandlerError:
    """A handler callback failure reported to ``on_handler_error``.

    Attributes:
        exception: The exception raised by the callback.
        event: The event being delivered when it failed.
        binding: The binding whose callback raised.
    """

    exception: Exception
    event: Event
    binding: Binding

    @property
    def callback(self) -> Callable[..., Any]:
        return self.binding.callback
