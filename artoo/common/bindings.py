"""Binding resolution for Emitter.on(), once() and off().

The bind operations accept four call shapes::

    emitter.on("event", handler)                  # single event
    emitter.on(["event1", "event2"], handler)     # several events
    emitter.on({"event1": h1, "event2": h2})      # mapping of events
    emitter.on(handler)                           # every event

Each shape takes an optional trailing options mapping recognizing ``once``
and ``scope``. The shape is resolved once, at the API boundary, into one of
the tagged targets below. The emitter then stores the flattened
``(event, callback)`` pairs without branching on argument types again.

Resolution is all-or-nothing: every argument of a call is validated before
the caller stores anything.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictBool, ValidationError
from typing_extensions import assert_never

from artoo.common.exceptions import InvalidArguments, UnrecognizedOption

Callback = Callable[..., Any]


class BindingOptions(BaseModel):
    """Options recognized when binding a handler.

    Attributes:
        once: Unbind the handler after its first successful execution.
        scope: Call context handed to the handler as ``event.scope``.
            Defaults to the emitter the handler is bound on.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    once: StrictBool = False
    scope: Any = None


@dataclass(eq=False)
class Binding:
    """A stored handler.

    Bindings compare by identity: the same callback bound twice yields two
    distinct bindings, each delivered and removed on its own.

    Attributes:
        callback: The handler, called with the Event.
        once: Remove the binding after its first successful execution.
        scope: Optional call context for the handler.
        spent: True while a once binding is running or after it ran.
    """

    callback: Callback
    once: bool = False
    scope: Any = None
    spent: bool = field(default=False, repr=False)

    def matches(self, callback: Callback) -> bool:
        if self.callback is callback:
            return True
        # Each attribute access builds a new bound method object
        return inspect.ismethod(self.callback) and self.callback == callback


@dataclass(frozen=True)
class SingleTarget:
    """Shape 1: one event name and a callback."""

    event: str
    callback: Callback


@dataclass(frozen=True)
class ManyTarget:
    """Shape 2: several event names sharing a callback."""

    events: tuple[str, ...]
    callback: Callback


@dataclass(frozen=True)
class MapTarget:
    """Shape 3: event names mapped to their callbacks."""

    bindings: tuple[tuple[str, Callback], ...]


@dataclass(frozen=True)
class GlobalTarget:
    """Shape 4: a callback fired for every emitted event."""

    callback: Callback


BindTarget = SingleTarget | ManyTarget | MapTarget | GlobalTarget


@dataclass(frozen=True)
class ResolvedBind:
    """A validated bind call, ready to be stored.

    Attributes:
        target: The resolved call shape.
        options: The validated options shared by every binding of the call.
    """

    target: BindTarget
    options: BindingOptions

    def pairs(self) -> list[tuple[str | None, Callback]]:
        """Flatten the target into ``(event, callback)`` pairs.

        Empty event names are skipped. A ``None`` event denotes the global
        handler list.

        Returns:
            Pairs in the order their bindings must be stored.
        """
        match self.target:
            case SingleTarget(event=event, callback=callback):
                pairs: list[tuple[str | None, Callback]] = [(event, callback)]
            case ManyTarget(events=events, callback=callback):
                pairs = [(event, callback) for event in events]
            case MapTarget(bindings=bindings):
                pairs = list(bindings)
            case GlobalTarget(callback=callback):
                return [(None, callback)]
            case _:
                assert_never(self.target)

        return [(event, callback) for event, callback in pairs if event]

    def make_binding(self, callback: Callback) -> Binding:
        return Binding(
            callback=callback,
            once=self.options.once,
            scope=self.options.scope,
        )


@dataclass(frozen=True)
class ResolvedUnbind:
    """A resolved off() call.

    Attributes:
        events: Event names to unbind from, or None for every event and the
            global list.
        callback: The handler to remove.
    """

    events: tuple[str, ...] | None
    callback: Callback


def _is_event_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(
        isinstance(event, str) for event in value
    )


def parse_options(
    options: Mapping[str, Any] | None, force_once: bool = False
) -> BindingOptions:
    """Validate a binding options mapping.

    Args:
        options: The caller's options, or None.
        force_once: Set ``once`` regardless of the caller's value (used by
            Emitter.once()).

    Returns:
        The validated BindingOptions.

    Raises:
        UnrecognizedOption: If a key other than ``once`` or ``scope`` is given.
        InvalidArguments: If options is not a mapping or ``once`` is not a bool.
    """
    if options is None:
        options = {}
    if not isinstance(options, Mapping):
        raise InvalidArguments(
            "Binding options must be a mapping.",
            {"options_type": type(options).__name__},
        )

    raw = {str(key): value for key, value in options.items()}
    if force_once:
        raw["once"] = True

    try:
        return BindingOptions.model_validate(raw)
    except ValidationError as e:
        errors = e.errors()
        for err in errors:
            if err["type"] == "extra_forbidden":
                raise UnrecognizedOption(str(err["loc"][0])) from e
        raise InvalidArguments(
            "Invalid binding options.",
            {
                "errors": ", ".join(
                    f"{err['loc'][0]}: {err['msg']}" for err in errors
                )
            },
        ) from e


def resolve_bind(
    target: Any,
    callback: Any = None,
    options: Any = None,
    force_once: bool = False,
) -> ResolvedBind:
    """Resolve the arguments of on()/once() into a ResolvedBind.

    Args:
        target: An event name, a list/tuple of event names, a mapping of
            event names to callbacks, or a callback.
        callback: The handler for shapes 1 and 2, the options for shapes
            3 and 4.
        options: The options for shapes 1 and 2.
        force_once: Force ``once`` to true.

    Returns:
        The resolved call.

    Raises:
        InvalidArguments: If no call shape matches.
        UnrecognizedOption: If the options hold an unknown key.
    """
    resolved_target: BindTarget

    if isinstance(target, str) and callable(callback):
        resolved_target = SingleTarget(event=target, callback=callback)
    elif _is_event_sequence(target) and callable(callback):
        resolved_target = ManyTarget(events=tuple(target), callback=callback)
    elif isinstance(target, Mapping) and options is None:
        parsed = parse_options(callback, force_once=force_once)
        for event, handler in target.items():
            if not isinstance(event, str) or not callable(handler):
                raise InvalidArguments(
                    "Event mappings must map event names to callables.",
                    {"event": event},
                )
        return ResolvedBind(
            target=MapTarget(bindings=tuple(target.items())),
            options=parsed,
        )
    elif (
        callable(target)
        and not isinstance(target, (str, Mapping))
        and options is None
    ):
        resolved_target = GlobalTarget(callback=target)
        options = callback
    else:
        raise InvalidArguments(
            context={
                "target_type": type(target).__name__,
                "callback_type": type(callback).__name__,
            }
        )

    return ResolvedBind(
        target=resolved_target,
        options=parse_options(options, force_once=force_once),
    )


def resolve_unbind(target: Any, callback: Any = None) -> ResolvedUnbind | None:
    """Resolve the arguments of off().

    Unbinding is tolerant: arguments matching no shape resolve to None and
    the caller does nothing.

    Args:
        target: An event name or list/tuple of names, or the handler itself.
        callback: The handler when ``target`` names events.

    Returns:
        The resolved call, or None.
    """
    if callback is None:
        if callable(target) and not isinstance(target, str):
            return ResolvedUnbind(events=None, callback=target)
        return None

    if isinstance(target, str):
        return ResolvedUnbind(events=(target,), callback=callback)
    if _is_event_sequence(target):
        return ResolvedUnbind(events=tuple(target), callback=callback)
    return None
