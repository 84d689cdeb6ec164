"""Hierarchical event emitter.

This module provides Emitter, the publish/subscribe primitive the scraping
helpers use for non-DOM communication. An emitter holds handlers bound to
event names, global handlers fired for every event, and a tree of child
emitters that receive everything their ancestors emit.

Usage::

    from artoo.emitter import Emitter

    emitter = Emitter()
    emitter.on("page", lambda e: print(e.data["url"]))
    emitter.once(["done", "failed"], lambda e: print(e.type))
    emitter.on(lambda e: print("every event:", e.type))

    scraper_events = emitter.child()
    scraper_events.on("page", store_page)

    emitter.emit("page", {"url": "https://example.com"})
    emitter.kill()  # tears down the whole tree

Reentrancy:

Handlers run synchronously on the caller's stack and may call on(), off(),
emit() or kill() on any emitter, including the one dispatching. Each
dispatch walks a snapshot of the handlers bound when it started, but skips
any handler that has been unbound since, so an unbound handler never runs.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from artoo.common.bindings import (
    Binding,
    Callback,
    ResolvedBind,
    resolve_bind,
    resolve_unbind,
)
from artoo.common.exceptions import (
    HandlerError,
    InvalidArguments,
    InvalidState,
)

logger = logging.getLogger(__name__)

# Reserved lifecycle event dispatched to a subtree when it is killed
KILL_EVENT = "kill"

HandlerErrorCallback = Callable[[HandlerError], bool]


class EmitterState(Enum):
    """Lifecycle state of an emitter.

    Values:
        ENABLED: Emitting dispatches to handlers (initial state).
        DISABLED: Emitting is a silent no-op; bindings are kept.
        DEAD: Killed. Terminal; no bindings, no children, no emits.
    """

    ENABLED = "enabled"
    DISABLED = "disabled"
    DEAD = "dead"


@dataclass(frozen=True)
class Event:
    """The value passed to every handler.

    Attributes:
        type: The emitted event name.
        data: The emitted payload (an empty dict when none was given).
        target: The emitter dispatching the event. For propagated events this
            is the descendant running the dispatch.
        scope: The handler's call context: the ``scope`` option it was bound
            with, or the emitter it is bound on.
    """

    type: str
    data: Any
    target: Emitter
    scope: Any = None


class Emitter:
    """Publish/subscribe emitter with child propagation.

    Handlers for an event run in the order they were bound, followed by the
    global handlers. After its own handlers, an emitter forwards the emit to
    each of its children in turn, so events reach the whole subtree depth
    first.

    A parent exclusively owns its children. A child only keeps a weak
    reference to the parent's release method, which it calls when killed so
    the parent drops it.
    """

    def __init__(
        self,
        on_handler_error: HandlerErrorCallback | None = None,
    ) -> None:
        """Initialize an empty, enabled emitter.

        Args:
            on_handler_error: Optional callback invoked when a handler raises.
                It receives a HandlerError and returns True to continue with
                the next handler or False to stop the current emit. When None,
                handler exceptions propagate out of emit(). Children created
                with child() inherit this callback.
        """
        self.on_handler_error = on_handler_error
        self._enabled = True
        self._dead = False
        self._killing = False
        self._handlers: dict[str, list[Binding]] = {}
        self._global_handlers: list[Binding] = []
        self._children: list[Emitter] = []
        self._release: weakref.WeakMethod | None = None

    def __repr__(self) -> str:
        return (
            f"<Emitter state={self.state.value} events={len(self._handlers)} "
            f"children={len(self._children)}>"
        )

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> EmitterState:
        if self._dead:
            return EmitterState.DEAD
        if not self._enabled:
            return EmitterState.DISABLED
        return EmitterState.ENABLED

    @property
    def enabled(self) -> bool:
        return self.state is EmitterState.ENABLED

    @property
    def dead(self) -> bool:
        return self._dead

    @property
    def children(self) -> tuple[Emitter, ...]:
        """Snapshot of the owned child emitters, in creation order."""
        return tuple(self._children)

    def _check_alive(self, operation: str) -> None:
        if self._dead:
            raise InvalidState(operation)

    # -------------------------------------------------------------------------
    # Binding
    # -------------------------------------------------------------------------

    def on(
        self,
        target: Any,
        callback: Any = None,
        options: Any = None,
    ) -> Emitter:
        """Bind one or more handlers.

        Accepted forms::

            emitter.on("event", handler, options=None)
            emitter.on(["event1", "event2"], handler, options=None)
            emitter.on({"event1": handler1, "event2": handler2}, options=None)
            emitter.on(handler, options=None)  # every event

        Recognized options are ``once`` (bool) and ``scope`` (any object).
        Empty event names are skipped.

        Returns:
            This emitter.

        Raises:
            InvalidArguments: If the arguments match no form.
            UnrecognizedOption: If the options hold an unknown key.
            InvalidState: If the emitter has been killed.

        Nothing is stored when an exception is raised.
        """
        self._check_alive("on")
        self._store(resolve_bind(target, callback, options))
        return self

    def once(
        self,
        target: Any,
        callback: Any = None,
        options: Any = None,
    ) -> Emitter:
        """Bind handlers exactly like on(), with ``once`` forced to true."""
        self._check_alive("once")
        self._store(resolve_bind(target, callback, options, force_once=True))
        return self

    def _store(self, resolved: ResolvedBind) -> None:
        for event, callback in resolved.pairs():
            binding = resolved.make_binding(callback)
            if event is None:
                self._global_handlers.append(binding)
            else:
                self._handlers.setdefault(event, []).append(binding)

    def off(self, target: Any, callback: Any = None) -> Emitter:
        """Unbind a handler.

        Accepted forms::

            emitter.off("event", handler)
            emitter.off(["event1", "event2"], handler)
            emitter.off(handler)  # every event and the global list

        Unbinding a handler that was never bound does nothing.

        Returns:
            This emitter.

        Raises:
            InvalidState: If the emitter has been killed.
        """
        self._check_alive("off")
        resolved = resolve_unbind(target, callback)
        if resolved is None:
            return self

        if resolved.events is None:
            for event in list(self._handlers):
                self._remove_matching(event, resolved.callback)
            self._global_handlers = [
                binding
                for binding in self._global_handlers
                if not binding.matches(resolved.callback)
            ]
        else:
            for event in resolved.events:
                self._remove_matching(event, resolved.callback)

        return self

    def _remove_matching(self, event: str, callback: Callback) -> None:
        bindings = self._handlers.get(event)
        if bindings is None:
            return

        kept = [binding for binding in bindings if not binding.matches(callback)]
        if kept:
            self._handlers[event] = kept
        else:
            del self._handlers[event]

    def unbind_all(self) -> Emitter:
        """Unbind every handler of this emitter. Children are untouched."""
        self._handlers.clear()
        self._global_handlers.clear()
        return self

    def listeners(self, event: str | None = None) -> list[Callback]:
        """List bound callbacks for this emitter and its descendants.

        Args:
            event: Restrict to handlers bound on this event name. Global
                handlers are only listed when no event is given.

        Returns:
            Callbacks in order: global handlers, then per-event handlers,
            then each child's listeners. Empty for a killed emitter.
        """
        if self._dead:
            return []

        if not event:
            callbacks = [binding.callback for binding in self._global_handlers]
            for bindings in self._handlers.values():
                callbacks.extend(binding.callback for binding in bindings)
            for child in self._children:
                callbacks.extend(child.listeners())
        else:
            callbacks = [
                binding.callback for binding in self._handlers.get(event, ())
            ]
            for child in self._children:
                callbacks.extend(child.listeners(event))

        return callbacks

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def emit(self, events: str | Sequence[str], data: Any = None) -> Emitter:
        """Emit one or more events to this emitter and its descendants.

        Does nothing while the emitter is disabled.

        Args:
            events: An event name or a list/tuple of event names.
            data: Payload delivered as ``event.data``. Defaults to an empty dict.

        Returns:
            This emitter.

        Raises:
            InvalidState: If the emitter has been killed.
            InvalidArguments: If events is neither a name nor a sequence of names.
        """
        self._check_alive("emit")
        if isinstance(events, str):
            names = [events]
        elif isinstance(events, (list, tuple)) and all(
            isinstance(name, str) for name in events
        ):
            names = list(events)
        else:
            raise InvalidArguments(
                "Events must be a name or a list of names.",
                {"events_type": type(events).__name__},
            )

        if not self._enabled:
            return self

        self._broadcast(names, {} if data is None else data)
        return self

    def _broadcast(
        self, names: list[str], data: Any, respect_gate: bool = True
    ) -> bool:
        """Dispatch to this emitter, then to each child recursively.

        Returns:
            False if an on_handler_error callback asked to stop.
        """
        if self._dead or (respect_gate and not self._enabled):
            return True

        for name in names:
            if not self._dispatch(name, data):
                return False

        for child in list(self._children):
            if not child._broadcast(names, data, respect_gate):
                return False

        return True

    def _is_live(self, name: str, binding: Binding) -> bool:
        return binding in self._handlers.get(name, ()) or (
            binding in self._global_handlers
        )

    def _dispatch(self, name: str, data: Any) -> bool:
        """Run this emitter's handlers for one event name.

        Returns:
            False if an on_handler_error callback asked to stop.
        """
        snapshot = [*self._handlers.get(name, ()), *self._global_handlers]
        if not snapshot:
            return True

        completed_once: list[Binding] = []
        try:
            for binding in snapshot:
                # An earlier handler may have unbound this one
                if not self._is_live(name, binding):
                    continue
                if binding.once:
                    if binding.spent:
                        continue
                    binding.spent = True

                event = Event(
                    type=name,
                    data=data,
                    target=self,
                    scope=self if binding.scope is None else binding.scope,
                )
                try:
                    binding.callback(event)
                except Exception as e:
                    binding.spent = False
                    if self.on_handler_error is None:
                        logger.debug(
                            f"Handler {binding.callback!r} raised while "
                            f"dispatching '{name}'; aborting emit"
                        )
                        raise
                    if not self.on_handler_error(HandlerError(e, event, binding)):
                        return False
                    continue

                if binding.once:
                    completed_once.append(binding)
        finally:
            self._discard(name, completed_once)

        return True

    def _discard(self, name: str, bindings: list[Binding]) -> None:
        for binding in bindings:
            event_bindings = self._handlers.get(name)
            if event_bindings is not None and binding in event_bindings:
                event_bindings.remove(binding)
                if not event_bindings:
                    del self._handlers[name]
            elif binding in self._global_handlers:
                self._global_handlers.remove(binding)

    # -------------------------------------------------------------------------
    # Hierarchy & lifecycle
    # -------------------------------------------------------------------------

    def child(self) -> Emitter:
        """Create and own a new child emitter.

        The child receives every event this emitter emits, is dropped from
        this emitter's children when killed, and is killed along with this
        emitter.

        Returns:
            The new child.

        Raises:
            InvalidState: If the emitter has been killed.
        """
        self._check_alive("child")
        child = Emitter(on_handler_error=self.on_handler_error)
        child._release = weakref.WeakMethod(self._release_child)
        self._children.append(child)
        return child

    def _release_child(self, child: Emitter) -> None:
        for i, candidate in enumerate(self._children):
            if candidate is child:
                del self._children[i]
                logger.debug(f"Released killed child emitter {i}")
                return

    def disable(self) -> Emitter:
        """Make emit() a no-op until enable() is called."""
        self._check_alive("disable")
        self._enabled = False
        return self

    def enable(self) -> Emitter:
        self._check_alive("enable")
        self._enabled = True
        return self

    def kill(self) -> None:
        """Kill this emitter and its whole subtree.

        In order: the ``kill`` lifecycle event is dispatched to this emitter
        and every descendant (disabled ones included), every handler is
        unbound, the emitter becomes dead, the children are torn down the
        same way, and the emitter is released from its parent.

        Killing is irreversible. Killing a dead emitter does nothing. The
        teardown completes even if a ``kill`` handler raises; the exception
        then propagates.
        """
        if self._dead or self._killing:
            return

        self._killing = True
        logger.debug(
            f"Killing emitter with {len(self._children)} children",
            extra={"emitter": repr(self)},
        )
        try:
            self._broadcast([KILL_EVENT], {}, respect_gate=False)
        finally:
            self._teardown()

    def _teardown(self) -> None:
        self.unbind_all()
        self._enabled = False
        self._dead = True

        for child in list(self._children):
            child._teardown()
        self._children.clear()

        release = self._release() if self._release is not None else None
        self._release = None
        if release is not None:
            release(self)
