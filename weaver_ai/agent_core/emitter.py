from __future__ import annotations

"""Hierarchical event bus.

An ``Emitter`` is a publish/subscribe channel scoped to a component instance.
Emitters form a tree: ``child`` creates a sub-bus whose namespace extends the
parent's, and every event emitted on a child is also delivered to its
ancestors. The process-wide root is ``Emitter.root``.

Event paths are the dot-joined namespace plus the event name, e.g. an event
``start`` emitted on ``Emitter.root.child(namespace=["tool", "search"])`` has
the path ``tool.search.start``.

Topic matchers accepted by ``on``:

- ``"*"``: every event reaching this bus (its own and its descendants').
- a dotted topic relative to this bus (``"start"``, ``"tool.search"``): the
  event path equals the topic or is a descendant of it.
- a compiled ``re.Pattern``: matched against the full event path.
- a predicate ``Callable[[Event], bool]``.

Emission is synchronous. Handlers must not block; slow work should be handed
off to the handler's own task.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Optional, Pattern, Sequence, Union

from .errors import EmitterError

logger = logging.getLogger(__name__)

EventHandler = Callable[["Event"], None]
Matcher = Union[str, Pattern[str], Callable[["Event"], bool]]

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_\-]+$")


@dataclass(frozen=True)
class Event:
    """A single emitted event."""

    name: str
    path: str
    payload: Any
    creator: Any = None
    context: Dict[str, Any] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)


@dataclass
class _Listener:
    matcher: Matcher
    handler: EventHandler
    once: bool = False


def _validate_segments(segments: Iterable[str]) -> List[str]:
    out: List[str] = []
    for segment in segments:
        if not isinstance(segment, str) or not _SEGMENT_RE.match(segment):
            raise ValueError(f"invalid event namespace segment: {segment!r}")
        out.append(segment)
    return out


class Emitter:
    """Publish/subscribe channel with namespace-based propagation."""

    root: ClassVar["Emitter"]

    def __init__(
        self,
        namespace: Sequence[str] = (),
        creator: Any = None,
        context: Optional[Dict[str, Any]] = None,
        parent: Optional["Emitter"] = None,
    ) -> None:
        self.namespace: List[str] = _validate_segments(namespace)
        self.creator = creator
        self.context: Dict[str, Any] = dict(context or {})
        self._parent = parent
        self._listeners: List[_Listener] = []
        self._children: List[Emitter] = []
        self._destroyed = False

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def parent(self) -> Optional["Emitter"]:
        return self._parent

    def child(
        self,
        namespace: Sequence[str] = (),
        creator: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> "Emitter":
        """Create a scoped sub-bus whose events also propagate to this bus."""
        child = Emitter(
            namespace=[*self.namespace, *_validate_segments(namespace)],
            creator=creator if creator is not None else self.creator,
            context={**self.context, **(context or {})},
            parent=None if self._destroyed else self,
        )
        if not self._destroyed:
            self._children.append(child)
        return child

    def on(self, topic: Matcher, handler: EventHandler) -> Callable[[], None]:
        """
        Register ``handler`` for events matching ``topic``.

        Returns:
            A callable that removes the registration.
        """
        return self._add(_Listener(matcher=topic, handler=handler))

    def once(self, topic: Matcher, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler`` for the first matching event only."""
        return self._add(_Listener(matcher=topic, handler=handler, once=True))

    def off(self, topic: Matcher, handler: EventHandler) -> None:
        """Remove every registration of ``handler`` for ``topic``."""
        self._listeners = [l for l in self._listeners if not (l.matcher == topic and l.handler is handler)]

    def emit(self, name: str, payload: Any = None) -> None:
        """
        Emit ``name`` on this bus and propagate it to every ancestor.

        All matching handlers run even when some of them fail. Failures are
        logged and then raised together as one ``EmitterError``.

        After ``destroy`` this is a no-op.
        """
        if self._destroyed:
            return
        _validate_segments([name])
        event = Event(
            name=name,
            path=".".join([*self.namespace, name]),
            payload=payload,
            creator=self.creator,
            context=dict(self.context),
        )

        failures: List[BaseException] = []
        node: Optional[Emitter] = self
        while node is not None:
            failures.extend(node._dispatch(event))
            node = node._parent

        if failures:
            raise EmitterError(
                f"{len(failures)} event handler(s) failed while emitting '{event.path}'.",
                failures,
                context={"path": event.path},
            )

    def destroy(self) -> None:
        """Detach all handlers and children and break the link to the parent."""
        if self._destroyed:
            return
        self._destroyed = True
        self._listeners.clear()
        for child in list(self._children):
            child.destroy()
        self._children.clear()
        if self._parent is not None:
            try:
                self._parent._children.remove(self)
            except ValueError:
                pass
            self._parent = None

    def _add(self, listener: _Listener) -> Callable[[], None]:
        if self._destroyed:
            logger.debug(f"Ignoring registration on destroyed emitter '{'.'.join(self.namespace)}'")
            return lambda: None
        self._listeners.append(listener)

        def _remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _remove

    def _matches(self, matcher: Matcher, event: Event) -> bool:
        if isinstance(matcher, str):
            if matcher == "*":
                return True
            topic = ".".join([*self.namespace, matcher])
            return event.path == topic or event.path.startswith(topic + ".")
        if isinstance(matcher, re.Pattern):
            return matcher.search(event.path) is not None
        return bool(matcher(event))

    def _dispatch(self, event: Event) -> List[BaseException]:
        failures: List[BaseException] = []
        for listener in list(self._listeners):
            try:
                if not self._matches(listener.matcher, event):
                    continue
                if listener.once:
                    self._listeners.remove(listener)
                listener.handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for '{event.path}': {e}", exc_info=True)
                failures.append(e)
        return failures


Emitter.root = Emitter(namespace=(), creator=None)
