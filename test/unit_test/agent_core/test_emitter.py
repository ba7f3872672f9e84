from __future__ import annotations

import re
from typing import List

import pytest

from weaver_ai.agent_core.emitter import Emitter, Event
from weaver_ai.agent_core.errors import EmitterError


def test_event_path_joins_namespace_and_name() -> None:
    bus = Emitter.root.child(namespace=["tool", "search"])
    events: List[Event] = []
    bus.on("*", events.append)

    bus.emit("start", {"q": "x"})

    assert len(events) == 1
    assert events[0].path == "tool.search.start"
    assert events[0].name == "start"
    assert events[0].payload == {"q": "x"}


def test_child_events_propagate_to_ancestors() -> None:
    parent = Emitter.root.child(namespace=["agent"])
    child = parent.child(namespace=["run"])
    root_events: List[str] = []
    parent_events: List[str] = []
    Emitter.root.on("*", lambda e: root_events.append(e.path))
    parent.on("*", lambda e: parent_events.append(e.path))

    child.emit("progress")

    assert parent_events == ["agent.run.progress"]
    assert root_events == ["agent.run.progress"]


def test_unrelated_bus_does_not_receive_events() -> None:
    a = Emitter.root.child(namespace=["a"])
    b = Emitter.root.child(namespace=["b"])
    received: List[Event] = []
    b.on("*", received.append)

    a.emit("start")

    assert received == []


def test_parent_events_do_not_reach_children() -> None:
    parent = Emitter.root.child(namespace=["agent"])
    child = parent.child(namespace=["run"])
    received: List[Event] = []
    child.on("*", received.append)

    parent.emit("start")

    assert received == []


def test_relative_topic_matches_event_and_descendants() -> None:
    agent = Emitter.root.child(namespace=["agent"])
    run = agent.child(namespace=["run"])
    matched: List[str] = []
    agent.on("run", lambda e: matched.append(e.path))
    agent.on("start", lambda e: matched.append("own:" + e.path))

    run.emit("progress")
    agent.emit("start")
    agent.emit("started")

    assert matched == ["agent.run.progress", "own:agent.start"]


def test_regex_and_predicate_matchers() -> None:
    bus = Emitter.root.child(namespace=["tool", "calc"])
    by_regex: List[str] = []
    by_predicate: List[str] = []
    bus.on(re.compile(r"\.(success|error)$"), lambda e: by_regex.append(e.name))
    bus.on(lambda e: e.payload == 42, lambda e: by_predicate.append(e.name))

    bus.emit("start", 1)
    bus.emit("success", 42)

    assert by_regex == ["success"]
    assert by_predicate == ["success"]


def test_once_handler_fires_only_once() -> None:
    bus = Emitter.root.child(namespace=["x"])
    calls: List[str] = []
    bus.once("ping", lambda e: calls.append(e.name))

    bus.emit("ping")
    bus.emit("ping")

    assert calls == ["ping"]


def test_unsubscribe_and_off_remove_handlers() -> None:
    bus = Emitter.root.child(namespace=["x"])
    calls: List[str] = []

    def handler(event: Event) -> None:
        calls.append(event.name)

    remove = bus.on("a", handler)
    bus.on("b", handler)
    remove()
    bus.off("b", handler)

    bus.emit("a")
    bus.emit("b")

    assert calls == []


def test_handler_failures_are_aggregated_after_all_handlers_run() -> None:
    bus = Emitter.root.child(namespace=["x"])
    calls: List[str] = []

    def first(event: Event) -> None:
        raise RuntimeError("first failed")

    def second(event: Event) -> None:
        calls.append("second")

    bus.on("*", first)
    bus.on("*", second)

    with pytest.raises(EmitterError) as exc_info:
        bus.emit("go")

    assert calls == ["second"]
    assert len(exc_info.value.errors) == 1
    assert isinstance(exc_info.value.errors[0], RuntimeError)


def test_destroyed_bus_ignores_emit_and_registration() -> None:
    parent = Emitter.root.child(namespace=["agent"])
    child = parent.child(namespace=["run"])
    received: List[Event] = []
    parent.on("*", received.append)

    child.destroy()
    child.emit("late")
    child.on("*", received.append)

    assert child.destroyed is True
    assert child.parent is None
    assert received == []


def test_destroy_cascades_to_children() -> None:
    parent = Emitter.root.child(namespace=["agent"])
    child = parent.child(namespace=["run"])

    parent.destroy()

    assert child.destroyed is True


def test_child_inherits_creator_and_context() -> None:
    owner = object()
    parent = Emitter.root.child(namespace=["agent"], creator=owner, context={"tenant": "acme"})
    child = parent.child(namespace=["run"], context={"run_id": "r1"})
    received: List[Event] = []
    child.on("*", received.append)

    child.emit("tick")

    assert received[0].creator is owner
    assert received[0].context == {"tenant": "acme", "run_id": "r1"}


@pytest.mark.parametrize("segment", ["", "has space", "dot.ted", "*"])
def test_invalid_namespace_segment_is_rejected(segment: str) -> None:
    with pytest.raises(ValueError):
        Emitter.root.child(namespace=[segment])
