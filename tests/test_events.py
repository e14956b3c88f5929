"""Tests for roster events and the event bus."""

import pytest

from zombiesoverlay.events import (
    Join,
    Leave,
    Reset,
    RosterEventBus,
    RosterSubscriber,
    ServerChange,
    dispatch,
)


class Recorder(RosterSubscriber):
    def __init__(self):
        self.calls = []

    def on_join(self, name):
        self.calls.append(("join", name))

    def on_leave(self, name):
        self.calls.append(("leave", name))

    def on_reset(self):
        self.calls.append(("reset",))

    def on_server_change(self):
        self.calls.append(("server",))


class TestEvents:

    def test_events_are_values(self):
        assert Join("Steve") == Join("Steve")
        assert Join("Steve") != Leave("Steve")
        assert Reset() == Reset()

    def test_events_are_frozen(self):
        with pytest.raises(Exception):
            Join("Steve").name = "Alex"

    def test_dispatch_routes_each_kind(self):
        recorder = Recorder()
        for event in (Join("A"), Leave("B"), Reset(), ServerChange()):
            dispatch(event, recorder)
        assert recorder.calls == [("join", "A"), ("leave", "B"), ("reset",), ("server",)]

    def test_dispatch_rejects_unknown(self):
        with pytest.raises(TypeError):
            dispatch("Join", Recorder())


class TestRosterEventBus:
    """Synchronous, ordered delivery."""

    def test_publish_order(self):
        seen = []
        bus = RosterEventBus(on_event=seen.append)
        bus.publish_all([Reset(), ServerChange(), Join("Alice")])
        assert seen == [Reset(), ServerChange(), Join("Alice")]

    def test_typed_handler_routing(self):
        joins = []
        leaves = []
        bus = RosterEventBus()
        bus.register_handler(Join, joins.append)
        bus.register_handler(Leave, leaves.append)

        bus.publish(Join("Steve"))
        bus.publish(Leave("Alex"))
        bus.publish(Reset())

        assert joins == [Join("Steve")]
        assert leaves == [Leave("Alex")]

    def test_multiple_handlers_same_event(self):
        calls = []
        bus = RosterEventBus()
        bus.register_handler(Reset, lambda e: calls.append(1))
        bus.register_handler(Reset, lambda e: calls.append(2))
        bus.publish(Reset())
        assert calls == [1, 2]

    def test_register_non_event_type(self):
        with pytest.raises(TypeError):
            RosterEventBus().register_handler(str, print)

    def test_handler_error_isolated(self):
        seen = []
        bus = RosterEventBus()
        bus.register_handler(Join, lambda e: 1 / 0)
        bus.register_handler(Join, seen.append)
        bus.publish(Join("Steve"))
        assert seen == [Join("Steve")]

    def test_subscriber_object(self):
        recorder = Recorder()
        bus = RosterEventBus()
        bus.subscribe(recorder.handle)
        bus.publish(Join("Steve"))
        assert recorder.calls == [("join", "Steve")]
