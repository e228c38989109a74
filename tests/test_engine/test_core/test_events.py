import logging
from enum import Enum, auto

from engine.core.events import BattleEvent, Event, EventBus


class MockEvent(Enum):
    TEST_EVENT = auto()
    OTHER_EVENT = auto()


def test_event_bus_subscribe_publish(event_bus):
    received = []
    def handler(event):
        received.append(event)

    event_bus.subscribe(MockEvent.TEST_EVENT, handler)
    event_bus.publish(MockEvent.TEST_EVENT, data="test")

    assert len(received) == 1
    assert received[0].type == MockEvent.TEST_EVENT
    assert received[0]["data"] == "test"
    assert received[0].get("missing", 5) == 5


def test_event_bus_unsubscribe(event_bus):
    received = []
    def handler(event):
        received.append(event)

    event_bus.subscribe(MockEvent.TEST_EVENT, handler)
    event_bus.unsubscribe(MockEvent.TEST_EVENT, handler)
    event_bus.publish(MockEvent.TEST_EVENT)

    assert len(received) == 0


def test_event_priority(event_bus):
    order = []

    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("low"), priority=1, weak=False)
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("high"), priority=10, weak=False)
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("normal"), priority=5, weak=False)
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("normal-2"), priority=5, weak=False)

    event_bus.publish(MockEvent.TEST_EVENT)

    assert order == ["high", "normal", "normal-2", "low"]


def test_event_consumption(event_bus):
    received = []

    def consumer(event):
        received.append("consumer")
        event.consume()

    def later_handler(event):
        received.append("later")

    event_bus.subscribe(MockEvent.TEST_EVENT, consumer, priority=10)
    event_bus.subscribe(MockEvent.TEST_EVENT, later_handler, priority=5)

    event = event_bus.publish(MockEvent.TEST_EVENT)

    assert received == ["consumer"]
    assert event.consumed


def test_one_shot_handler(event_bus):
    received = []
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: received.append(e), one_shot=True, weak=False)

    event_bus.publish(MockEvent.TEST_EVENT)
    event_bus.publish(MockEvent.TEST_EVENT)

    assert len(received) == 1
    assert event_bus.handler_count(MockEvent.TEST_EVENT) == 0


def test_weak_handler_is_dropped(event_bus):
    class Listener:
        def __init__(self):
            self.calls = 0

        def on_event(self, event):
            self.calls += 1

    listener = Listener()
    event_bus.subscribe(MockEvent.TEST_EVENT, listener.on_event)
    assert event_bus.handler_count(MockEvent.TEST_EVENT) == 1

    del listener
    event_bus.publish(MockEvent.TEST_EVENT)
    assert event_bus.handler_count(MockEvent.TEST_EVENT) == 0


def test_handler_error_is_logged_not_raised(event_bus, caplog):
    received = []

    def broken(event):
        raise RuntimeError("boom")

    event_bus.subscribe(BattleEvent.ACTION_RESOLVED, broken, priority=5, weak=False)
    event_bus.subscribe(BattleEvent.ACTION_RESOLVED, lambda e: received.append(e), weak=False)

    with caplog.at_level(logging.ERROR, logger="engine.core.events"):
        event_bus.publish(BattleEvent.ACTION_RESOLVED)

    assert len(received) == 1
    assert "ACTION_RESOLVED" in caplog.text


def test_nested_publish_is_queued(event_bus):
    order = []

    def first(event):
        order.append("first")
        event_bus.publish(MockEvent.OTHER_EVENT)
        order.append("first-done")

    event_bus.subscribe(MockEvent.TEST_EVENT, first, weak=False)
    event_bus.subscribe(MockEvent.OTHER_EVENT, lambda e: order.append("other"), weak=False)

    event_bus.publish(MockEvent.TEST_EVENT)

    assert order == ["first", "first-done", "other"]


def test_clear_by_type(event_bus):
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: None, weak=False)
    event_bus.subscribe(MockEvent.OTHER_EVENT, lambda e: None, weak=False)

    event_bus.clear(MockEvent.TEST_EVENT)

    assert event_bus.handler_count(MockEvent.TEST_EVENT) == 0
    assert event_bus.handler_count(MockEvent.OTHER_EVENT) == 1


def test_event_dict_access():
    event = Event(type=MockEvent.TEST_EVENT, data={"a": 1})
    assert event["a"] == 1
    assert not event.consumed
