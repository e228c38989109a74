"""
Typed event bus for decoupled communication.

Battle sessions and run orchestrators publish here; UI, sound and
reward collaborators subscribe. Enums for event types keep the
vocabulary closed.

Usage:
    bus = EventBus()

    # Subscribe
    bus.subscribe(BattleEvent.ACTION_RESOLVED, on_action, weak=False)

    # Publish
    bus.publish(BattleEvent.ACTION_RESOLVED, action=action, session_id="stage-1")
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


class BattleEvent(Enum):
    """Events published by a battle session."""
    BATTLE_STARTED = auto()
    ACTION_RESOLVED = auto()
    LOG_APPENDED = auto()
    STATE_CHANGED = auto()
    BATTLE_ENDED = auto()


class RunEvent(Enum):
    """Events published by a run orchestrator."""
    PHASE_CHANGED = auto()
    ENCOUNTER_STARTED = auto()
    ENCOUNTER_ENDED = auto()
    OBJECTIVE_COMPLETED = auto()
    RUN_COMPLETED = auto()


@dataclass
class Event:
    """
    One published event.

    Attributes:
        type: BattleEvent, RunEvent or any other Enum member
        data: Keyword payload given to publish() (session, action, state...)
        consumed: Set by a handler to stop lower-priority handlers
    """
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)
    consumed: bool = False

    def consume(self) -> None:
        self.consumed = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]


# Compared by identity: registering one callable twice yields two entries
@dataclass(eq=False)
class _Subscription:
    priority: int
    target: Any
    one_shot: bool = False

    def resolve(self) -> EventHandler | None:
        if isinstance(self.target, (ref, WeakMethod)):
            return self.target()
        return self.target

    def matches(self, handler: EventHandler) -> bool:
        return self.resolve() == handler


class EventBus:
    """
    Synchronous publish/subscribe hub shared by sessions and runs.

    Handlers run in priority order (highest first, FIFO within a
    priority). A handler that raises is logged and skipped so a broken
    UI callback can never stall a battle. Events published from inside
    a handler are queued and delivered once the current event is done,
    so subscribers always see events in publication order.
    """

    def __init__(self):
        self._subscriptions: dict[Enum, list[_Subscription]] = {}
        self._pending: deque[Event] = deque()
        self._dispatching = False

    def subscribe(
        self,
        event_type: Enum,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = True,
    ) -> None:
        """
        Register a handler for an event type.

        Args:
            event_type: Enum member to listen for
            handler: Callable taking the Event
            priority: Higher runs earlier
            one_shot: Drop the handler after its first delivery
            weak: Hold only a weak reference; closures and lambdas
                  need weak=False or they vanish immediately
        """
        if weak:
            target = WeakMethod(handler) if hasattr(handler, "__self__") else ref(handler)
        else:
            target = handler

        subscriptions = self._subscriptions.setdefault(event_type, [])
        position = next(
            (i for i, sub in enumerate(subscriptions) if priority > sub.priority),
            len(subscriptions),
        )
        subscriptions.insert(position, _Subscription(priority, target, one_shot))

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        subscriptions = self._subscriptions.get(event_type)
        if subscriptions:
            self._subscriptions[event_type] = [s for s in subscriptions if not s.matches(handler)]

    def publish(self, event_type: Enum, **data: Any) -> Event:
        """
        Build and deliver an event.

        Returns:
            The delivered Event (already dispatched unless queued behind
            the event currently being handled)
        """
        event = Event(type=event_type, data=data)
        self.publish_event(event)
        return event

    def publish_event(self, event: Event) -> None:
        self._pending.append(event)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._pending:
                self._deliver(self._pending.popleft())
        finally:
            self._dispatching = False

    def handler_count(self, event_type: Enum) -> int:
        """Live handlers for an event type."""
        return sum(1 for s in self._subscriptions.get(event_type, ()) if s.resolve() is not None)

    def clear(self, event_type: Enum | None = None) -> None:
        """Drop the handlers of one event type, or of every type."""
        if event_type is None:
            self._subscriptions.clear()
        else:
            self._subscriptions.pop(event_type, None)

    def _deliver(self, event: Event) -> None:
        subscriptions = self._subscriptions.get(event.type)
        if not subscriptions:
            return

        finished = []
        for subscription in list(subscriptions):
            handler = subscription.resolve()
            if handler is None:
                finished.append(subscription)
                continue

            try:
                handler(event)
            except Exception:
                logger.exception(f"Handler {handler!r} failed on {event.type.name}")

            if subscription.one_shot:
                finished.append(subscription)
            if event.consumed:
                break

        if finished:
            self._subscriptions[event.type] = [
                s for s in self._subscriptions.get(event.type, ()) if s not in finished
            ]
