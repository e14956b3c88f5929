"""Roster event vocabulary and the synchronous event bus.

The log watcher publishes four event kinds. They are modelled as a closed set
of frozen dataclasses so subscribers can dispatch on the class and a missing
branch is caught by ``dispatch()`` instead of silently ignored.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Join:
    """A player entered the lobby."""
    name: str


@dataclass(frozen=True)
class Leave:
    """A player left the lobby."""
    name: str


@dataclass(frozen=True)
class Reset:
    """The roster must be cleared."""


@dataclass(frozen=True)
class ServerChange:
    """Follows a Reset when the trigger was a server transition."""


LogEvent = Union[Join, Leave, Reset, ServerChange]

EVENT_TYPES: tuple[type, ...] = (Join, Leave, Reset, ServerChange)


class RosterSubscriber:
    """Base class for objects that react to every roster event kind.

    Subclasses override the four hooks; ``handle`` routes an event to the
    right one.
    """

    def on_join(self, name: str) -> None:
        pass

    def on_leave(self, name: str) -> None:
        pass

    def on_reset(self) -> None:
        pass

    def on_server_change(self) -> None:
        pass

    def handle(self, event: LogEvent) -> None:
        dispatch(event, self)


def dispatch(event: LogEvent, subscriber: RosterSubscriber) -> None:
    """Route an event to the matching subscriber hook.

    Raises:
        TypeError: If ``event`` is not one of the four roster event kinds.
    """
    if isinstance(event, Join):
        subscriber.on_join(event.name)
    elif isinstance(event, Leave):
        subscriber.on_leave(event.name)
    elif isinstance(event, Reset):
        subscriber.on_reset()
    elif isinstance(event, ServerChange):
        subscriber.on_server_change()
    else:
        raise TypeError(f"Unhandled roster event: {event!r}")


class RosterEventBus:
    """Delivers roster events to subscribers in publish order.

    Delivery is synchronous: ``publish`` returns once every handler has run.
    A failing handler is logged and skipped so one broken subscriber cannot
    stall the log watcher.

    Example:
        bus = RosterEventBus()
        bus.register_handler(Join, lambda e: print("joined", e.name))
        bus.subscribe(roster.handle)
        bus.publish(Join("Steve"))
    """

    def __init__(
        self,
        on_event: Optional[Callable[[LogEvent], None]] = None
    ) -> None:
        """Initialize the bus.

        Args:
            on_event: Optional handler subscribed to every event.
        """
        self._subscribers: list[Callable[[LogEvent], None]] = []
        self._handlers: dict[type, list[Callable[[LogEvent], None]]] = {}
        if on_event is not None:
            self._subscribers.append(on_event)

    def subscribe(self, handler: Callable[[LogEvent], None]) -> None:
        """Register a handler that receives every event."""
        self._subscribers.append(handler)

    def register_handler(
        self,
        event_type: type,
        handler: Callable[[LogEvent], None]
    ) -> None:
        """Register a handler for one event kind.

        Args:
            event_type: One of Join, Leave, Reset or ServerChange.
            handler: Callback receiving the event instance.
        """
        if event_type not in EVENT_TYPES:
            raise TypeError(f"Not a roster event type: {event_type!r}")
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Registered handler for {event_type.__name__}")

    def publish(self, event: LogEvent) -> None:
        """Deliver one event to all interested handlers."""
        logger.debug(f"Publishing {event!r}")

        for handler in self._subscribers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Subscriber error for {event!r}: {e}")

        for handler in self._handlers.get(type(event), []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Handler error for {type(event).__name__}: {e}")

    def publish_all(self, events: Iterable[LogEvent]) -> None:
        """Deliver a sequence of events in order."""
        for event in events:
            self.publish(event)
