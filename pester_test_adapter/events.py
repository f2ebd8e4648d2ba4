"""Ordered publish/subscribe channel for adapter events."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from pester_test_adapter.models.events import TestAdapterEvent

log = logging.getLogger(__name__)

type Listener = Callable[[TestAdapterEvent], None]


@dataclass(frozen=True, kw_only=True)
class Subscription:
    """Handle returned by ``EventChannel.subscribe``."""

    channel: "EventChannel" = field(repr=False)
    listener: Listener

    def dispose(self) -> None:
        """Stop delivering events to the listener."""
        self.channel.unsubscribe(self.listener)


class EventChannel:
    """Deliver events to listeners synchronously, in the order they are fired."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Subscription:
        """Register ``listener`` for every future event."""
        self._listeners.append(listener)
        return Subscription(channel=self, listener=listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Remove ``listener`` if it is registered."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def fire(self, event: TestAdapterEvent) -> None:
        """Deliver ``event`` to all listeners."""
        for listener in tuple(self._listeners):
            try:
                listener(event)
            except Exception as e:
                log.error("Event listener failed: %s", e, exc_info=e)

    def dispose(self) -> None:
        """Drop all listeners."""
        self._listeners.clear()
