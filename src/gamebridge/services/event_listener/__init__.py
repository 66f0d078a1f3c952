"""Event subscriber service module."""

from gamebridge.services.event_listener.subscriber import (
    EventSubscriber,
    ListenerState,
    ListenerStats,
    SubscriberConfig,
)

__all__ = [
    "EventSubscriber",
    "ListenerState",
    "ListenerStats",
    "SubscriberConfig",
]
