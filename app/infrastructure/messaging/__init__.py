"""Messaging: domain event bus backends (in-process queue, Redis pub/sub)."""

from app.infrastructure.messaging.event_bus import (
    InMemoryEventBus,
    RedisEventBus,
    build_event_bus,
)

__all__ = [
    "InMemoryEventBus",
    "RedisEventBus",
    "build_event_bus",
]
