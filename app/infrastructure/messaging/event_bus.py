"""Domain event bus (implements IEventBus).

Two backends feed the trigger matcher:
- InMemoryEventBus: asyncio.Queue drained by one consumer task (single process).
- RedisEventBus: Redis pub/sub on one channel, JSON-encoded DomainEvent, so
  events published by any API replica reach every engine process.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import redis.asyncio as redis

from app.application.dtos.flow_execution import DomainEvent
from app.infrastructure.exceptions import GatewayTransientError
from app.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from app.application.interfaces.services import EventHandler
    from app.core.config import Settings

logger = get_logger(__name__)


class _HandlerFanout:
    """Delivers each event to every subscriber, isolating handler failures."""

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    async def _dispatch(self, event: DomainEvent) -> None:
        for handler in self._handlers:
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    "Event handler failed for %s (lead %s)", event.type, event.lead_id
                )


class InMemoryEventBus(_HandlerFanout):
    """In-process bus: publish enqueues, a background task delivers in order."""

    def __init__(self) -> None:
        super().__init__()
        self._queue: asyncio.Queue[DomainEvent] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._consume(), name="domain-event-bus")
            logger.info("In-memory event bus started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("In-memory event bus stopped")

    async def publish(self, event: DomainEvent) -> None:
        await self._queue.put(event)

    async def drain(self) -> None:
        """Wait until every published event has been handled."""
        await self._queue.join()

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._dispatch(event)
            finally:
                self._queue.task_done()


class RedisEventBus(_HandlerFanout):
    """Redis pub/sub bus on a single channel."""

    def __init__(
        self,
        channel: str,
        redis_client: redis.Redis | None = None,
        *,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: str | None = None,
    ) -> None:
        """Initialize. Pass redis_client for DI/testing."""
        super().__init__()
        self.channel = channel
        self.redis = redis_client or redis.Redis(
            host=host,
            port=port,
            db=db,
            password=password,
            decode_responses=True,
            socket_connect_timeout=5,
        )
        self._pubsub: redis.client.PubSub | None = None
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Subscribe to the channel and start the listener task."""
        if self._task is not None:
            return
        self._pubsub = self.redis.pubsub()
        await self._pubsub.subscribe(self.channel)
        self._task = asyncio.create_task(
            self._listen(self._pubsub), name="redis-event-bus"
        )
        logger.info("Subscribed to %s", self.channel)

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._pubsub is not None:
            await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
            self._pubsub = None
        await self.redis.aclose()
        logger.info("Unsubscribed from %s", self.channel)

    async def publish(self, event: DomainEvent) -> None:
        """Publish to the channel.

        Raises:
            GatewayTransientError: Redis unreachable.
        """
        try:
            await self.redis.publish(self.channel, json.dumps(event.to_dict()))
        except (redis.ConnectionError, redis.TimeoutError) as e:
            raise GatewayTransientError("redis", f"Event publish failed: {e}") from e
        logger.debug("Published %s for lead %s to %s", event.type, event.lead_id, self.channel)

    async def _listen(self, pubsub: redis.client.PubSub) -> None:
        async for message in pubsub.listen():
            if message["type"] != "message":
                continue
            try:
                event = DomainEvent.from_dict(json.loads(message["data"]))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                logger.exception("Failed to parse domain event message")
                continue
            await self._dispatch(event)


def build_event_bus(settings: Settings) -> InMemoryEventBus | RedisEventBus:
    """Create the configured event bus backend."""
    if settings.event_bus_backend == "redis":
        return RedisEventBus(
            settings.event_bus_channel,
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password.get_secret_value()
            if settings.redis_password
            else None,
        )
    return InMemoryEventBus()
