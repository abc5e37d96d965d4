"""Async pub/sub event bus between chat transports and command handling."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Coroutine
from uuid import uuid4

from hookrelay.models import IncomingMessage
from hookrelay.utils.logging import get_logger

log = get_logger(__name__)


class EventType(str, Enum):
    MESSAGE_INCOMING = "message.incoming"


@dataclass
class Event:
    type: EventType
    id: str = field(default_factory=lambda: uuid4().hex[:12])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class MessageIncoming(Event):
    type: EventType = field(default=EventType.MESSAGE_INCOMING, init=False)
    message: IncomingMessage | None = field(default=None)


Handler = Callable[[Event], Coroutine[Any, Any, None]]


class EventBus:
    """Per-subscriber bounded queues, each drained by its own task.

    A slow or failing handler never blocks publishers or other handlers.
    """

    def __init__(self, max_queue_size: int = 256) -> None:
        self._subscribers: dict[EventType, list[tuple[Handler, asyncio.Queue[Event]]]] = {}
        self._max_queue_size = max_queue_size
        self._running = False
        self._tasks: list[asyncio.Task[None]] = []

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers.setdefault(event_type, []).append((handler, queue))

    async def publish(self, event: Event) -> None:
        for handler, queue in self._subscribers.get(event.type, []):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                log.warning(
                    "event_queue_full",
                    event_type=event.type.value,
                    handler=handler.__qualname__,
                )

    async def start(self) -> None:
        self._running = True
        for event_type, handler_list in self._subscribers.items():
            for handler, queue in handler_list:
                task = asyncio.create_task(
                    self._consumer(handler, queue, event_type.value),
                    name=f"bus-{event_type.value}-{handler.__qualname__}",
                )
                self._tasks.append(task)

    async def _consumer(
        self, handler: Handler, queue: asyncio.Queue[Event], event_type: str
    ) -> None:
        while self._running:
            event = await queue.get()
            try:
                await handler(event)
            except Exception:
                log.exception("handler_error", event_type=event_type)

    async def stop(self) -> None:
        self._running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
