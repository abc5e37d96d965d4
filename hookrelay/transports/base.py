"""Abstract transport base class."""

from __future__ import annotations

from abc import ABC, abstractmethod

from hookrelay.core.bus import EventBus


class DeliveryError(Exception):
    """A message could not be handed to the chat platform."""


class Transport(ABC):
    def __init__(self, bus: EventBus) -> None:
        self.bus = bus

    @property
    @abstractmethod
    def platform_name(self) -> str: ...

    @abstractmethod
    async def start(self) -> None: ...

    @abstractmethod
    async def stop(self) -> None: ...

    @abstractmethod
    async def send_message(self, channel: str, content: str) -> None:
        """Send ``content`` to ``channel``. Raises DeliveryError on failure."""


def split_text(text: str, limit: int) -> list[str]:
    """Split text into chunks of at most ``limit`` characters.

    Breaks on line boundaries where possible; a single overlong line is cut.
    """
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) <= limit:
            current = candidate
        else:
            chunks.append(current)
            current = line
    if current:
        chunks.append(current)
    return chunks
