"""Chat message models shared by transports and command handling."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class IncomingMessage:
    platform: str
    channel: str
    user_id: str
    content: str
    user_name: str = ""
    message_id: str = ""

    @property
    def destination(self) -> str:
        """The ``<platform>:<channel>`` address replies and notifications use."""
        return make_destination(self.platform, self.channel)


def make_destination(platform: str, channel: str) -> str:
    return f"{platform}:{channel}"


def split_destination(destination: str) -> tuple[str, str]:
    """Split ``<platform>:<channel>``. Raises ValueError if malformed."""
    platform, sep, channel = destination.partition(":")
    if not sep or not platform or not channel:
        raise ValueError(f"malformed destination: {destination!r}")
    return platform, channel
