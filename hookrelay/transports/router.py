"""Route ``<platform>:<channel>`` destinations to their transport."""

from __future__ import annotations

from hookrelay.models import split_destination
from hookrelay.transports.base import DeliveryError, Transport
from hookrelay.utils.logging import get_logger

log = get_logger(__name__)


class TransportRouter:
    def __init__(self, transports: list[Transport] | None = None) -> None:
        self._transports: dict[str, Transport] = {}
        for transport in transports or []:
            self.add(transport)

    def add(self, transport: Transport) -> None:
        self._transports[transport.platform_name] = transport

    @property
    def transports(self) -> list[Transport]:
        return list(self._transports.values())

    async def start(self) -> None:
        for transport in self._transports.values():
            await transport.start()

    async def stop(self) -> None:
        for transport in reversed(list(self._transports.values())):
            try:
                await transport.stop()
            except Exception:
                log.exception("transport_stop_error", platform=transport.platform_name)

    async def send(self, destination: str, text: str) -> None:
        """Deliver ``text`` to ``destination``. Raises DeliveryError."""
        try:
            platform, channel = split_destination(destination)
        except ValueError as exc:
            raise DeliveryError(str(exc)) from None

        transport = self._transports.get(platform)
        if transport is None:
            raise DeliveryError(f"no transport for platform {platform!r}")
        await transport.send_message(channel, text)
