"""Signal transport via signal-cli-rest-api (HTTP)."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from hookrelay.config import SignalConfig
from hookrelay.core.bus import EventBus, MessageIncoming
from hookrelay.models import IncomingMessage
from hookrelay.transports.base import DeliveryError, Transport, split_text
from hookrelay.utils.logging import get_logger

log = get_logger(__name__)


class SignalTransport(Transport):
    def __init__(
        self,
        config: SignalConfig,
        bus: EventBus,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(bus)
        self._config = config
        self._running = False
        self._receive_task: asyncio.Task[None] | None = None
        self._http_client = http_client

    @property
    def platform_name(self) -> str:
        return "signal"

    async def start(self) -> None:
        self._running = True
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self._config.rest_api_url.rstrip("/"),
                timeout=self._config.timeout,
            )
        self._receive_task = asyncio.create_task(
            self._poll_rest_api(), name="signal-rest-poller"
        )
        log.info("signal_transport_started", url=self._config.rest_api_url)

    async def stop(self) -> None:
        self._running = False
        if self._receive_task:
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass
            self._receive_task = None
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        log.info("signal_transport_stopped")

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    async def _poll_rest_api(self) -> None:
        number = self._config.phone_number
        while self._running:
            try:
                assert self._http_client is not None
                resp = await self._http_client.get(f"/v1/receive/{number}")
                if resp.status_code == 200:
                    for envelope in resp.json():
                        await self.handle_envelope(envelope)
            except httpx.TransportError:
                log.warning("signal_rest_api_unavailable")
                await asyncio.sleep(10)
            except Exception:
                log.exception("signal_rest_poll_error")
                await asyncio.sleep(5)
            else:
                await asyncio.sleep(self._config.poll_interval)

    async def handle_envelope(self, envelope: dict[str, Any]) -> None:
        """Publish the chat message carried by a signal-cli envelope, if any."""
        env = envelope.get("envelope", envelope)
        data_msg = env.get("dataMessage")
        if not data_msg:
            return

        content = (data_msg.get("message") or "").strip()
        if not content:
            return

        sender = env.get("source", env.get("sourceNumber", ""))
        group_info = data_msg.get("groupInfo")
        group_id = group_info.get("groupId", "") if group_info else ""

        msg = IncomingMessage(
            platform=self.platform_name,
            channel=group_id or sender,
            user_id=sender,
            user_name=env.get("sourceName", sender),
            content=content,
            message_id=str(env.get("timestamp", "")),
        )
        await self.bus.publish(MessageIncoming(message=msg))

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send_message(self, channel: str, content: str) -> None:
        if self._http_client is None:
            raise DeliveryError("signal transport is not started")

        for chunk in split_text(content, self._config.message_limit):
            body = {
                "message": chunk,
                "number": self._config.phone_number,
                # Group IDs are base64 text, individual recipients are E.164 numbers
                "recipients": [channel],
            }
            try:
                resp = await self._http_client.post("/v2/send", json=body)
            except httpx.HTTPError as exc:
                raise DeliveryError(f"signal send failed: {exc}") from exc
            if resp.status_code not in (200, 201):
                raise DeliveryError(
                    f"signal send failed with status {resp.status_code}: {resp.text[:200]}"
                )
