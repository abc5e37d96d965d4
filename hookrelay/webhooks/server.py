"""Webhook HTTP server using aiohttp."""

from __future__ import annotations

import asyncio

from aiohttp import web

from hookrelay.config import WebhooksConfig
from hookrelay.utils.logging import get_logger
from hookrelay.webhooks.decoder import DecodeError, decode
from hookrelay.webhooks.dispatcher import DeliveryOutcome, Dispatcher
from hookrelay.webhooks.formatters import format_event

log = get_logger(__name__)

HEALTH_TEXT = "beep boop! :)"


class WebhookServer:
    """Receives Gitea webhooks and hands them to the dispatcher.

    Always answers 200: Gitea does nothing useful with error statuses, so
    failures are logged rather than reported to the sender.
    """

    def __init__(self, config: WebhooksConfig, dispatcher: Dispatcher) -> None:
        self._config = config
        self._dispatcher = dispatcher
        self._runner: web.AppRunner | None = None
        self._pending: set[asyncio.Task[list[DeliveryOutcome]]] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        app = self._build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.bind, self._config.port)
        await site.start()
        log.info(
            "webhook_server_started",
            bind=self._config.bind,
            port=self._config.port,
            path=self._config.webhook_path,
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        await self.drain()
        log.info("webhook_server_stopped")

    async def drain(self) -> None:
        """Wait for in-flight webhook processing to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def _build_app(self) -> web.Application:
        app = web.Application(client_max_size=self._config.max_body_bytes)
        app.router.add_post(self._config.webhook_path, self._handle_webhook)
        app.router.add_route("*", self._config.health_path, self._handle_health)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.Response(status=200, text=HEALTH_TEXT)

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        label = request.headers.get(self._config.event_header, "")
        try:
            body = await request.read()
        except web.HTTPRequestEntityTooLarge:
            log.warning("webhook_body_too_large", event_type=label)
            return web.Response(status=200, text="OK")

        task = asyncio.create_task(
            self.process(label, body), name=f"webhook-{label or 'unknown'}"
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return web.Response(status=200, text="OK")

    async def process(self, label: str, body: bytes) -> list[DeliveryOutcome]:
        """Decode, format, and dispatch a single webhook."""
        try:
            event = decode(label, body)
        except DecodeError as exc:
            log.error("webhook_decode_failed", event_type=label, error=exc.reason)
            return []

        try:
            notification = format_event(event)
            if notification.is_empty:
                log.debug("webhook_nothing_to_announce", event_type=label)
                return []

            log.info(
                "webhook_received",
                event_type=label,
                repo=notification.repository,
            )
            return await self._dispatcher.dispatch(
                notification.repository, notification.text, notification.secret
            )
        except Exception:
            log.exception("webhook_processing_error", event_type=label)
            return []
