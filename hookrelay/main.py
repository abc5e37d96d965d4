"""hookrelay entry point: wires everything together and runs the bridge."""

from __future__ import annotations

import asyncio
import signal
import sys

import click

from hookrelay import __version__
from hookrelay.config import Settings, load_settings
from hookrelay.core.bus import EventBus, EventType
from hookrelay.core.commands import CommandHandler
from hookrelay.subscriptions.store import SubscriptionStore
from hookrelay.transports.discord_transport import DiscordTransport
from hookrelay.transports.router import TransportRouter
from hookrelay.transports.signal_transport import SignalTransport
from hookrelay.utils.logging import get_logger, setup_logging
from hookrelay.webhooks.dispatcher import Dispatcher
from hookrelay.webhooks.server import WebhookServer

log = get_logger(__name__)


class HookRelay:
    """Main application orchestrator."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

        self.bus = EventBus()
        self.store = SubscriptionStore(settings.get_data_dir() / "subscriptions.db")
        self.router = TransportRouter()

        if settings.discord.token:
            self.router.add(
                DiscordTransport(settings.discord, self.bus, settings.commands.prefix)
            )
        if settings.signal.phone_number:
            self.router.add(SignalTransport(settings.signal, self.bus))

        self.commands = CommandHandler(settings, self.store, self.router.send)
        self.dispatcher = Dispatcher(self.store, self.router.send, settings.webhooks.secret)
        self.webhooks = WebhookServer(settings.webhooks, self.dispatcher)

    async def start(self) -> None:
        log.info("hookrelay_starting", version=__version__)
        if not self.router.transports:
            log.warning("no_transports_configured")

        await self.store.start()
        self.bus.subscribe(EventType.MESSAGE_INCOMING, self.commands.on_event)
        await self.bus.start()
        await self.router.start()
        await self.webhooks.start()
        log.info("hookrelay_ready", webhook_url=self.settings.webhooks.webhook_url)

    async def stop(self) -> None:
        log.info("hookrelay_stopping")
        await self.webhooks.stop()
        await self.router.stop()
        await self.bus.stop()
        await self.store.stop()
        log.info("hookrelay_stopped")


async def run(settings: Settings) -> None:
    app = HookRelay(settings)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    await app.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await app.stop()


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.version_option(__version__, prog_name="hookrelay")
def cli(config_path: str | None, log_level: str | None) -> None:
    """Relay Gitea webhook notifications to chat conversations."""
    settings = load_settings(config_path)
    if log_level:
        settings.log_level = log_level
    if not settings.webhooks.secret:
        raise click.UsageError(
            "No webhook secret configured. Set HOOKRELAY_WEBHOOKS__SECRET "
            "or webhooks.secret in the config file."
        )
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    asyncio.run(run(settings))


if __name__ == "__main__":
    cli()
