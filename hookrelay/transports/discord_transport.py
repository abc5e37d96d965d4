"""Discord transport using discord.py."""

from __future__ import annotations

import asyncio

import discord

from hookrelay.config import DiscordConfig
from hookrelay.core.bus import EventBus, MessageIncoming
from hookrelay.models import IncomingMessage
from hookrelay.transports.base import DeliveryError, Transport, split_text
from hookrelay.utils.logging import get_logger

log = get_logger(__name__)

_Sendable = (discord.TextChannel, discord.DMChannel, discord.Thread)


class DiscordTransport(Transport):
    def __init__(
        self, config: DiscordConfig, bus: EventBus, command_prefix: str = "!gitea"
    ) -> None:
        super().__init__(bus)
        self._config = config
        self._command_prefix = command_prefix

        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True

        self._client = discord.Client(intents=intents)
        self._client_task: asyncio.Task[None] | None = None
        self._setup_handlers()

    @property
    def platform_name(self) -> str:
        return "discord"

    def _setup_handlers(self) -> None:
        @self._client.event
        async def on_ready() -> None:
            log.info("discord_connected", user=str(self._client.user))

        @self._client.event
        async def on_message(message: discord.Message) -> None:
            if message.author == self._client.user or message.author.bot:
                return

            if self._config.guild_ids and message.guild:
                if message.guild.id not in self._config.guild_ids:
                    return

            content = message.content.strip()
            is_dm = isinstance(message.channel, discord.DMChannel)
            is_mentioned = self._client.user in message.mentions if self._client.user else False
            is_command = content.lower().startswith(self._command_prefix.lower())

            if not (is_dm or is_mentioned or is_command):
                return

            if self._client.user:
                content = content.replace(f"<@{self._client.user.id}>", "").strip()
                content = content.replace(f"<@!{self._client.user.id}>", "").strip()

            msg = IncomingMessage(
                platform=self.platform_name,
                channel=str(message.channel.id),
                user_id=str(message.author.id),
                user_name=message.author.display_name,
                content=content,
                message_id=str(message.id),
            )
            await self.bus.publish(MessageIncoming(message=msg))

    async def start(self) -> None:
        self._client_task = asyncio.create_task(
            self._client.start(self._config.token),
            name="discord-client",
        )
        log.info("discord_transport_starting")

    async def stop(self) -> None:
        await self._client.close()
        if self._client_task is not None:
            await asyncio.gather(self._client_task, return_exceptions=True)
            self._client_task = None
        log.info("discord_transport_stopped")

    async def _resolve_channel(self, channel: str) -> discord.abc.Messageable:
        try:
            channel_id = int(channel)
        except ValueError:
            raise DeliveryError(f"invalid discord channel id: {channel!r}") from None

        target = self._client.get_channel(channel_id)
        if target is None:
            try:
                target = await self._client.fetch_channel(channel_id)
            except (discord.NotFound, discord.Forbidden) as exc:
                raise DeliveryError(f"discord channel {channel_id} unavailable: {exc}") from exc

        if not isinstance(target, _Sendable):
            raise DeliveryError(f"discord channel {channel_id} cannot receive messages")
        return target

    async def send_message(self, channel: str, content: str) -> None:
        target = await self._resolve_channel(channel)
        try:
            for chunk in split_text(content, self._config.message_limit):
                await target.send(content=chunk)
        except discord.HTTPException as exc:
            raise DeliveryError(f"discord send failed: {exc}") from exc
