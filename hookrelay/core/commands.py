"""Subscription commands issued from chat."""

from __future__ import annotations

import re
from typing import Any, Callable, Coroutine

from hookrelay.config import Settings
from hookrelay.core.bus import Event
from hookrelay.models import IncomingMessage
from hookrelay.subscriptions.store import SubscriptionStore
from hookrelay.utils.logging import get_logger
from hookrelay.webhooks.tokens import expected_token

log = get_logger(__name__)

SendFn = Callable[[str, str], Coroutine[Any, Any, None]]

_REPO_RE = re.compile(r"^[\w.-]+/[\w.-]+$")


def format_setup_instructions(
    gitea_url: str, repo: str, webhook_url: str, token: str
) -> str:
    settings_url = f"{gitea_url.rstrip('/')}/{repo}/settings/hooks"
    return (
        f"To configure your project to send notifications, go to {settings_url} "
        "and add a new Gitea webhook.\n"
        f"For “Target URL”, enter `{webhook_url}`.\n"
        '"HTTP Method" is POST and the "Content Type" is application/json.\n'
        f"For “Secret”, enter `{token}`.\n"
        "Remember to check all the triggers you would like me to update you on.\n\n"
        "Happy coding!"
    )


class CommandHandler:
    """Handles ``!gitea subscribe|unsubscribe|list|help``."""

    def __init__(
        self,
        settings: Settings,
        store: SubscriptionStore,
        send_fn: SendFn,
    ) -> None:
        self._settings = settings
        self._store = store
        self._send = send_fn  # send_fn(destination, content)
        self._prefix = settings.commands.prefix.lower()

    async def on_event(self, event: Event) -> None:
        message: IncomingMessage | None = getattr(event, "message", None)
        if message is not None:
            await self.handle(message)

    async def handle(self, message: IncomingMessage) -> None:
        content = message.content.strip()
        if not content.lower().startswith(self._prefix):
            return
        rest = content[len(self._prefix):]
        if rest and not rest[0].isspace():
            return

        parts = rest.split()
        command = parts[0].lower() if parts else "help"
        args = parts[1:]
        destination = message.destination

        log.info(
            "command_received",
            command=command,
            destination=destination,
            user=message.user_name or message.user_id,
        )

        if command == "subscribe":
            await self._handle_subscribe(destination, args)
        elif command == "unsubscribe":
            await self._handle_unsubscribe(destination, args)
        elif command == "list":
            await self._handle_list(destination)
        elif command == "help":
            await self._send(destination, self.usage())
        else:
            await self._send(destination, f"Unknown command: {command}\n\n{self.usage()}")

    def usage(self) -> str:
        p = self._settings.commands.prefix
        return (
            f"**Commands:**\n"
            f"`{p} subscribe <owner/repo>` - post updates from a Gitea project here\n"
            f"`{p} unsubscribe <owner/repo>` - stop posting updates from a project\n"
            f"`{p} list` - list this conversation's subscriptions"
        )

    def _parse_repo(self, args: list[str]) -> str | None:
        if len(args) != 1 or not _REPO_RE.match(args[0]):
            return None
        return args[0].lower()

    async def _handle_subscribe(self, destination: str, args: list[str]) -> None:
        repo = self._parse_repo(args)
        if repo is None:
            await self._send(
                destination,
                f"Usage: `{self._settings.commands.prefix} subscribe <owner/repo>`",
            )
            return

        if await self._store.exists(destination, repo):
            await self._send(destination, f"You already have a subscription for {repo}.")
            return

        token = expected_token(repo, destination, self._settings.webhooks.secret)
        await self._store.add(destination, repo, token)
        log.info("subscription_added", destination=destination, repo=repo)

        instructions = format_setup_instructions(
            self._settings.gitea_url,
            repo,
            self._settings.webhooks.webhook_url,
            token,
        )
        await self._send(destination, f"Subscribed to {repo}!\n{instructions}")

    async def _handle_unsubscribe(self, destination: str, args: list[str]) -> None:
        repo = self._parse_repo(args)
        if repo is None:
            await self._send(
                destination,
                f"Usage: `{self._settings.commands.prefix} unsubscribe <owner/repo>`",
            )
            return

        if not await self._store.remove(destination, repo):
            await self._send(destination, f"You aren't subscribed to updates for {repo}!")
            return

        log.info("subscription_removed", destination=destination, repo=repo)
        await self._send(
            destination,
            f"Okay, you won't receive updates for {repo} here. "
            "You can remove the webhook from your project's settings.",
        )

    async def _handle_list(self, destination: str) -> None:
        repos = await self._store.list_for_destination(destination)
        if not repos:
            await self._send(destination, "This conversation has no subscriptions.")
            return
        lines = [f"- {repo}" for repo in repos]
        await self._send(destination, "**Subscriptions:**\n" + "\n".join(lines))
