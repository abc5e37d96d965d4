"""Fan-out of rendered notifications to subscribed conversations."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol

from hookrelay.utils.logging import get_logger
from hookrelay.webhooks.tokens import expected_token, verify_token

log = get_logger(__name__)

SendFn = Callable[[str, str], Awaitable[Any]]


class SubscriptionLookup(Protocol):
    async def lookup(self, repo: str) -> list[str]: ...


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class DeliveryOutcome:
    destination: str
    status: DeliveryStatus
    error: str = ""


class Dispatcher:
    """Delivers a notification to every conversation whose token matches.

    ``send_fn(destination, text)`` raises on failure. Failures and token
    mismatches are isolated to their own destination and reported in the
    returned outcomes.
    """

    def __init__(
        self, registry: SubscriptionLookup, send_fn: SendFn, shared_secret: str
    ) -> None:
        self._registry = registry
        self._send = send_fn
        self._shared_secret = shared_secret

    async def dispatch(
        self, repo: str, text: str, presented_token: str
    ) -> list[DeliveryOutcome]:
        if not text or not repo:
            return []

        repo = repo.lower()
        try:
            destinations = await self._registry.lookup(repo)
        except Exception:
            log.exception("dispatch_lookup_failed", repo=repo)
            return []

        if not destinations:
            log.debug("dispatch_no_subscribers", repo=repo)
            return []

        outcomes = await asyncio.gather(
            *(self._deliver(repo, dest, text, presented_token) for dest in destinations)
        )
        log.info(
            "dispatch_complete",
            repo=repo,
            delivered=sum(o.status is DeliveryStatus.DELIVERED for o in outcomes),
            skipped=sum(o.status is DeliveryStatus.SKIPPED for o in outcomes),
            failed=sum(o.status is DeliveryStatus.FAILED for o in outcomes),
        )
        return list(outcomes)

    async def _deliver(
        self, repo: str, destination: str, text: str, presented_token: str
    ) -> DeliveryOutcome:
        expected = expected_token(repo, destination, self._shared_secret)
        if not verify_token(presented_token, expected):
            log.warning("dispatch_token_mismatch", repo=repo, destination=destination)
            return DeliveryOutcome(destination, DeliveryStatus.SKIPPED, "token mismatch")

        try:
            await self._send(destination, text)
        except Exception as exc:
            log.error(
                "dispatch_delivery_failed",
                repo=repo,
                destination=destination,
                error=str(exc),
            )
            return DeliveryOutcome(destination, DeliveryStatus.FAILED, str(exc))

        return DeliveryOutcome(destination, DeliveryStatus.DELIVERED)
