"""Tests for notification fan-out."""

from unittest.mock import AsyncMock

import pytest
from structlog.testing import capture_logs

from hookrelay.transports.base import DeliveryError
from hookrelay.webhooks.dispatcher import DeliveryStatus, Dispatcher
from hookrelay.webhooks.tokens import expected_token

SECRET = "shared-secret"
REPO = "org/app"


class FakeRegistry:
    def __init__(self, subscriptions=None, error=None):
        self.subscriptions = subscriptions or {}
        self.error = error
        self.lookups = []

    async def lookup(self, repo):
        self.lookups.append(repo)
        if self.error:
            raise self.error
        return list(self.subscriptions.get(repo, []))


def _token(destination, repo=REPO):
    return expected_token(repo, destination, SECRET)


@pytest.fixture
def send_fn():
    return AsyncMock()


class TestDispatcher:
    async def test_delivers_to_matching_destination(self, send_fn):
        registry = FakeRegistry({REPO: ["discord:1"]})
        dispatcher = Dispatcher(registry, send_fn, SECRET)

        outcomes = await dispatcher.dispatch(REPO, "hello", _token("discord:1"))

        send_fn.assert_awaited_once_with("discord:1", "hello")
        assert [o.status for o in outcomes] == [DeliveryStatus.DELIVERED]

    async def test_empty_text_is_noop(self, send_fn):
        registry = FakeRegistry({REPO: ["discord:1"]})
        dispatcher = Dispatcher(registry, send_fn, SECRET)

        assert await dispatcher.dispatch(REPO, "", _token("discord:1")) == []
        assert registry.lookups == []
        send_fn.assert_not_awaited()

    async def test_repo_is_lowercased(self, send_fn):
        registry = FakeRegistry({REPO: ["discord:1"]})
        dispatcher = Dispatcher(registry, send_fn, SECRET)

        await dispatcher.dispatch("Org/App", "hello", _token("discord:1"))

        assert registry.lookups == ["org/app"]
        send_fn.assert_awaited_once()

    async def test_mismatched_token_only_skips_that_destination(self, send_fn):
        destinations = ["discord:1", "discord:2", "signal:+15550001"]
        registry = FakeRegistry({REPO: destinations})
        dispatcher = Dispatcher(registry, send_fn, SECRET)

        # Gitea only knows the token issued to discord:2
        outcomes = await dispatcher.dispatch(REPO, "hello", _token("discord:2"))

        by_dest = {o.destination: o.status for o in outcomes}
        assert by_dest == {
            "discord:1": DeliveryStatus.SKIPPED,
            "discord:2": DeliveryStatus.DELIVERED,
            "signal:+15550001": DeliveryStatus.SKIPPED,
        }
        send_fn.assert_awaited_once_with("discord:2", "hello")

    async def test_stale_token_among_three(self, send_fn):
        destinations = ["discord:1", "discord:2", "discord:3"]

        # Each destination configured its own hook; one of them has a stale token
        tokens = {d: _token(d) for d in destinations}
        tokens["discord:3"] = "stale"

        delivered = []
        for dest in destinations:
            dispatcher = Dispatcher(FakeRegistry({REPO: destinations}), send_fn, SECRET)
            outcomes = await dispatcher.dispatch(REPO, "hi", tokens[dest])
            delivered.extend(o.destination for o in outcomes if o.status is DeliveryStatus.DELIVERED)

        assert delivered == ["discord:1", "discord:2"]
        assert send_fn.await_count == 2

    async def test_delivery_failure_is_isolated(self, monkeypatch):
        destinations = ["discord:1", "discord:2", "discord:3"]
        registry = FakeRegistry({REPO: destinations})
        sent = []

        async def send(destination, text):
            if destination == "discord:2":
                raise DeliveryError("channel gone")
            sent.append(destination)

        # Every destination shares one token so all of them pass verification
        monkeypatch.setattr(
            "hookrelay.webhooks.dispatcher.expected_token", lambda repo, dest, secret: "tok"
        )
        dispatcher = Dispatcher(registry, send, SECRET)
        outcomes = await dispatcher.dispatch(REPO, "x", "tok")

        assert [o.status for o in outcomes] == [
            DeliveryStatus.DELIVERED,
            DeliveryStatus.FAILED,
            DeliveryStatus.DELIVERED,
        ]
        assert "channel gone" in outcomes[1].error
        assert sorted(sent) == ["discord:1", "discord:3"]

    async def test_unexpected_send_error_does_not_raise(self):
        registry = FakeRegistry({REPO: ["discord:1"]})
        send = AsyncMock(side_effect=RuntimeError("boom"))
        dispatcher = Dispatcher(registry, send, SECRET)

        outcomes = await dispatcher.dispatch(REPO, "x", _token("discord:1"))
        assert outcomes[0].status is DeliveryStatus.FAILED

    async def test_lookup_failure_aborts(self, send_fn):
        registry = FakeRegistry(error=RuntimeError("db down"))
        dispatcher = Dispatcher(registry, send_fn, SECRET)

        assert await dispatcher.dispatch(REPO, "x", _token("discord:1")) == []
        send_fn.assert_not_awaited()

    async def test_no_subscribers(self, send_fn):
        dispatcher = Dispatcher(FakeRegistry(), send_fn, SECRET)
        assert await dispatcher.dispatch(REPO, "x", "whatever") == []
        send_fn.assert_not_awaited()

    async def test_outcomes_follow_lookup_order(self, send_fn):
        destinations = ["discord:3", "discord:1", "discord:2"]
        dispatcher = Dispatcher(FakeRegistry({REPO: destinations}), send_fn, SECRET)

        outcomes = await dispatcher.dispatch(REPO, "x", "nope")
        assert [o.destination for o in outcomes] == destinations

    async def test_mismatch_is_logged(self, send_fn):
        dispatcher = Dispatcher(FakeRegistry({REPO: ["discord:1"]}), send_fn, SECRET)

        with capture_logs() as logs:
            outcomes = await dispatcher.dispatch(REPO, "x", "forged")

        assert outcomes[0].status is DeliveryStatus.SKIPPED
        mismatches = [e for e in logs if e["event"] == "dispatch_token_mismatch"]
        assert mismatches[0]["destination"] == "discord:1"
        assert mismatches[0]["log_level"] == "warning"
