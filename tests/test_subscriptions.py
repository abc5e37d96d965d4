"""Tests for the subscription store."""

import pytest

from hookrelay.subscriptions.store import SubscriptionStore


@pytest.fixture
async def store(tmp_path):
    s = SubscriptionStore(tmp_path / "subscriptions.db")
    await s.start()
    yield s
    await s.stop()


class TestSubscriptionStore:
    async def test_add_and_lookup(self, store):
        await store.add("discord:1", "org/app", "tok1")
        await store.add("signal:+1555", "org/app", "tok2")
        await store.add("discord:1", "org/other", "tok3")

        assert sorted(await store.lookup("org/app")) == ["discord:1", "signal:+1555"]
        assert await store.lookup("org/other") == ["discord:1"]

    async def test_lookup_unknown_repo(self, store):
        assert await store.lookup("nobody/nothing") == []

    async def test_case_insensitive(self, store):
        await store.add("discord:1", "Org/Repo", "tok")
        assert await store.lookup("org/repo") == ["discord:1"]
        assert await store.lookup("ORG/REPO") == ["discord:1"]
        assert await store.exists("discord:1", "org/REPO") is True

    async def test_add_is_idempotent(self, store):
        await store.add("discord:1", "org/app", "old")
        await store.add("discord:1", "org/app", "new")
        assert await store.lookup("org/app") == ["discord:1"]

    async def test_exists(self, store):
        assert await store.exists("discord:1", "org/app") is False
        await store.add("discord:1", "org/app", "tok")
        assert await store.exists("discord:1", "org/app") is True
        assert await store.exists("discord:2", "org/app") is False

    async def test_remove(self, store):
        await store.add("discord:1", "org/app", "tok")
        await store.add("discord:2", "org/app", "tok")

        assert await store.remove("discord:1", "Org/App") is True
        assert await store.lookup("org/app") == ["discord:2"]

    async def test_remove_nonexistent(self, store):
        assert await store.remove("discord:1", "org/app") is False

    async def test_list_for_destination_sorted(self, store):
        await store.add("discord:1", "org/zeta", "t")
        await store.add("discord:1", "org/alpha", "t")
        await store.add("discord:2", "org/beta", "t")

        assert await store.list_for_destination("discord:1") == ["org/alpha", "org/zeta"]
        assert await store.list_for_destination("discord:3") == []

    async def test_persists_across_restart(self, tmp_path):
        path = tmp_path / "nested" / "subs.db"
        first = SubscriptionStore(path)
        await first.start()
        await first.add("discord:1", "org/app", "tok")
        await first.stop()

        second = SubscriptionStore(path)
        await second.start()
        try:
            assert await second.lookup("org/app") == ["discord:1"]
        finally:
            await second.stop()
