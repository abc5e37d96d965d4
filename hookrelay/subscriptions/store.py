"""Repository subscriptions with SQLite backend."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from hookrelay.utils.logging import get_logger

log = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS subscriptions (
    destination TEXT NOT NULL,
    repo TEXT NOT NULL,
    token TEXT NOT NULL,
    created_at TEXT NOT NULL,
    PRIMARY KEY (destination, repo)
);
CREATE INDEX IF NOT EXISTS subscriptions_repo ON subscriptions (repo);
"""


class SubscriptionStore:
    """Maps repositories to the conversations following them.

    Repository names are stored lowercased so lookups are case-insensitive.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def start(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._db_path))
        await self._db.executescript(_SCHEMA)
        await self._db.commit()
        log.info("subscription_store_started", path=str(self._db_path))

    async def stop(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def add(self, destination: str, repo: str, token: str) -> None:
        """Upsert a subscription, recording the token issued for it."""
        assert self._db is not None
        now = datetime.now(timezone.utc).isoformat()
        await self._db.execute(
            "INSERT INTO subscriptions (destination, repo, token, created_at) "
            "VALUES (?, ?, ?, ?) "
            "ON CONFLICT(destination, repo) DO UPDATE SET token = excluded.token",
            (destination, repo.lower(), token, now),
        )
        await self._db.commit()

    async def remove(self, destination: str, repo: str) -> bool:
        """Delete a subscription. Returns True if one was deleted."""
        assert self._db is not None
        cursor = await self._db.execute(
            "DELETE FROM subscriptions WHERE destination = ? AND repo = ?",
            (destination, repo.lower()),
        )
        await self._db.commit()
        return cursor.rowcount > 0

    async def exists(self, destination: str, repo: str) -> bool:
        assert self._db is not None
        cursor = await self._db.execute(
            "SELECT 1 FROM subscriptions WHERE destination = ? AND repo = ?",
            (destination, repo.lower()),
        )
        return await cursor.fetchone() is not None

    async def lookup(self, repo: str) -> list[str]:
        """Destinations subscribed to ``repo``."""
        assert self._db is not None
        cursor = await self._db.execute(
            "SELECT destination FROM subscriptions WHERE repo = ? "
            "ORDER BY created_at, destination",
            (repo.lower(),),
        )
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def list_for_destination(self, destination: str) -> list[str]:
        """Repositories ``destination`` is subscribed to, sorted by name."""
        assert self._db is not None
        cursor = await self._db.execute(
            "SELECT repo FROM subscriptions WHERE destination = ? ORDER BY repo",
            (destination,),
        )
        rows = await cursor.fetchall()
        return [row[0] for row in rows]
