"""Serialisation of booking attempts that contend for the same resources.

A locking read alone cannot stop two attempts that both find *no* rows from
inserting side by side, so every attempt also takes one lock per resource
dimension scoped to the candidate date before it reads.
"""
from __future__ import annotations

import asyncio
import hashlib
import logging
from contextlib import asynccontextmanager, nullcontext
from typing import AsyncContextManager, AsyncIterator, Iterable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.booking.records import BookingCandidate, ResourceKind

logger = logging.getLogger(__name__)


def lock_keys(candidate: BookingCandidate) -> list[str]:
    day = candidate.class_date.isoformat()
    return sorted(f"{kind.value}:{candidate.resource_id(kind)}:{day}" for kind in ResourceKind)


def advisory_key(key: str) -> int:
    digest = hashlib.blake2b(key.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


class KeyedLockRegistry:
    """In-process ``asyncio.Lock`` per key, dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, keys: Iterable[str]) -> AsyncIterator[None]:
        ordered = sorted(set(keys))
        for key in ordered:
            self._refs[key] = self._refs.get(key, 0) + 1
            self._locks.setdefault(key, asyncio.Lock())

        acquired: list[str] = []
        try:
            for key in ordered:
                await self._locks[key].acquire()
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
            for key in ordered:
                self._refs[key] -= 1
                if self._refs[key] == 0:
                    del self._refs[key]
                    del self._locks[key]


class BookingLockStrategy:
    name = "none"

    def hold(self, keys: list[str]) -> AsyncContextManager[None]:
        """Context held around the whole transaction."""
        return nullcontext()

    async def acquire_in_transaction(self, session: AsyncSession, keys: list[str]) -> None:
        """Locks taken inside the transaction and released when it ends."""
        return None


class AdvisoryLockStrategy(BookingLockStrategy):
    name = "advisory"

    async def acquire_in_transaction(self, session: AsyncSession, keys: list[str]) -> None:
        for key in sorted(keys):
            await session.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": advisory_key(key)})


class LocalLockStrategy(BookingLockStrategy):
    name = "local"

    def __init__(self, registry: KeyedLockRegistry | None = None) -> None:
        self.registry = registry or KeyedLockRegistry()

    def hold(self, keys: list[str]) -> AsyncContextManager[None]:
        return self.registry.hold(keys)


def build_lock_strategy(setting: str, dialect_name: str) -> BookingLockStrategy:
    if setting == "advisory" or (setting == "auto" and dialect_name == "postgresql"):
        if dialect_name != "postgresql":
            raise ValueError(f"Advisory booking locks need PostgreSQL, not {dialect_name}")
        strategy: BookingLockStrategy = AdvisoryLockStrategy()
    elif setting in {"auto", "local"}:
        strategy = LocalLockStrategy()
    else:
        raise ValueError(f"Unknown booking lock strategy: {setting}")
    logger.info("Booking lock strategy: %s (dialect=%s)", strategy.name, dialect_name)
    return strategy
