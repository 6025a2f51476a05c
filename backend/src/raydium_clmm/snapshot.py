"""
Read-only pool snapshots for display.

Every request takes a new generation number. A result is applied only if its
generation is still the latest when it completes, so a slow fetch for an old
address can never overwrite the snapshot of a newer one, whatever order the
network answers in.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import AsyncIterable, AsyncIterator, Mapping, Optional

from raydium_clmm.errors import ClmmSwapError
from raydium_clmm.pool_layout import ClmmPoolState, TokenMint
from raydium_clmm.resolver import PoolResolver, is_valid_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolSnapshot:
    id: str
    mint_a: TokenMint
    mint_b: TokenMint
    price: Fraction
    tick_current: int

    @classmethod
    def from_state(cls, state: ClmmPoolState) -> "PoolSnapshot":
        return cls(
            id=str(state.address),
            mint_a=state.mint_a,
            mint_b=state.mint_b,
            price=state.price,
            tick_current=state.tick_current,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "mint_a": self.mint_a.to_dict(),
            "mint_b": self.mint_b.to_dict(),
            "price": float(self.price),
            "tick_current": self.tick_current,
        }


@dataclass(frozen=True)
class SnapshotUpdate:
    address: str
    generation: int
    snapshot: Optional[PoolSnapshot] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None


class PoolSnapshotService:
    def __init__(self, resolver: PoolResolver, symbols: Optional[Mapping[str, str]] = None):
        self.resolver = resolver
        self.symbols = dict(symbols or {})
        self.current: Optional[SnapshotUpdate] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def fetch_snapshot(self, address: str) -> PoolSnapshot:
        resolved = await self.resolver.resolve(address)
        return PoolSnapshot.from_state(resolved.decode(self.symbols))

    async def refresh(self, address: str) -> Optional[SnapshotUpdate]:
        """
        Fetch and apply a snapshot. Returns None when a newer request (or
        cancel()) superseded this one before it finished.
        """
        generation = self._next_generation()
        update = await self._load(address, generation)
        return self._apply(update)

    def cancel(self):
        """Drop whatever is in flight; the caller is no longer interested."""
        self._next_generation()

    async def watch(self, addresses: AsyncIterable[str]) -> AsyncIterator[SnapshotUpdate]:
        """
        Yield an update each time the watched address changes. A fetch still
        running when the address changes is cancelled and its result dropped.
        """
        queue: asyncio.Queue = asyncio.Queue()
        done = object()
        pending: Optional[asyncio.Task] = None

        async def deliver(address: str, generation: int):
            queue.put_nowait(await self._load(address, generation))

        async def feed():
            nonlocal pending
            try:
                async for address in addresses:
                    generation = self._next_generation()
                    if pending is not None and not pending.done():
                        pending.cancel()
                    pending = asyncio.ensure_future(deliver(address, generation))
                if pending is not None:
                    await asyncio.wait([pending])
                    if not pending.cancelled():
                        pending.result()
            finally:
                queue.put_nowait(done)

        feeder = asyncio.ensure_future(feed())
        try:
            while True:
                item = await queue.get()
                if item is done:
                    break
                applied = self._apply(item)
                if applied is not None:
                    yield applied
            await feeder
        finally:
            feeder.cancel()
            if pending is not None and not pending.done():
                pending.cancel()

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    async def _load(self, address: str, generation: int) -> SnapshotUpdate:
        if not is_valid_address(address):
            return SnapshotUpdate(address, generation, error="Enter a valid CLMM pool address.", error_kind="InvalidAddress")
        try:
            snapshot = await self.fetch_snapshot(address)
        except ClmmSwapError as e:
            logger.info(f"[SNAPSHOT] {address} unavailable: {e}")
            return SnapshotUpdate(address, generation, error=e.user_message, error_kind=e.kind)
        return SnapshotUpdate(address, generation, snapshot=snapshot)

    def _apply(self, update: SnapshotUpdate) -> Optional[SnapshotUpdate]:
        if update.generation != self._generation:
            logger.debug(f"[SNAPSHOT] Dropping stale result for {update.address} (gen {update.generation} < {self._generation})")
            return None
        self.current = update
        return update
