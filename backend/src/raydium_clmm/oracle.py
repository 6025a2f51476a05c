"""
Pool-math oracle interface.

The concentrated-liquidity curve math (tick traversal, fee tiers, transfer
fees) lives outside this package. Anything that satisfies PoolMathOracle can
be plugged into LiquidityComputer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Protocol

from solders.pubkey import Pubkey

from raydium_clmm.pool_layout import ClmmPoolState


@dataclass(frozen=True)
class OracleQuote:
    achievable: bool
    estimated_out: int
    min_out: int
    # Tick arrays (and bitmap extension) crossed by the swap, in order
    auxiliary_accounts: List[Pubkey] = field(default_factory=list)


class PoolMathOracle(Protocol):
    async def fetch_tick_arrays(self, pool: ClmmPoolState) -> Any:
        """Load the tick-range liquidity data around the current tick."""
        ...

    def compute_amount_out(
        self,
        pool: ClmmPoolState,
        tick_arrays: Any,
        input_mint: Pubkey,
        amount_in: int,
        slippage: float,
        epoch_info: Any,
    ) -> OracleQuote:
        ...
