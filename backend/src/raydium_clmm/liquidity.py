from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import Tuple, Union

from solana.rpc.async_api import AsyncClient
from solders.pubkey import Pubkey

from raydium_clmm.errors import AmountOutOfRange, InsufficientLiquidity, NonPositiveAmount, TokenNotInPool
from raydium_clmm.oracle import PoolMathOracle
from raydium_clmm.pool_layout import ClmmPoolState, TokenMint
from raydium_clmm.rpc import fetch_epoch_info

logger = logging.getLogger(__name__)

# Token amounts are u64 on-chain
U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class SwapComputation:
    amount_in: int
    min_amount_out: int
    estimated_out: int
    input_mint: TokenMint
    output_mint: TokenMint
    auxiliary_accounts: Tuple[Pubkey, ...] = ()


def _slippage_fraction(slippage: Union[float, str, Fraction]) -> Fraction:
    # str() first so 0.01 means exactly 1/100, not the nearest binary float
    frac = slippage if isinstance(slippage, Fraction) else Fraction(str(slippage))
    if frac < 0 or frac >= 1:
        raise ValueError(f"slippage must be in [0, 1), got {slippage}")
    return frac


def apply_slippage(estimated_out: int, slippage: Union[float, str, Fraction]) -> int:
    """floor(estimated_out * (1 - slippage)) in exact integer arithmetic."""
    frac = _slippage_fraction(slippage)
    return (estimated_out * (frac.denominator - frac.numerator)) // frac.denominator


class LiquidityComputer:
    def __init__(self, rpc_client: AsyncClient, oracle: PoolMathOracle):
        self.rpc = rpc_client
        self.oracle = oracle

    def validate(
        self,
        pool: ClmmPoolState,
        input_mint: Pubkey,
        output_mint: Pubkey,
        amount_in: int,
    ) -> Tuple[TokenMint, TokenMint]:
        """Local checks only; no network calls."""
        input_info = pool.mint_for(input_mint)
        if input_info is None:
            raise TokenNotInPool(f"input mint {input_mint} not in pool {pool.address}",
                                 user_message="Input token is not part of the selected pool.")
        output_info = pool.mint_for(output_mint)
        if output_info is None or output_mint == input_mint:
            raise TokenNotInPool(f"output mint {output_mint} is not the other side of pool {pool.address}",
                                 user_message="Output token is not part of the selected pool.")
        if amount_in <= 0:
            raise NonPositiveAmount(f"amount_in={amount_in}")
        if amount_in > U64_MAX:
            raise AmountOutOfRange(f"amount_in={amount_in} exceeds u64")
        return input_info, output_info

    async def compute(
        self,
        pool: ClmmPoolState,
        input_mint: Pubkey,
        output_mint: Pubkey,
        amount_in: int,
        slippage: Union[float, str, Fraction],
    ) -> SwapComputation:
        input_info, output_info = self.validate(pool, input_mint, output_mint, amount_in)
        _slippage_fraction(slippage)

        tick_arrays = await self.oracle.fetch_tick_arrays(pool)
        epoch_info = await fetch_epoch_info(self.rpc)
        quote = self.oracle.compute_amount_out(
            pool=pool,
            tick_arrays=tick_arrays,
            input_mint=input_mint,
            amount_in=amount_in,
            slippage=slippage,
            epoch_info=epoch_info,
        )
        if not quote.achievable:
            raise InsufficientLiquidity(f"pool {pool.address} cannot fill {amount_in} of {input_mint}")

        min_out = min(quote.min_out, apply_slippage(quote.estimated_out, slippage))
        if min_out < 0 or min_out > U64_MAX:
            raise AmountOutOfRange(f"min_out={min_out} outside u64", user_message="Quoted output is outside the token amount range.")
        logger.info(
            f"[CLMM] Quote pool={pool.address} in={amount_in} est_out={quote.estimated_out} "
            f"min_out={min_out} tick_arrays={len(quote.auxiliary_accounts)}"
        )
        return SwapComputation(
            amount_in=amount_in,
            min_amount_out=min_out,
            estimated_out=quote.estimated_out,
            input_mint=input_info,
            output_mint=output_info,
            auxiliary_accounts=tuple(quote.auxiliary_accounts),
        )
