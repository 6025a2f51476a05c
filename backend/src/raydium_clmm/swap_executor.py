from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from solana.rpc.async_api import AsyncClient
from solders.pubkey import Pubkey

from raydium_clmm.amounts import to_decimal_string
from raydium_clmm.cluster import Session
from raydium_clmm.config import WSOL_MINT
from raydium_clmm.ix_builder import (
    build_swap_v2_instruction,
    build_unwrap_native_instruction,
    build_wrap_native_instructions,
)
from raydium_clmm.liquidity import SwapComputation
from raydium_clmm.pool_layout import ClmmPoolState
from raydium_clmm.provisioner import derive_associated_account
from raydium_clmm.rpc import send_and_confirm, with_compute_budget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapResult:
    signature: str
    amount_out: int
    amount_out_ui: str
    output_mint: Pubkey
    output_symbol: Optional[str] = None

    @property
    def display_amount(self) -> str:
        return f"{self.amount_out_ui} {self.output_symbol or ''}".strip()

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "amount_out": self.amount_out,
            "amount_out_ui": self.amount_out_ui,
            "output_mint": str(self.output_mint),
            "output_symbol": self.output_symbol,
            "display_amount": self.display_amount,
        }


class SwapExecutor:
    def __init__(
        self,
        rpc_client: AsyncClient,
        confirm_timeout_sec: float = 60.0,
        confirm_poll_sec: float = 0.5,
        compute_unit_limit: int = 0,
        priority_fee_microlamports: int = 0,
        native_mint: Pubkey = WSOL_MINT,
    ):
        self.rpc = rpc_client
        self.confirm_timeout_sec = confirm_timeout_sec
        self.confirm_poll_sec = confirm_poll_sec
        self.compute_unit_limit = compute_unit_limit
        self.priority_fee_microlamports = priority_fee_microlamports
        self.native_mint = native_mint

    def build_instructions(self, session: Session, pool: ClmmPoolState, computation: SwapComputation):
        owner = session.owner
        input_mint = computation.input_mint.address
        output_mint = computation.output_mint.address
        input_account = derive_associated_account(owner, input_mint)
        output_account = derive_associated_account(owner, output_mint)

        instructions = []
        if input_mint == self.native_mint:
            instructions.extend(build_wrap_native_instructions(owner, input_account, computation.amount_in))
        instructions.append(
            build_swap_v2_instruction(
                pool=pool,
                payer=owner,
                input_mint=input_mint,
                output_mint=output_mint,
                input_token_account=input_account,
                output_token_account=output_account,
                amount_in=computation.amount_in,
                min_amount_out=computation.min_amount_out,
                remaining_accounts=computation.auxiliary_accounts,
            )
        )
        # Leftover or received wSOL goes back to the owner as native SOL
        if self.native_mint in (input_mint, output_mint):
            native_account = input_account if input_mint == self.native_mint else output_account
            instructions.append(build_unwrap_native_instruction(owner, native_account))
        return with_compute_budget(instructions, self.compute_unit_limit, self.priority_fee_microlamports)

    async def execute(self, session: Session, pool: ClmmPoolState, computation: SwapComputation) -> SwapResult:
        instructions = self.build_instructions(session, pool, computation)
        signature = await send_and_confirm(
            self.rpc,
            session,
            instructions,
            timeout_sec=self.confirm_timeout_sec,
            poll_sec=self.confirm_poll_sec,
            label=f"clmm-swap {pool.address}",
        )

        output = computation.output_mint
        result = SwapResult(
            signature=str(signature),
            amount_out=computation.min_amount_out,
            amount_out_ui=to_decimal_string(computation.min_amount_out, output.decimals),
            output_mint=output.address,
            output_symbol=output.symbol,
        )
        logger.info(f"[CLMM] Swap confirmed sig={result.signature} min_out={result.display_amount}")
        return result
