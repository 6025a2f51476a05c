"""
Caller-facing entry points: fetch_snapshot (read-only) and perform_swap.

perform_swap runs strictly in order: local validation, session, pool
resolution, amount conversion, quote, associated accounts, swap. Each step
raises one of the ClmmSwapError kinds and nothing later runs after a failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from solana.rpc.async_api import AsyncClient

from raydium_clmm.amounts import to_base_units
from raydium_clmm.cluster import KeypairSigner, create_session, detect_cluster, load_keypair_from_env
from raydium_clmm.config import ClmmConfig
from raydium_clmm.liquidity import LiquidityComputer
from raydium_clmm.oracle import PoolMathOracle
from raydium_clmm.provisioner import AccountProvisioner
from raydium_clmm.resolver import PoolResolver, parse_pubkey
from raydium_clmm.snapshot import PoolSnapshot, PoolSnapshotService
from raydium_clmm.swap_executor import SwapExecutor, SwapResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapRequest:
    pool: str
    input_mint: str
    output_mint: str
    amount: str
    slippage: Optional[float] = None


class ClmmSwapService:
    def __init__(self, config: ClmmConfig, rpc_client: AsyncClient, oracle: PoolMathOracle, signer=None):
        self.config = config
        self.rpc = rpc_client
        self.signer = signer
        self.cluster = detect_cluster(config.rpc_url, config.default_cluster)
        self.resolver = PoolResolver(rpc_client, config.program_ids.allow_list())
        self.snapshots = PoolSnapshotService(self.resolver, config.known_symbols)
        self.computer = LiquidityComputer(rpc_client, oracle)
        self.provisioner = AccountProvisioner(
            rpc_client,
            confirm_timeout_sec=config.confirm_timeout_sec,
            confirm_poll_sec=config.confirm_poll_sec,
        )
        self.executor = SwapExecutor(
            rpc_client,
            confirm_timeout_sec=config.confirm_timeout_sec,
            confirm_poll_sec=config.confirm_poll_sec,
            compute_unit_limit=config.compute_unit_limit,
            priority_fee_microlamports=config.priority_fee_microlamports,
        )

    @classmethod
    def from_env(cls, oracle: PoolMathOracle) -> "ClmmSwapService":
        config = ClmmConfig.from_env()
        keypair = load_keypair_from_env()
        signer = KeypairSigner(keypair) if keypair else None
        return cls(config, AsyncClient(config.rpc_url), oracle, signer=signer)

    async def fetch_snapshot(self, address: str) -> PoolSnapshot:
        return await self.snapshots.fetch_snapshot(address)

    async def perform_swap(self, request: SwapRequest, signer=None) -> SwapResult:
        # Local checks first: nothing below touches the network until these pass
        parse_pubkey(request.pool, "pool address")
        input_mint = parse_pubkey(request.input_mint, "input mint")
        output_mint = parse_pubkey(request.output_mint, "output mint")
        session = create_session(signer or self.signer, self.cluster)
        slippage = self.config.default_slippage if request.slippage is None else request.slippage

        resolved = await self.resolver.resolve(request.pool)
        pool = resolved.decode(self.config.known_symbols)

        input_info = pool.mint_for(input_mint)
        amount_in = to_base_units(request.amount, input_info.decimals) if input_info else 0
        computation = await self.computer.compute(pool, input_mint, output_mint, amount_in, slippage)

        await self.provisioner.ensure(session, input_mint)
        await self.provisioner.ensure(session, output_mint)

        logger.info(
            f"[CLMM] Swapping {request.amount} {input_mint} -> {output_mint} "
            f"pool={pool.address} owner={session.owner} signing={session.signing_mode}"
        )
        return await self.executor.execute(session, pool, computation)

    async def close(self):
        await self.rpc.close()
