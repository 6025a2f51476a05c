from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Literal

from solders.pubkey import Pubkey

SolanaCluster = Literal["devnet", "mainnet"]

WSOL_MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")

# Raydium CLMM program per network
CLMM_PROGRAM_ID_MAINNET = "CAMMCzo5YL8w4VFF8KVHrK22GGUsp5VTaW7grrKgrWqK"
CLMM_PROGRAM_ID_DEVNET = "devi51mZmdwUJGU9hjN27vEz64Gps7uUefqxg27EAtH"

DEFAULT_POOL_ID = "FXAXqgjNK6JVzVV2frumKTEuxC8hTEUhVTJTRhMMwLmM"
DEFAULT_BASE_MINT = str(WSOL_MINT)
DEFAULT_QUOTE_MINT = "USDCoctVLVnvTXBEuP9s8hntucdJokbo17RwHuNXemT"

KNOWN_SYMBOLS: Dict[str, str] = {
    str(WSOL_MINT): "SOL",
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": "USDC",
    "USDCoctVLVnvTXBEuP9s8hntucdJokbo17RwHuNXemT": "USDC",
}


@dataclass(frozen=True)
class ClusterProgramIds:
    mainnet: Pubkey = Pubkey.from_string(CLMM_PROGRAM_ID_MAINNET)
    devnet: Pubkey = Pubkey.from_string(CLMM_PROGRAM_ID_DEVNET)

    def for_cluster(self, cluster: SolanaCluster) -> Pubkey:
        return self.devnet if cluster == "devnet" else self.mainnet

    def allow_list(self) -> frozenset:
        return frozenset({self.mainnet, self.devnet})


@dataclass
class ClmmConfig:
    rpc_url: str = "https://api.devnet.solana.com"
    default_cluster: SolanaCluster = "devnet"
    default_pool_id: str = DEFAULT_POOL_ID
    default_base_mint: str = DEFAULT_BASE_MINT
    default_quote_mint: str = DEFAULT_QUOTE_MINT
    program_ids: ClusterProgramIds = field(default_factory=ClusterProgramIds)
    default_slippage: float = 0.01
    confirm_timeout_sec: float = 60.0
    confirm_poll_sec: float = 0.5
    compute_unit_limit: int = 0  # 0 = no compute budget instructions
    priority_fee_microlamports: int = 0
    known_symbols: Dict[str, str] = field(default_factory=lambda: dict(KNOWN_SYMBOLS))

    @classmethod
    def from_env(cls) -> "ClmmConfig":
        cluster = os.getenv("CLMM_DEFAULT_CLUSTER", "devnet").strip().lower()
        return cls(
            rpc_url=os.getenv("SOLANA_RPC_URL", "https://api.devnet.solana.com"),
            default_cluster="mainnet" if cluster == "mainnet" else "devnet",
            default_pool_id=os.getenv("CLMM_DEFAULT_POOL_ID", DEFAULT_POOL_ID),
            default_base_mint=os.getenv("CLMM_DEFAULT_BASE_MINT", DEFAULT_BASE_MINT),
            default_quote_mint=os.getenv("CLMM_DEFAULT_QUOTE_MINT", DEFAULT_QUOTE_MINT),
            program_ids=ClusterProgramIds(
                mainnet=Pubkey.from_string(os.getenv("CLMM_PROGRAM_ID_MAINNET", CLMM_PROGRAM_ID_MAINNET)),
                devnet=Pubkey.from_string(os.getenv("CLMM_PROGRAM_ID_DEVNET", CLMM_PROGRAM_ID_DEVNET)),
            ),
            default_slippage=float(os.getenv("CLMM_DEFAULT_SLIPPAGE", "0.01")),
            confirm_timeout_sec=float(os.getenv("CLMM_CONFIRM_TIMEOUT_SEC", "60")),
            confirm_poll_sec=float(os.getenv("CLMM_CONFIRM_POLL_SEC", "0.5")),
            compute_unit_limit=int(os.getenv("CLMM_COMPUTE_UNIT_LIMIT", "0") or 0),
            priority_fee_microlamports=int(os.getenv("PRIORITY_FEE_MICROLAMPORTS", "0") or 0),
        )


def explorer_url(signature: str, cluster: SolanaCluster) -> str:
    suffix = "?cluster=devnet" if cluster == "devnet" else ""
    return f"https://explorer.solana.com/tx/{signature}{suffix}"
