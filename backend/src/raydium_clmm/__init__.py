from .amounts import parse_amount, to_base_units, to_decimal_string, ParsedAmount
from .cluster import create_session, detect_cluster, KeypairSigner, Session
from .config import ClmmConfig, explorer_url
from .errors import ClmmSwapError
from .liquidity import LiquidityComputer, SwapComputation, apply_slippage
from .oracle import OracleQuote, PoolMathOracle
from .pool_layout import ClmmPoolState, TokenMint, decode_pool_state
from .provisioner import AccountProvisioner, derive_associated_account
from .resolver import PoolResolver, ResolvedPool, is_valid_address
from .service import ClmmSwapService, SwapRequest
from .snapshot import PoolSnapshot, PoolSnapshotService, SnapshotUpdate
from .swap_executor import SwapExecutor, SwapResult

__all__ = [
    "parse_amount",
    "to_base_units",
    "to_decimal_string",
    "ParsedAmount",
    "create_session",
    "detect_cluster",
    "KeypairSigner",
    "Session",
    "ClmmConfig",
    "explorer_url",
    "ClmmSwapError",
    "LiquidityComputer",
    "SwapComputation",
    "apply_slippage",
    "OracleQuote",
    "PoolMathOracle",
    "ClmmPoolState",
    "TokenMint",
    "decode_pool_state",
    "AccountProvisioner",
    "derive_associated_account",
    "PoolResolver",
    "ResolvedPool",
    "is_valid_address",
    "ClmmSwapService",
    "SwapRequest",
    "PoolSnapshot",
    "PoolSnapshotService",
    "SnapshotUpdate",
    "SwapExecutor",
    "SwapResult",
]
