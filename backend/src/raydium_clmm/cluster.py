from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from base58 import b58decode
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from raydium_clmm.config import SolanaCluster
from raydium_clmm.errors import WalletCannotSign, WalletNotConnected

logger = logging.getLogger(__name__)

SignAll = Callable[[List[Transaction]], Awaitable[List[Transaction]]]


def detect_cluster(endpoint: str, default: SolanaCluster = "devnet") -> SolanaCluster:
    endpoint = (endpoint or "").lower()
    if "devnet" in endpoint:
        return "devnet"
    if "mainnet" in endpoint or "solana.com" in endpoint:
        return "mainnet"
    return default


@dataclass(frozen=True)
class Session:
    owner: Pubkey
    cluster: SolanaCluster
    signing_mode: str  # "batch" | "sequential"
    _sign_all: SignAll

    async def sign_all(self, transactions: List[Transaction]) -> List[Transaction]:
        return await self._sign_all(list(transactions))


def create_session(signer, cluster: SolanaCluster) -> Session:
    """
    Bind a session to the signer's identity. Prefers batch signing and falls
    back to signing one transaction at a time.
    """
    owner = getattr(signer, "public_key", None) if signer is not None else None
    if owner is None:
        raise WalletNotConnected("signer has no public key")

    sign_all = getattr(signer, "sign_all_transactions", None)
    if callable(sign_all):
        return Session(owner=owner, cluster=cluster, signing_mode="batch", _sign_all=sign_all)

    sign_one = getattr(signer, "sign_transaction", None)
    if callable(sign_one):

        async def sign_sequentially(transactions: List[Transaction]) -> List[Transaction]:
            signed: List[Transaction] = []
            for tx in transactions:
                signed.append(await sign_one(tx))
            return signed

        return Session(owner=owner, cluster=cluster, signing_mode="sequential", _sign_all=sign_sequentially)

    raise WalletCannotSign("signer exposes neither sign_all_transactions nor sign_transaction")


class KeypairSigner:
    """Local keypair wallet. Signs the whole batch in one call."""

    def __init__(self, keypair: Keypair):
        self.keypair = keypair

    @property
    def public_key(self) -> Pubkey:
        return self.keypair.pubkey()

    async def sign_transaction(self, tx: Transaction) -> Transaction:
        return Transaction([self.keypair], tx.message, tx.message.recent_blockhash)

    async def sign_all_transactions(self, transactions: List[Transaction]) -> List[Transaction]:
        return [await self.sign_transaction(tx) for tx in transactions]


def load_keypair_from_env() -> Optional[Keypair]:
    """
    Load a Keypair from WALLET_PRIVATE_KEY (base58 secret key) or from the file
    at WALLET_KEYPAIR_PATH (base58 string or solana-keygen JSON array).
    """
    secret = os.getenv("WALLET_PRIVATE_KEY", "").strip()
    if not secret:
        path = os.getenv("WALLET_KEYPAIR_PATH", "").strip()
        if path and os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                secret = f.read().strip()
    if not secret:
        return None

    if secret.startswith("["):
        try:
            return Keypair.from_bytes(bytes(json.loads(secret)))
        except ValueError as e:
            logger.warning(f"[CLMM] Invalid JSON keypair: {e}")
            return None

    try:
        secret_bytes = b58decode(secret)
    except ValueError:
        secret_bytes = b""
    if len(secret_bytes) != 64:
        # Fallback: hex string
        try:
            secret_bytes = bytes.fromhex(secret)
        except ValueError:
            secret_bytes = b""
    if len(secret_bytes) != 64:
        logger.warning("[CLMM] Invalid key length; expected 64-byte secret key.")
        return None
    return Keypair.from_bytes(secret_bytes)
