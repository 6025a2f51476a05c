from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from solana.rpc.async_api import AsyncClient
from solders.pubkey import Pubkey

from raydium_clmm.errors import InvalidAddress, MalformedAccount, PoolNotFound, WrongProgramOwner
from raydium_clmm.pool_layout import CLMM_POOL_ACCOUNT_SIZE, ClmmPoolState, decode_pool_state
from raydium_clmm.rpc import fetch_account

logger = logging.getLogger(__name__)


def parse_pubkey(value: str, what: str = "address") -> Pubkey:
    try:
        return Pubkey.from_string((value or "").strip())
    except ValueError as e:
        raise InvalidAddress(f"invalid {what}: {value!r}") from e


def is_valid_address(value: str) -> bool:
    try:
        parse_pubkey(value)
        return True
    except InvalidAddress:
        return False


@dataclass(frozen=True)
class ResolvedPool:
    address: Pubkey
    owner: Pubkey
    data_len: int
    data: bytes

    def decode(self, symbols: Optional[Mapping[str, str]] = None) -> ClmmPoolState:
        return decode_pool_state(self.address, self.owner, self.data, symbols)


class PoolResolver:
    """
    Fetch a pool account and check that it is a CLMM pool: it exists, it is
    owned by an allow-listed program, and it is at least one PoolState long.
    """

    def __init__(
        self,
        rpc_client: AsyncClient,
        allowed_programs: Iterable[Pubkey],
        min_account_size: int = CLMM_POOL_ACCOUNT_SIZE,
    ):
        self.rpc = rpc_client
        self.allowed_programs = frozenset(allowed_programs)
        self.min_account_size = min_account_size

    async def resolve(self, address: str) -> ResolvedPool:
        pubkey = parse_pubkey(address, "pool address")

        account = await fetch_account(self.rpc, pubkey)
        if account is None:
            raise PoolNotFound(f"no account at {pubkey}")

        if account.owner not in self.allowed_programs:
            logger.info(f"[CLMM] Pool {pubkey} owned by {account.owner}, not a CLMM program")
            raise WrongProgramOwner(f"pool {pubkey} owned by {account.owner}")

        data = bytes(account.data)
        if len(data) < self.min_account_size:
            raise MalformedAccount(f"pool {pubkey} is {len(data)} bytes, expected >= {self.min_account_size}")

        return ResolvedPool(address=pubkey, owner=account.owner, data_len=len(data), data=data)
