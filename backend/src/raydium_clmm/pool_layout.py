from __future__ import annotations

import hashlib
from dataclasses import dataclass
from fractions import Fraction
from typing import Mapping, Optional

from construct import Bytes, BytesInteger, ConstructError, Int8ul, Int16ul, Int32sl, Struct
from solders.pubkey import Pubkey

from raydium_clmm.errors import MalformedAccount

# Raydium CLMM PoolState (Anchor account). Total span 1544 bytes; we parse the
# head fields needed for quoting and swapping and skip the rest.
CLMM_POOL_ACCOUNT_SIZE = 1544
POOL_STATE_DISCRIMINATOR = hashlib.sha256(b"account:PoolState").digest()[:8]

CLMM_POOL_LAYOUT = Struct(
    "discriminator" / Bytes(8),
    "bump" / Int8ul,
    "amm_config" / Bytes(32),
    "owner" / Bytes(32),
    "token_mint_0" / Bytes(32),
    "token_mint_1" / Bytes(32),
    "token_vault_0" / Bytes(32),
    "token_vault_1" / Bytes(32),
    "observation_key" / Bytes(32),
    "mint_decimals_0" / Int8ul,
    "mint_decimals_1" / Int8ul,
    "tick_spacing" / Int16ul,
    "liquidity" / BytesInteger(16, swapped=True),
    "sqrt_price_x64" / BytesInteger(16, swapped=True),
    "tick_current" / Int32sl,
    "padding" / Bytes(CLMM_POOL_ACCOUNT_SIZE - 273),
)

Q64 = 1 << 64


@dataclass(frozen=True)
class TokenMint:
    address: Pubkey
    decimals: int
    symbol: Optional[str] = None

    def to_dict(self) -> dict:
        return {"address": str(self.address), "decimals": self.decimals, "symbol": self.symbol}


@dataclass(frozen=True)
class ClmmPoolState:
    address: Pubkey
    program_id: Pubkey
    amm_config: Pubkey
    mint_a: TokenMint
    mint_b: TokenMint
    vault_a: Pubkey
    vault_b: Pubkey
    observation_id: Pubkey
    tick_spacing: int
    liquidity: int
    sqrt_price_x64: int
    tick_current: int

    @property
    def price(self) -> Fraction:
        """Price of mint A in units of mint B."""
        return sqrt_price_x64_to_price(self.sqrt_price_x64, self.mint_a.decimals, self.mint_b.decimals)

    def mint_for(self, mint: Pubkey) -> Optional[TokenMint]:
        if mint == self.mint_a.address:
            return self.mint_a
        if mint == self.mint_b.address:
            return self.mint_b
        return None

    def vaults_for(self, input_mint: Pubkey) -> tuple[Pubkey, Pubkey]:
        """
        Returns (input_vault, output_vault) for the swap direction.
        """
        if input_mint == self.mint_a.address:
            return self.vault_a, self.vault_b
        if input_mint == self.mint_b.address:
            return self.vault_b, self.vault_a
        raise ValueError(f"Input mint {input_mint} not in pool {self.address}")


def sqrt_price_x64_to_price(sqrt_price_x64: int, decimals_a: int, decimals_b: int) -> Fraction:
    price = Fraction(sqrt_price_x64 * sqrt_price_x64, Q64 * Q64)
    return price * Fraction(10) ** (decimals_a - decimals_b)


def decode_pool_state(
    address: Pubkey,
    program_id: Pubkey,
    data: bytes,
    symbols: Optional[Mapping[str, str]] = None,
) -> ClmmPoolState:
    if len(data) < CLMM_POOL_ACCOUNT_SIZE:
        raise MalformedAccount(f"pool {address} is {len(data)} bytes, expected >= {CLMM_POOL_ACCOUNT_SIZE}")
    try:
        parsed = CLMM_POOL_LAYOUT.parse(data)
    except ConstructError as e:
        raise MalformedAccount(f"pool {address} failed to decode: {e}") from e
    if parsed.discriminator != POOL_STATE_DISCRIMINATOR:
        raise MalformedAccount(f"account {address} is not a CLMM PoolState")

    symbols = symbols or {}
    mint_a = Pubkey.from_bytes(parsed.token_mint_0)
    mint_b = Pubkey.from_bytes(parsed.token_mint_1)
    return ClmmPoolState(
        address=address,
        program_id=program_id,
        amm_config=Pubkey.from_bytes(parsed.amm_config),
        mint_a=TokenMint(mint_a, int(parsed.mint_decimals_0), symbols.get(str(mint_a))),
        mint_b=TokenMint(mint_b, int(parsed.mint_decimals_1), symbols.get(str(mint_b))),
        vault_a=Pubkey.from_bytes(parsed.token_vault_0),
        vault_b=Pubkey.from_bytes(parsed.token_vault_1),
        observation_id=Pubkey.from_bytes(parsed.observation_key),
        tick_spacing=int(parsed.tick_spacing),
        liquidity=int(parsed.liquidity),
        sqrt_price_x64=int(parsed.sqrt_price_x64),
        tick_current=int(parsed.tick_current),
    )
