from __future__ import annotations

import hashlib
from typing import List, Sequence

from construct import Bytes, BytesInteger, Flag, Int64ul, Struct
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from spl.token.instructions import CloseAccountParams, SyncNativeParams, close_account, sync_native

from raydium_clmm.pool_layout import ClmmPoolState

TOKEN_PROGRAM = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
TOKEN_2022_PROGRAM = Pubkey.from_string("TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb")
MEMO_PROGRAM = Pubkey.from_string("MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr")

# Anchor discriminator: sha256("global:swap_v2")[:8]
SWAP_V2_DISCRIMINATOR = hashlib.sha256(b"global:swap_v2").digest()[:8]

SWAP_V2_ARGS = Struct(
    "discriminator" / Bytes(8),
    "amount" / Int64ul,
    "other_amount_threshold" / Int64ul,
    "sqrt_price_limit_x64" / BytesInteger(16, swapped=True),
    "is_base_input" / Flag,
)


def build_swap_v2_data(amount_in: int, min_amount_out: int, sqrt_price_limit_x64: int = 0) -> bytes:
    return SWAP_V2_ARGS.build(
        dict(
            discriminator=SWAP_V2_DISCRIMINATOR,
            amount=amount_in,
            other_amount_threshold=min_amount_out,
            sqrt_price_limit_x64=sqrt_price_limit_x64,
            is_base_input=True,
        )
    )


def build_swap_v2_instruction(
    pool: ClmmPoolState,
    payer: Pubkey,
    input_mint: Pubkey,
    output_mint: Pubkey,
    input_token_account: Pubkey,
    output_token_account: Pubkey,
    amount_in: int,
    min_amount_out: int,
    remaining_accounts: Sequence[Pubkey] = (),
) -> Instruction:
    input_vault, output_vault = pool.vaults_for(input_mint)
    accounts = [
        AccountMeta(payer, is_signer=True, is_writable=False),
        AccountMeta(pool.amm_config, is_signer=False, is_writable=False),
        AccountMeta(pool.address, is_signer=False, is_writable=True),
        AccountMeta(input_token_account, is_signer=False, is_writable=True),
        AccountMeta(output_token_account, is_signer=False, is_writable=True),
        AccountMeta(input_vault, is_signer=False, is_writable=True),
        AccountMeta(output_vault, is_signer=False, is_writable=True),
        AccountMeta(pool.observation_id, is_signer=False, is_writable=True),
        AccountMeta(TOKEN_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(TOKEN_2022_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(MEMO_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(input_mint, is_signer=False, is_writable=False),
        AccountMeta(output_mint, is_signer=False, is_writable=False),
    ]
    accounts.extend(AccountMeta(a, is_signer=False, is_writable=True) for a in remaining_accounts)

    return Instruction(
        program_id=pool.program_id,
        data=build_swap_v2_data(amount_in, min_amount_out),
        accounts=accounts,
    )


def build_wrap_native_instructions(owner: Pubkey, wsol_account: Pubkey, lamports: int) -> List[Instruction]:
    """Fund the owner's wSOL account from the native balance."""
    return [
        transfer(TransferParams(from_pubkey=owner, to_pubkey=wsol_account, lamports=lamports)),
        sync_native(SyncNativeParams(program_id=TOKEN_PROGRAM, account=wsol_account)),
    ]


def build_unwrap_native_instruction(owner: Pubkey, wsol_account: Pubkey) -> Instruction:
    """Close the wSOL account, returning its balance and rent to the owner as SOL."""
    return close_account(CloseAccountParams(program_id=TOKEN_PROGRAM, account=wsol_account, dest=owner, owner=owner))
