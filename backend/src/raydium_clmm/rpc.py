"""
Thin async helpers over solana-py's AsyncClient.

Transport failures surface as TransportError; submission and confirmation
failures surface as TransactionSendFailed / ConfirmationTimeout. Nothing here
retries.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed
from solana.rpc.core import RPCException, TransactionExpiredBlockheightExceededError, UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.account import Account
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.instruction import Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from raydium_clmm.errors import ClmmSwapError, ConfirmationTimeout, TransactionSendFailed, TransportError, WalletCannotSign

logger = logging.getLogger(__name__)

TRANSPORT_EXCEPTIONS = (SolanaRpcException, RPCException)


async def fetch_account(client: AsyncClient, pubkey: Pubkey, commitment: Optional[Commitment] = None) -> Optional[Account]:
    try:
        resp = await client.get_account_info(pubkey, encoding="base64", commitment=commitment)
    except TRANSPORT_EXCEPTIONS as e:
        raise TransportError(f"get_account_info({pubkey}) failed: {e}") from e
    return resp.value


async def fetch_epoch_info(client: AsyncClient):
    try:
        resp = await client.get_epoch_info()
    except TRANSPORT_EXCEPTIONS as e:
        raise TransportError(f"get_epoch_info failed: {e}") from e
    return resp.value


def with_compute_budget(instructions: Sequence[Instruction], unit_limit: int, unit_price: int) -> List[Instruction]:
    prefix: List[Instruction] = []
    if unit_limit:
        prefix.append(set_compute_unit_limit(unit_limit))
    if unit_price:
        prefix.append(set_compute_unit_price(unit_price))
    return prefix + list(instructions)


async def send_and_confirm(
    client: AsyncClient,
    session,
    instructions: Sequence[Instruction],
    timeout_sec: float = 60.0,
    poll_sec: float = 0.5,
    label: str = "tx",
) -> Signature:
    """
    Build, sign, submit (preflight on) and wait for "confirmed" commitment.
    Once submitted the on-chain effect cannot be undone; only the local wait
    can time out.
    """
    try:
        blockhash_resp = await client.get_latest_blockhash(commitment=Confirmed)
    except TRANSPORT_EXCEPTIONS as e:
        raise TransportError(f"get_latest_blockhash failed: {e}") from e
    blockhash = blockhash_resp.value.blockhash
    last_valid_block_height = blockhash_resp.value.last_valid_block_height

    message = Message.new_with_blockhash(list(instructions), session.owner, blockhash)
    try:
        signed = await session.sign_all([Transaction.new_unsigned(message)])
    except ClmmSwapError:
        raise
    except Exception as e:
        logger.warning(f"[CLMM] {label} signing refused: {e}")
        raise WalletCannotSign(str(e), user_message="The wallet did not sign the transaction.") from e
    tx = signed[0]

    try:
        resp = await client.send_raw_transaction(
            bytes(tx),
            opts=TxOpts(skip_preflight=False, preflight_commitment=Confirmed),
        )
    except TRANSPORT_EXCEPTIONS as e:
        logger.warning(f"[CLMM] {label} submission rejected: {e}")
        raise TransactionSendFailed(str(e)) from e

    signature = resp.value
    logger.info(f"[CLMM] {label} submitted sig={signature}")

    try:
        status = await asyncio.wait_for(
            client.confirm_transaction(
                signature,
                commitment=Confirmed,
                sleep_seconds=poll_sec,
                last_valid_block_height=last_valid_block_height,
            ),
            timeout=timeout_sec,
        )
    except (asyncio.TimeoutError, UnconfirmedTxError, TransactionExpiredBlockheightExceededError) as e:
        raise ConfirmationTimeout(f"{label} {signature} not confirmed: {e}") from e
    except TRANSPORT_EXCEPTIONS as e:
        raise TransportError(f"confirm_transaction({signature}) failed: {e}") from e

    statuses = getattr(status, "value", None) or []
    err = statuses[0].err if statuses and statuses[0] is not None else None
    if err is not None:
        logger.error(f"[CLMM] {label} {signature} confirmed with error: {err}")
        raise TransactionSendFailed(f"{label} {signature} failed on-chain: {err}")

    logger.info(f"[CLMM] {label} confirmed sig={signature}")
    return signature
