from __future__ import annotations

import asyncio
import logging
from typing import Dict, Tuple

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solders.instruction import Instruction
from solders.pubkey import Pubkey
from spl.token.instructions import create_associated_token_account, get_associated_token_address

from raydium_clmm.cluster import Session
from raydium_clmm.errors import AccountCreationFailed, ConfirmationTimeout, TransactionSendFailed, TransportError
from raydium_clmm.rpc import fetch_account, send_and_confirm

logger = logging.getLogger(__name__)

CREATE_IDEMPOTENT = bytes([1])


def derive_associated_account(owner: Pubkey, mint: Pubkey) -> Pubkey:
    return get_associated_token_address(owner, mint)


def create_idempotent_associated_account(owner: Pubkey, mint: Pubkey) -> Instruction:
    """CreateIdempotent (instruction 1): succeeds as a no-op when the account already exists."""
    ix = create_associated_token_account(owner, owner, mint)
    return Instruction(program_id=ix.program_id, data=CREATE_IDEMPOTENT, accounts=ix.accounts)


class AccountProvisioner:
    """
    Makes sure an owner's associated token account exists for a mint.

    At most one creation is in flight per (owner, mint); concurrent callers for
    the same pair share the pending attempt. Nothing is remembered after the
    attempt settles, so the chain stays the source of truth.
    """

    def __init__(self, rpc_client: AsyncClient, confirm_timeout_sec: float = 60.0, confirm_poll_sec: float = 0.5):
        self.rpc = rpc_client
        self.confirm_timeout_sec = confirm_timeout_sec
        self.confirm_poll_sec = confirm_poll_sec
        self._inflight: Dict[Tuple[Pubkey, Pubkey], asyncio.Future] = {}
        self.creation_attempts = 0

    async def ensure(self, session: Session, mint: Pubkey) -> Pubkey:
        key = (session.owner, mint)
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._ensure(session, mint))
            self._inflight[key] = task
            task.add_done_callback(lambda t, key=key: self._forget(key, t))
        # A caller giving up must not cancel the shared attempt
        return await asyncio.shield(task)

    def _forget(self, key: Tuple[Pubkey, Pubkey], task: asyncio.Future):
        if self._inflight.get(key) is task:
            self._inflight.pop(key, None)

    async def _ensure(self, session: Session, mint: Pubkey) -> Pubkey:
        owner = session.owner
        ata = derive_associated_account(owner, mint)

        # Read at the same level creations are confirmed at so a fresh account is visible
        if await fetch_account(self.rpc, ata, commitment=Confirmed) is not None:
            return ata

        logger.info(f"[ATA] Creating associated account {ata} owner={owner} mint={mint}")
        ix = create_idempotent_associated_account(owner, mint)
        self.creation_attempts += 1
        try:
            await send_and_confirm(
                self.rpc,
                session,
                [ix],
                timeout_sec=self.confirm_timeout_sec,
                poll_sec=self.confirm_poll_sec,
                label=f"create-ata {ata}",
            )
        except (TransactionSendFailed, ConfirmationTimeout, TransportError) as e:
            logger.warning(f"[ATA] Creation failed for {ata}: {e}")
            raise AccountCreationFailed(str(e)) from e
        return ata
