"""
Error taxonomy for the CLMM swap pipeline.

Every failure carries a stable ``kind`` and a user-facing message that is
specific enough to act on. Callers render ``user_message``; logs use ``str()``.
"""

from __future__ import annotations

from typing import Optional


class ClmmSwapError(Exception):
    kind = "ClmmSwapError"
    default_message = "The swap could not be completed."

    def __init__(self, detail: Optional[str] = None, user_message: Optional[str] = None):
        self.detail = detail
        self.user_message = user_message or self.default_message
        super().__init__(f"{self.kind}: {detail}" if detail else f"{self.kind}: {self.user_message}")

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.user_message, "detail": self.detail}


class InvalidAddress(ClmmSwapError):
    kind = "InvalidAddress"
    default_message = "Enter a valid Solana address."


class PoolNotFound(ClmmSwapError):
    kind = "PoolNotFound"
    default_message = "Pool not found on the selected network."


class WrongProgramOwner(ClmmSwapError):
    kind = "WrongProgramOwner"
    default_message = "This pool belongs to a different program. Provide a CLMM pool address instead."


class MalformedAccount(ClmmSwapError):
    kind = "MalformedAccount"
    default_message = "Pool account size is too small for CLMM. Provide a valid CLMM pool address."


class TokenNotInPool(ClmmSwapError):
    kind = "TokenNotInPool"
    default_message = "Token is not part of the selected pool."


class NonPositiveAmount(ClmmSwapError):
    kind = "NonPositiveAmount"
    default_message = "Enter a positive amount to swap."


class AmountOutOfRange(ClmmSwapError):
    kind = "AmountOutOfRange"
    default_message = "Amount is too large for this token."


class InsufficientLiquidity(ClmmSwapError):
    kind = "InsufficientLiquidity"
    default_message = "Insufficient liquidity in the pool."


class WalletNotConnected(ClmmSwapError):
    kind = "WalletNotConnected"
    default_message = "Connect a Solana wallet to submit a swap."


class WalletCannotSign(ClmmSwapError):
    kind = "WalletCannotSign"
    default_message = "Wallet cannot sign transactions."


class AccountCreationFailed(ClmmSwapError):
    kind = "AccountCreationFailed"
    default_message = "Could not create the token account required for this swap."


class TransactionSendFailed(ClmmSwapError):
    kind = "TransactionSendFailed"
    default_message = "The network rejected the swap transaction."


class ConfirmationTimeout(ClmmSwapError):
    kind = "ConfirmationTimeout"
    default_message = "The transaction was sent but not confirmed in time. Check the explorer before retrying."


class TransportError(ClmmSwapError):
    kind = "TransportError"
    default_message = "Network error while talking to the RPC node."


ERROR_KINDS = {
    cls.kind: cls
    for cls in (
        InvalidAddress,
        PoolNotFound,
        WrongProgramOwner,
        MalformedAccount,
        TokenNotInPool,
        NonPositiveAmount,
        AmountOutOfRange,
        InsufficientLiquidity,
        WalletNotConnected,
        WalletCannotSign,
        AccountCreationFailed,
        TransactionSendFailed,
        ConfirmationTimeout,
        TransportError,
    )
}
