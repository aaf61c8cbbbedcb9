"""Exception hierarchy for marketplace checkout.

Every checkout exception carries:
- error_code: machine-readable code (e.g., "INSUFFICIENT_BALANCE")
- message: human-readable message
- details: optional context dictionary

Pre-flight errors are raised before a session enters Processing and block the
whole checkout. Leg errors are raised by wallet connectors. Group errors are
never raised out of ``PaymentOrchestrator.run``; they are converted into a
failed ``PaymentResult`` and their ``error_code`` becomes the result's
``failure_reason``.
"""
from __future__ import annotations

from typing import Any, Optional


class CheckoutError(Exception):
    """Base exception for checkout errors."""

    error_code: str = "CHECKOUT_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Pre-flight errors
# =============================================================================

class PreflightError(CheckoutError):
    """Checkout cannot enter the payment step."""

    error_code = "PREFLIGHT_FAILED"


class EmptyCartError(PreflightError):
    """Cart has no line items."""

    error_code = "EMPTY_CART"

    def __init__(self, message: str = "Cart is empty") -> None:
        super().__init__(message)


class InsufficientBalanceError(PreflightError):
    """Buyer balance does not cover the cart."""

    error_code = "INSUFFICIENT_BALANCE"

    def __init__(
        self,
        message: str = "Insufficient AXM balance",
        available: Optional[int] = None,
        required: Optional[int] = None,
    ) -> None:
        details: dict[str, Any] = {}
        if available is not None:
            details["available"] = str(available)
        if required is not None:
            details["required"] = str(required)
        super().__init__(message, details=details)


class ShippingInfoMissingError(PreflightError):
    """Required shipping fields are blank."""

    error_code = "SHIPPING_INFO_MISSING"

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            f"Please fill in your shipping information: {', '.join(missing)}",
            details={"missing": list(missing)},
        )


class WalletNotConnectedError(PreflightError):
    """No buyer wallet is connected."""

    error_code = "WALLET_NOT_CONNECTED"

    def __init__(self, message: str = "Connect a wallet to pay") -> None:
        super().__init__(message)


class WrongNetworkError(PreflightError):
    """Wallet is connected to a different chain."""

    error_code = "WRONG_NETWORK"

    def __init__(self, expected: int, actual: Optional[int]) -> None:
        super().__init__(
            f"Please switch to chain {expected}",
            details={"expected_chain_id": expected, "actual_chain_id": actual},
        )


class InvalidSessionStateError(CheckoutError):
    """Requested transition is not allowed from the session's status."""

    error_code = "INVALID_SESSION_STATE"

    def __init__(self, current: str, expected: str) -> None:
        super().__init__(
            f"Checkout session is {current}, expected {expected}",
            details={"current": current, "expected": expected},
        )


# =============================================================================
# Transfer (leg) errors
# =============================================================================

class TransferError(CheckoutError):
    """Token transfer did not produce a transaction."""

    error_code = "TRANSFER_FAILED"

    def __init__(
        self,
        message: str,
        to_address: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if to_address:
            details["to_address"] = to_address
        super().__init__(message, details=details)


class UserRejectedError(TransferError):
    """Buyer declined the signature prompt."""

    error_code = "USER_REJECTED"


class TransferNetworkError(TransferError):
    """Wallet or RPC transport failed."""

    error_code = "NETWORK_ERROR"


class TransferTimeoutError(TransferError):
    """Transfer was not confirmed within the leg timeout."""

    error_code = "TIMEOUT"


class TransferRevertedError(TransferError):
    """Transaction was mined but reverted; no tokens moved."""

    error_code = "TRANSFER_REVERTED"

    def __init__(self, tx_hash: str, to_address: Optional[str] = None) -> None:
        super().__init__(
            f"Transaction {tx_hash} reverted",
            to_address=to_address,
            details={"tx_hash": tx_hash},
        )
        self.tx_hash = tx_hash


class TransferUnconfirmedError(TransferError):
    """Transaction was broadcast but its outcome is unknown.

    ``cause_code`` is the error code of what interrupted confirmation
    (``TIMEOUT``, ``NETWORK_ERROR``, ...).
    """

    error_code = "TRANSFER_UNCONFIRMED"

    def __init__(
        self,
        message: str,
        tx_hash: str,
        cause_code: str,
        to_address: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            to_address=to_address,
            details={"tx_hash": tx_hash, "cause": cause_code},
        )
        self.tx_hash = tx_hash
        self.cause_code = cause_code


# =============================================================================
# Group errors (converted into PaymentResult, never raised past run())
# =============================================================================

class SellerWalletMissingError(CheckoutError):
    """Seller has no payout wallet configured."""

    error_code = "SELLER_WALLET_MISSING"

    def __init__(self, seller_id: str) -> None:
        super().__init__(
            "Seller wallet not configured",
            details={"seller_id": seller_id},
        )


class FeeTransferFailedError(CheckoutError):
    """Platform fee leg failed after the seller was paid."""

    error_code = "FEE_TRANSFER_FAILED"


class OrderCreateError(CheckoutError):
    """Order ledger rejected or failed to record the order."""

    error_code = "ORDER_CREATE_FAILED"

    def __init__(
        self,
        message: str = "Failed to create order",
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details=details)
