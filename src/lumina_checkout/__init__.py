"""
Lumina Checkout - multi-seller AXM settlement.

This package settles a marketplace cart that spans several sellers by
paying each seller individually from the buyer's wallet and recording one
order per seller in the marketplace ledger.

Features:
- Cart grouping by seller with exact seller/platform fee split
- Sequential per-seller settlement (seller leg, fee leg, order record)
- Per-seller failure isolation; partial checkouts are a normal outcome
- Explicit per-leg wallet timeout
- Reconciliation queue for funds sent without a clean order record
- Progress snapshots for the UI
"""

from lumina_checkout.orchestrator import PaymentOrchestrator
from lumina_checkout.cart import CartAggregator, CartStore, InMemoryCartStore
from lumina_checkout.config import CheckoutSettings, load_settings
from lumina_checkout.models import (
    # Cart
    CartLineItem,
    ShopGroup,
    FeeBreakdown,
    ShippingInfo,
    # Session
    CheckoutSession,
    CheckoutStatus,
    PaymentResult,
    PaymentStatus,
    FailureReason,
)
from lumina_checkout.progress import ProgressReporter, ProgressSnapshot
from lumina_checkout.reconciliation import (
    InMemoryReconciliationQueue,
    ReconciliationItem,
    ReconciliationQueue,
    ReconciliationReason,
)
from lumina_checkout.exceptions import (
    CheckoutError,
    PreflightError,
    EmptyCartError,
    InsufficientBalanceError,
    ShippingInfoMissingError,
    WalletNotConnectedError,
    WrongNetworkError,
    InvalidSessionStateError,
    TransferError,
    UserRejectedError,
    TransferNetworkError,
    TransferTimeoutError,
    TransferRevertedError,
    TransferUnconfirmedError,
    SellerWalletMissingError,
    FeeTransferFailedError,
    OrderCreateError,
)
from lumina_checkout.connectors import (
    TokenTransferClient,
    OrderLedgerClient,
    OrderRequest,
    JsonRpcWalletClient,
    HttpOrderLedgerClient,
    SimulatedWallet,
    InMemoryOrderLedger,
)

__all__ = [
    # Orchestration
    "PaymentOrchestrator",
    "CartAggregator",
    "CartStore",
    "InMemoryCartStore",
    "ProgressReporter",
    "ProgressSnapshot",
    # Configuration
    "CheckoutSettings",
    "load_settings",
    # Models
    "CartLineItem",
    "ShopGroup",
    "FeeBreakdown",
    "ShippingInfo",
    "CheckoutSession",
    "CheckoutStatus",
    "PaymentResult",
    "PaymentStatus",
    "FailureReason",
    # Reconciliation
    "ReconciliationQueue",
    "InMemoryReconciliationQueue",
    "ReconciliationItem",
    "ReconciliationReason",
    # Exceptions
    "CheckoutError",
    "PreflightError",
    "EmptyCartError",
    "InsufficientBalanceError",
    "ShippingInfoMissingError",
    "WalletNotConnectedError",
    "WrongNetworkError",
    "InvalidSessionStateError",
    "TransferError",
    "UserRejectedError",
    "TransferNetworkError",
    "TransferTimeoutError",
    "TransferRevertedError",
    "TransferUnconfirmedError",
    "SellerWalletMissingError",
    "FeeTransferFailedError",
    "OrderCreateError",
    # Connectors
    "TokenTransferClient",
    "OrderLedgerClient",
    "OrderRequest",
    "JsonRpcWalletClient",
    "HttpOrderLedgerClient",
    "SimulatedWallet",
    "InMemoryOrderLedger",
]

__version__ = "0.1.0"
