"""Checkout data models."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
import uuid

from lumina_checkout.amounts import format_axm, from_base_units, to_base_units, to_decimal


class CheckoutStatus(str, Enum):
    """Checkout session lifecycle.

    cart -> payment -> processing -> complete. Complete is terminal and is
    reached once every shop group has a result, whatever the mix of outcomes.
    """
    CART = "cart"
    PAYMENT = "payment"
    PROCESSING = "processing"
    COMPLETE = "complete"


class PaymentStatus(str, Enum):
    """Outcome of settling one shop group."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureReason(str, Enum):
    """Why a shop group failed."""
    SELLER_WALLET_MISSING = "SELLER_WALLET_MISSING"
    USER_REJECTED = "USER_REJECTED"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    TRANSFER_FAILED = "TRANSFER_FAILED"
    ORDER_CREATE_FAILED = "ORDER_CREATE_FAILED"

    @classmethod
    def from_error_code(cls, error_code: str, default: "FailureReason") -> "FailureReason":
        try:
            return cls(error_code)
        except ValueError:
            return default


@dataclass(frozen=True)
class CartLineItem:
    """One product line in the buyer's cart."""
    product_id: str
    seller_id: str
    unit_price_axm: Decimal
    quantity: int
    seller_wallet_address: Optional[str] = None
    seller_display_name: Optional[str] = None
    product_name: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.unit_price_axm, float):
            raise TypeError("unit_price_axm must be a str or Decimal, not float")
        object.__setattr__(self, "unit_price_axm", to_decimal(self.unit_price_axm))
        if self.unit_price_axm < 0:
            raise ValueError("unit_price_axm cannot be negative")
        if not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValueError("quantity must be a positive integer")

    @property
    def unit_price_base_units(self) -> int:
        return to_base_units(self.unit_price_axm)

    @property
    def line_total_base_units(self) -> int:
        return self.unit_price_base_units * self.quantity


@dataclass(frozen=True)
class ShopGroup:
    """The subset of a cart's line items that belong to one seller."""
    seller_id: str
    seller_display_name: str
    seller_wallet_address: Optional[str]
    items: tuple[CartLineItem, ...] = ()

    @property
    def item_count(self) -> int:
        """Total units across the group's lines."""
        return sum(item.quantity for item in self.items)

    @property
    def subtotal_base_units(self) -> int:
        return sum(item.line_total_base_units for item in self.items)


@dataclass(frozen=True)
class FeeBreakdown:
    """Split of a shop group's subtotal between seller and platform.

    ``seller_amount + fee_amount == subtotal`` always holds; rounding is
    absorbed by the fee.
    """
    subtotal: int
    fee_basis_points: int
    fee_amount: int
    seller_amount: int

    def __post_init__(self):
        if self.seller_amount + self.fee_amount != self.subtotal:
            raise ValueError("seller_amount + fee_amount must equal subtotal")

    def to_dict(self) -> dict[str, Any]:
        return {
            "subtotal": str(from_base_units(self.subtotal)),
            "fee_basis_points": self.fee_basis_points,
            "fee_amount": str(from_base_units(self.fee_amount)),
            "seller_amount": str(from_base_units(self.seller_amount)),
        }


@dataclass(frozen=True)
class ShippingInfo:
    """Buyer-entered shipping details passed through to the ledger."""
    name: str = ""
    email: str = ""
    address: str = ""
    notes: str = ""

    def missing_fields(self, require_address: bool = True) -> list[str]:
        """Names of required fields that are blank."""
        required = ["name", "email"] + (["address"] if require_address else [])
        return [name for name in required if not getattr(self, name).strip()]


@dataclass(frozen=True)
class PaymentResult:
    """Terminal outcome of one shop group."""
    seller_id: str
    seller_display_name: str
    status: PaymentStatus
    item_count: int
    order_id: Optional[str] = None
    seller_transaction_id: Optional[str] = None
    fee_transaction_id: Optional[str] = None
    error_message: Optional[str] = None
    failure_reason: Optional[FailureReason] = None
    fees: Optional[FeeBreakdown] = None
    needs_reconciliation: bool = False
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if self.status == PaymentStatus.SUCCEEDED:
            if not self.order_id or self.error_message is not None:
                raise ValueError("succeeded result needs an order_id and no error")
        else:
            if self.order_id is not None or not self.error_message:
                raise ValueError("failed result needs an error_message and no order_id")

    @property
    def succeeded(self) -> bool:
        return self.status == PaymentStatus.SUCCEEDED

    def explorer_url(self, explorer_base_url: str) -> Optional[str]:
        """Block-explorer link for the seller payment, if one was sent."""
        if not self.seller_transaction_id:
            return None
        return f"{explorer_base_url.rstrip('/')}/tx/{self.seller_transaction_id}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "seller_id": self.seller_id,
            "seller_display_name": self.seller_display_name,
            "status": self.status.value,
            "item_count": self.item_count,
            "order_id": self.order_id,
            "seller_transaction_id": self.seller_transaction_id,
            "fee_transaction_id": self.fee_transaction_id,
            "error_message": self.error_message,
            "failure_reason": self.failure_reason.value if self.failure_reason else None,
            "fees": self.fees.to_dict() if self.fees else None,
            "needs_reconciliation": self.needs_reconciliation,
            "completed_at": self.completed_at.isoformat(),
        }


@dataclass(frozen=True)
class CheckoutSession:
    """Immutable snapshot of one checkout.

    Transitions produce new sessions via ``dataclasses.replace``; results only
    ever grow, one per shop group, in shop group order.
    """
    shipping_info: ShippingInfo
    shop_groups: tuple[ShopGroup, ...]
    buyer_address: Optional[str] = None
    results: tuple[PaymentResult, ...] = ()
    status: CheckoutStatus = CheckoutStatus.CART
    fee_basis_points: int = 0
    session_id: str = field(default_factory=lambda: f"chk_{uuid.uuid4().hex[:16]}")
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def total_groups(self) -> int:
        return len(self.shop_groups)

    @property
    def subtotal_base_units(self) -> int:
        return sum(group.subtotal_base_units for group in self.shop_groups)

    @property
    def succeeded(self) -> list[PaymentResult]:
        return [r for r in self.results if r.status == PaymentStatus.SUCCEEDED]

    @property
    def failed(self) -> list[PaymentResult]:
        return [r for r in self.results if r.status == PaymentStatus.FAILED]

    @property
    def progress_percent(self) -> float:
        if not self.shop_groups:
            return 100.0 if self.status == CheckoutStatus.COMPLETE else 0.0
        return len(self.results) / len(self.shop_groups) * 100

    @property
    def is_complete(self) -> bool:
        return self.status == CheckoutStatus.COMPLETE

    def to_dict(self) -> dict[str, Any]:
        """Session-facing view consumed by the UI."""
        return {
            "session_id": self.session_id,
            "status": self.status.value,
            "progress_percent": self.progress_percent,
            "subtotal": format_axm(self.subtotal_base_units),
            "shop_count": self.total_groups,
            "succeeded": [r.to_dict() for r in self.succeeded],
            "failed": [r.to_dict() for r in self.failed],
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
