"""
Cart aggregation for multi-seller checkout.

Splits a cart into per-seller shop groups and computes each group's
seller/platform split in integer AXM base units.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from lumina_checkout.amounts import BPS_DENOMINATOR, apply_bps
from lumina_checkout.models import CartLineItem, FeeBreakdown, ShopGroup

logger = logging.getLogger(__name__)


def default_shop_name(seller_id: str) -> str:
    return f"Shop #{seller_id}"


class CartAggregator:
    """Groups cart lines by seller and prices each group."""

    def group_by_shop(self, items: Iterable[CartLineItem]) -> List[ShopGroup]:
        """
        Partition cart lines into shop groups.

        Groups keep first-seen seller order and items keep cart order. The
        first line seen for a seller supplies the group's display name and
        payout wallet; later lines only fill in values the first one lacked.
        """
        order: List[str] = []
        lines: Dict[str, List[CartLineItem]] = {}
        names: Dict[str, Optional[str]] = {}
        wallets: Dict[str, Optional[str]] = {}

        for item in items:
            if item.seller_id not in lines:
                order.append(item.seller_id)
                lines[item.seller_id] = []
                names[item.seller_id] = item.seller_display_name
                wallets[item.seller_id] = item.seller_wallet_address
            else:
                names[item.seller_id] = names[item.seller_id] or item.seller_display_name
                wallets[item.seller_id] = wallets[item.seller_id] or item.seller_wallet_address
            lines[item.seller_id].append(item)

        return [
            ShopGroup(
                seller_id=seller_id,
                seller_display_name=names[seller_id] or default_shop_name(seller_id),
                seller_wallet_address=wallets[seller_id] or None,
                items=tuple(lines[seller_id]),
            )
            for seller_id in order
        ]

    def compute_fees(self, group: ShopGroup, fee_basis_points: int) -> FeeBreakdown:
        """Split a group's subtotal into seller share and platform fee."""
        if fee_basis_points < 0 or fee_basis_points > BPS_DENOMINATOR:
            raise ValueError("fee_basis_points must be between 0 and 10000")
        subtotal = group.subtotal_base_units
        fee_amount = apply_bps(subtotal, fee_basis_points)
        return FeeBreakdown(
            subtotal=subtotal,
            fee_basis_points=fee_basis_points,
            fee_amount=fee_amount,
            seller_amount=subtotal - fee_amount,
        )

    def cart_subtotal(self, items: Iterable[CartLineItem]) -> int:
        """Sum of all line totals in base units."""
        return sum(item.line_total_base_units for item in items)


class CartStore(ABC):
    """Abstract interface for the buyer's cart."""

    @abstractmethod
    async def get_items(self) -> List[CartLineItem]:
        """Return the cart lines in cart order."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every line from the cart."""
        pass


class InMemoryCartStore(CartStore):
    """
    In-memory cart for development and testing.

    Note: This store is not suitable for production use.
    """

    def __init__(self, items: Optional[Iterable[CartLineItem]] = None):
        self._items: List[CartLineItem] = list(items or [])

    async def get_items(self) -> List[CartLineItem]:
        return list(self._items)

    async def clear(self) -> None:
        self._items.clear()

    def add(self, item: CartLineItem) -> None:
        self._items.append(item)

    def __len__(self) -> int:
        return len(self._items)
