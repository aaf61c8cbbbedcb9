"""Shared fixtures for lumina_checkout tests."""
from __future__ import annotations

from decimal import Decimal

import pytest

from lumina_checkout.config import CheckoutSettings
from lumina_checkout.models import CartLineItem, ShippingInfo

SELLER_A_WALLET = "0x" + "a1" * 20
SELLER_C_WALLET = "0x" + "c3" * 20
BUYER_WALLET = "0x" + "b" * 40
TREASURY_WALLET = "0x3fD63728288546AC41dAe3bf25ca383061c3A929"


def make_item(
    product_id: str,
    seller_id: str,
    price: str,
    quantity: int = 1,
    wallet: str | None = None,
    name: str | None = None,
) -> CartLineItem:
    return CartLineItem(
        product_id=product_id,
        seller_id=seller_id,
        unit_price_axm=Decimal(price),
        quantity=quantity,
        seller_wallet_address=wallet,
        seller_display_name=name,
    )


@pytest.fixture
def settings():
    """Checkout settings with defaults and a short leg timeout."""
    return CheckoutSettings(
        _env_file=None,
        treasury_wallet=TREASURY_WALLET,
        platform_fee_bps=200,
        leg_timeout_seconds=5.0,
    )


@pytest.fixture
def shipping():
    """Complete shipping details."""
    return ShippingInfo(
        name="Ada Lovelace",
        email="ada@example.com",
        address="12 Analytical Row, London",
        notes="Leave at the door",
    )


@pytest.fixture
def two_shop_cart():
    """ShopA (100 AXM, wallet set) and ShopB (50 AXM, no wallet)."""
    return [
        make_item("p1", "shop-a", "60", 1, SELLER_A_WALLET, "ShopA"),
        make_item("p2", "shop-b", "25", 2, None, "ShopB"),
        make_item("p3", "shop-a", "20", 2, SELLER_A_WALLET, "ShopA"),
    ]
