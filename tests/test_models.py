"""Tests for lumina_checkout.models."""
from __future__ import annotations

from decimal import Decimal

import pytest

from lumina_checkout.models import (
    CartLineItem,
    CheckoutSession,
    CheckoutStatus,
    FailureReason,
    FeeBreakdown,
    PaymentResult,
    PaymentStatus,
    ShippingInfo,
    ShopGroup,
)

from conftest import make_item


class TestCartLineItem:
    """Tests for CartLineItem validation."""

    def test_price_string_coerced(self):
        item = CartLineItem("p1", "s1", "2.5", 2)
        assert item.unit_price_axm == Decimal("2.5")
        assert item.line_total_base_units == 5 * 10**18

    def test_float_price_rejected(self):
        with pytest.raises(TypeError):
            CartLineItem("p1", "s1", 2.5, 1)

    @pytest.mark.parametrize("quantity", [0, -1, 1.5])
    def test_quantity_must_be_positive_int(self, quantity):
        with pytest.raises(ValueError):
            CartLineItem("p1", "s1", Decimal("1"), quantity)

    @pytest.mark.parametrize("price", ["abc", "", "NaN", "Infinity"])
    def test_unparseable_price_is_value_error(self, price):
        """Prices that are not finite numbers should raise ValueError."""
        with pytest.raises(ValueError):
            CartLineItem("p1", "s1", price, 1)

    def test_negative_price_rejected(self):
        with pytest.raises(ValueError):
            CartLineItem("p1", "s1", Decimal("-1"), 1)


class TestFeeBreakdown:
    def test_split_must_balance(self):
        with pytest.raises(ValueError):
            FeeBreakdown(subtotal=100, fee_basis_points=200, fee_amount=2, seller_amount=97)

    def test_to_dict(self):
        fees = FeeBreakdown(subtotal=10**18, fee_basis_points=200, fee_amount=2 * 10**16, seller_amount=98 * 10**16)
        assert fees.to_dict()["seller_amount"] == "0.98"


class TestPaymentResult:
    """Tests for PaymentResult invariants."""

    def test_succeeded_requires_order(self):
        with pytest.raises(ValueError):
            PaymentResult("s1", "Shop", PaymentStatus.SUCCEEDED, item_count=1)

    def test_failed_requires_message(self):
        with pytest.raises(ValueError):
            PaymentResult("s1", "Shop", PaymentStatus.FAILED, item_count=1)

    def test_failed_cannot_have_order(self):
        with pytest.raises(ValueError):
            PaymentResult(
                "s1", "Shop", PaymentStatus.FAILED, item_count=1,
                order_id="1", error_message="boom",
            )

    def test_explorer_url(self):
        result = PaymentResult(
            "s1", "Shop", PaymentStatus.SUCCEEDED, item_count=1,
            order_id="7", seller_transaction_id="0xabc",
        )
        assert result.explorer_url("https://arbiscan.io/") == "https://arbiscan.io/tx/0xabc"
        assert result.to_dict()["status"] == "succeeded"

    def test_explorer_url_without_tx(self):
        result = PaymentResult(
            "s1", "Shop", PaymentStatus.FAILED, item_count=1,
            error_message="Seller wallet not configured",
            failure_reason=FailureReason.SELLER_WALLET_MISSING,
        )
        assert result.explorer_url("https://arbiscan.io") is None

    def test_failure_reason_from_error_code(self):
        assert FailureReason.from_error_code("TIMEOUT", FailureReason.TRANSFER_FAILED) == FailureReason.TIMEOUT
        assert (
            FailureReason.from_error_code("SOMETHING_ELSE", FailureReason.TRANSFER_FAILED)
            == FailureReason.TRANSFER_FAILED
        )


class TestShippingInfo:
    def test_missing_fields(self):
        assert ShippingInfo().missing_fields() == ["name", "email", "address"]
        assert ShippingInfo(name="A", email="a@b.c").missing_fields(require_address=False) == []


class TestCheckoutSession:
    """Tests for CheckoutSession views."""

    def _session(self, results=(), status=CheckoutStatus.PROCESSING):
        group = ShopGroup("s1", "Shop", None, (make_item("p1", "s1", "3", 2),))
        other = ShopGroup("s2", "Other", None, (make_item("p2", "s2", "1", 1),))
        return CheckoutSession(
            shipping_info=ShippingInfo(),
            shop_groups=(group, other),
            results=tuple(results),
            status=status,
        )

    def test_progress_and_subtotal(self):
        failed = PaymentResult("s1", "Shop", PaymentStatus.FAILED, item_count=2, error_message="x")
        session = self._session([failed])
        assert session.progress_percent == 50.0
        assert session.subtotal_base_units == 7 * 10**18
        assert session.failed == [failed]
        assert session.succeeded == []

    def test_to_dict_separates_outcomes(self):
        ok = PaymentResult("s1", "Shop", PaymentStatus.SUCCEEDED, item_count=2, order_id="1")
        bad = PaymentResult("s2", "Other", PaymentStatus.FAILED, item_count=1, error_message="x")
        data = self._session([ok, bad], CheckoutStatus.COMPLETE).to_dict()
        assert data["status"] == "complete"
        assert data["progress_percent"] == 100.0
        assert data["subtotal"] == "7.00"
        assert [r["seller_id"] for r in data["succeeded"]] == ["s1"]
        assert [r["seller_id"] for r in data["failed"]] == ["s2"]

    def test_session_ids_unique(self):
        assert self._session().session_id != self._session().session_id
        assert self._session().session_id.startswith("chk_")
