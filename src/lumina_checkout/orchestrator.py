"""
Multi-seller checkout orchestration.

This module drives one checkout session through its lifecycle:
- Pre-flight checks (wallet, network, cart, shipping, balance)
- Sequential per-seller settlement: seller leg, fee leg, order record
- Reconciliation flags for funds that moved without a clean record
- Progress snapshots for the UI

Shop groups are settled one at a time. The buyer's wallet can only show one
signature prompt at once, so no two transfers are ever in flight together.
A failed group never stops the run; every group ends with exactly one
PaymentResult and the session always reaches ``complete``.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Awaitable, Iterable, Optional, TypeVar

from lumina_checkout.amounts import format_axm
from lumina_checkout.cart import CartAggregator, CartStore
from lumina_checkout.config import CheckoutSettings, load_settings
from lumina_checkout.connectors.base import OrderLedgerClient, OrderRequest, TokenTransferClient
from lumina_checkout.connectors.wallet import truncate_address
from lumina_checkout.exceptions import (
    CheckoutError,
    EmptyCartError,
    FeeTransferFailedError,
    InsufficientBalanceError,
    InvalidSessionStateError,
    OrderCreateError,
    SellerWalletMissingError,
    ShippingInfoMissingError,
    TransferError,
    TransferRevertedError,
    TransferTimeoutError,
    TransferUnconfirmedError,
    WalletNotConnectedError,
    WrongNetworkError,
)
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
from lumina_checkout.progress import ProgressCallback, ProgressReporter
from lumina_checkout.reconciliation import (
    InMemoryReconciliationQueue,
    ReconciliationItem,
    ReconciliationQueue,
    ReconciliationReason,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PaymentOrchestrator:
    """
    Settles a multi-seller cart one seller at a time.

    Per shop group:
    1. Compute the seller/platform split
    2. Fail the group without any transfer if the seller has no wallet
    3. Leg 1: pay the seller; on failure skip the rest of the group
    4. Leg 2: pay the platform fee; on failure flag for reconciliation and go on
    5. Record the order; on failure flag funds-sent-but-unrecorded

    Sessions are never mutated. Every transition returns a new
    ``CheckoutSession``.
    """

    def __init__(
        self,
        wallet: TokenTransferClient,
        ledger: OrderLedgerClient,
        cart_store: Optional[CartStore] = None,
        settings: Optional[CheckoutSettings] = None,
        aggregator: Optional[CartAggregator] = None,
        reconciliation: Optional[ReconciliationQueue] = None,
    ):
        self.wallet = wallet
        self.ledger = ledger
        self.cart_store = cart_store
        self.settings = settings or load_settings()
        self.aggregator = aggregator or CartAggregator()
        self.reconciliation = reconciliation or InMemoryReconciliationQueue()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def begin_checkout(
        self,
        items: Iterable[CartLineItem],
        shipping_info: Optional[ShippingInfo] = None,
        buyer_address: Optional[str] = None,
    ) -> CheckoutSession:
        """Build a cart-status session with the cart split into shop groups."""
        groups = self.aggregator.group_by_shop(items)
        session = CheckoutSession(
            shipping_info=shipping_info or ShippingInfo(),
            shop_groups=tuple(groups),
            buyer_address=buyer_address or self.wallet.address,
            fee_basis_points=self.settings.platform_fee_bps,
        )
        logger.info(
            f"Checkout {session.session_id} started with {session.total_groups} shop(s), "
            f"subtotal {format_axm(session.subtotal_base_units)} AXM"
        )
        return session

    async def begin_checkout_from_cart(
        self,
        shipping_info: Optional[ShippingInfo] = None,
    ) -> CheckoutSession:
        """Build a cart-status session from the configured cart store."""
        if self.cart_store is None:
            raise CheckoutError("No cart store configured", error_code="CART_UNAVAILABLE")
        items = await self.cart_store.get_items()
        return self.begin_checkout(items, shipping_info)

    def with_shipping(self, session: CheckoutSession, shipping_info: ShippingInfo) -> CheckoutSession:
        """Replace the shipping details of a cart-status session."""
        self._require_status(session, CheckoutStatus.CART)
        return replace(session, shipping_info=shipping_info)

    async def request_payment(self, session: CheckoutSession) -> CheckoutSession:
        """
        Run pre-flight checks and move the session from cart to payment.

        Raises:
            InvalidSessionStateError: Session is not in cart status
            WalletNotConnectedError: No buyer wallet
            WrongNetworkError: Wallet is on another chain
            EmptyCartError: No shop groups
            ShippingInfoMissingError: Required shipping fields are blank
            InsufficientBalanceError: Balance does not cover the cart
        """
        self._require_status(session, CheckoutStatus.CART)

        if not self.wallet.address:
            raise WalletNotConnectedError()

        chain_id = await self.wallet.get_chain_id()
        if chain_id != self.settings.chain_id:
            raise WrongNetworkError(expected=self.settings.chain_id, actual=chain_id)

        if not session.shop_groups:
            raise EmptyCartError()

        missing = session.shipping_info.missing_fields(
            require_address=self.settings.require_shipping_address,
        )
        if missing:
            raise ShippingInfoMissingError(missing)

        required = session.subtotal_base_units
        available = await self.wallet.get_balance()
        if available < required:
            logger.info(
                f"Checkout {session.session_id} blocked: balance {format_axm(available)} "
                f"< required {format_axm(required)} AXM"
            )
            raise InsufficientBalanceError(available=available, required=required)

        logger.info(f"Checkout {session.session_id}: cart -> payment")
        return replace(session, status=CheckoutStatus.PAYMENT)

    def cancel_payment(self, session: CheckoutSession) -> CheckoutSession:
        """Return a payment-status session to the cart step."""
        self._require_status(session, CheckoutStatus.PAYMENT)
        logger.info(f"Checkout {session.session_id}: payment -> cart")
        return replace(session, status=CheckoutStatus.CART)

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    async def run(
        self,
        session: CheckoutSession,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CheckoutSession:
        """
        Settle every shop group and return the completed session.

        Per-group failures never propagate; they become failed results.
        Only a session that cannot enter processing raises, before any
        group is touched.

        Args:
            session: Session in payment status
            on_progress: Optional callback receiving ProgressSnapshot updates

        Returns:
            New session in complete status with one result per shop group

        Raises:
            InvalidSessionStateError: Session is not in payment status
            EmptyCartError: Session has no shop groups
        """
        self._require_status(session, CheckoutStatus.PAYMENT)
        if not session.shop_groups:
            raise EmptyCartError()

        reporter = ProgressReporter(on_progress)
        total = session.total_groups
        session = replace(session, status=CheckoutStatus.PROCESSING)
        logger.info(f"Checkout {session.session_id}: payment -> processing ({total} shop(s))")

        for index, group in enumerate(session.shop_groups):
            self._notify(reporter, index, total, group.seller_display_name, index)
            try:
                result = await self._settle_group(session, group)
            except Exception as e:
                logger.exception(
                    f"Unexpected error settling shop {group.seller_id} "
                    f"in checkout {session.session_id}"
                )
                result = self._failed(
                    group,
                    message=str(e) or type(e).__name__,
                    reason=FailureReason.TRANSFER_FAILED,
                )
            session = replace(session, results=session.results + (result,))
            self._notify(reporter, index + 1, total, group.seller_display_name, index)

        await self._clear_cart(session)

        session = replace(
            session,
            status=CheckoutStatus.COMPLETE,
            completed_at=datetime.now(timezone.utc),
        )
        logger.info(
            f"Checkout {session.session_id} complete: "
            f"{len(session.succeeded)} succeeded, {len(session.failed)} failed"
        )
        return session

    async def _settle_group(self, session: CheckoutSession, group: ShopGroup) -> PaymentResult:
        """Run the seller leg, then hand off to the fee leg and order record."""
        fees = self.aggregator.compute_fees(group, session.fee_basis_points)

        if not group.seller_wallet_address:
            error = SellerWalletMissingError(group.seller_id)
            logger.warning(f"Shop {group.seller_id} has no payout wallet; skipping")
            return self._failed(
                group,
                message=error.message,
                reason=FailureReason.SELLER_WALLET_MISSING,
                fees=fees,
            )

        # Leg 1: seller payout
        try:
            seller_tx = await self._transfer(fees.seller_amount, group.seller_wallet_address)
        except TransferUnconfirmedError as e:
            # Broadcast, so the seller may have been paid
            logger.error(
                f"Seller leg for shop {group.seller_id} sent as {e.tx_hash} "
                f"but not confirmed: {e.message}"
            )
            await self._flag(
                session,
                group,
                fees,
                ReconciliationReason.FUNDS_SENT_UNRECORDED,
                seller_tx=e.tx_hash,
                error_message=e.message,
            )
            return self._failed(
                group,
                message=e.message,
                reason=FailureReason.from_error_code(e.cause_code, FailureReason.TRANSFER_FAILED),
                fees=fees,
                seller_tx=e.tx_hash,
                needs_reconciliation=True,
            )
        except TransferError as e:
            logger.warning(
                f"Seller leg failed for shop {group.seller_id} "
                f"({truncate_address(group.seller_wallet_address)}): {e.error_code} {e.message}"
            )
            return self._failed(
                group,
                message=e.message,
                reason=FailureReason.from_error_code(e.error_code, FailureReason.TRANSFER_FAILED),
                fees=fees,
            )

        try:
            return await self._finish_group(session, group, fees, seller_tx)
        except Exception:
            logger.exception(
                f"Unexpected error after seller tx {seller_tx} for shop {group.seller_id} "
                f"in checkout {session.session_id}"
            )
            message = OrderCreateError().message
            await self._flag(
                session,
                group,
                fees,
                ReconciliationReason.FUNDS_SENT_UNRECORDED,
                seller_tx=seller_tx,
                error_message=message,
            )
            return self._failed(
                group,
                message=message,
                reason=FailureReason.ORDER_CREATE_FAILED,
                fees=fees,
                seller_tx=seller_tx,
                needs_reconciliation=True,
            )

    async def _finish_group(
        self,
        session: CheckoutSession,
        group: ShopGroup,
        fees: FeeBreakdown,
        seller_tx: str,
    ) -> PaymentResult:
        """Fee leg and order record for a group whose seller has been paid."""
        # Leg 2: platform fee, never fatal for the group
        fee_tx: Optional[str] = None
        fee_sent_tx: Optional[str] = None
        fee_error: Optional[CheckoutError] = None
        if fees.fee_amount > 0:
            try:
                fee_tx = await self._transfer(fees.fee_amount, self.settings.treasury_wallet)
            except Exception as e:
                fee_sent_tx = getattr(e, "tx_hash", None)
                fee_error = FeeTransferFailedError(
                    f"Platform fee transfer failed: {e}",
                    details={"cause": getattr(e, "error_code", type(e).__name__)},
                )
                logger.warning(
                    f"Fee leg failed for shop {group.seller_id} after seller tx {seller_tx}: "
                    f"{fee_error.message}"
                )

        # Order record
        request = OrderRequest(
            seller_id=group.seller_id,
            items=group.items,
            seller_transaction_id=seller_tx,
            fee_transaction_id=fee_tx,
            shipping=session.shipping_info,
            idempotency_key=f"{session.session_id}:{group.seller_id}",
        )
        try:
            order_id = await self.ledger.create_order(request)
            if order_id is None or not str(order_id).strip():
                raise OrderCreateError(details={"cause": "ledger returned no order id"})
            order_id = str(order_id)
        except Exception as e:
            order_error = e if isinstance(e, OrderCreateError) else OrderCreateError(
                details={"cause": str(e)},
            )
            logger.error(
                f"Order not recorded for shop {group.seller_id} although seller tx "
                f"{seller_tx} was sent: {order_error.details}"
            )
            await self._flag(
                session,
                group,
                fees,
                ReconciliationReason.FUNDS_SENT_UNRECORDED,
                seller_tx=seller_tx,
                fee_tx=fee_tx or fee_sent_tx,
                error_message=order_error.message,
            )
            return self._failed(
                group,
                message=order_error.message,
                reason=FailureReason.ORDER_CREATE_FAILED,
                fees=fees,
                seller_tx=seller_tx,
                fee_tx=fee_tx,
                needs_reconciliation=True,
            )

        if fee_error is not None:
            await self._flag(
                session,
                group,
                fees,
                ReconciliationReason.FEE_TRANSFER_FAILED,
                seller_tx=seller_tx,
                fee_tx=fee_sent_tx,
                order_id=order_id,
                error_message=fee_error.message,
            )

        logger.info(f"Shop {group.seller_id} settled: order {order_id}, seller tx {seller_tx}")
        return PaymentResult(
            seller_id=group.seller_id,
            seller_display_name=group.seller_display_name,
            status=PaymentStatus.SUCCEEDED,
            item_count=group.item_count,
            order_id=order_id,
            seller_transaction_id=seller_tx,
            fee_transaction_id=fee_tx,
            fees=fees,
            needs_reconciliation=fee_error is not None,
        )

    async def _transfer(self, amount: int, to_address: str) -> str:
        """
        Submit one leg and wait for it to be final.

        Submission and confirmation each get the per-leg timeout. Once the
        wallet has returned a hash, any failure other than a revert raises
        TransferUnconfirmedError carrying that hash.
        """
        tx_hash = await self._with_leg_timeout(
            self.wallet.transfer(amount, to_address),
            to_address,
        )
        try:
            await self._with_leg_timeout(self.wallet.confirm(tx_hash), to_address)
        except TransferRevertedError:
            raise
        except Exception as e:
            raise TransferUnconfirmedError(
                f"Transaction {tx_hash} was sent but not confirmed: {e}",
                tx_hash=tx_hash,
                cause_code=getattr(e, "error_code", type(e).__name__),
                to_address=to_address,
            ) from e
        return tx_hash

    async def _with_leg_timeout(self, awaitable: Awaitable[T], to_address: str) -> T:
        timeout = self.settings.leg_timeout
        if timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise TransferTimeoutError(
                f"Wallet did not respond within {timeout:g}s",
                to_address=to_address,
            ) from e

    async def _flag(
        self,
        session: CheckoutSession,
        group: ShopGroup,
        fees: FeeBreakdown,
        reason: ReconciliationReason,
        seller_tx: Optional[str] = None,
        fee_tx: Optional[str] = None,
        order_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        try:
            await self.reconciliation.flag(
                ReconciliationItem(
                    session_id=session.session_id,
                    seller_id=group.seller_id,
                    reason=reason,
                    seller_amount=fees.seller_amount,
                    fee_amount=fees.fee_amount,
                    seller_transaction_id=seller_tx,
                    fee_transaction_id=fee_tx,
                    order_id=order_id,
                    error_message=error_message,
                )
            )
        except Exception:
            logger.exception(
                f"Could not record reconciliation item ({reason.value}) "
                f"for shop {group.seller_id} in checkout {session.session_id}"
            )

    async def _clear_cart(self, session: CheckoutSession) -> None:
        if self.cart_store is None or not self.settings.clear_cart_on_complete:
            return
        try:
            await self.cart_store.clear()
        except Exception:
            logger.exception(f"Failed to clear cart after checkout {session.session_id}")

    @staticmethod
    def _notify(
        reporter: ProgressReporter,
        completed: int,
        total: int,
        name: str,
        index: int,
    ) -> None:
        try:
            reporter.report(completed, total, current_group_name=name, current_index=index)
        except Exception:
            logger.exception("Progress callback failed")

    @staticmethod
    def _failed(
        group: ShopGroup,
        message: str,
        reason: FailureReason,
        fees: Optional[FeeBreakdown] = None,
        seller_tx: Optional[str] = None,
        fee_tx: Optional[str] = None,
        needs_reconciliation: bool = False,
    ) -> PaymentResult:
        return PaymentResult(
            seller_id=group.seller_id,
            seller_display_name=group.seller_display_name,
            status=PaymentStatus.FAILED,
            item_count=group.item_count,
            seller_transaction_id=seller_tx,
            fee_transaction_id=fee_tx,
            error_message=message,
            failure_reason=reason,
            fees=fees,
            needs_reconciliation=needs_reconciliation,
        )

    @staticmethod
    def _require_status(session: CheckoutSession, expected: CheckoutStatus) -> None:
        if session.status != expected:
            raise InvalidSessionStateError(session.status.value, expected.value)
