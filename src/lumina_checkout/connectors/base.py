"""Base wallet and order ledger connector interfaces."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from lumina_checkout.models import CartLineItem, ShippingInfo


@dataclass(frozen=True)
class OrderRequest:
    """One seller-scoped order and its payment proof."""
    seller_id: str
    items: Sequence[CartLineItem]
    seller_transaction_id: str
    shipping: ShippingInfo
    fee_transaction_id: Optional[str] = None
    idempotency_key: Optional[str] = None


class TokenTransferClient(ABC):
    """Abstract interface for the buyer's token-transfer capability.

    Implementations raise ``TransferError`` subclasses on failure:
    ``UserRejectedError``, ``TransferNetworkError`` or ``TransferTimeoutError``.
    """

    @property
    @abstractmethod
    def address(self) -> Optional[str]:
        """Connected buyer address, or None when no wallet is connected."""
        pass

    @abstractmethod
    async def get_chain_id(self) -> int:
        """Chain the wallet is currently connected to."""
        pass

    @abstractmethod
    async def get_balance(self) -> int:
        """
        Token balance of the connected address.

        Returns:
            Balance in base units
        """
        pass

    @abstractmethod
    async def transfer(self, amount_base_units: int, to_address: str) -> str:
        """
        Submit one token transfer.

        Args:
            amount_base_units: Amount in 18-decimal base units
            to_address: Recipient address

        Returns:
            Transaction identifier of the broadcast transaction
        """
        pass

    async def confirm(self, tx_hash: str) -> None:
        """
        Wait until a broadcast transfer is final.

        Wallets that only report mined transactions need not override this.

        Raises:
            TransferRevertedError: The transaction was mined and reverted
            TransferError: Confirmation could not be established
        """
        return None


class OrderLedgerClient(ABC):
    """Abstract interface for the external order ledger."""

    @abstractmethod
    async def create_order(self, request: OrderRequest) -> str:
        """
        Persist one seller-scoped order.

        Args:
            request: OrderRequest with items, payment proof and shipping

        Returns:
            Order identifier

        Raises:
            OrderCreateError: The ledger did not record the order
        """
        pass
