"""Simulated wallet and in-memory order ledger for development."""
from __future__ import annotations

import itertools
import logging
import secrets
from dataclasses import dataclass
from typing import Dict, List, Optional

from lumina_checkout.config import DEFAULT_CHAIN_ID
from lumina_checkout.connectors.base import OrderLedgerClient, OrderRequest, TokenTransferClient
from lumina_checkout.exceptions import OrderCreateError, TransferError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulatedTransfer:
    """A transfer the simulated wallet accepted."""
    tx_hash: str
    to_address: str
    amount: int


class SimulatedWallet(TokenTransferClient):
    """
    Simulated buyer wallet.

    Transfers succeed and debit the simulated balance unless a failure has
    been scripted for the recipient with ``fail_transfers_to``.
    """

    def __init__(
        self,
        address: Optional[str] = "0x" + "b" * 40,
        balance: int = 0,
        chain_id: int = DEFAULT_CHAIN_ID,
    ):
        self._address = address
        self._balance = balance
        self._chain_id = chain_id
        self._failures: Dict[str, TransferError] = {}
        self.transfers: List[SimulatedTransfer] = []

    @property
    def address(self) -> Optional[str]:
        return self._address

    async def get_chain_id(self) -> int:
        return self._chain_id

    async def get_balance(self) -> int:
        return self._balance

    def fail_transfers_to(self, to_address: str, error: TransferError) -> None:
        """Make every transfer to ``to_address`` raise ``error``."""
        self._failures[to_address.lower()] = error

    async def transfer(self, amount_base_units: int, to_address: str) -> str:
        error = self._failures.get(to_address.lower())
        if error is not None:
            raise error
        if amount_base_units > self._balance:
            raise TransferError("Transfer amount exceeds balance", to_address=to_address)
        tx_hash = "0x" + secrets.token_hex(32)
        self._balance -= amount_base_units
        self.transfers.append(SimulatedTransfer(tx_hash, to_address, amount_base_units))
        logger.info(f"[SIMULATED] transfer {amount_base_units} -> {to_address}: {tx_hash}")
        return tx_hash


class InMemoryOrderLedger(OrderLedgerClient):
    """
    In-memory order ledger for development and testing.

    Note: This ledger is not suitable for production use.
    A repeated idempotency key returns the original order id.
    """

    def __init__(self):
        self.orders: Dict[str, OrderRequest] = {}
        self._by_key: Dict[str, str] = {}
        self._ids = itertools.count(1)
        self._fail_sellers: set[str] = set()

    def fail_orders_for(self, seller_id: str) -> None:
        self._fail_sellers.add(seller_id)

    async def create_order(self, request: OrderRequest) -> str:
        if request.seller_id in self._fail_sellers:
            raise OrderCreateError(status_code=500)
        if request.idempotency_key and request.idempotency_key in self._by_key:
            return self._by_key[request.idempotency_key]
        order_id = str(next(self._ids))
        self.orders[order_id] = request
        if request.idempotency_key:
            self._by_key[request.idempotency_key] = order_id
        return order_id
