"""Wallet and order ledger connector implementations."""
from lumina_checkout.connectors.base import OrderLedgerClient, OrderRequest, TokenTransferClient
from lumina_checkout.connectors.ledger import HttpOrderLedgerClient
from lumina_checkout.connectors.simulated import InMemoryOrderLedger, SimulatedWallet
from lumina_checkout.connectors.wallet import JsonRpcWalletClient

__all__ = [
    "TokenTransferClient",
    "OrderLedgerClient",
    "OrderRequest",
    "JsonRpcWalletClient",
    "HttpOrderLedgerClient",
    "SimulatedWallet",
    "InMemoryOrderLedger",
]
