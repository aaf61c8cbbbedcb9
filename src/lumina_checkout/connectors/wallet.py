"""JSON-RPC wallet connector for AXM (ERC-20) transfers.

Talks to an EIP-1193 compatible wallet bridge or node that signs
``eth_sendTransaction`` on behalf of the buyer's connected account.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from lumina_checkout.config import CheckoutSettings, is_valid_address
from lumina_checkout.connectors.base import TokenTransferClient
from lumina_checkout.exceptions import (
    TransferError,
    TransferNetworkError,
    TransferRevertedError,
    TransferTimeoutError,
    UserRejectedError,
)

logger = logging.getLogger(__name__)

# transfer(address,uint256)
TRANSFER_SELECTOR = "a9059cbb"
# balanceOf(address)
BALANCE_OF_SELECTOR = "70a08231"

# EIP-1193 provider error codes
USER_REJECTED_CODE = 4001
UNAUTHORIZED_CODE = 4100


def truncate_address(address: Optional[str]) -> str:
    if not address:
        return ""
    return f"{address[:6]}...{address[-4:]}"


def _pad_address(address: str) -> str:
    return address[2:].lower().rjust(64, "0")


def encode_erc20_transfer(to_address: str, amount: int) -> str:
    """Encode ERC-20 ``transfer`` calldata as a 0x-prefixed hex string."""
    if amount < 0 or amount >= 2**256:
        raise ValueError("amount out of uint256 range")
    return "0x" + TRANSFER_SELECTOR + _pad_address(to_address) + format(amount, "x").rjust(64, "0")


def encode_balance_of(owner: str) -> str:
    """Encode ERC-20 ``balanceOf`` calldata."""
    return "0x" + BALANCE_OF_SELECTOR + _pad_address(owner)


def parse_quantity(value: Any, method: str) -> int:
    """Decode a hex quantity from an RPC result."""
    if not isinstance(value, str):
        raise TransferNetworkError(f"{method} returned a non-hex result: {value!r}")
    try:
        return int(value, 16)
    except ValueError as e:
        raise TransferNetworkError(f"{method} returned a non-hex result: {value!r}") from e


class JsonRpcWalletClient(TokenTransferClient):
    """Buyer wallet reached over JSON-RPC."""

    POLL_INTERVAL = 2.0

    def __init__(
        self,
        rpc_url: str,
        from_address: Optional[str],
        token_address: str,
        timeout: float = 30.0,
        wait_for_receipt: bool = False,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._rpc_url = rpc_url
        self._from_address = from_address
        self._token_address = token_address
        self._timeout = timeout
        self._wait_for_receipt = wait_for_receipt
        self._http_client = http_client
        self._request_id = 0

    @classmethod
    def from_settings(
        cls,
        settings: CheckoutSettings,
        from_address: Optional[str],
        **kwargs: Any,
    ) -> "JsonRpcWalletClient":
        return cls(
            rpc_url=settings.rpc_url,
            from_address=from_address,
            token_address=settings.axm_token_address,
            **kwargs,
        )

    @property
    def address(self) -> Optional[str]:
        return self._from_address

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def _call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Make JSON-RPC call, mapping transport and provider errors."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        client = await self._get_client()
        try:
            response = await client.post(
                self._rpc_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
            result = response.json()
        except httpx.TimeoutException as e:
            raise TransferTimeoutError(f"{method} timed out") from e
        except httpx.HTTPError as e:
            raise TransferNetworkError(f"{method} failed: {e}") from e
        except ValueError as e:
            raise TransferNetworkError(f"{method} returned invalid JSON") from e

        if not isinstance(result, dict):
            raise TransferNetworkError(f"{method} returned a malformed response")

        error = result.get("error")
        if error:
            if not isinstance(error, dict):
                error = {"message": str(error)}
            code = error.get("code")
            message = error.get("message") or "RPC error"
            if code == USER_REJECTED_CODE:
                raise UserRejectedError("User rejected the request", details={"rpc_error": message})
            if code == UNAUTHORIZED_CODE:
                raise UserRejectedError("Wallet account not authorized", details={"rpc_error": message})
            raise TransferError(f"RPC error: {message}", details={"rpc_code": code})

        return result.get("result")

    async def get_chain_id(self) -> int:
        result = await self._call("eth_chainId")
        return parse_quantity(result, "eth_chainId")

    async def get_balance(self) -> int:
        if not self._from_address:
            return 0
        result = await self._call(
            "eth_call",
            [{"to": self._token_address, "data": encode_balance_of(self._from_address)}, "latest"],
        )
        # An empty "0x" result means the account holds nothing
        if result in (None, "0x"):
            return 0
        return parse_quantity(result, "eth_call")

    async def transfer(self, amount_base_units: int, to_address: str) -> str:
        """Submit the transfer and return its hash once the wallet broadcasts it."""
        if not self._from_address:
            raise TransferError("No wallet connected")
        if not is_valid_address(to_address):
            raise TransferError("Invalid recipient address", to_address=to_address)
        if amount_base_units < 0:
            raise TransferError("Transfer amount cannot be negative", to_address=to_address)

        tx = {
            "from": self._from_address,
            "to": self._token_address,
            "data": encode_erc20_transfer(to_address, amount_base_units),
        }
        logger.info(
            f"Requesting AXM transfer of {amount_base_units} base units "
            f"to {truncate_address(to_address)}"
        )
        tx_hash = await self._call("eth_sendTransaction", [tx])
        if not tx_hash or not isinstance(tx_hash, str):
            raise TransferError("Wallet returned no transaction hash", to_address=to_address)

        logger.info(f"Transfer submitted: {tx_hash}")
        return tx_hash

    async def confirm(self, tx_hash: str) -> None:
        """Wait for the receipt when ``wait_for_receipt`` is set."""
        if not self._wait_for_receipt:
            return
        await self._wait_for_confirmation(tx_hash)
        logger.info(f"Transfer confirmed: {tx_hash}")

    async def _wait_for_confirmation(self, tx_hash: str) -> Dict[str, Any]:
        """Poll until the transaction is mined; the caller bounds the wait."""
        while True:
            receipt = await self._call("eth_getTransactionReceipt", [tx_hash])
            if receipt:
                if not isinstance(receipt, dict):
                    raise TransferNetworkError("eth_getTransactionReceipt returned a malformed receipt")
                status = parse_quantity(receipt.get("status", "0x0"), "eth_getTransactionReceipt")
                if status == 0:
                    raise TransferRevertedError(tx_hash)
                return receipt
            await asyncio.sleep(self.POLL_INTERVAL)

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
        self._http_client = None
