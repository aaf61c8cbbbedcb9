"""Checkout configuration surface."""
from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
ZERO_ADDRESS = "0x" + "0" * 40

# Arbitrum One
DEFAULT_CHAIN_ID = 42161
DEFAULT_AXM_TOKEN_ADDRESS = "0x864F9c6f50dC5Bd244F5002F1B0873Cd80e2539D"
DEFAULT_TREASURY_WALLET = "0x3fD63728288546AC41dAe3bf25ca383061c3A929"
DEFAULT_PLATFORM_FEE_BPS = 200
DEFAULT_LEG_TIMEOUT_SECONDS = 120.0


def is_valid_address(value: str | None) -> bool:
    """Return True for a 0x-prefixed, 20-byte hex address."""
    return bool(value) and bool(_ADDRESS_RE.match(value))


class CheckoutSettings(BaseSettings):
    """Marketplace checkout configuration."""

    # Environment
    environment: Literal["dev", "sandbox", "prod"] = "dev"

    # Chain
    chain_id: int = DEFAULT_CHAIN_ID
    rpc_url: str = "https://arb1.arbitrum.io/rpc"
    explorer_url: str = "https://arbiscan.io"
    axm_token_address: str = DEFAULT_AXM_TOKEN_ADDRESS

    # Platform fee
    treasury_wallet: str = DEFAULT_TREASURY_WALLET
    platform_fee_bps: int = DEFAULT_PLATFORM_FEE_BPS

    # Per-leg wallet timeout; 0 disables it and defers to the wallet provider
    leg_timeout_seconds: float = DEFAULT_LEG_TIMEOUT_SECONDS

    # Order ledger
    ledger_base_url: str = "http://localhost:5000"
    ledger_timeout_seconds: float = 30.0

    # Checkout behavior
    clear_cart_on_complete: bool = True
    require_shipping_address: bool = True

    class Config:
        env_prefix = "LUMINA_CHECKOUT_"
        env_file = ".env"
        extra = "ignore"

    @field_validator("platform_fee_bps")
    @classmethod
    def validate_fee_bps(cls, v: int) -> int:
        if v < 0 or v > 10_000:
            raise ValueError("platform_fee_bps must be between 0 and 10000")
        return v

    @field_validator("axm_token_address", "treasury_wallet")
    @classmethod
    def validate_address(cls, v: str) -> str:
        if not is_valid_address(v):
            raise ValueError(f"invalid EVM address: {v!r}")
        return v

    @field_validator("leg_timeout_seconds", "ledger_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v < 0:
            raise ValueError("timeouts cannot be negative")
        return v

    @field_validator("ledger_base_url", "rpc_url", "explorer_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def check_production(self) -> "CheckoutSettings":
        if self.environment == "prod" and self.treasury_wallet.lower() == ZERO_ADDRESS:
            raise ValueError("treasury_wallet must be configured in production")
        return self

    @property
    def leg_timeout(self) -> float | None:
        """Per-leg timeout in seconds, or None when disabled."""
        return self.leg_timeout_seconds or None


@lru_cache
def load_settings(env_file: str | None = None) -> CheckoutSettings:
    """Load CheckoutSettings once per process."""
    if env_file:
        return CheckoutSettings(_env_file=Path(env_file))
    return CheckoutSettings()
