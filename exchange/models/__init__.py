"""Pydantic models for exchange events and shared types."""

from exchange.models.events import (
    Event,
    ExchangeCreated,
    LiquidityDeposited,
    LiquidityWithdrawn,
    TokensPurchased,
    TokensSold,
)
from exchange.models.types import Address, Uint256, normalize_address

__all__ = [
    # Types
    "Address",
    "Uint256",
    "normalize_address",
    # Events
    "Event",
    "ExchangeCreated",
    "LiquidityDeposited",
    "LiquidityWithdrawn",
    "TokensPurchased",
    "TokensSold",
]
