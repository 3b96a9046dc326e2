"""Pydantic models for events emitted by pools and the registry.

Events are appended to the chain's EventLog as part of the call that emits
them. If the call fails, its events are removed together with its ledger
changes.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from exchange.models.types import Address

Amount = Annotated[int, Field(ge=0)]


class LiquidityDeposited(BaseModel):
    """Liquidity added to a pool."""

    name: Literal["LiquidityDeposited"] = "LiquidityDeposited"
    pool: Address
    provider: Address
    native_amount: Amount = Field(alias="nativeAmount")
    asset_amount: Amount = Field(alias="assetAmount")

    model_config = {"populate_by_name": True, "frozen": True}


class LiquidityWithdrawn(BaseModel):
    """Liquidity removed from a pool."""

    name: Literal["LiquidityWithdrawn"] = "LiquidityWithdrawn"
    pool: Address
    provider: Address
    native_amount: Amount = Field(alias="nativeAmount")
    asset_amount: Amount = Field(alias="assetAmount")

    model_config = {"populate_by_name": True, "frozen": True}


class TokensPurchased(BaseModel):
    """Native sold to a pool for asset."""

    name: Literal["TokensPurchased"] = "TokensPurchased"
    pool: Address
    buyer: Address
    native_amount: Amount = Field(alias="nativeAmount")
    asset_amount: Amount = Field(alias="assetAmount")

    model_config = {"populate_by_name": True, "frozen": True}


class TokensSold(BaseModel):
    """Asset sold to a pool for native."""

    name: Literal["TokensSold"] = "TokensSold"
    pool: Address
    seller: Address
    asset_amount: Amount = Field(alias="assetAmount")
    native_amount: Amount = Field(alias="nativeAmount")

    model_config = {"populate_by_name": True, "frozen": True}


class ExchangeCreated(BaseModel):
    """Registry created a pool for an asset."""

    name: Literal["ExchangeCreated"] = "ExchangeCreated"
    registry: Address
    asset_id: Address = Field(alias="assetId")
    pool_id: Address = Field(alias="poolId")

    model_config = {"populate_by_name": True, "frozen": True}


Event = Annotated[
    LiquidityDeposited | LiquidityWithdrawn | TokensPurchased | TokensSold | ExchangeCreated,
    Field(discriminator="name"),
]
