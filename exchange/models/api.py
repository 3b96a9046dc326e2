"""Request and response bodies of the HTTP API.

Amounts travel as uint256 decimal strings and addresses as 0x-prefixed hex,
with camelCase aliases on the wire.
"""

from enum import Enum

from pydantic import BaseModel, Field

from exchange.models.types import Address, Uint256


class CreateAssetRequest(BaseModel):
    symbol: str = Field(min_length=1, max_length=32)


class AssetResponse(BaseModel):
    address: Address
    symbol: str


class MintRequest(BaseModel):
    to: Address
    amount: Uint256


class ApproveRequest(BaseModel):
    owner: Address
    spender: Address
    amount: Uint256


class AllowanceResponse(BaseModel):
    owner: Address
    spender: Address
    allowance: Uint256


class FundRequest(BaseModel):
    amount: Uint256


class BalanceResponse(BaseModel):
    owner: Address
    balance: Uint256


class CreatePoolRequest(BaseModel):
    asset_id: Address = Field(alias="assetId")

    model_config = {"populate_by_name": True}


class CreatePoolResponse(BaseModel):
    asset_id: Address = Field(alias="assetId")
    pool_id: Address = Field(alias="poolId")

    model_config = {"populate_by_name": True}


class PoolResponse(BaseModel):
    """Snapshot of one pool's reserves and share supply."""

    pool_id: Address = Field(alias="poolId")
    asset_id: Address = Field(alias="assetId")
    creator_id: Address = Field(alias="creatorId")
    native_reserve: Uint256 = Field(alias="nativeReserve")
    asset_reserve: Uint256 = Field(alias="assetReserve")
    total_shares: Uint256 = Field(alias="totalShares")

    model_config = {"populate_by_name": True}


class QuoteSide(str, Enum):
    """Direction of a pre-trade quote."""

    SELL_NATIVE = "sellNative"  # amount is native in, quote is asset out
    SELL_ASSET = "sellAsset"  # amount is asset in, quote is native out


class QuoteResponse(BaseModel):
    side: QuoteSide
    amount_in: Uint256 = Field(alias="amountIn")
    amount_out: Uint256 = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class DepositRequest(BaseModel):
    sender: Address
    native_amount: Uint256 = Field(alias="nativeAmount")
    asset_amount: Uint256 = Field(alias="assetAmount")

    model_config = {"populate_by_name": True}


class DepositResponse(BaseModel):
    shares_minted: Uint256 = Field(alias="sharesMinted")

    model_config = {"populate_by_name": True}


class WithdrawRequest(BaseModel):
    sender: Address
    shares: Uint256


class WithdrawResponse(BaseModel):
    native_amount: Uint256 = Field(alias="nativeAmount")
    asset_amount: Uint256 = Field(alias="assetAmount")

    model_config = {"populate_by_name": True}


class SwapNativeForAssetRequest(BaseModel):
    sender: Address
    native_amount: Uint256 = Field(alias="nativeAmount")
    min_asset_amount: Uint256 = Field(default="0", alias="minAssetAmount")
    recipient: Address | None = None

    model_config = {"populate_by_name": True}


class SwapAssetForNativeRequest(BaseModel):
    sender: Address
    asset_amount: Uint256 = Field(alias="assetAmount")
    min_native_amount: Uint256 = Field(default="0", alias="minNativeAmount")
    recipient: Address | None = None

    model_config = {"populate_by_name": True}


class SwapResponse(BaseModel):
    amount_in: Uint256 = Field(alias="amountIn")
    amount_out: Uint256 = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    error: str
    detail: str
