"""API endpoints for the exchange.

This is a sandbox API for one in-process exchange and has no
authentication: the ``sender`` named in a request body is trusted as given,
like an unlocked account on a local test node. Any client can move any
account's native balance or approved asset, so the server must not be
exposed beyond a trusted network.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Path

from exchange.amm.pool import LiquidityPool
from exchange.errors import PoolNotFound
from exchange.models.api import (
    AllowanceResponse,
    ApproveRequest,
    AssetResponse,
    BalanceResponse,
    CreateAssetRequest,
    CreatePoolRequest,
    CreatePoolResponse,
    DepositRequest,
    DepositResponse,
    FundRequest,
    MintRequest,
    PoolResponse,
    QuoteResponse,
    QuoteSide,
    SwapAssetForNativeRequest,
    SwapNativeForAssetRequest,
    SwapResponse,
    WithdrawRequest,
    WithdrawResponse,
)
from exchange.models.types import ADDRESS_PATTERN
from exchange.service import Exchange, get_default_exchange

logger = structlog.get_logger()

router = APIRouter()

AddressPath = Annotated[str, Path(pattern=ADDRESS_PATTERN)]


def get_exchange() -> Exchange:
    """Dependency provider for the exchange instance.

    Override this in tests to inject a fresh exchange:
        app.dependency_overrides[get_exchange] = lambda: Exchange()
    """
    return get_default_exchange()


def _pool_or_404(exchange: Exchange, asset_id: str) -> LiquidityPool:
    pool = exchange.pool_for(asset_id)
    if pool is None:
        raise PoolNotFound(f"No pool for asset {asset_id}")
    return pool


def _pool_response(pool: LiquidityPool) -> PoolResponse:
    snapshot = pool.snapshot()
    return PoolResponse(
        pool_id=snapshot.address,
        asset_id=snapshot.asset_id,
        creator_id=pool.creator_id,
        native_reserve=snapshot.native_reserve,
        asset_reserve=snapshot.asset_reserve,
        total_shares=snapshot.total_shares,
    )


# --- Accounts and assets ---


@router.post("/accounts/{address}/fund", response_model=BalanceResponse)
def fund_account(
    address: AddressPath, body: FundRequest, exchange: Exchange = Depends(get_exchange)
) -> BalanceResponse:
    """Credit native value to an account."""
    exchange.chain.native.fund(address, int(body.amount))
    return BalanceResponse(owner=address, balance=exchange.chain.native.balance_of(address))


@router.get("/accounts/{address}", response_model=BalanceResponse)
def native_balance(
    address: AddressPath, exchange: Exchange = Depends(get_exchange)
) -> BalanceResponse:
    return BalanceResponse(owner=address, balance=exchange.chain.native.balance_of(address))


@router.post("/assets", response_model=AssetResponse, status_code=201)
def create_asset(
    body: CreateAssetRequest, exchange: Exchange = Depends(get_exchange)
) -> AssetResponse:
    token = exchange.deploy_asset(body.symbol)
    return AssetResponse(address=token.address, symbol=token.symbol)


@router.post("/assets/{asset_id}/mint", response_model=BalanceResponse)
def mint_asset(
    asset_id: AddressPath, body: MintRequest, exchange: Exchange = Depends(get_exchange)
) -> BalanceResponse:
    token = exchange.asset_token(asset_id)
    token.mint(body.to, int(body.amount))
    return BalanceResponse(owner=body.to, balance=token.balance_of(body.to))


@router.post("/assets/{asset_id}/approve", response_model=AllowanceResponse)
def approve_asset(
    asset_id: AddressPath, body: ApproveRequest, exchange: Exchange = Depends(get_exchange)
) -> AllowanceResponse:
    token = exchange.asset_token(asset_id)
    token.approve(body.owner, body.spender, int(body.amount))
    return AllowanceResponse(
        owner=body.owner,
        spender=body.spender,
        allowance=token.allowance(body.owner, body.spender),
    )


@router.get("/assets/{asset_id}/balances/{owner}", response_model=BalanceResponse)
def asset_balance(
    asset_id: AddressPath, owner: AddressPath, exchange: Exchange = Depends(get_exchange)
) -> BalanceResponse:
    return BalanceResponse(owner=owner, balance=exchange.asset_token(asset_id).balance_of(owner))


# --- Registry ---


@router.post("/pools", response_model=CreatePoolResponse, status_code=201)
def create_pool(
    body: CreatePoolRequest, exchange: Exchange = Depends(get_exchange)
) -> CreatePoolResponse:
    pool_id = exchange.registry.create_pool(body.asset_id)
    return CreatePoolResponse(asset_id=body.asset_id, pool_id=pool_id)


@router.get("/pools", response_model=list[PoolResponse])
def list_pools(exchange: Exchange = Depends(get_exchange)) -> list[PoolResponse]:
    return [_pool_response(pool) for pool in exchange.registry.pools()]


@router.get("/pools/{asset_id}", response_model=PoolResponse)
def get_pool(asset_id: AddressPath, exchange: Exchange = Depends(get_exchange)) -> PoolResponse:
    return _pool_response(_pool_or_404(exchange, asset_id))


# --- Pool operations ---


@router.get("/pools/{asset_id}/quote", response_model=QuoteResponse)
def quote(
    asset_id: AddressPath,
    side: QuoteSide,
    amount: int,
    exchange: Exchange = Depends(get_exchange),
) -> QuoteResponse:
    """Pre-trade quote for selling ``amount`` into the pool now."""
    pool = _pool_or_404(exchange, asset_id)
    if side is QuoteSide.SELL_NATIVE:
        amount_out = pool.price_native_to_asset_input(amount)
    else:
        amount_out = pool.price_asset_to_native_input(amount)
    logger.debug("quote_served", pool=pool.address[-8:], side=side.value, amount_in=amount)
    return QuoteResponse(side=side, amount_in=amount, amount_out=amount_out)


@router.post("/pools/{asset_id}/deposit", response_model=DepositResponse)
def deposit(
    asset_id: AddressPath, body: DepositRequest, exchange: Exchange = Depends(get_exchange)
) -> DepositResponse:
    pool = _pool_or_404(exchange, asset_id)
    minted = pool.deposit_liquidity(body.sender, int(body.native_amount), int(body.asset_amount))
    return DepositResponse(shares_minted=minted)


@router.post("/pools/{asset_id}/withdraw", response_model=WithdrawResponse)
def withdraw(
    asset_id: AddressPath, body: WithdrawRequest, exchange: Exchange = Depends(get_exchange)
) -> WithdrawResponse:
    pool = _pool_or_404(exchange, asset_id)
    native_out, asset_out = pool.withdraw_liquidity(body.sender, int(body.shares))
    return WithdrawResponse(native_amount=native_out, asset_amount=asset_out)


@router.post("/pools/{asset_id}/swap/native-for-asset", response_model=SwapResponse)
def swap_native_for_asset(
    asset_id: AddressPath,
    body: SwapNativeForAssetRequest,
    exchange: Exchange = Depends(get_exchange),
) -> SwapResponse:
    pool = _pool_or_404(exchange, asset_id)
    asset_out = pool.swap_native_for_asset(
        body.sender, int(body.native_amount), int(body.min_asset_amount), body.recipient
    )
    return SwapResponse(amount_in=body.native_amount, amount_out=asset_out)


@router.post("/pools/{asset_id}/swap/asset-for-native", response_model=SwapResponse)
def swap_asset_for_native(
    asset_id: AddressPath,
    body: SwapAssetForNativeRequest,
    exchange: Exchange = Depends(get_exchange),
) -> SwapResponse:
    pool = _pool_or_404(exchange, asset_id)
    native_out = pool.swap_asset_for_native(
        body.sender, int(body.asset_amount), int(body.min_native_amount), body.recipient
    )
    return SwapResponse(amount_in=body.asset_amount, amount_out=native_out)
