"""Pytest configuration and fixtures."""

import pytest

from exchange.amm.pool import LiquidityPool
from exchange.chain import Chain
from exchange.config import PoolConfig, RegistryConfig
from exchange.ledger.asset import AssetToken
from exchange.pools.registry import PoolRegistry
from tests.helpers import (
    ALICE,
    BOB,
    CAROL,
    EXAMPLE_ASSET,
    EXAMPLE_NATIVE,
    approve_pool,
    fund_account,
    seed_pool,
)


@pytest.fixture
def chain() -> Chain:
    """A fresh chain with no assets."""
    return Chain()


@pytest.fixture
def token(chain: Chain) -> AssetToken:
    """An asset token with ALICE, BOB and CAROL funded in native and asset."""
    token = chain.deploy_asset("TKN")
    for account in (ALICE, BOB, CAROL):
        fund_account(chain, token, account)
    return token


@pytest.fixture
def pool(chain: Chain, token: AssetToken) -> LiquidityPool:
    """An empty pool for ``token``, created directly by ALICE.

    BOB and CAROL have approved the pool for their whole asset balance.
    """
    pool = LiquidityPool(chain, token, creator_id=ALICE)
    approve_pool(pool, BOB)
    approve_pool(pool, CAROL)
    return pool


@pytest.fixture
def example_pool(pool: LiquidityPool) -> LiquidityPool:
    """The worked example: ALICE seeded 10 native against 10,000 asset."""
    seed_pool(pool, ALICE, EXAMPLE_NATIVE, EXAMPLE_ASSET)
    return pool


@pytest.fixture
def cross_multiplied_pool(chain: Chain, token: AssetToken) -> LiquidityPool:
    """An empty pool using the cross-multiplied withdrawal check."""
    pool = LiquidityPool(
        chain,
        token,
        creator_id=ALICE,
        config=PoolConfig(invariant_check="cross_multiplied"),
    )
    approve_pool(pool, BOB)
    return pool


@pytest.fixture
def registry(chain: Chain) -> PoolRegistry:
    """A registry with default behavior."""
    return PoolRegistry(chain)


@pytest.fixture
def populating_registry(chain: Chain) -> PoolRegistry:
    """A registry that fills its reverse lookup maps."""
    return PoolRegistry(chain, config=RegistryConfig(populate_reverse_lookups=True))
