"""AMM pricing and liquidity pools."""

from exchange.amm.pool import LiquidityPool, PoolSnapshot
from exchange.amm.pricing import PricingEngine, pricing_engine

__all__ = [
    # Pricing
    "PricingEngine",
    "pricing_engine",
    # Pools
    "LiquidityPool",
    "PoolSnapshot",
]
