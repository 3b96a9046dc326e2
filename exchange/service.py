"""Exchange facade: one chain plus the registry of its pools.

The Exchange class is the entry point used by the HTTP API. It wires a Chain
to a PoolRegistry with configuration taken from the environment.
"""

from __future__ import annotations

import structlog

from exchange.amm.pool import LiquidityPool
from exchange.chain import Chain
from exchange.config import PoolConfig, RegistryConfig, load_pool_config, load_registry_config
from exchange.errors import InvalidAsset
from exchange.ledger.asset import AssetToken
from exchange.pools.registry import PoolRegistry

logger = structlog.get_logger()


class Exchange:
    """A chain with a pool registry deployed on it."""

    def __init__(
        self,
        chain: Chain | None = None,
        registry_config: RegistryConfig | None = None,
        pool_config: PoolConfig | None = None,
    ) -> None:
        self.chain = chain or Chain()
        self.registry = PoolRegistry(
            self.chain,
            config=registry_config or load_registry_config(),
            pool_config=pool_config or load_pool_config(),
        )

    def deploy_asset(self, symbol: str) -> AssetToken:
        return self.chain.deploy_asset(symbol)

    def asset_token(self, asset_id: str) -> AssetToken:
        """The in-process AssetToken at ``asset_id``.

        Raises:
            InvalidAsset: If no AssetToken is deployed there
        """
        asset = self.chain.get_asset(asset_id)
        if not isinstance(asset, AssetToken):
            raise InvalidAsset(f"No asset deployed at {asset_id}")
        return asset

    def pool_for(self, asset_id: str) -> LiquidityPool | None:
        return self.registry.get_pool(asset_id)


_default_exchange: Exchange | None = None


def get_default_exchange() -> Exchange:
    """Process-wide exchange instance, created on first use."""
    global _default_exchange
    if _default_exchange is None:
        _default_exchange = Exchange()
        logger.info("exchange_initialized", registry=_default_exchange.registry.address)
    return _default_exchange


def reset_default_exchange() -> None:
    """Drop the process-wide exchange (tests start from a clean chain)."""
    global _default_exchange
    _default_exchange = None
