"""Registry that creates and looks up exactly one pool per asset.

The asset -> pool map is write-once per key. Creation runs under the
registry's own guard and journal, so two concurrent create_pool calls for the
same asset yield one pool and one PoolAlreadyExists.

The reverse lookups (pool -> asset, index -> asset) are left empty unless
``populate_reverse_lookups`` is configured; by default the creation path
never writes them.
"""

from __future__ import annotations

import structlog

from exchange.amm.pool import LiquidityPool
from exchange.chain import Chain
from exchange.config import (
    DEFAULT_POOL_CONFIG,
    DEFAULT_REGISTRY_CONFIG,
    PoolConfig,
    RegistryConfig,
)
from exchange.errors import InvalidAsset, PoolAlreadyExists
from exchange.guard import CallGuard
from exchange.ledger.journal import record_undo, transaction
from exchange.models.events import ExchangeCreated
from exchange.models.types import is_null_address, is_valid_address, normalize_address

logger = structlog.get_logger()


class PoolRegistry:
    """Factory and directory of liquidity pools.

    Attributes:
        address: The registry's identity; creator_id of every pool it creates
    """

    def __init__(
        self,
        chain: Chain,
        *,
        address: str | None = None,
        config: RegistryConfig = DEFAULT_REGISTRY_CONFIG,
        pool_config: PoolConfig = DEFAULT_POOL_CONFIG,
    ) -> None:
        self._chain = chain
        self.address = normalize_address(address or chain.new_address("registry"))
        self._config = config
        self._pool_config = pool_config
        self._guard = CallGuard(f"registry:{self.address}")

        self._asset_to_pool: dict[str, str] = {}
        self._pool_to_asset: dict[str, str] = {}
        self._id_to_asset: dict[int, str] = {}
        self._pools_by_address: dict[str, LiquidityPool] = {}
        # Insertion-ordered enumeration, index = creation order
        self._pool_by_id: list[str] = []

    def __len__(self) -> int:
        return len(self._pool_by_id)

    def __contains__(self, asset_id: object) -> bool:
        if not isinstance(asset_id, str):
            return False
        return normalize_address(asset_id) in self._asset_to_pool

    @property
    def pool_count(self) -> int:
        return len(self._pool_by_id)

    def create_pool(self, asset_id: str) -> str:
        """Create the pool for ``asset_id``.

        Args:
            asset_id: Address of an asset known to the chain

        Returns:
            Address of the new pool

        Raises:
            InvalidAsset: If asset_id is null, malformed, or not deployed
            PoolAlreadyExists: If the asset already has a pool
        """
        if is_null_address(asset_id) or not is_valid_address(normalize_address(asset_id)):
            raise InvalidAsset(f"Invalid asset identifier: {asset_id!r}")
        asset_key = normalize_address(asset_id)

        with transaction("create_pool", asset=asset_key), self._guard.hold("create_pool"):
            existing = self._asset_to_pool.get(asset_key)
            if existing is not None:
                logger.info("pool_creation_rejected", asset=asset_key, existing_pool=existing)
                raise PoolAlreadyExists(f"Asset {asset_key} already has pool {existing}")

            asset = self._chain.get_asset(asset_key)
            if asset is None:
                raise InvalidAsset(f"No asset deployed at {asset_key}")

            pool = LiquidityPool(
                self._chain,
                asset,
                self.address,
                config=self._pool_config,
                registry=self,
            )
            self._record(asset_key, pool)
            self._chain.events.emit(
                ExchangeCreated(registry=self.address, asset_id=asset_key, pool_id=pool.address)
            )

        logger.info(
            "pool_created",
            asset=asset_key,
            pool=pool.address,
            pool_index=self.pool_count - 1,
        )
        return pool.address

    def _record(self, asset_key: str, pool: LiquidityPool) -> None:
        index = len(self._pool_by_id)
        self._asset_to_pool[asset_key] = pool.address
        self._pools_by_address[pool.address] = pool
        self._pool_by_id.append(pool.address)
        if self._config.populate_reverse_lookups:
            self._pool_to_asset[pool.address] = asset_key
            self._id_to_asset[index] = asset_key
        record_undo(lambda: self._forget(asset_key, pool.address, index))

    def _forget(self, asset_key: str, pool_address: str, index: int) -> None:
        del self._asset_to_pool[asset_key]
        del self._pools_by_address[pool_address]
        del self._pool_by_id[index]
        self._pool_to_asset.pop(pool_address, None)
        self._id_to_asset.pop(index, None)

    def lookup_pool_by_asset(self, asset_id: str) -> str | None:
        """Address of the pool trading ``asset_id``, or None."""
        return self._asset_to_pool.get(normalize_address(asset_id))

    def lookup_asset_by_pool(self, pool_id: str) -> str | None:
        """Asset traded by pool ``pool_id``.

        Always None unless populate_reverse_lookups is configured.
        """
        return self._pool_to_asset.get(normalize_address(pool_id))

    def lookup_asset_by_id(self, index: int) -> str | None:
        """Asset of the pool created at position ``index``.

        Always None unless populate_reverse_lookups is configured.
        """
        return self._id_to_asset.get(index)

    def lookup_pool_by_id(self, index: int) -> str | None:
        """Address of the pool created at position ``index``, or None."""
        if 0 <= index < len(self._pool_by_id):
            return self._pool_by_id[index]
        return None

    def get_pool(self, asset_id: str) -> LiquidityPool | None:
        """The pool object trading ``asset_id``, or None."""
        address = self.lookup_pool_by_asset(asset_id)
        if address is None:
            return None
        return self._pools_by_address[address]

    def get_pool_by_address(self, pool_id: str) -> LiquidityPool | None:
        return self._pools_by_address.get(normalize_address(pool_id))

    def pools(self) -> list[LiquidityPool]:
        """All pools in creation order."""
        return [self._pools_by_address[address] for address in self._pool_by_id]


__all__ = ["PoolRegistry"]
