"""Pool management package.

Provides PoolRegistry, the factory and directory of per-asset pools.
"""

from .registry import PoolRegistry

__all__ = ["PoolRegistry"]
