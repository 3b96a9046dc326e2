"""Configuration for pools and the registry.

Defaults give the strict, literal behavior. Each flag can be overridden from
the environment, which is how the API server picks them up.
"""

import os
from dataclasses import dataclass
from typing import Literal

InvariantCheck = Literal["floor_ratio", "cross_multiplied"]

_TRUE_VALUES = ("true", "1", "yes")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.lower() in _TRUE_VALUES


@dataclass(frozen=True)
class PoolConfig:
    """Behavior flags for LiquidityPool.

    Attributes:
        invariant_check: How withdrawals verify the reserve ratio.
            "floor_ratio" compares asset // native before and after (the
            default check, which can reject withdrawals once swaps have
            moved the ratio off an integer). "cross_multiplied" compares the
            cross products and accepts any deviation within floor-rounding
            error.
        enforce_deposit_ratio: If True, deposits into a funded pool must
            supply at least the asset amount implied by the current reserve
            ratio. If False, any asset amount is accepted.
    """

    invariant_check: InvariantCheck = "floor_ratio"
    enforce_deposit_ratio: bool = False

    def __post_init__(self) -> None:
        if self.invariant_check not in ("floor_ratio", "cross_multiplied"):
            raise ValueError(f"Unknown invariant check: {self.invariant_check!r}")


@dataclass(frozen=True)
class RegistryConfig:
    """Behavior flags for PoolRegistry.

    Attributes:
        populate_reverse_lookups: If True, create_pool fills the pool->asset
            and index->asset maps. Without it creation never writes them, so
            both lookups return None.
    """

    populate_reverse_lookups: bool = False


def load_pool_config() -> PoolConfig:
    """Build a PoolConfig from EXCHANGE_* environment variables."""
    check = os.environ.get("EXCHANGE_INVARIANT_CHECK", "floor_ratio")
    return PoolConfig(
        invariant_check=check,  # type: ignore[arg-type]
        enforce_deposit_ratio=_env_flag("EXCHANGE_ENFORCE_DEPOSIT_RATIO", False),
    )


def load_registry_config() -> RegistryConfig:
    """Build a RegistryConfig from EXCHANGE_* environment variables."""
    return RegistryConfig(
        populate_reverse_lookups=_env_flag("EXCHANGE_POPULATE_REVERSE_LOOKUPS", False),
    )


# Default configuration instances
DEFAULT_POOL_CONFIG = PoolConfig()
DEFAULT_REGISTRY_CONFIG = RegistryConfig()
