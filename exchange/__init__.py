"""Native/asset AMM exchange: constant product pools and their registry."""

from exchange.service import Exchange, get_default_exchange

__version__ = "0.1.0"
__all__ = ["Exchange", "get_default_exchange", "__version__"]
