"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Account addresses and common amounts
- factories: Chain, token and pool set-up functions
"""

from tests.helpers.constants import (
    ALICE,
    BOB,
    CAROL,
    EXAMPLE_ASSET,
    EXAMPLE_NATIVE,
    STARTING_ASSET,
    STARTING_NATIVE,
    ZERO,
)
from tests.helpers.factories import approve_pool, fund_account, make_funded_chain, seed_pool

__all__ = [
    # Constants
    "ALICE",
    "BOB",
    "CAROL",
    "ZERO",
    "EXAMPLE_NATIVE",
    "EXAMPLE_ASSET",
    "STARTING_NATIVE",
    "STARTING_ASSET",
    # Factories
    "approve_pool",
    "fund_account",
    "make_funded_chain",
    "seed_pool",
]
