"""Shared account constants for tests.

All addresses are lowercase for consistency with normalize_address().

Usage:
    from tests.helpers import ALICE, BOB
"""

# =============================================================================
# Accounts
# =============================================================================

ALICE = "0xa11ce00000000000000000000000000000000001"
BOB = "0xb0b0000000000000000000000000000000000002"
CAROL = "0xca201000000000000000000000000000000000c3"

# The null identifier
ZERO = "0x0000000000000000000000000000000000000000"

# =============================================================================
# Amounts
# =============================================================================

# Reserves of the worked example: 10 native against 10,000 asset units
EXAMPLE_NATIVE = 10
EXAMPLE_ASSET = 10_000

# Starting balances handed to every test account
STARTING_NATIVE = 10**24
STARTING_ASSET = 10**24
