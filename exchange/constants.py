"""Protocol constants for the native/asset exchange.

Centralizes the fixed fee and well-known identifiers.
"""

# Fixed 0.3% swap fee: input is scaled by 997/1000 before pricing
FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000

# The null identifier. Never a valid asset, pool, or holder.
ZERO_ADDRESS = "0x" + "00" * 20

# Symbol used for the native value asset in logs and API payloads
NATIVE_SYMBOL = "NATIVE"
