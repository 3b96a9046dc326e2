"""Exchange error classes.

Every error is fatal to the single call that raised it: the call's ledger
transfers, share mints/burns and events are rolled back before the error
reaches the caller. Each class carries a stable ``code`` that the HTTP API
reports back to clients.
"""


class ExchangeError(Exception):
    """Base error for exchange operations."""

    code = "exchange_error"


class InvalidQuoteInput(ExchangeError):
    """Input amount or input reserve is zero."""

    code = "invalid_quote_input"


class InvalidDeposit(ExchangeError):
    """Deposit amounts are zero or cannot be priced against the pool."""

    code = "invalid_deposit"


class InvalidWithdrawal(ExchangeError):
    """Withdrawal of zero shares, or from a pool with no shares outstanding."""

    code = "invalid_withdrawal"


class InvariantViolation(ExchangeError):
    """Reserve ratio moved across a withdrawal."""

    code = "invariant_violation"


class SlippageExceeded(ExchangeError):
    """Realized swap amount is worse than the caller's limit."""

    code = "slippage_exceeded"


class InvalidAsset(ExchangeError):
    """Asset identifier is null, malformed, or unknown."""

    code = "invalid_asset"


class PoolAlreadyExists(ExchangeError):
    """A pool for this asset has already been created."""

    code = "pool_already_exists"


class PoolNotFound(ExchangeError):
    """No pool trades the requested asset."""

    code = "pool_not_found"


class ReentrancyError(ExchangeError):
    """A guarded entity was re-entered while one of its calls was running."""

    code = "reentrancy"


class LedgerError(ExchangeError):
    """Base error surfaced by a balance ledger."""

    code = "ledger_error"


class InsufficientBalance(LedgerError):
    """Owner's balance is lower than the requested amount."""

    code = "insufficient_balance"


class InsufficientAllowance(LedgerError):
    """Spender's allowance is lower than the requested amount."""

    code = "insufficient_allowance"


class TransferFailed(LedgerError):
    """Ledger reported failure without raising."""

    code = "transfer_failed"


__all__ = [
    "ExchangeError",
    "InvalidQuoteInput",
    "InvalidDeposit",
    "InvalidWithdrawal",
    "InvariantViolation",
    "SlippageExceeded",
    "InvalidAsset",
    "PoolAlreadyExists",
    "PoolNotFound",
    "ReentrancyError",
    "LedgerError",
    "InsufficientBalance",
    "InsufficientAllowance",
    "TransferFailed",
]
