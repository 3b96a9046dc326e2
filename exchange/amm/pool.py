"""Liquidity pool pairing the native value asset with one fungible asset.

Reserves are never cached: the native reserve is the pool's balance on the
native ledger and the asset reserve is whatever the asset ledger reports for
the pool's address. Every mutating call holds the pool's CallGuard and runs
inside a journal transaction, so it either completes or leaves no trace.

Payments into the pool are received before they are priced. A quote taken
inside a swap therefore subtracts the incoming amount from the pool's
balance to recover the pre-trade reserve.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from exchange.amm.pricing import PricingEngine, pricing_engine
from exchange.chain import Chain
from exchange.config import DEFAULT_POOL_CONFIG, PoolConfig
from exchange.errors import (
    InvalidAsset,
    InvalidDeposit,
    InvalidQuoteInput,
    InvalidWithdrawal,
    InvariantViolation,
    SlippageExceeded,
    TransferFailed,
)
from exchange.guard import CallGuard, hold_all
from exchange.ledger.asset import ShareLedger
from exchange.ledger.base import AssetLedger
from exchange.ledger.journal import serialized, transaction
from exchange.models.events import (
    Event,
    LiquidityDeposited,
    LiquidityWithdrawn,
    TokensPurchased,
    TokensSold,
)
from exchange.models.types import normalize_address
from exchange.safe_int import S

if TYPE_CHECKING:
    from exchange.pools.registry import PoolRegistry

logger = structlog.get_logger()


@dataclass(frozen=True)
class PoolSnapshot:
    """Reserves and share supply read at one instant."""

    address: str
    asset_id: str
    native_reserve: int
    asset_reserve: int
    total_shares: int

    @property
    def k(self) -> int:
        """Constant product of the two reserves."""
        return self.native_reserve * self.asset_reserve


class LiquidityPool:
    """Constant product pool for one asset against the native value asset.

    Attributes:
        address: The pool's own identity (holds its reserves)
        asset_id: Address of the traded asset, fixed at construction
        creator_id: Identity that created the pool (the registry, for pools
            created through one), fixed at construction
        shares: Ledger of liquidity shares
    """

    def __init__(
        self,
        chain: Chain,
        asset: AssetLedger,
        creator_id: str,
        *,
        address: str | None = None,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
        registry: PoolRegistry | None = None,
        engine: PricingEngine = pricing_engine,
    ) -> None:
        self._chain = chain
        self._asset = asset
        self._address = normalize_address(address or chain.new_address("pool"))
        self._asset_id = normalize_address(asset.address)
        self._creator_id = normalize_address(creator_id)
        self._config = config
        self._registry = registry
        self._engine = engine
        self.shares = ShareLedger(self._address)
        self._guard = CallGuard(f"pool:{self._address}")

    def __repr__(self) -> str:
        return f"LiquidityPool({self._address}, asset={self._asset_id})"

    # --- Identity ---

    @property
    def address(self) -> str:
        return self._address

    @property
    def asset_id(self) -> str:
        return self._asset_id

    @property
    def creator_id(self) -> str:
        return self._creator_id

    @property
    def asset(self) -> AssetLedger:
        return self._asset

    @property
    def config(self) -> PoolConfig:
        return self._config

    # --- Reserves ---

    @property
    def native_reserve(self) -> int:
        return self._chain.native.balance_of(self._address)

    @property
    def asset_reserve(self) -> int:
        return self._asset.balance_of(self._address)

    @property
    def total_shares(self) -> int:
        return self.shares.total_supply

    def share_balance(self, holder: str) -> int:
        return self.shares.balance_of(holder)

    def snapshot(self) -> PoolSnapshot:
        """Read both reserves and the share supply consistently."""
        with self._read("snapshot"):
            return self._snapshot()

    def _snapshot(self) -> PoolSnapshot:
        return PoolSnapshot(
            address=self._address,
            asset_id=self._asset_id,
            native_reserve=self.native_reserve,
            asset_reserve=self.asset_reserve,
            total_shares=self.total_shares,
        )

    # --- Quotes against received payments ---

    def quote_asset_for_native(self, native_in: int) -> int:
        """Asset bought by ``native_in`` that the pool has already received.

        The pool's native balance includes the payment, so the pre-trade
        input reserve is balance - native_in.
        """
        with self._read("quote_asset_for_native"):
            return self._quote_asset_for_native(native_in)

    def quote_native_for_asset(self, asset_in: int) -> int:
        """Native bought by ``asset_in`` that the pool has already received."""
        with self._read("quote_native_for_asset"):
            return self._quote_native_for_asset(asset_in)

    def _quote_asset_for_native(self, native_in: int) -> int:
        input_reserve = (S(self.native_reserve) - S(native_in)).value
        return self._engine.quote_output(native_in, input_reserve, self.asset_reserve)

    def _quote_native_for_asset(self, asset_in: int) -> int:
        input_reserve = (S(self.asset_reserve) - S(asset_in)).value
        return self._engine.quote_output(asset_in, input_reserve, self.native_reserve)

    # --- Pre-trade price queries ---

    def price_native_to_asset_input(self, native_in: int) -> int:
        """Asset a caller would receive for selling ``native_in`` now."""
        with self._read("price_native_to_asset_input"):
            return self._engine.quote_output(native_in, self.native_reserve, self.asset_reserve)

    def price_native_to_asset_output(self, asset_out: int) -> int:
        """Native a caller would have to sell now to receive ``asset_out``."""
        with self._read("price_native_to_asset_output"):
            return self._engine.quote_input(asset_out, self.native_reserve, self.asset_reserve)

    def price_asset_to_native_input(self, asset_in: int) -> int:
        """Native a caller would receive for selling ``asset_in`` now."""
        with self._read("price_asset_to_native_input"):
            return self._engine.quote_output(asset_in, self.asset_reserve, self.native_reserve)

    def price_asset_to_native_output(self, native_out: int) -> int:
        """Asset a caller would have to sell now to receive ``native_out``."""
        with self._read("price_asset_to_native_output"):
            return self._engine.quote_input(native_out, self.asset_reserve, self.native_reserve)

    # --- Liquidity ---

    def deposit_liquidity(self, sender: str, native_in: int, asset_in: int) -> int:
        """Add liquidity and mint shares to ``sender``.

        The first deposit into a pool without asset reserve mints shares equal
        to ``native_in`` and sets the initial price. Later deposits mint
        ``native_in * total_shares / prior_native``.

        Unless ``enforce_deposit_ratio`` is configured, ``asset_in`` is taken
        as given even if it is out of proportion with the reserves; the excess
        or shortfall is shared by all holders.

        Args:
            sender: Provider paying native and approving the asset pull
            native_in: Native value sent with the call
            asset_in: Asset pulled from sender via transfer_from

        Returns:
            Shares minted

        Raises:
            InvalidDeposit: If either amount is zero, the pool has asset
                reserve but no native reserve, or (when enforced) asset_in
                is below the current ratio
        """
        if native_in <= 0 or asset_in <= 0:
            raise InvalidDeposit(
                f"Deposit requires native and asset amounts, got {native_in} and {asset_in}"
            )
        sender = normalize_address(sender)

        with self._call("deposit_liquidity", provider=sender):
            prior_asset = self.asset_reserve
            self._receive_native(sender, native_in)

            if prior_asset == 0:
                minted = native_in
            else:
                prior_native = (S(self.native_reserve) - S(native_in)).value
                if prior_native == 0:
                    raise InvalidDeposit("Pool holds asset reserve but no native reserve")
                if self._config.enforce_deposit_ratio:
                    required = (S(native_in).mul_div(prior_asset, prior_native) + 1).value
                    if asset_in < required:
                        raise InvalidDeposit(
                            f"Asset amount {asset_in} below required {required} for ratio"
                        )
                minted = S(native_in).mul_div(self.total_shares, prior_native).value

            self._pull_asset(sender, asset_in)
            self.shares.mint(sender, minted)
            self._emit(
                LiquidityDeposited(
                    pool=self._address,
                    provider=sender,
                    native_amount=native_in,
                    asset_amount=asset_in,
                )
            )

        logger.info(
            "liquidity_deposited",
            pool=self._address[-8:],
            provider=sender[-8:],
            native_in=native_in,
            asset_in=asset_in,
            shares_minted=minted,
        )
        return minted

    def withdraw_liquidity(self, sender: str, shares: int) -> tuple[int, int]:
        """Burn ``shares`` from ``sender`` and pay out the proportional reserves.

        Returns:
            Tuple of (native_out, asset_out)

        Raises:
            InvalidWithdrawal: If shares is zero or no shares are outstanding
            InsufficientBalance: If sender holds fewer shares
            InvariantViolation: If the reserve ratio check fails
        """
        if shares <= 0:
            raise InvalidWithdrawal(f"Withdrawal requires a positive share amount, got {shares}")
        sender = normalize_address(sender)

        with self._call("withdraw_liquidity", provider=sender):
            total = self.total_shares
            if total == 0:
                raise InvalidWithdrawal("Pool has no shares outstanding")

            native = self.native_reserve
            asset = self.asset_reserve
            native_out = S(native).mul_div(shares, total).value
            asset_out = S(asset).mul_div(shares, total).value

            self.shares.burn(sender, shares)
            self._check_withdrawal_ratio(native, asset, native - native_out, asset - asset_out)

            self._chain.native.pay(self._address, sender, native_out)
            self._push_asset(sender, asset_out)
            self._emit(
                LiquidityWithdrawn(
                    pool=self._address,
                    provider=sender,
                    native_amount=native_out,
                    asset_amount=asset_out,
                )
            )

        logger.info(
            "liquidity_withdrawn",
            pool=self._address[-8:],
            provider=sender[-8:],
            shares_burned=shares,
            native_out=native_out,
            asset_out=asset_out,
        )
        return native_out, asset_out

    def _check_withdrawal_ratio(
        self, native: int, asset: int, native_after: int, asset_after: int
    ) -> None:
        """Verify that a withdrawal leaves the reserve ratio in place.

        Raises:
            InvariantViolation: If the configured check fails
        """
        if self._config.invariant_check == "cross_multiplied":
            # Floor rounding of both payouts bounds the deviation by max(asset, native)
            deviation = abs(asset * native_after - asset_after * native)
            if deviation and deviation >= max(asset, native):
                raise InvariantViolation(
                    f"Reserve ratio moved by {deviation} (bound {max(asset, native)})"
                )
            return

        if native_after == 0:
            if asset_after != 0:
                raise InvariantViolation(
                    f"Native reserve emptied with {asset_after} asset remaining"
                )
            return

        ratio_before = (S(asset) // native).value
        ratio_after = (S(asset_after) // native_after).value
        if ratio_before != ratio_after:
            raise InvariantViolation(
                f"Reserve ratio changed from {ratio_before} to {ratio_after}"
            )

    # --- Swaps ---

    def swap_native_for_asset(
        self,
        sender: str,
        native_in: int,
        min_asset_out: int,
        recipient: str | None = None,
    ) -> int:
        """Sell exactly ``native_in`` for asset sent to ``recipient``.

        Args:
            sender: Buyer paying native_in with the call
            native_in: Native value sent with the call
            min_asset_out: Smallest acceptable asset amount
            recipient: Receiver of the asset (defaults to sender)

        Returns:
            Asset bought

        Raises:
            InvalidQuoteInput: If native_in is not positive or the pool is empty
            SlippageExceeded: If the asset bought is below min_asset_out
        """
        sender = normalize_address(sender)
        with self._call("swap_native_for_asset", buyer=sender):
            return self._buy_asset(sender, native_in, min_asset_out, recipient or sender)

    def _buy_asset(self, sender: str, native_in: int, min_asset_out: int, recipient: str) -> int:
        if native_in <= 0:
            raise InvalidQuoteInput(f"Swap requires a positive native amount, got {native_in}")
        self._receive_native(sender, native_in)
        asset_out = self._quote_asset_for_native(native_in)
        if asset_out < min_asset_out:
            self._reject("swap_native_for_asset", asset_out=asset_out, min_asset_out=min_asset_out)

        self._push_asset(recipient, asset_out)
        self._emit(
            TokensPurchased(
                pool=self._address,
                buyer=sender,
                native_amount=native_in,
                asset_amount=asset_out,
            )
        )
        logger.info(
            "tokens_purchased",
            pool=self._address[-8:],
            buyer=sender[-8:],
            native_in=native_in,
            asset_out=asset_out,
        )
        return asset_out

    def swap_asset_for_native(
        self,
        sender: str,
        asset_in: int,
        min_native_out: int,
        recipient: str | None = None,
    ) -> int:
        """Sell exactly ``asset_in`` for native sent to ``recipient``.

        The asset is pulled first and priced afterwards, so the quote sees
        the same received-then-priced ordering as native payments.

        Returns:
            Native bought

        Raises:
            InvalidQuoteInput: If asset_in is not positive or the pool is empty
            SlippageExceeded: If the native bought is below min_native_out
        """
        sender = normalize_address(sender)
        with self._call("swap_asset_for_native", seller=sender):
            return self._sell_asset(sender, asset_in, min_native_out, recipient or sender)

    def _sell_asset(self, sender: str, asset_in: int, min_native_out: int, recipient: str) -> int:
        if asset_in <= 0:
            raise InvalidQuoteInput(f"Swap requires a positive asset amount, got {asset_in}")
        self._pull_asset(sender, asset_in)
        native_out = self._quote_native_for_asset(asset_in)
        if native_out < min_native_out:
            self._reject(
                "swap_asset_for_native", native_out=native_out, min_native_out=min_native_out
            )

        self._chain.native.pay(self._address, recipient, native_out)
        self._emit(
            TokensSold(
                pool=self._address,
                seller=sender,
                asset_amount=asset_in,
                native_amount=native_out,
            )
        )
        logger.info(
            "tokens_sold",
            pool=self._address[-8:],
            seller=sender[-8:],
            asset_in=asset_in,
            native_out=native_out,
        )
        return native_out

    def swap_native_for_exact_asset(
        self,
        sender: str,
        max_native_in: int,
        asset_out: int,
        recipient: str | None = None,
    ) -> int:
        """Buy exactly ``asset_out``, paying at most ``max_native_in``.

        The full ``max_native_in`` is sent with the call; whatever is not
        needed is refunded to sender.

        Returns:
            Native actually sold

        Raises:
            InvalidQuoteInput: If asset_out is not positive, not below the
                asset reserve, or the pool is empty
            SlippageExceeded: If the required native exceeds max_native_in
        """
        if asset_out <= 0 or max_native_in < 0:
            raise InvalidQuoteInput(
                f"Cannot buy {asset_out} asset with at most {max_native_in} native"
            )
        sender = normalize_address(sender)
        with self._call("swap_native_for_exact_asset", buyer=sender):
            self._receive_native(sender, max_native_in)
            input_reserve = (S(self.native_reserve) - S(max_native_in)).value
            native_sold = self._engine.quote_input(asset_out, input_reserve, self.asset_reserve)
            if native_sold > max_native_in:
                self._reject(
                    "swap_native_for_exact_asset",
                    native_needed=native_sold,
                    max_native_in=max_native_in,
                )

            self._push_asset(recipient or sender, asset_out)
            self._chain.native.pay(self._address, sender, max_native_in - native_sold)
            self._emit(
                TokensPurchased(
                    pool=self._address,
                    buyer=sender,
                    native_amount=native_sold,
                    asset_amount=asset_out,
                )
            )

        logger.info(
            "tokens_purchased",
            pool=self._address[-8:],
            buyer=sender[-8:],
            native_in=native_sold,
            asset_out=asset_out,
            refund=max_native_in - native_sold,
        )
        return native_sold

    def swap_asset_for_exact_native(
        self,
        sender: str,
        native_out: int,
        max_asset_in: int,
        recipient: str | None = None,
    ) -> int:
        """Buy exactly ``native_out``, selling at most ``max_asset_in``.

        Only the required asset amount is pulled from sender.

        Returns:
            Asset actually sold

        Raises:
            InvalidQuoteInput: If native_out is not positive, not below the
                native reserve, or the pool is empty
            SlippageExceeded: If the required asset exceeds max_asset_in
        """
        if native_out <= 0 or max_asset_in < 0:
            raise InvalidQuoteInput(
                f"Cannot buy {native_out} native with at most {max_asset_in} asset"
            )
        sender = normalize_address(sender)
        with self._call("swap_asset_for_exact_native", seller=sender):
            asset_sold = self._engine.quote_input(
                native_out, self.asset_reserve, self.native_reserve
            )
            if asset_sold > max_asset_in:
                self._reject(
                    "swap_asset_for_exact_native",
                    asset_needed=asset_sold,
                    max_asset_in=max_asset_in,
                )

            self._pull_asset(sender, asset_sold)
            self._chain.native.pay(self._address, recipient or sender, native_out)
            self._emit(
                TokensSold(
                    pool=self._address,
                    seller=sender,
                    asset_amount=asset_sold,
                    native_amount=native_out,
                )
            )

        logger.info(
            "tokens_sold",
            pool=self._address[-8:],
            seller=sender[-8:],
            asset_in=asset_sold,
            native_out=native_out,
        )
        return asset_sold

    def swap_asset_for_asset(
        self,
        sender: str,
        asset_in: int,
        min_target_out: int,
        target_asset_id: str,
        recipient: str | None = None,
    ) -> int:
        """Sell this pool's asset for another asset, routed through native.

        Sells ``asset_in`` here for native, then spends that native in the
        registry's pool for ``target_asset_id``. Both pools are held for the
        whole call and both legs roll back together.

        Returns:
            Target asset bought

        Raises:
            InvalidAsset: If this pool has no registry, or the registry has no
                other pool for target_asset_id
            SlippageExceeded: If the target asset bought is below min_target_out
        """
        if self._registry is None:
            raise InvalidAsset("Pool is not attached to a registry")
        target = self._registry.get_pool(target_asset_id)
        if target is None or target is self:
            raise InvalidAsset(f"No other pool trades asset {target_asset_id}")
        sender = normalize_address(sender)

        with self._call("swap_asset_for_asset", target.guard, seller=sender):
            native_bought = self._sell_asset(sender, asset_in, 0, self._address)
            # The native bought stays with this pool until the target leg spends it
            return target._buy_asset(
                self._address, native_bought, min_target_out, recipient or sender
            )

    # --- Share token ---

    def transfer_shares(self, sender: str, to: str, amount: int) -> bool:
        with self._call("transfer_shares", holder=sender):
            return self.shares.transfer(sender, to, amount)

    def approve_shares(self, owner: str, spender: str, amount: int) -> bool:
        with self._call("approve_shares", holder=owner):
            return self.shares.approve(owner, spender, amount)

    def transfer_shares_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        with self._call("transfer_shares_from", holder=owner):
            return self.shares.transfer_from(spender, owner, to, amount)

    # --- Internals ---

    @property
    def guard(self) -> CallGuard:
        return self._guard

    @contextmanager
    def _call(self, operation: str, *extra_guards: CallGuard, **context: str) -> Iterator[None]:
        """Run a mutating call inside a journal transaction, guards held.

        The transaction comes first: it takes the commit lock, and every
        thread acquires the commit lock before any pool guard.
        """
        with transaction(operation, pool=self._address, **context):
            with hold_all((self._guard, *extra_guards), operation):
                yield

    @contextmanager
    def _read(self, operation: str) -> Iterator[None]:
        with serialized(), self._guard.hold(operation):
            yield

    def _receive_native(self, sender: str, amount: int) -> None:
        self._chain.native.pay(sender, self._address, amount)

    def _pull_asset(self, owner: str, amount: int) -> None:
        if not self._asset.transfer_from(self._address, owner, self._address, amount):
            raise TransferFailed(f"transfer_from {owner} of {amount} returned False")

    def _push_asset(self, to: str, amount: int) -> None:
        if not self._asset.transfer(self._address, to, amount):
            raise TransferFailed(f"transfer to {to} of {amount} returned False")

    def _emit(self, event: Event) -> None:
        self._chain.events.emit(event)

    def _reject(self, operation: str, **amounts: int) -> None:
        logger.info("swap_rejected", pool=self._address[-8:], operation=operation, **amounts)
        detail = ", ".join(f"{name}={value}" for name, value in amounts.items())
        raise SlippageExceeded(f"{operation}: {detail}")


__all__ = [
    "LiquidityPool",
    "PoolSnapshot",
]
