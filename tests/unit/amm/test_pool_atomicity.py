"""Tests for all-or-nothing pool calls, reentrancy and thread safety."""

import threading

import pytest

from exchange.amm.pool import LiquidityPool
from exchange.chain import Chain
from exchange.errors import ReentrancyError, SlippageExceeded, TransferFailed
from exchange.ledger.asset import AssetToken
from exchange.ledger.journal import current_journal
from tests.helpers import (
    ALICE,
    BOB,
    CAROL,
    EXAMPLE_ASSET,
    EXAMPLE_NATIVE,
    STARTING_ASSET,
    STARTING_NATIVE,
    fund_account,
    make_funded_chain,
    seed_pool,
)


class RefusingToken(AssetToken):
    """Token whose outgoing transfers report failure instead of raising."""

    refuse = False

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        if self.refuse:
            return False
        return super().transfer(sender, to, amount)


class CallbackToken(AssetToken):
    """Token that runs a hook while a pool is pulling from it."""

    hook = None

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        moved = super().transfer_from(spender, owner, to, amount)
        if self.hook is not None:
            self.hook()
        return moved


def _pool_with(chain: Chain, token: AssetToken) -> LiquidityPool:
    chain.register_asset(token)
    for account in (ALICE, BOB):
        fund_account(chain, token, account)
    pool = LiquidityPool(chain, token, creator_id=ALICE)
    seed_pool(pool, ALICE, EXAMPLE_NATIVE, EXAMPLE_ASSET)
    return pool


class TestRollback:
    """A failing call undoes every effect it already had."""

    def test_refused_transfer_rolls_back_withdrawal(self):
        chain = Chain()
        token = RefusingToken(chain.new_address("asset"), "RFS")
        pool = _pool_with(chain, token)
        token.refuse = True

        with pytest.raises(TransferFailed):
            pool.withdraw_liquidity(ALICE, EXAMPLE_NATIVE)

        assert pool.share_balance(ALICE) == EXAMPLE_NATIVE
        assert pool.native_reserve == EXAMPLE_NATIVE
        assert pool.asset_reserve == EXAMPLE_ASSET
        assert chain.native.balance_of(ALICE) == STARTING_NATIVE - EXAMPLE_NATIVE
        assert chain.events.of_type("LiquidityWithdrawn") == []

    def test_failing_subscriber_rolls_back_deposit(self, example_pool: LiquidityPool, chain, token):
        def explode(event):
            raise RuntimeError(f"subscriber rejected {event.name}")

        chain.events.subscribe(explode)

        with pytest.raises(RuntimeError):
            example_pool.deposit_liquidity(BOB, 5, 5_000)

        assert example_pool.total_shares == EXAMPLE_NATIVE
        assert example_pool.share_balance(BOB) == 0
        assert chain.native.balance_of(BOB) == STARTING_NATIVE
        assert token.balance_of(BOB) == STARTING_ASSET
        assert len(chain.events.of_type("LiquidityDeposited")) == 1

    def test_no_journal_left_active(self, example_pool: LiquidityPool):
        example_pool.swap_native_for_asset(BOB, 1, 0)

        assert current_journal() is None

    def test_events_from_successful_calls_survive(self, example_pool: LiquidityPool, chain):
        example_pool.swap_native_for_asset(BOB, 1, 0)
        with pytest.raises(SlippageExceeded):
            example_pool.swap_native_for_asset(BOB, 1, 10**9)

        assert len(chain.events.of_type("TokensPurchased")) == 1


class TestReentrancy:
    """Calls back into a pool while it is mid-call fail."""

    def test_subscriber_reentry_rejected(self, example_pool: LiquidityPool, chain):
        def reenter(event):
            if event.name == "TokensPurchased":
                example_pool.withdraw_liquidity(ALICE, 1)

        chain.events.subscribe(reenter)

        with pytest.raises(ReentrancyError):
            example_pool.swap_native_for_asset(BOB, 1, 0)

        assert example_pool.native_reserve == EXAMPLE_NATIVE
        assert example_pool.asset_reserve == EXAMPLE_ASSET
        assert example_pool.share_balance(ALICE) == EXAMPLE_NATIVE

    def test_ledger_callback_reentry_rejected(self):
        chain = Chain()
        token = CallbackToken(chain.new_address("asset"), "CBK")
        pool = _pool_with(chain, token)
        seed_pool(pool, BOB, 1, 1_000)
        token.hook = lambda: pool.swap_native_for_asset(CAROL, 1, 0)
        chain.native.fund(CAROL, STARTING_NATIVE)

        with pytest.raises(ReentrancyError):
            pool.swap_asset_for_native(BOB, 500, 0)

        assert token.balance_of(BOB) == STARTING_ASSET - 1_000
        assert chain.native.balance_of(CAROL) == STARTING_NATIVE

    def test_reads_inside_call_rejected(self, example_pool: LiquidityPool, chain):
        """Guarded views are unavailable mid-call, so no caller sees a half-applied swap."""
        seen = []
        chain.events.subscribe(lambda event: seen.append(example_pool.snapshot()))

        with pytest.raises(ReentrancyError):
            example_pool.swap_native_for_asset(BOB, 1, 0)

        assert seen == []


class TestConcurrency:
    """Calls from several threads serialize."""

    def test_other_thread_waits_for_guard(self, example_pool: LiquidityPool):
        finished = threading.Event()

        def read():
            example_pool.snapshot()
            finished.set()

        with example_pool.guard.hold("test"):
            reader = threading.Thread(target=read)
            reader.start()
            assert not finished.wait(0.1)

        reader.join(timeout=5)
        assert finished.is_set()

    def test_concurrent_swaps_match_sequential_run(self):
        """Identical swaps produce the same total however threads interleave."""
        threads, swaps_each, native_in = 8, 25, 3_000

        def seeded() -> LiquidityPool:
            chain, token = make_funded_chain()
            pool = LiquidityPool(chain, token, creator_id=ALICE)
            seed_pool(pool, ALICE, 10**9, 10**12)
            return pool

        sequential = seeded()
        expected = sum(
            sequential.swap_native_for_asset(BOB, native_in, 0)
            for _ in range(threads * swaps_each)
        )

        pool = seeded()
        outputs: list[int] = []
        lock = threading.Lock()

        def trade():
            for _ in range(swaps_each):
                out = pool.swap_native_for_asset(BOB, native_in, 0)
                with lock:
                    outputs.append(out)

        workers = [threading.Thread(target=trade) for _ in range(threads)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=30)

        assert len(outputs) == threads * swaps_each
        assert sum(outputs) == expected
        assert pool.native_reserve == 10**9 + threads * swaps_each * native_in
        assert pool.asset_reserve == 10**12 - expected

    def test_uncommitted_payout_cannot_be_spent(self, example_pool: LiquidityPool, chain):
        """A payout is only spendable elsewhere once its call has committed."""
        entered = threading.Event()
        release = threading.Event()
        failures: list[Exception] = []
        spent: list[int] = []

        def stall_then_fail(event):
            if event.name == "LiquidityWithdrawn":
                entered.set()
                release.wait(5)
                raise RuntimeError("subscriber rejected withdrawal")

        chain.events.subscribe(stall_then_fail)

        def withdraw():
            try:
                example_pool.withdraw_liquidity(ALICE, EXAMPLE_NATIVE)
            except RuntimeError as err:
                failures.append(err)

        def spend():
            balance = chain.native.balance_of(ALICE)
            chain.native.transfer(ALICE, CAROL, balance)
            spent.append(balance)

        withdrawer = threading.Thread(target=withdraw)
        withdrawer.start()
        assert entered.wait(5)
        spender = threading.Thread(target=spend)
        spender.start()
        spender.join(timeout=0.1)
        assert spent == []

        release.set()
        withdrawer.join(timeout=5)
        spender.join(timeout=5)

        assert len(failures) == 1
        assert spent == [STARTING_NATIVE - EXAMPLE_NATIVE]
        assert chain.native.balance_of(ALICE) == 0
        assert chain.native.balance_of(CAROL) == 2 * STARTING_NATIVE - EXAMPLE_NATIVE
        assert example_pool.native_reserve == EXAMPLE_NATIVE
        assert example_pool.asset_reserve == EXAMPLE_ASSET
        assert example_pool.share_balance(ALICE) == EXAMPLE_NATIVE
