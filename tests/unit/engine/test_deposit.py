"""Tests for PoolEngine.seed and PoolEngine.deposit."""

import pytest

from pairpool.config import FirstDepositPolicy
from pairpool.engine import DepositResult
from pairpool.errors import (
    ArithmeticOverflow,
    Expired,
    InsufficientLiquidityMinted,
    InvalidInput,
    SlippageExceeded,
    TransferFailed,
)
from pairpool.ledger.reserves import Reserves
from tests.helpers import (
    ALICE,
    BOB,
    DEADLINE,
    GOLD,
    NOW,
    OTHER,
    OWNER,
    POOL,
    SILVER,
    fund,
    make_flaky_pool,
    make_pool,
)


class TestSeed:
    """Tests for bootstrapping a pool."""

    def test_seed_geometric_mean(self, pool, gold, silver):
        """OWNER is the first depositor and holds every share."""
        assert pool.reserves() == Reserves(1000, 1000)
        assert pool.total_shares == 1000
        assert pool.share_balance(OWNER) == 1000
        assert gold.balance_of(POOL) == 1000
        assert silver.balance_of(POOL) == 1000
        assert gold.balance_of(OWNER) == 0

    def test_seed_reserve_sum(self):
        """The reference policy issues reserve_a + reserve_b shares."""
        pool, _, _ = make_pool(1000, 1000, policy=FirstDepositPolicy.RESERVE_SUM)
        assert pool.share_balance(OWNER) == 2000

    def test_seed_twice_raises(self, pool, gold, silver):
        fund(gold, OWNER, 10)
        fund(silver, OWNER, 10)
        with pytest.raises(InvalidInput):
            pool.seed(OWNER, 10, 10)
        assert pool.total_shares == 1000

    def test_seed_needs_both_assets(self):
        pool, gold, _ = make_pool(0, 0)
        fund(gold, OWNER, 10)
        with pytest.raises(InvalidInput):
            pool.seed(OWNER, 10, 0)
        assert pool.reserves().is_empty


class TestDeposit:
    """Tests for proportional deposits."""

    def test_balanced_deposit(self, pool, gold, silver, alice):
        """Reserves (1000, 1000) + (500, 500) with minimums (400, 400)."""
        result = pool.deposit(alice, GOLD, SILVER, 500, 500, 400, 400, alice, DEADLINE)

        assert result == DepositResult(used_a=500, used_b=500, shares_issued=500)
        assert pool.reserves() == Reserves(1500, 1500)
        assert pool.share_balance(alice) == 500
        assert pool.total_shares == 1500
        assert gold.balance_of(alice) == 9500
        assert silver.balance_of(POOL) == 1500

    def test_excess_b_is_not_pulled(self, pool, silver, alice):
        """Only the B amount matching the pool ratio is used."""
        used_a, used_b, shares = pool.deposit(alice, GOLD, SILVER, 100, 900, 0, 0, alice, DEADLINE)

        assert (used_a, used_b, shares) == (100, 100, 100)
        assert silver.balance_of(alice) == 9900

    def test_falls_back_to_b_desired(self):
        """When the matching B amount exceeds desired_b, A is matched to B."""
        pool, gold, silver = make_pool(1000, 2000)
        fund(gold, ALICE, 1000)
        fund(silver, ALICE, 1000)

        result = pool.deposit(ALICE, GOLD, SILVER, 1000, 1000, 0, 0, ALICE, DEADLINE)

        assert result == DepositResult(used_a=500, used_b=1000, shares_issued=707)
        assert pool.reserves() == Reserves(1500, 3000)

    def test_asset_order_follows_caller(self):
        """Naming (SILVER, GOLD) swaps the meaning of the amounts and the result."""
        pool, gold, silver = make_pool(1000, 2000)
        fund(gold, ALICE, 1000)
        fund(silver, ALICE, 1000)

        result = pool.deposit(ALICE, SILVER, GOLD, 1000, 1000, 0, 0, ALICE, DEADLINE)

        assert result == DepositResult(used_a=1000, used_b=500, shares_issued=707)
        assert pool.reserves() == Reserves(1500, 3000)

    def test_recipient_receives_shares(self, pool, alice):
        pool.deposit(alice, GOLD, SILVER, 500, 500, 0, 0, BOB, DEADLINE)
        assert pool.share_balance(BOB) == 500
        assert pool.share_balance(alice) == 0

    def test_insufficient_b_amount(self, pool, gold, alice):
        """Matching B below min_b is rejected."""
        with pytest.raises(SlippageExceeded, match="Insufficient B amount"):
            pool.deposit(alice, GOLD, SILVER, 500, 1000, 1, 800, alice, DEADLINE)
        assert gold.balance_of(alice) == 10_000
        assert pool.reserves() == Reserves(1000, 1000)

    def test_insufficient_a_amount(self, pool, alice):
        """Matching A below min_a is rejected."""
        with pytest.raises(SlippageExceeded, match="Insufficient A amount"):
            pool.deposit(alice, GOLD, SILVER, 1000, 500, 900, 1, alice, DEADLINE)
        assert pool.total_shares == 1000

    def test_tie_break_prefers_a_branch(self, pool, alice):
        """When the matching B equals desired_b, only min_b is checked."""
        result = pool.deposit(alice, GOLD, SILVER, 500, 500, 600, 500, alice, DEADLINE)
        assert result == DepositResult(500, 500, 500)

    def test_expired(self, pool, gold, alice):
        with pytest.raises(Expired):
            pool.deposit(alice, GOLD, SILVER, 1, 1, 1, 1, alice, NOW - 60)
        assert gold.balance_of(alice) == 10_000
        assert pool.reserves() == Reserves(1000, 1000)

    def test_deadline_equal_to_now_is_accepted(self, pool, alice):
        assert pool.deposit(alice, GOLD, SILVER, 10, 10, 0, 0, alice, NOW).shares_issued == 10

    def test_zero_shares_raises(self, pool, alice):
        with pytest.raises(InsufficientLiquidityMinted):
            pool.deposit(alice, GOLD, SILVER, 0, 0, 0, 0, alice, DEADLINE)

    @pytest.mark.parametrize(
        "asset_a,asset_b",
        [(GOLD, OTHER), (OTHER, SILVER), (GOLD, GOLD)],
    )
    def test_unknown_assets_raise(self, pool, alice, asset_a, asset_b):
        with pytest.raises(InvalidInput):
            pool.deposit(alice, asset_a, asset_b, 10, 10, 0, 0, alice, DEADLINE)

    def test_negative_amount_raises(self, pool, alice):
        with pytest.raises(InvalidInput):
            pool.deposit(alice, GOLD, SILVER, -5, 10, 0, 0, alice, DEADLINE)

    def test_invalid_recipient_raises(self, pool, alice):
        with pytest.raises(InvalidInput):
            pool.deposit(alice, GOLD, SILVER, 10, 10, 0, 0, "0xdead", DEADLINE)

    def test_failed_pull_refunds_first_leg(self, pool, gold, silver):
        """If B cannot be pulled, the A already pulled is returned."""
        fund(gold, BOB, 500)
        fund(silver, BOB, 500, approve=False)

        with pytest.raises(TransferFailed):
            pool.deposit(BOB, GOLD, SILVER, 500, 500, 0, 0, BOB, DEADLINE)

        assert gold.balance_of(BOB) == 500
        assert gold.balance_of(POOL) == 1000
        assert pool.reserves() == Reserves(1000, 1000)
        assert pool.share_balance(BOB) == 0
        assert pool.total_shares == 1000


class TestFirstDeposit:
    """Depositing into an empty pool uses the desired amounts as-is."""

    @pytest.mark.parametrize(
        "policy,expected_shares",
        [(FirstDepositPolicy.GEOMETRIC_MEAN, 2000), (FirstDepositPolicy.RESERVE_SUM, 5000)],
    )
    def test_first_deposit_policy(self, policy, expected_shares):
        pool, gold, silver = make_pool(0, 0, policy=policy)
        fund(gold, ALICE, 1000)
        fund(silver, ALICE, 4000)

        result = pool.deposit(ALICE, GOLD, SILVER, 1000, 4000, 0, 0, ALICE, DEADLINE)

        assert result == DepositResult(1000, 4000, expected_shares)
        assert pool.reserves() == Reserves(1000, 4000)

    def test_first_deposit_needs_both_assets(self):
        pool, gold, _ = make_pool(0, 0)
        fund(gold, ALICE, 1000)
        with pytest.raises(InvalidInput):
            pool.deposit(ALICE, GOLD, SILVER, 1000, 0, 0, 0, ALICE, DEADLINE)

    def test_first_deposit_below_minimum(self):
        """An empty pool takes the desired amounts, which must still meet the minimums."""
        pool, gold, silver = make_pool(0, 0)
        fund(gold, ALICE, 1000)
        fund(silver, ALICE, 1000)

        with pytest.raises(SlippageExceeded):
            pool.deposit(ALICE, GOLD, SILVER, 1000, 1000, 1001, 0, ALICE, DEADLINE)
        with pytest.raises(SlippageExceeded):
            pool.deposit(ALICE, GOLD, SILVER, 1000, 1000, 0, 1001, ALICE, DEADLINE)

        assert pool.reserves().is_empty
        assert pool.total_shares == 0
        assert gold.balance_of(ALICE) == 1000


class TestDepositFailures:
    """Deposits that fail after validation leave shares and reserves alone."""

    def test_failed_refund_still_raises_transfer_failed(self):
        pool, gold, silver, flaky_gold, flaky_silver = make_flaky_pool()
        fund(gold, ALICE, 500)
        fund(silver, ALICE, 500)
        flaky_silver.fail_transfer_from = True
        flaky_gold.fail_transfer = True

        with pytest.raises(TransferFailed):
            pool.deposit(ALICE, GOLD, SILVER, 500, 500, 0, 0, ALICE, DEADLINE)

        assert pool.reserves() == Reserves(1000, 1000)
        assert pool.total_shares == 1000
        assert pool.share_balance(ALICE) == 0
        # The refund of the pulled A leg could not be paid back
        assert gold.balance_of(ALICE) == 0
        assert gold.balance_of(POOL) == 1500

    def test_pool_state_overflow(self):
        """A deposit that would push a reserve past uint256 is rejected before any pull."""
        pool, gold, silver = make_pool(1, 2)
        assert pool.total_shares == 1

        # Donate gold, then let a swap sync reserves to (2**255, 1)
        gold.mint(OWNER, POOL, 2**255 - 2)
        fund(gold, ALICE, 1)
        assert pool.swap(ALICE, 1, 1, [GOLD, SILVER], ALICE, DEADLINE) == 1
        assert pool.reserves() == Reserves(2**255, 1)

        with pytest.raises(ArithmeticOverflow):
            pool.deposit(BOB, GOLD, SILVER, 2**255, 1, 0, 0, BOB, DEADLINE)

        assert pool.reserves() == Reserves(2**255, 1)
        assert pool.total_shares == 1
        assert silver.balance_of(POOL) == 1
