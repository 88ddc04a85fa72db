import random

import pytest

from agents.treasury.errors import ExternalCallFailure, InvalidAmount, NoAllocation, Unauthorized
from agents.treasury.services.allocator import compute_shares
from conftest import OWNER, TREASURY


# ---- compute_shares ---------------------------------------------------------

def test_compute_shares_floor_rounding():
    assert compute_shares(1000, [70, 30], 100) == [700, 300]
    assert compute_shares(10, [1, 1, 1], 3) == [3, 3, 3]
    assert compute_shares(10, [1, 0, 1], 2) == [5, 0, 5]


def test_compute_shares_rejects_zero_amount_and_weight():
    with pytest.raises(InvalidAmount):
        compute_shares(0, [1], 1)
    with pytest.raises(NoAllocation):
        compute_shares(10, [0, 0], 0)


def test_floor_deficit_is_below_weighted_vault_count():
    rng = random.Random(11)
    for _ in range(500):
        weights = [rng.randint(0, 50) for _ in range(rng.randint(1, 12))]
        total = sum(weights)
        if total == 0:
            continue
        amount = rng.randint(1, 10**9)
        shares = compute_shares(amount, weights, total)
        weighted = sum(1 for w in weights if w)
        assert sum(shares) <= amount
        assert amount - sum(shares) < weighted


# ---- distribute -------------------------------------------------------------

def test_seventy_thirty_split(treasury, stable_vault, fund, ledger):
    a, b = stable_vault("vault-a"), stable_vault("vault-b")
    treasury.add_vault("vault-a", 70, caller=OWNER)
    treasury.add_vault("vault-b", 30, caller=OWNER)
    fund(1000)

    result = treasury.distribute(1000, caller=OWNER)

    assert [x.share for x in result.allocations] == [700, 300]
    assert result.remainder == 0
    assert a.balance_of(TREASURY) == 700
    assert b.balance_of(TREASURY) == 300
    assert [e.principal for e in treasury.vaults()] == [700, 300]
    assert treasury.stable_balance == 0


def test_equal_weights_leave_remainder_in_stable_balance(treasury, stable_vault, fund):
    for name in ("a", "b", "c"):
        stable_vault(name)
        treasury.add_vault(name, 1, caller=OWNER)
    fund(10)

    result = treasury.distribute(10, caller=OWNER)

    assert [x.share for x in result.allocations] == [3, 3, 3]
    assert result.remainder == 1
    assert treasury.stable_balance == 1
    assert treasury.events[-1].data["remainder"] == 1


def test_amount_below_weighted_count_leaves_everything_undeposited(treasury, stable_vault, fund):
    vaults = [stable_vault(name) for name in ("a", "b", "c")]
    for name in ("a", "b", "c"):
        treasury.add_vault(name, 1, caller=OWNER)
    fund(2)

    result = treasury.distribute(2, caller=OWNER)

    assert [x.share for x in result.allocations] == [0, 0, 0]
    assert [x.deposited for x in result.allocations] == [0, 0, 0]
    assert result.remainder == 2
    assert treasury.stable_balance == 2
    assert [v.balance_of(TREASURY) for v in vaults] == [0, 0, 0]
    assert [e.principal for e in treasury.vaults()] == [0, 0, 0]


def test_zero_share_lp_vault_is_not_provisioned(treasury, stable_vault, lp_vault, fund, recorded_swaps):
    stable_vault("big")
    lp_vault("small-lp", "USDC", "WETH", route0=["USDC"], route1=["USDC", "WETH"])
    treasury.add_vault("big", 1000, caller=OWNER)
    treasury.add_vault("small-lp", 1, caller=OWNER)
    fund(500)

    result = treasury.distribute(500, caller=OWNER)

    assert [x.share for x in result.allocations] == [499, 0]
    assert recorded_swaps == []
    assert treasury.vault(1).principal == 0
    assert treasury.stable_balance == 1


def test_zero_weight_vault_is_skipped(treasury, stable_vault, fund):
    stable_vault("a")
    idle = stable_vault("idle", fail_on=["deposit"])
    treasury.add_vault("a", 1, caller=OWNER)
    treasury.add_vault("idle", 0, caller=OWNER)
    fund(100)

    result = treasury.distribute(100, caller=OWNER)

    assert [x.index for x in result.allocations] == [0]
    assert idle.balance_of(TREASURY) == 0
    assert treasury.vault(1).principal == 0


def test_distribute_zero_amount_changes_nothing(treasury, stable_vault, fund, ledger):
    stable_vault("a")
    treasury.add_vault("a", 1, caller=OWNER)
    fund(100)
    before = ledger.snapshot()
    events = len(treasury.events)

    with pytest.raises(InvalidAmount):
        treasury.distribute(0, caller=OWNER)

    assert ledger.snapshot() == before
    assert len(treasury.events) == events
    assert treasury.vault(0).principal == 0


def test_distribute_without_weights_changes_nothing(treasury, stable_vault, fund, ledger):
    stable_vault("a")
    treasury.add_vault("a", 0, caller=OWNER)
    fund(100)
    before = ledger.snapshot()

    with pytest.raises(NoAllocation):
        treasury.distribute(100, caller=OWNER)

    assert ledger.snapshot() == before
    assert treasury.stable_balance == 100


def test_distribute_requires_owner(treasury, stable_vault, fund):
    stable_vault("a")
    treasury.add_vault("a", 1, caller=OWNER)
    fund(100)
    with pytest.raises(Unauthorized):
        treasury.distribute(100, caller="mallory")


def test_failed_vault_rolls_back_earlier_deposits(treasury, stable_vault, fund, ledger):
    first = stable_vault("first")
    stable_vault("broken", fail_on=["deposit"])
    treasury.add_vault("first", 1, caller=OWNER)
    treasury.add_vault("broken", 1, caller=OWNER)
    fund(100)
    before = ledger.snapshot()

    with pytest.raises(ExternalCallFailure):
        treasury.distribute(100, caller=OWNER)

    assert ledger.snapshot() == before
    assert first.balance_of(TREASURY) == 0
    assert [e.principal for e in treasury.vaults()] == [0, 0]
    assert treasury.events[-1].name != "distribution_completed"


def test_distribute_more_than_held_fails(treasury, stable_vault, fund):
    stable_vault("a")
    treasury.add_vault("a", 1, caller=OWNER)
    fund(50)
    with pytest.raises(ExternalCallFailure):
        treasury.distribute(100, caller=OWNER)
    assert treasury.stable_balance == 50


def test_preview_matches_distribution_without_moving_funds(treasury, stable_vault, fund):
    stable_vault("a")
    stable_vault("b")
    treasury.add_vault("a", 2, caller=OWNER)
    treasury.add_vault("b", 1, caller=OWNER)
    fund(100)

    plan = treasury.preview(100)
    assert [x.share for x in plan.allocations] == [66, 33]
    assert plan.remainder == 1
    assert treasury.stable_balance == 100

    result = treasury.distribute(100, caller=OWNER)
    assert [x.share for x in result.allocations] == [x.share for x in plan.allocations]

