import pytest

from agents.treasury.config import ZERO_ADDRESS
from agents.treasury.errors import (
    ExternalCallFailure,
    InsufficientBalance,
    InvalidAmount,
    InvalidVaultReference,
    Unauthorized,
)
from agents.treasury.services.simulation import SimulatedVault
from conftest import ALICE, OWNER, STABLE, TREASURY


# ---- deposit ----------------------------------------------------------------

def test_deposit_moves_stable_and_emits_event(treasury, ledger):
    ledger.mint(STABLE, ALICE, 500)
    ledger.approve(STABLE, TREASURY, 500, sender=ALICE)

    treasury.deposit(500, sender=ALICE)

    assert treasury.stable_balance == 500
    assert ledger.balance_of(STABLE, ALICE) == 0
    event = treasury.events[-1]
    assert event.name == "deposit_received"
    assert event.data == {"sender": ALICE, "amount": 500}


def test_deposit_is_open_to_anyone_but_needs_allowance(treasury, ledger):
    ledger.mint(STABLE, ALICE, 500)
    with pytest.raises(ExternalCallFailure):
        treasury.deposit(500, sender=ALICE)
    assert treasury.events == []
    assert ledger.balance_of(STABLE, ALICE) == 500


def test_deposit_zero_is_invalid(treasury):
    with pytest.raises(InvalidAmount):
        treasury.deposit(0, sender=ALICE)


# ---- add_vault / update_allocation ------------------------------------------

def test_add_vault_emits_index_and_tracks_weight(treasury, stable_vault):
    stable_vault("a")
    stable_vault("b")
    assert treasury.add_vault("a", 3, caller=OWNER) == 0
    assert treasury.add_vault("b", 4, caller=OWNER) == 1

    assert treasury.total_weight == 7
    assert [e.data["index"] for e in treasury.events] == [0, 1]
    assert treasury.events[-1].data["asset_id"] == STABLE


@pytest.mark.parametrize("want", [None, "", ZERO_ADDRESS])
def test_add_vault_with_null_asset_is_rejected(treasury, ledger, want):
    ledger.register_vault(SimulatedVault(ledger, "null-vault", want))
    with pytest.raises(InvalidVaultReference):
        treasury.add_vault("null-vault", 10, caller=OWNER)
    assert len(treasury.registry) == 0
    assert treasury.total_weight == 0
    assert treasury.events == []


def test_add_vault_when_want_reverts(treasury, stable_vault):
    stable_vault("reverting", fail_on=["want"])
    with pytest.raises(InvalidVaultReference) as exc:
        treasury.add_vault("reverting", 10, caller=OWNER)
    assert isinstance(exc.value.__cause__, ExternalCallFailure)
    assert len(treasury.registry) == 0


def test_add_unknown_vault(treasury):
    with pytest.raises(InvalidVaultReference):
        treasury.add_vault("nowhere", 10, caller=OWNER)


def test_add_vault_requires_owner(treasury, stable_vault):
    stable_vault("a")
    with pytest.raises(Unauthorized):
        treasury.add_vault("a", 1, caller=ALICE)
    assert len(treasury.registry) == 0


def test_update_allocation_event_and_total(treasury, stable_vault):
    stable_vault("a")
    stable_vault("b")
    treasury.add_vault("a", 70, caller=OWNER)
    treasury.add_vault("b", 30, caller=OWNER)

    treasury.update_allocation(1, 50, caller=OWNER)

    assert treasury.total_weight == 120
    assert treasury.events[-1].name == "allocation_updated"
    assert treasury.events[-1].data["old_weight"] == 30
    assert treasury.events[-1].data["new_weight"] == 50


def test_update_allocation_out_of_bounds_leaves_state(treasury, stable_vault):
    stable_vault("a")
    treasury.add_vault("a", 5, caller=OWNER)
    with pytest.raises(InvalidVaultReference):
        treasury.update_allocation(3, 1, caller=OWNER)
    with pytest.raises(InvalidAmount):
        treasury.update_allocation(0, -1, caller=OWNER)
    assert treasury.total_weight == 5
    assert len(treasury.events) == 1


# ---- withdraw -----------------------------------------------------------------

def test_withdraw_from_stable_vault(treasury, stable_vault, fund):
    vault = stable_vault("a")
    treasury.add_vault("a", 1, caller=OWNER)
    fund(1000)
    treasury.distribute(1000, caller=OWNER)
    vault.accrue(100)

    received = treasury.withdraw(0, 500, caller=OWNER)

    assert received == 550
    assert treasury.stable_balance == 550
    assert vault.balance_of(TREASURY) == 500
    assert treasury.vault(0).principal == 1000


def test_withdraw_validation(treasury, stable_vault, fund):
    stable_vault("a")
    treasury.add_vault("a", 1, caller=OWNER)
    fund(100)
    treasury.distribute(100, caller=OWNER)

    with pytest.raises(InvalidAmount):
        treasury.withdraw(0, 0, caller=OWNER)
    with pytest.raises(InvalidVaultReference):
        treasury.withdraw(1, 10, caller=OWNER)
    with pytest.raises(ExternalCallFailure):
        treasury.withdraw(0, 101, caller=OWNER)
    with pytest.raises(Unauthorized):
        treasury.withdraw(0, 10, caller=ALICE)
    assert treasury.stable_balance == 0


# ---- sweep / ownership --------------------------------------------------------

def test_sweep_sends_to_owner(treasury, fund, ledger):
    fund(300)
    treasury.sweep_asset(STABLE, 200, caller=OWNER)
    assert ledger.balance_of(STABLE, OWNER) == 200
    assert treasury.stable_balance == 100
    assert treasury.events[-1].name == "asset_swept"


def test_sweep_limits(treasury, fund, ledger):
    fund(300)
    with pytest.raises(InsufficientBalance):
        treasury.sweep_asset(STABLE, 301, caller=OWNER)
    with pytest.raises(InvalidAmount):
        treasury.sweep_asset(STABLE, 0, caller=OWNER)
    with pytest.raises(Unauthorized):
        treasury.sweep_asset(STABLE, 1, caller=ALICE)
    with pytest.raises(InsufficientBalance):
        treasury.sweep_asset("WETH", 1, caller=OWNER)
    assert treasury.stable_balance == 300


def test_transfer_ownership(treasury, stable_vault):
    stable_vault("a")
    treasury.transfer_ownership(ALICE, caller=OWNER)
    assert treasury.owner == ALICE
    with pytest.raises(Unauthorized):
        treasury.add_vault("a", 1, caller=OWNER)
    treasury.add_vault("a", 1, caller=ALICE)


def test_transfer_ownership_rejects_zero_address(treasury):
    with pytest.raises(Unauthorized):
        treasury.transfer_ownership(ZERO_ADDRESS, caller=OWNER)
    assert treasury.owner == OWNER


# ---- rollback boundary --------------------------------------------------------

def test_rollback_discards_registry_changes_made_inside_the_operation(treasury, stable_vault):
    stable_vault("a")

    with pytest.raises(RuntimeError):
        with treasury.atomic("scripted"):
            treasury.add_vault("a", 10, caller=OWNER)
            treasury.update_allocation(0, 20, caller=OWNER)
            raise RuntimeError("abort")

    assert len(treasury.registry) == 0
    assert treasury.total_weight == 0
    assert treasury.events == []


def test_exception_propagates_unchanged(treasury, stable_vault, fund):
    stable_vault("a", fail_on=["deposit"])
    treasury.add_vault("a", 1, caller=OWNER)
    fund(10)
    with pytest.raises(ExternalCallFailure, match="vault deposit reverted"):
        treasury.distribute(10, caller=OWNER)
