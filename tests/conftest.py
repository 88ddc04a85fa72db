import pytest

from agents.treasury.services.engine import Treasury
from agents.treasury.services.simulation import (
    SimulatedLedger,
    SimulatedRouter,
    SimulatedStrategy,
    SimulatedVault,
    lp_asset_id,
)

STABLE = "USDC"
OWNER = "owner"
TREASURY = "treasury"
ALICE = "alice"
ROUTER = "router"
NOW = 1_700_000_000


@pytest.fixture
def ledger():
    return SimulatedLedger()


@pytest.fixture
def router(ledger):
    router = ledger.register_router(SimulatedRouter(ledger, ROUTER, clock=lambda: NOW))
    router.set_rate(STABLE, "WETH", 2)      # 1 USDC unit -> 2 WETH units
    router.set_rate(STABLE, "WBTC", 1, 4)   # 4 USDC units -> 1 WBTC unit
    router.set_rate("WETH", "WBTC", 1, 8)
    return router


@pytest.fixture
def treasury(ledger, router):
    return Treasury(ledger, stable_asset=STABLE, owner=OWNER, address=TREASURY, clock=lambda: NOW)


@pytest.fixture
def stable_vault(ledger):
    def make(address, **kwargs):
        return ledger.register_vault(SimulatedVault(ledger, address, STABLE, **kwargs))
    return make


@pytest.fixture
def lp_vault(ledger, router):
    def make(address, lp0, lp1, route0=(), route1=(), **kwargs):
        strategy = SimulatedStrategy(
            router=ROUTER, lp0=lp0, lp1=lp1, route0=list(route0), route1=list(route1),
        )
        return ledger.register_vault(
            SimulatedVault(ledger, address, lp_asset_id(lp0, lp1), strategy, **kwargs)
        )
    return make


@pytest.fixture
def fund(ledger, treasury):
    """Mint stable coin to a depositor and deposit it into the treasury."""
    def deposit(amount, sender=ALICE):
        ledger.mint(STABLE, sender, amount)
        ledger.approve(STABLE, TREASURY, amount, sender=sender)
        treasury.deposit(amount, sender=sender)
    return deposit


@pytest.fixture
def recorded_swaps(router, monkeypatch):
    """Capture (amount_in, min_out, route) for every swap the router executes."""
    calls = []
    original = router.swap_exact_tokens_for_tokens

    def record(amount_in, min_out, route, recipient, deadline, *, sender):
        calls.append((amount_in, min_out, list(route)))
        return original(amount_in, min_out, route, recipient, deadline, sender=sender)

    monkeypatch.setattr(router, "swap_exact_tokens_for_tokens", record)
    return calls
