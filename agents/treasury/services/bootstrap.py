"""
Bootstrap — stands up a treasury on a simulated ledger for a named network
and optionally seeds it from a JSON fixture file.

Fixture layout:

    {
      "routers": [{"address": "...", "fee_bps": 30,
                   "rates": [["USDC", "WETH", 1, 2000]]}],
      "vaults":  [{"address": "...", "want": "USDC"},
                  {"address": "...", "lp": ["USDC", "WETH"], "router": "...",
                   "route0": ["USDC"], "route1": ["USDC", "WETH"]}],
      "balances": [{"asset": "USDC", "holder": "alice", "amount": 1000000}],
      "allowances": [{"asset": "USDC", "owner": "alice", "spender": "treasury",
                      "amount": 1000000}]
    }

``"stable"`` may be used anywhere an asset is expected and is replaced by the
treasury's stable coin. Likewise ``"treasury"`` as a holder, owner or spender
is replaced by the treasury's address.
"""
import json
import time
from pathlib import Path
from typing import Callable
from shared.config import settings
from agents.treasury.config import NETWORKS
from agents.treasury.services.engine import Treasury
from agents.treasury.services.simulation import (
    SimulatedLedger, SimulatedRouter, SimulatedStrategy, SimulatedVault, lp_asset_id,
)
import structlog

logger = structlog.get_logger()


def resolve_stable_asset(network: str) -> str:
    if settings.STABLE_ASSET_ADDRESS:
        return settings.STABLE_ASSET_ADDRESS
    try:
        return NETWORKS[network]["stable_asset"]
    except KeyError:
        raise ValueError(f"Unknown network or no stable asset configured: {network}") from None


def deploy_treasury(
    network: str | None = None,
    ledger: SimulatedLedger | None = None,
    clock: Callable[[], float] = time.time,
) -> Treasury:
    network = network or settings.NETWORK
    stable = resolve_stable_asset(network)
    treasury = Treasury(
        ledger if ledger is not None else SimulatedLedger(),
        stable_asset=stable,
        owner=settings.TREASURY_OWNER,
        address=settings.TREASURY_ADDRESS,
        clock=clock,
    )
    logger.info(
        "treasury_deployed",
        network=network,
        chain_id=NETWORKS.get(network, {}).get("chain_id"),
        address=treasury.address,
        stable_asset=stable,
    )
    return treasury


def load_fixtures(treasury: Treasury, fixtures: dict, clock: Callable[[], float] = time.time) -> None:
    ledger = treasury.ledger
    if not isinstance(ledger, SimulatedLedger):
        raise TypeError("Fixtures can only seed a SimulatedLedger")

    def asset(name: str) -> str:
        return treasury.stable_asset if name == "stable" else name

    def account(name: str) -> str:
        return treasury.address if name == "treasury" else name

    for item in fixtures.get("routers", []):
        router = ledger.register_router(
            SimulatedRouter(ledger, item["address"], fee_bps=item.get("fee_bps", 0), clock=clock)
        )
        for asset_in, asset_out, numerator, denominator in item.get("rates", []):
            router.set_rate(asset(asset_in), asset(asset_out), numerator, denominator)

    for item in fixtures.get("vaults", []):
        if "lp" in item:
            lp0, lp1 = (asset(a) for a in item["lp"])
            strategy = SimulatedStrategy(
                router=item["router"],
                lp0=lp0,
                lp1=lp1,
                route0=[asset(a) for a in item.get("route0", [])],
                route1=[asset(a) for a in item.get("route1", [])],
            )
            ledger.register_vault(SimulatedVault(ledger, item["address"], lp_asset_id(lp0, lp1), strategy))
        else:
            ledger.register_vault(SimulatedVault(ledger, item["address"], asset(item["want"])))

    for item in fixtures.get("balances", []):
        ledger.mint(asset(item["asset"]), account(item["holder"]), int(item["amount"]))

    for item in fixtures.get("allowances", []):
        ledger.approve(
            asset(item["asset"]), account(item["spender"]), int(item["amount"]), sender=account(item["owner"]),
        )

    logger.info(
        "treasury_fixtures_loaded",
        routers=len(fixtures.get("routers", [])),
        vaults=len(fixtures.get("vaults", [])),
        balances=len(fixtures.get("balances", [])),
        allowances=len(fixtures.get("allowances", [])),
    )


def load_fixture_file(treasury: Treasury, path: str | Path) -> None:
    with open(path) as f:
        load_fixtures(treasury, json.load(f))
