"""
Simulated Ledger — deterministic in-memory token balances, vaults and a swap
router for backtesting and tests.

All state (balances, allowances, supplies, pool reserves, vault shares) lives
in one ``SimulatedLedger`` so a single snapshot captures everything the
treasury can touch. Failing calls raise ``ExternalCallFailure``, the way a
reverted contract call surfaces to the engine.

Vaults follow the Beefy model: the vault holds its ``want`` asset, issues
shares as its own asset id, and ``price_per_share`` is the want balance per
share scaled by 1e18. The router converts along a route at fixed per-hop
rates minus a fee, and pools LP pairs Uniswap-V2 style.
"""
import copy
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Sequence
from agents.treasury.config import SHARE_SCALE
from agents.treasury.errors import ExternalCallFailure

MINIMUM_LIQUIDITY = 1000


def lp_asset_id(asset_a: str, asset_b: str) -> str:
    a, b = sorted((asset_a, asset_b))
    return f"LP:{a}/{b}"


@dataclass
class _LedgerState:
    balances: dict[tuple[str, str], int] = field(default_factory=dict)
    allowances: dict[tuple[str, str, str], int] = field(default_factory=dict)
    supplies: dict[str, int] = field(default_factory=dict)


class SimulatedLedger:
    def __init__(self):
        self._state = _LedgerState()
        self._vaults: dict[str, "SimulatedVault"] = {}
        self._routers: dict[str, "SimulatedRouter"] = {}

    # -------------------------------------------------------------- registry

    def register_vault(self, vault: "SimulatedVault") -> "SimulatedVault":
        self._vaults[vault.address] = vault
        return vault

    def register_router(self, router: "SimulatedRouter") -> "SimulatedRouter":
        self._routers[router.address] = router
        return router

    def vault(self, vault_id: str) -> "SimulatedVault":
        try:
            return self._vaults[vault_id]
        except KeyError:
            raise ExternalCallFailure("no vault at address", context={"vault_id": vault_id}) from None

    def router(self, router_id: str) -> "SimulatedRouter":
        try:
            return self._routers[router_id]
        except KeyError:
            raise ExternalCallFailure("no router at address", context={"router_id": router_id}) from None

    # ---------------------------------------------------------------- tokens

    def balance_of(self, asset: str, holder: str) -> int:
        return self._state.balances.get((asset, holder), 0)

    def total_supply(self, asset: str) -> int:
        return self._state.supplies.get(asset, 0)

    def allowance(self, asset: str, owner: str, spender: str) -> int:
        return self._state.allowances.get((asset, owner, spender), 0)

    def mint(self, asset: str, holder: str, amount: int) -> None:
        if amount < 0:
            raise ExternalCallFailure("negative mint", context={"asset": asset, "amount": amount})
        self._state.balances[(asset, holder)] = self.balance_of(asset, holder) + amount
        self._state.supplies[asset] = self.total_supply(asset) + amount

    def burn(self, asset: str, holder: str, amount: int) -> None:
        held = self.balance_of(asset, holder)
        if amount < 0 or amount > held:
            raise ExternalCallFailure(
                "burn amount exceeds balance",
                context={"asset": asset, "holder": holder, "amount": amount, "held": held},
            )
        self._state.balances[(asset, holder)] = held - amount
        self._state.supplies[asset] = self.total_supply(asset) - amount

    def transfer(self, asset: str, recipient: str, amount: int, *, sender: str) -> None:
        held = self.balance_of(asset, sender)
        if amount < 0 or amount > held:
            raise ExternalCallFailure(
                "transfer amount exceeds balance",
                context={"asset": asset, "sender": sender, "amount": amount, "held": held},
            )
        self._state.balances[(asset, sender)] = held - amount
        self._state.balances[(asset, recipient)] = self.balance_of(asset, recipient) + amount

    def approve(self, asset: str, spender: str, amount: int, *, sender: str) -> None:
        if amount < 0:
            raise ExternalCallFailure("negative allowance", context={"asset": asset, "amount": amount})
        self._state.allowances[(asset, sender, spender)] = amount

    def transfer_from(self, asset: str, owner: str, recipient: str, amount: int, *, sender: str) -> None:
        allowed = self.allowance(asset, owner, sender)
        if amount > allowed:
            raise ExternalCallFailure(
                "transfer amount exceeds allowance",
                context={"asset": asset, "owner": owner, "spender": sender, "amount": amount, "allowed": allowed},
            )
        self.transfer(asset, recipient, amount, sender=owner)
        self._state.allowances[(asset, owner, sender)] = allowed - amount

    # --------------------------------------------------------------- rollback

    def snapshot(self) -> _LedgerState:
        return copy.deepcopy(self._state)

    def restore(self, state: _LedgerState) -> None:
        self._state = copy.deepcopy(state)


@dataclass
class SimulatedStrategy:
    router: str
    lp0: str
    lp1: str
    route0: list[str] = field(default_factory=list)
    route1: list[str] = field(default_factory=list)

    def unirouter(self) -> str:
        return self.router

    def lp_token0(self) -> str:
        return self.lp0

    def lp_token1(self) -> str:
        return self.lp1

    def output_to_lp0(self) -> list[str]:
        return list(self.route0)

    def output_to_lp1(self) -> list[str]:
        return list(self.route1)


class SimulatedVault:
    def __init__(
        self,
        ledger: SimulatedLedger,
        address: str,
        want: str | None,
        strategy: SimulatedStrategy | None = None,
        fail_on: Sequence[str] = (),
    ):
        self.ledger = ledger
        self.address = address
        self._want = want
        self._strategy = strategy
        self.fail_on = set(fail_on)

    def _guard(self, call: str):
        if call in self.fail_on:
            raise ExternalCallFailure(f"vault {call} reverted", context={"vault": self.address})

    def want(self) -> str | None:
        self._guard("want")
        return self._want

    def strategy(self) -> SimulatedStrategy:
        self._guard("strategy")
        if self._strategy is None:
            raise ExternalCallFailure("vault has no strategy", context={"vault": self.address})
        return self._strategy

    def balance(self) -> int:
        """Want held by the vault."""
        return self.ledger.balance_of(self._want, self.address)

    def total_supply(self) -> int:
        return self.ledger.total_supply(self.address)

    def balance_of(self, holder: str) -> int:
        self._guard("balance_of")
        return self.ledger.balance_of(self.address, holder)

    def price_per_share(self) -> int:
        self._guard("price_per_share")
        supply = self.total_supply()
        if supply == 0:
            return SHARE_SCALE
        return self.balance() * SHARE_SCALE // supply

    def deposit(self, amount: int, *, sender: str) -> None:
        self._guard("deposit")
        if amount <= 0:
            raise ExternalCallFailure("deposit amount is zero", context={"vault": self.address})
        pool = self.balance()
        supply = self.total_supply()
        self.ledger.transfer_from(self._want, sender, self.address, amount, sender=self.address)
        shares = amount if supply == 0 or pool == 0 else amount * supply // pool
        self.ledger.mint(self.address, sender, shares)

    def withdraw(self, shares: int, *, sender: str) -> None:
        self._guard("withdraw")
        supply = self.total_supply()
        if shares <= 0 or supply == 0:
            raise ExternalCallFailure("nothing to withdraw", context={"vault": self.address})
        amount = self.balance() * shares // supply
        self.ledger.burn(self.address, sender, shares)
        self.ledger.transfer(self._want, sender, amount, sender=self.address)

    def accrue(self, amount: int) -> None:
        """Simulate strategy harvest: want appears in the vault."""
        self.ledger.mint(self._want, self.address, amount)

    def slash(self, amount: int) -> None:
        """Simulate a strategy loss."""
        self.ledger.burn(self._want, self.address, amount)


class SimulatedRouter:
    """Fixed-rate swaps and constant-product liquidity pools."""

    def __init__(
        self,
        ledger: SimulatedLedger,
        address: str,
        fee_bps: int = 0,
        clock: Callable[[], float] = time.time,
    ):
        self.ledger = ledger
        self.address = address
        self.fee_bps = fee_bps
        self.clock = clock
        self._rates: dict[tuple[str, str], tuple[int, int]] = {}

    def set_rate(self, asset_in: str, asset_out: str, numerator: int, denominator: int = 1) -> None:
        """Price one hop: ``out = in * numerator // denominator`` (before fee).

        The inverse hop is registered as well.
        """
        self._rates[(asset_in, asset_out)] = (numerator, denominator)
        self._rates[(asset_out, asset_in)] = (denominator, numerator)

    def _check_deadline(self, deadline: int):
        if deadline < int(self.clock()):
            raise ExternalCallFailure("router: expired", context={"deadline": deadline})

    def get_amounts_out(self, amount_in: int, route: Sequence[str]) -> list[int]:
        if len(route) < 2:
            raise ExternalCallFailure("router: invalid path", context={"route": list(route)})
        amounts = [amount_in]
        for hop_in, hop_out in zip(route, route[1:]):
            rate = self._rates.get((hop_in, hop_out))
            if rate is None:
                raise ExternalCallFailure("router: no liquidity for hop", context={"hop": (hop_in, hop_out)})
            numerator, denominator = rate
            out = amounts[-1] * numerator // denominator
            amounts.append(out * (10_000 - self.fee_bps) // 10_000)
        return amounts

    def swap_exact_tokens_for_tokens(
        self, amount_in, min_out, route, recipient, deadline, *, sender,
    ) -> int:
        self._check_deadline(deadline)
        if amount_in <= 0:
            raise ExternalCallFailure("router: insufficient input amount")
        amount_out = self.get_amounts_out(amount_in, route)[-1]
        if amount_out < min_out:
            raise ExternalCallFailure(
                "router: insufficient output amount",
                context={"amount_out": amount_out, "min_out": min_out},
            )
        self.ledger.transfer_from(route[0], sender, self.address, amount_in, sender=self.address)
        self.ledger.burn(route[0], self.address, amount_in)
        self.ledger.mint(route[-1], recipient, amount_out)
        return amount_out

    def _pool(self, asset_a: str, asset_b: str) -> tuple[str, int, int]:
        lp = lp_asset_id(asset_a, asset_b)
        return lp, self.ledger.balance_of(asset_a, lp), self.ledger.balance_of(asset_b, lp)

    def add_liquidity(
        self, asset_a, asset_b, amount_a, amount_b, min_a, min_b, recipient, deadline, *, sender,
    ) -> int:
        self._check_deadline(deadline)
        lp, reserve_a, reserve_b = self._pool(asset_a, asset_b)
        supply = self.ledger.total_supply(lp)

        if reserve_a == 0 and reserve_b == 0:
            used_a, used_b = amount_a, amount_b
        else:
            optimal_b = amount_a * reserve_b // reserve_a
            if optimal_b <= amount_b:
                used_a, used_b = amount_a, optimal_b
            else:
                used_a, used_b = amount_b * reserve_a // reserve_b, amount_b
        if used_a < min_a or used_b < min_b:
            raise ExternalCallFailure("router: insufficient pair amount")

        if supply == 0:
            liquidity = math.isqrt(used_a * used_b) - MINIMUM_LIQUIDITY
        else:
            liquidity = min(used_a * supply // reserve_a, used_b * supply // reserve_b)
        if liquidity <= 0:
            raise ExternalCallFailure("router: insufficient liquidity minted")

        self.ledger.transfer_from(asset_a, sender, lp, used_a, sender=self.address)
        self.ledger.transfer_from(asset_b, sender, lp, used_b, sender=self.address)
        if supply == 0:
            self.ledger.mint(lp, lp, MINIMUM_LIQUIDITY)
        self.ledger.mint(lp, recipient, liquidity)
        return liquidity

    def remove_liquidity(
        self, asset_a, asset_b, liquidity, min_a, min_b, recipient, deadline, *, sender,
    ) -> tuple[int, int]:
        self._check_deadline(deadline)
        lp, reserve_a, reserve_b = self._pool(asset_a, asset_b)
        supply = self.ledger.total_supply(lp)
        if liquidity <= 0 or supply == 0:
            raise ExternalCallFailure("router: insufficient liquidity burned")
        amount_a = liquidity * reserve_a // supply
        amount_b = liquidity * reserve_b // supply
        if amount_a < min_a or amount_b < min_b:
            raise ExternalCallFailure("router: insufficient output amount")

        self.ledger.transfer_from(lp, sender, self.address, liquidity, sender=self.address)
        self.ledger.burn(lp, self.address, liquidity)
        self.ledger.transfer(asset_a, recipient, amount_a, sender=lp)
        self.ledger.transfer(asset_b, recipient, amount_b, sender=lp)
        return amount_a, amount_b
