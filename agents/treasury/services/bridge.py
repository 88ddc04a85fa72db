"""
Liquidity Bridge — converts the stable coin into a vault's LP asset and back.

Provision:  stable --swap--> lp0 / lp1 --addLiquidity--> LP token
Unwind:     vault shares --withdraw--> LP token --removeLiquidity--> lp0 / lp1
            --swap along the reversed route--> stable

Every swap and liquidity call is sent with zero minimum amounts. That exposes
the treasury to slippage and sandwiching; it is the policy this engine
inherits and each call site logs it.
"""
import time
from typing import Callable, Sequence
from agents.treasury.config import MIN_AMOUNT_OUT, SWAP_DEADLINE_SECONDS
from agents.treasury.services.interfaces import Ledger, SwapRouter
from agents.treasury.services.registry import VaultEntry
import structlog

logger = structlog.get_logger()


def reverse_route(route: Sequence[str]) -> list[str]:
    """Return the hops of ``route`` in the opposite order as a new list."""
    return list(reversed(route))


class LiquidityBridge:
    def __init__(
        self,
        ledger: Ledger,
        address: str,
        stable_asset: str,
        clock: Callable[[], float] = time.time,
    ):
        self.ledger = ledger
        self.address = address
        self.stable_asset = stable_asset
        self.clock = clock

    def _deadline(self) -> int:
        return int(self.clock()) + SWAP_DEADLINE_SECONDS

    def _balance(self, asset: str) -> int:
        return self.ledger.balance_of(asset, self.address)

    def provision(self, entry: VaultEntry, amount: int) -> int:
        """Turn ``amount`` of stable coin into the vault's LP asset.

        Returns the treasury's LP balance after adding liquidity. That
        observed balance, not ``amount``, is what should be deposited.
        """
        strategy = self.ledger.vault(entry.vault_id).strategy()
        router_id = strategy.unirouter()
        router = self.ledger.router(router_id)
        lp0, lp1 = strategy.lp_token0(), strategy.lp_token1()

        half = amount // 2
        amount0 = self._acquire(router, router_id, lp0, strategy.output_to_lp0(), half)
        amount1 = self._acquire(router, router_id, lp1, strategy.output_to_lp1(), amount - half)

        self.ledger.approve(lp0, router_id, amount0, sender=self.address)
        self.ledger.approve(lp1, router_id, amount1, sender=self.address)
        router.add_liquidity(
            lp0, lp1, amount0, amount1,
            MIN_AMOUNT_OUT, MIN_AMOUNT_OUT,
            self.address, self._deadline(),
            sender=self.address,
        )
        liquidity = self._balance(entry.asset_id)
        logger.warning(
            "liquidity_provisioned_unguarded",
            vault=entry.vault_id,
            stable_in=amount,
            lp0_in=amount0,
            lp1_in=amount1,
            liquidity=liquidity,
            min_out=MIN_AMOUNT_OUT,
        )
        return liquidity

    def _acquire(self, router: SwapRouter, router_id: str, asset: str, route: Sequence[str], amount_in: int) -> int:
        if asset == self.stable_asset or amount_in == 0:
            return amount_in
        before = self._balance(asset)
        self.ledger.approve(self.stable_asset, router_id, amount_in, sender=self.address)
        router.swap_exact_tokens_for_tokens(
            amount_in, MIN_AMOUNT_OUT, list(route),
            self.address, self._deadline(),
            sender=self.address,
        )
        return self._balance(asset) - before

    def unwind(self, entry: VaultEntry, shares: int) -> int:
        """Withdraw ``shares`` and convert everything back to the stable coin.

        Returns the amount of stable coin the treasury gained.
        """
        vault = self.ledger.vault(entry.vault_id)
        strategy = vault.strategy()
        router_id = strategy.unirouter()
        router = self.ledger.router(router_id)
        lp0, lp1 = strategy.lp_token0(), strategy.lp_token1()
        stable_before = self._balance(self.stable_asset)

        vault.withdraw(shares, sender=self.address)

        liquidity = self._balance(entry.asset_id)
        self.ledger.approve(entry.asset_id, router_id, liquidity, sender=self.address)
        router.remove_liquidity(
            lp0, lp1, liquidity,
            MIN_AMOUNT_OUT, MIN_AMOUNT_OUT,
            self.address, self._deadline(),
            sender=self.address,
        )

        for asset, route in ((lp0, strategy.output_to_lp0()), (lp1, strategy.output_to_lp1())):
            if asset == self.stable_asset:
                continue
            held = self._balance(asset)
            if held == 0:
                continue
            self.ledger.approve(asset, router_id, held, sender=self.address)
            router.swap_exact_tokens_for_tokens(
                held, MIN_AMOUNT_OUT, reverse_route(route),
                self.address, self._deadline(),
                sender=self.address,
            )

        received = self._balance(self.stable_asset) - stable_before
        logger.warning(
            "liquidity_unwound_unguarded",
            vault=entry.vault_id,
            shares=shares,
            liquidity=liquidity,
            stable_out=received,
            min_out=MIN_AMOUNT_OUT,
        )
        return received
