"""
Allocator — splits an amount of stable coin across the registry by weight.

Shares are floored: ``amount * weight // total_weight``. The rounding
remainder (fewer units than there are weighted vaults) is never deposited and
stays in the treasury's stable balance.
"""
from dataclasses import dataclass, field
from typing import Iterable
from agents.treasury.errors import InvalidAmount, NoAllocation
from agents.treasury.services.bridge import LiquidityBridge
from agents.treasury.services.interfaces import Ledger
from agents.treasury.services.registry import VaultRegistry
import structlog

logger = structlog.get_logger()


@dataclass
class Allocation:
    index: int
    vault_id: str
    asset_id: str
    share: int
    deposited: int = 0


@dataclass
class DistributionResult:
    amount: int
    allocations: list[Allocation] = field(default_factory=list)

    @property
    def distributed(self) -> int:
        return sum(a.share for a in self.allocations)

    @property
    def remainder(self) -> int:
        return self.amount - self.distributed


def compute_shares(amount: int, weights: Iterable[int], total_weight: int) -> list[int]:
    """Floor-rounded share per weight; zero weights get zero."""
    if amount <= 0:
        raise InvalidAmount("amount must be positive", context={"amount": amount})
    if total_weight <= 0:
        raise NoAllocation("no allocation weights configured")
    return [amount * w // total_weight if w else 0 for w in weights]


class Allocator:
    def __init__(self, ledger: Ledger, registry: VaultRegistry, bridge: LiquidityBridge):
        self.ledger = ledger
        self.registry = registry
        self.bridge = bridge

    @property
    def address(self) -> str:
        return self.bridge.address

    @property
    def stable_asset(self) -> str:
        return self.bridge.stable_asset

    def plan(self, amount: int) -> DistributionResult:
        """Share plan for ``amount`` without touching any collaborator."""
        entries = list(self.registry)
        shares = compute_shares(amount, (e.weight for e in entries), self.registry.total_weight)
        result = DistributionResult(amount=amount)
        for index, (entry, share) in enumerate(zip(entries, shares)):
            if entry.weight == 0:
                continue
            result.allocations.append(
                Allocation(index=index, vault_id=entry.vault_id, asset_id=entry.asset_id, share=share)
            )
        return result

    def distribute(self, amount: int) -> DistributionResult:
        result = self.plan(amount)

        # Sequential: every LP conversion draws on the same stable balance.
        for allocation in result.allocations:
            if allocation.share == 0:
                # floored to nothing; the unit stays in the stable balance
                continue
            entry = self.registry.get(allocation.index)
            vault = self.ledger.vault(entry.vault_id)

            if entry.asset_id == self.stable_asset:
                deposit_amount = allocation.share
            else:
                deposit_amount = self.bridge.provision(entry, allocation.share)

            self.ledger.approve(entry.asset_id, entry.vault_id, deposit_amount, sender=self.address)
            vault.deposit(deposit_amount, sender=self.address)
            self.registry.add_principal(allocation.index, deposit_amount)
            allocation.deposited = deposit_amount

            logger.info(
                "vault_funded",
                index=allocation.index,
                vault=entry.vault_id,
                share=allocation.share,
                deposited=deposit_amount,
            )

        return result
