"""
Yield Accountant — current vault value against recorded principal.

Principal is cumulative and is not reduced by withdrawals, so the figure for a
vault that has been partially withdrawn understates its yield.
"""
from agents.treasury.config import SHARE_SCALE, YIELD_SCALE
from agents.treasury.errors import DivisionByZero
from agents.treasury.services.interfaces import Ledger
from agents.treasury.services.registry import VaultRegistry


def _div_toward_zero(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


class YieldAccountant:
    def __init__(self, ledger: Ledger, registry: VaultRegistry, address: str):
        self.ledger = ledger
        self.registry = registry
        self.address = address

    def current_value(self, index: int) -> int:
        entry = self.registry.get(index)
        vault = self.ledger.vault(entry.vault_id)
        return vault.balance_of(self.address) * vault.price_per_share() // SHARE_SCALE

    def calculate_yield(self, index: int) -> int:
        """Signed yield scaled by YIELD_SCALE, truncated toward zero."""
        entry = self.registry.get(index)
        if entry.principal == 0:
            raise DivisionByZero("vault has no recorded principal", context={"index": index})
        value = self.current_value(index)
        return _div_toward_zero((value - entry.principal) * YIELD_SCALE, entry.principal)

    def report(self) -> list[dict]:
        rows = []
        for index, entry in enumerate(self.registry):
            vault = self.ledger.vault(entry.vault_id)
            shares = vault.balance_of(self.address)
            price = vault.price_per_share()
            rows.append({
                "index": index,
                "vault_id": entry.vault_id,
                "asset_id": entry.asset_id,
                "weight": entry.weight,
                "principal": entry.principal,
                "shares": shares,
                "price_per_share": price,
                "current_value": shares * price // SHARE_SCALE,
                "yield": self.calculate_yield(index) if entry.principal else None,
            })
        return rows
