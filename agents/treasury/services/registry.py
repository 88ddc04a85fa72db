"""
Vault Registry — ordered vault entries and the running total of their weights.
"""
from dataclasses import dataclass, replace
from agents.treasury.errors import InvalidAmount, InvalidVaultReference


@dataclass
class VaultEntry:
    vault_id: str
    asset_id: str
    weight: int
    principal: int = 0


class VaultRegistry:
    """Append-only list of vaults. Indices never change once assigned."""

    def __init__(self):
        self._entries: list[VaultEntry] = []
        self.total_weight = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def add(self, vault_id: str, asset_id: str, weight: int) -> int:
        _check_weight(weight)
        self._entries.append(VaultEntry(vault_id=vault_id, asset_id=asset_id, weight=weight))
        self.total_weight += weight
        return len(self._entries) - 1

    def get(self, index: int) -> VaultEntry:
        if not 0 <= index < len(self._entries):
            raise InvalidVaultReference(
                "vault index out of bounds",
                context={"index": index, "count": len(self._entries)},
            )
        return self._entries[index]

    def update(self, index: int, weight: int) -> int:
        """Set a new weight and return the old one."""
        _check_weight(weight)
        entry = self.get(index)
        old = entry.weight
        self.total_weight -= old
        entry.weight = weight
        self.total_weight += weight
        return old

    def add_principal(self, index: int, amount: int) -> None:
        self.get(index).principal += amount

    def snapshot(self) -> tuple[list[VaultEntry], int]:
        return [replace(e) for e in self._entries], self.total_weight

    def restore(self, state: tuple[list[VaultEntry], int]) -> None:
        entries, total = state
        self._entries = [replace(e) for e in entries]
        self.total_weight = total


def _check_weight(weight: int):
    if not isinstance(weight, int) or isinstance(weight, bool) or weight < 0:
        raise InvalidAmount("weight must be a non-negative integer", context={"weight": weight})
