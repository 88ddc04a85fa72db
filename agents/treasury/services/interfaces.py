"""
Collaborator interfaces consumed by the treasury engine.

Calls that act on behalf of the treasury carry an explicit ``sender`` (the
acting address); read calls do not.
"""
from typing import Protocol, Sequence, runtime_checkable


class Strategy(Protocol):
    def unirouter(self) -> str: ...
    def lp_token0(self) -> str: ...
    def lp_token1(self) -> str: ...
    def output_to_lp0(self) -> list[str]: ...
    def output_to_lp1(self) -> list[str]: ...


class Vault(Protocol):
    def want(self) -> str | None: ...
    def deposit(self, amount: int, *, sender: str) -> None: ...
    def withdraw(self, shares: int, *, sender: str) -> None: ...
    def balance_of(self, holder: str) -> int: ...
    def price_per_share(self) -> int: ...
    def strategy(self) -> Strategy: ...


class SwapRouter(Protocol):
    def swap_exact_tokens_for_tokens(
        self,
        amount_in: int,
        min_out: int,
        route: Sequence[str],
        recipient: str,
        deadline: int,
        *,
        sender: str,
    ) -> int: ...

    def add_liquidity(
        self,
        asset_a: str,
        asset_b: str,
        amount_a: int,
        amount_b: int,
        min_a: int,
        min_b: int,
        recipient: str,
        deadline: int,
        *,
        sender: str,
    ) -> int: ...

    def remove_liquidity(
        self,
        asset_a: str,
        asset_b: str,
        liquidity: int,
        min_a: int,
        min_b: int,
        recipient: str,
        deadline: int,
        *,
        sender: str,
    ) -> tuple[int, int]: ...


class Ledger(Protocol):
    """Token balances plus lookup of the vaults and routers living on it."""

    def balance_of(self, asset: str, holder: str) -> int: ...
    def transfer(self, asset: str, recipient: str, amount: int, *, sender: str) -> None: ...
    def transfer_from(self, asset: str, owner: str, recipient: str, amount: int, *, sender: str) -> None: ...
    def approve(self, asset: str, spender: str, amount: int, *, sender: str) -> None: ...
    def vault(self, vault_id: str) -> Vault: ...
    def router(self, router_id: str) -> SwapRouter: ...


@runtime_checkable
class Transactional(Protocol):
    """Collaborators whose state can be captured and put back."""

    def snapshot(self) -> object: ...
    def restore(self, state: object) -> None: ...
