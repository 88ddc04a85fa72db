"""
Treasury Engine — the administrative surface over registry, allocator,
liquidity bridge and yield accountant.

Flow:
  deposit()        stable coin moves into the treasury, nothing is allocated
  distribute()     allocator walks the registry in index order and funds vaults
  withdraw()       vault shares are redeemed, LP positions unwound to stable
  calculate_yield  read-only yield figure per vault

Every mutating call is one unit of work: calls are serialized on a re-entrant
lock, and if anything raises, the registry, the event log, the owner and the
ledger (when it can snapshot itself) are put back to where they were before
the call. The exception then propagates unchanged. Nothing is retried.
"""
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable
from shared.config import settings
from agents.treasury.config import ZERO_ADDRESS
from agents.treasury.errors import (
    ExternalCallFailure,
    InsufficientBalance,
    InvalidAmount,
    InvalidVaultReference,
    Unauthorized,
)
from agents.treasury.services.allocator import Allocator, DistributionResult
from agents.treasury.services.bridge import LiquidityBridge
from agents.treasury.services.interfaces import Ledger, Transactional
from agents.treasury.services.registry import VaultEntry, VaultRegistry
from agents.treasury.services.yield_accountant import YieldAccountant
import structlog

logger = structlog.get_logger()


@dataclass
class TreasuryEvent:
    seq: int
    name: str
    data: dict
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Treasury:
    def __init__(
        self,
        ledger: Ledger,
        stable_asset: str,
        owner: str = settings.TREASURY_OWNER,
        address: str = settings.TREASURY_ADDRESS,
        clock: Callable[[], float] = time.time,
    ):
        self.ledger = ledger
        self.stable_asset = stable_asset
        self.owner = owner
        self.address = address
        self.registry = VaultRegistry()
        self.bridge = LiquidityBridge(ledger, address, stable_asset, clock=clock)
        self.allocator = Allocator(ledger, self.registry, self.bridge)
        self.accountant = YieldAccountant(ledger, self.registry, address)
        self.events: list[TreasuryEvent] = []
        self.seq_start = 0  # first sequence number of this process's log
        self._lock = threading.RLock()
        self._depth = 0

    # ---------------------------------------------------------------- helpers

    @contextmanager
    def atomic(self, operation: str):
        """All-or-nothing boundary around one public operation."""
        with self._lock:
            if self._depth:
                yield
                return

            registry_state = self.registry.snapshot()
            event_count = len(self.events)
            owner = self.owner
            ledger_state = self.ledger.snapshot() if isinstance(self.ledger, Transactional) else None

            self._depth += 1
            try:
                yield
            except Exception as e:
                self.registry.restore(registry_state)
                del self.events[event_count:]
                self.owner = owner
                if ledger_state is not None:
                    self.ledger.restore(ledger_state)
                logger.warning("operation_rolled_back", operation=operation, error=str(e))
                raise
            finally:
                self._depth -= 1

    def _emit(self, name: str, **data):
        self.events.append(TreasuryEvent(seq=self.next_seq, name=name, data=data))
        logger.info(name, **data)

    def _only_owner(self, caller: str):
        if caller != self.owner:
            raise Unauthorized("caller is not the owner", context={"caller": caller})

    def _resolve_asset(self, vault_id: str) -> str:
        try:
            asset = self.ledger.vault(vault_id).want()
        except ExternalCallFailure as e:
            raise InvalidVaultReference(
                "could not resolve vault asset", context={"vault_id": vault_id}
            ) from e
        if not asset or asset.lower() == ZERO_ADDRESS:
            raise InvalidVaultReference("vault asset is null", context={"vault_id": vault_id})
        return asset

    # ------------------------------------------------------------------ views

    @property
    def next_seq(self) -> int:
        return self.seq_start + len(self.events)

    @property
    def stable_balance(self) -> int:
        return self.ledger.balance_of(self.stable_asset, self.address)

    @property
    def total_weight(self) -> int:
        return self.registry.total_weight

    def vaults(self) -> list[VaultEntry]:
        return list(self.registry)

    def vault(self, index: int) -> VaultEntry:
        return self.registry.get(index)

    def preview(self, amount: int) -> DistributionResult:
        return self.allocator.plan(amount)

    def calculate_yield(self, index: int) -> int:
        with self._lock:
            return self.accountant.calculate_yield(index)

    def yield_report(self) -> list[dict]:
        with self._lock:
            return self.accountant.report()

    # ------------------------------------------------------------- operations

    def deposit(self, amount: int, sender: str) -> None:
        with self.atomic("deposit"):
            if amount <= 0:
                raise InvalidAmount("deposit amount must be positive", context={"amount": amount})
            self.ledger.transfer_from(self.stable_asset, sender, self.address, amount, sender=self.address)
            self._emit("deposit_received", sender=sender, amount=amount)

    def add_vault(self, vault_id: str, weight: int, caller: str) -> int:
        with self.atomic("add_vault"):
            self._only_owner(caller)
            asset_id = self._resolve_asset(vault_id)
            index = self.registry.add(vault_id, asset_id, weight)
            self._emit(
                "vault_added",
                index=index,
                vault_id=vault_id,
                asset_id=asset_id,
                weight=weight,
                total_weight=self.registry.total_weight,
            )
            return index

    def update_allocation(self, index: int, weight: int, caller: str) -> None:
        with self.atomic("update_allocation"):
            self._only_owner(caller)
            old = self.registry.update(index, weight)
            self._emit(
                "allocation_updated",
                index=index,
                old_weight=old,
                new_weight=weight,
                total_weight=self.registry.total_weight,
            )

    def distribute(self, amount: int, caller: str) -> DistributionResult:
        with self.atomic("distribute"):
            self._only_owner(caller)
            result = self.allocator.distribute(amount)
            self._emit(
                "distribution_completed",
                amount=amount,
                distributed=result.distributed,
                remainder=result.remainder,
                vaults=len(result.allocations),
            )
            return result

    def withdraw(self, index: int, shares: int, caller: str) -> int:
        """Redeem ``shares`` from vault ``index``; returns stable coin received.

        Principal is left untouched.
        """
        with self.atomic("withdraw"):
            self._only_owner(caller)
            if shares <= 0:
                raise InvalidAmount("shares must be positive", context={"shares": shares})
            entry = self.registry.get(index)
            if entry.asset_id == self.stable_asset:
                before = self.stable_balance
                self.ledger.vault(entry.vault_id).withdraw(shares, sender=self.address)
                received = self.stable_balance - before
            else:
                received = self.bridge.unwind(entry, shares)
            self._emit("withdrawn", index=index, shares=shares, received=received)
            return received

    def sweep_asset(self, asset_id: str, amount: int, caller: str) -> None:
        """Emergency transfer of any held asset to the owner."""
        with self.atomic("sweep_asset"):
            self._only_owner(caller)
            if amount <= 0:
                raise InvalidAmount("sweep amount must be positive", context={"amount": amount})
            held = self.ledger.balance_of(asset_id, self.address)
            if amount > held:
                raise InsufficientBalance(
                    "sweep exceeds held balance",
                    context={"asset_id": asset_id, "amount": amount, "held": held},
                )
            self.ledger.transfer(asset_id, self.owner, amount, sender=self.address)
            self._emit("asset_swept", asset_id=asset_id, amount=amount, recipient=self.owner)

    def transfer_ownership(self, new_owner: str, caller: str) -> None:
        with self.atomic("transfer_ownership"):
            self._only_owner(caller)
            if not new_owner or new_owner.lower() == ZERO_ADDRESS:
                raise Unauthorized("new owner is the zero address")
            previous, self.owner = self.owner, new_owner
            self._emit("ownership_transferred", previous_owner=previous, new_owner=new_owner)
