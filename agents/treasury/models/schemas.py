from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class VaultCreate(BaseModel):
    vault_id: str
    weight: int = Field(ge=0)


class AllocationUpdate(BaseModel):
    weight: int = Field(ge=0)


class DepositRequest(BaseModel):
    sender: str
    amount: int


class DistributeRequest(BaseModel):
    amount: int


class WithdrawRequest(BaseModel):
    shares: int


class SweepRequest(BaseModel):
    asset_id: str
    amount: int


class VaultResponse(BaseModel):
    index: int
    vault_id: str
    asset_id: str
    weight: int
    principal: int


class AllocationResponse(BaseModel):
    index: int
    vault_id: str
    asset_id: str
    share: int
    deposited: int = 0


class DistributionResponse(BaseModel):
    amount: int
    distributed: int
    remainder: int
    allocations: list[AllocationResponse] = []


class WithdrawResponse(BaseModel):
    index: int
    shares: int
    received: int


class YieldResponse(BaseModel):
    index: int
    vault_id: str
    principal: int
    yield_scaled: int


class YieldReportRow(BaseModel):
    index: int
    vault_id: str
    asset_id: str
    weight: int
    principal: int
    shares: int
    price_per_share: int
    current_value: int
    yield_scaled: Optional[int] = None


class EventResponse(BaseModel):
    seq: int
    name: str
    data: dict
    emitted_at: datetime


class VaultInspection(BaseModel):
    vault: str
    want: str
    price_per_share: int
    strategy: str
    router: str
    lp_token0: Optional[str] = None
    lp_token1: Optional[str] = None
    output_to_lp0: list[str] = []
    output_to_lp1: list[str] = []


class HealthResponse(BaseModel):
    status: str = "ok"
    agent: str = "treasury"
    version: str = "1.0.0"
    vaults: int = 0
    total_weight: int = 0
    stable_balance: int = 0
