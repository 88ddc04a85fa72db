"""
Treasury REST API routes.

Engine calls serialize on the treasury lock and RPC reads block, so handlers
run them in the threadpool rather than on the event loop.
"""
from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from shared.auth import verify_api_key
from agents.treasury.errors import ErrorCode, TreasuryError
from agents.treasury.models.schemas import (
    VaultCreate, AllocationUpdate, DepositRequest, DistributeRequest,
    WithdrawRequest, SweepRequest, VaultResponse, AllocationResponse,
    DistributionResponse, WithdrawResponse, YieldResponse, YieldReportRow,
    EventResponse, VaultInspection, HealthResponse,
)
from agents.treasury.services.allocator import DistributionResult
from agents.treasury.services.engine import Treasury
from agents.treasury.services.tracker import record_events

router = APIRouter(prefix="/api/v1/treasury", tags=["treasury"])

ERROR_STATUS = {
    ErrorCode.INVALID_AMOUNT: 400,
    ErrorCode.INVALID_VAULT_REFERENCE: 404,
    ErrorCode.NO_ALLOCATION: 409,
    ErrorCode.INSUFFICIENT_BALANCE: 409,
    ErrorCode.DIVISION_BY_ZERO: 409,
    ErrorCode.EXTERNAL_CALL_FAILURE: 502,
    ErrorCode.UNAUTHORIZED: 403,
}


async def treasury_error_handler(request: Request, exc: TreasuryError) -> JSONResponse:
    return JSONResponse(status_code=ERROR_STATUS.get(exc.code, 400), content=exc.to_dict())


def get_treasury(request: Request) -> Treasury:
    return request.app.state.treasury


def _vault_response(treasury: Treasury, index: int) -> VaultResponse:
    entry = treasury.vault(index)
    return VaultResponse(
        index=index,
        vault_id=entry.vault_id,
        asset_id=entry.asset_id,
        weight=entry.weight,
        principal=entry.principal,
    )


def _distribution_response(result: DistributionResult) -> DistributionResponse:
    return DistributionResponse(
        amount=result.amount,
        distributed=result.distributed,
        remainder=result.remainder,
        allocations=[
            AllocationResponse(
                index=a.index,
                vault_id=a.vault_id,
                asset_id=a.asset_id,
                share=a.share,
                deposited=a.deposited,
            )
            for a in result.allocations
        ],
    )


@router.get("/health", response_model=HealthResponse)
async def health(treasury: Treasury = Depends(get_treasury)):
    return HealthResponse(
        vaults=len(treasury.registry),
        total_weight=treasury.total_weight,
        stable_balance=treasury.stable_balance,
    )


@router.get("/vaults", response_model=list[VaultResponse])
async def list_vaults(treasury: Treasury = Depends(get_treasury)):
    return [_vault_response(treasury, i) for i in range(len(treasury.registry))]


@router.post("/vaults", response_model=VaultResponse)
async def add_vault(
    body: VaultCreate,
    treasury: Treasury = Depends(get_treasury),
    _key: bool = Depends(verify_api_key),
):
    index = await run_in_threadpool(treasury.add_vault, body.vault_id, body.weight, caller=treasury.owner)
    await record_events(treasury)
    return _vault_response(treasury, index)


@router.put("/vaults/{index}", response_model=VaultResponse)
async def update_allocation(
    index: int,
    body: AllocationUpdate,
    treasury: Treasury = Depends(get_treasury),
    _key: bool = Depends(verify_api_key),
):
    await run_in_threadpool(treasury.update_allocation, index, body.weight, caller=treasury.owner)
    await record_events(treasury)
    return _vault_response(treasury, index)


@router.post("/deposit")
async def deposit(
    body: DepositRequest,
    treasury: Treasury = Depends(get_treasury),
):
    await run_in_threadpool(treasury.deposit, body.amount, sender=body.sender)
    await record_events(treasury)
    return {"status": "deposited", "amount": body.amount, "stable_balance": treasury.stable_balance}


@router.get("/distribute/preview", response_model=DistributionResponse)
async def preview_distribution(
    amount: int = Query(..., gt=0),
    treasury: Treasury = Depends(get_treasury),
):
    """Share plan for an amount, without moving funds."""
    return _distribution_response(treasury.preview(amount))


@router.post("/distribute", response_model=DistributionResponse)
async def distribute(
    body: DistributeRequest,
    treasury: Treasury = Depends(get_treasury),
    _key: bool = Depends(verify_api_key),
):
    result = await run_in_threadpool(treasury.distribute, body.amount, caller=treasury.owner)
    await record_events(treasury)
    return _distribution_response(result)


@router.post("/vaults/{index}/withdraw", response_model=WithdrawResponse)
async def withdraw(
    index: int,
    body: WithdrawRequest,
    treasury: Treasury = Depends(get_treasury),
    _key: bool = Depends(verify_api_key),
):
    received = await run_in_threadpool(treasury.withdraw, index, body.shares, caller=treasury.owner)
    await record_events(treasury)
    return WithdrawResponse(index=index, shares=body.shares, received=received)


@router.get("/vaults/{index}/yield", response_model=YieldResponse)
async def vault_yield(index: int, treasury: Treasury = Depends(get_treasury)):
    value = await run_in_threadpool(treasury.calculate_yield, index)
    entry = treasury.vault(index)
    return YieldResponse(index=index, vault_id=entry.vault_id, principal=entry.principal, yield_scaled=value)


@router.get("/yield", response_model=list[YieldReportRow])
async def yield_report(treasury: Treasury = Depends(get_treasury)):
    return [
        YieldReportRow(yield_scaled=row.pop("yield"), **row)
        for row in await run_in_threadpool(treasury.yield_report)
    ]


@router.post("/sweep")
async def sweep(
    body: SweepRequest,
    treasury: Treasury = Depends(get_treasury),
    _key: bool = Depends(verify_api_key),
):
    await run_in_threadpool(treasury.sweep_asset, body.asset_id, body.amount, caller=treasury.owner)
    await record_events(treasury)
    return {"status": "swept", "asset_id": body.asset_id, "amount": body.amount, "recipient": treasury.owner}


@router.get("/events", response_model=list[EventResponse])
async def list_events(
    name: str | None = None,
    limit: int = Query(50, le=500),
    treasury: Treasury = Depends(get_treasury),
):
    events = [e for e in treasury.events if name is None or e.name == name]
    return [
        EventResponse(seq=e.seq, name=e.name, data=e.data, emitted_at=e.emitted_at)
        for e in reversed(events[-limit:])
    ]


@router.get("/inspect/{address}", response_model=VaultInspection)
async def inspect(
    address: str,
    _key: bool = Depends(verify_api_key),
):
    """Read a live vault's want asset and LP routes from the configured RPC."""
    from agents.treasury.services.chain import inspect_vault
    return await run_in_threadpool(inspect_vault, address)
