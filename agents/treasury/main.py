"""
Treasury Agent — FastAPI application (port 8012)

Collects stable-coin deposits, allocates them across registered yield vaults
by owner-configured weights, unwinds LP positions on withdrawal, and reports
per-vault yield. Runs against a simulated ledger for backtesting.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from shared.config import settings
from shared.utils.logging import setup_logging
from agents.treasury.errors import TreasuryError
from agents.treasury.routes.api import router, treasury_error_handler
from agents.treasury.services.bootstrap import deploy_treasury, load_fixture_file
from agents.treasury.services.tracker import resume_sequence
import structlog

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("treasury_starting", network=settings.NETWORK)

    treasury = deploy_treasury()
    await resume_sequence(treasury)
    if settings.TREASURY_FIXTURES:
        load_fixture_file(treasury, settings.TREASURY_FIXTURES)
    app.state.treasury = treasury

    yield

    logger.info("treasury_stopped", events=len(treasury.events))


app = FastAPI(
    title="Treasury",
    description="Weighted allocation of a stable-coin treasury across yield vaults, "
                "with LP provisioning, unwinding and yield accounting.",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)
app.add_exception_handler(TreasuryError, treasury_error_handler)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("agents.treasury.main:app", host="0.0.0.0", port=8012, reload=True)
