"""
Treasury Tracker — persists engine events when a database is configured.

Sequence numbers are continuous across restarts: on startup ``resume_sequence``
starts a fresh engine's log after the highest stored ``seq`` for its address.
"""
from sqlalchemy import select, func
from shared.database import async_session
from agents.treasury.models.db import TreasuryEvent
from agents.treasury.services.engine import Treasury
import structlog

logger = structlog.get_logger()


async def _last_seq(db, address: str) -> int | None:
    result = await db.execute(
        select(func.max(TreasuryEvent.seq))
        .where(TreasuryEvent.treasury_address == address)
    )
    return result.scalar()


async def resume_sequence(treasury: Treasury, session_factory=None) -> int:
    """Continue the stored sequence. Must run before the engine emits anything."""
    session_factory = session_factory or async_session
    if session_factory is None:
        return treasury.seq_start
    if treasury.events:
        raise RuntimeError("Cannot resume the event sequence after events were emitted")

    async with session_factory() as db:
        last_seq = await _last_seq(db, treasury.address)

    treasury.seq_start = 0 if last_seq is None else last_seq + 1
    logger.info("treasury_sequence_resumed", address=treasury.address, seq_start=treasury.seq_start)
    return treasury.seq_start


async def record_events(treasury: Treasury, session_factory=None) -> int:
    """Store events not yet persisted for this treasury. Returns how many were written."""
    session_factory = session_factory or async_session
    if session_factory is None:
        return 0

    async with session_factory() as db:
        last_seq = await _last_seq(db, treasury.address)
        pending = [e for e in treasury.events if last_seq is None or e.seq > last_seq]
        for event in pending:
            db.add(TreasuryEvent(
                treasury_address=treasury.address,
                seq=event.seq,
                name=event.name,
                data=event.data,
                emitted_at=event.emitted_at,
            ))
        await db.commit()

    if pending:
        logger.info("treasury_events_recorded", count=len(pending), last_seq=pending[-1].seq)
    return len(pending)
