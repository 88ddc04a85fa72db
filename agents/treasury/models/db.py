from sqlalchemy import (
    Column, Integer, String, DateTime, Index
)
from sqlalchemy.types import JSON
from shared.models.base import Base


class TreasuryEvent(Base):
    __tablename__ = "treasury_events"

    id = Column(Integer, primary_key=True)
    treasury_address = Column(String(66), nullable=False)
    seq = Column(Integer, nullable=False)  # position in the engine's event log
    name = Column(String(50), nullable=False)  # 'vault_added', 'allocation_updated', 'deposit_received', ...
    data = Column(JSON, default={})
    emitted_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_treasury_events_name", "name"),
        Index("idx_treasury_events_seq", "treasury_address", "seq", unique=True),
    )
