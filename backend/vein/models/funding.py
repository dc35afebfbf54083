"""Funding contribution. Only aggregated (sum of amount) outside of plain listing."""
from sqlalchemy import Column, DateTime, Integer, Numeric, String
from sqlalchemy.sql import func

from vein.core.clock import utcnow
from vein.db.base import Base


class Funding(Base):
    __tablename__ = "fundings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    transaction_id = Column(String(128), nullable=True)  # payment intent id reported by the client
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
