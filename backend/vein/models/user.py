"""Registered user. Email is the natural key; role/status only change through the admin path."""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from vein.core.clock import utcnow
from vein.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    avatar = Column(String(512), nullable=True)
    blood_group = Column(String(8), nullable=True, index=True)
    district = Column(String(64), nullable=True, index=True)
    upazila = Column(String(64), nullable=True)
    role = Column(String(16), nullable=False, default="donor", server_default="donor")  # donor | volunteer | admin
    status = Column(String(16), nullable=False, default="active", server_default="active")  # active | blocked
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
