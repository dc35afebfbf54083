"""Donation request: pending -> inprogress -> done, with side exits to expired and canceled.

donation_date is a calendar date (no time); donation_time is free text as entered by the requester.
donor_name / donor_email are set when a donor claims the request.
"""
from sqlalchemy import Column, Date, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from vein.core.clock import utcnow
from vein.db.base import Base


class DonationRequest(Base):
    __tablename__ = "donation_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requester_name = Column(String(128), nullable=True)
    requester_email = Column(String(255), nullable=False, index=True)
    recipient_name = Column(String(128), nullable=True)
    recipient_district = Column(String(64), nullable=True)
    recipient_upazila = Column(String(64), nullable=True)
    hospital_name = Column(String(255), nullable=True)
    full_address = Column(String(512), nullable=True)
    blood_group = Column(String(8), nullable=True)
    donation_date = Column(Date, nullable=False, index=True)
    donation_time = Column(String(32), nullable=True)
    request_message = Column(Text, nullable=True)
    donation_status = Column(String(16), nullable=False, default="pending", server_default="pending", index=True)
    donor_name = Column(String(128), nullable=True)
    donor_email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
