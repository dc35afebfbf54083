"""
Funding contributions and the admin dashboard aggregates.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from vein.core.constants import ROLE_DONOR
from vein.core.errors import ValidationError
from vein.models.donation_request import DonationRequest
from vein.models.funding import Funding
from vein.models.user import User
from vein.services import notification_service, recipient_matcher

logger = logging.getLogger(__name__)


def to_dict(row: Funding) -> dict[str, Any]:
    return {
        "_id": row.id,
        "id": row.id,
        "name": row.name,
        "email": row.email,
        "amount": float(row.amount) if row.amount is not None else None,
        "transactionId": row.transaction_id,
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }


def parse_amount(raw: Any) -> Decimal:
    """Positive decimal with two places. Raises ValidationError otherwise."""
    try:
        amount = Decimal(str(raw))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("amount must be a number")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("amount must be greater than zero")
    return amount.quantize(Decimal("0.01"))


def record_funding(db: Session, fields: dict[str, Any]) -> Funding:
    row = Funding(
        name=fields.get("name"),
        email=fields.get("email"),
        amount=parse_amount(fields.get("amount")),
        transaction_id=fields.get("transaction_id"),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Funding %s recorded: %s from %s", row.id, row.amount, row.email)
    return row


def broadcast_funding(db: Session, funding_id: int) -> int:
    """Tell active admins and volunteers about a new contribution. Never raises."""
    try:
        row = db.get(Funding, funding_id)
        if row is None:
            return 0
        recipients = recipient_matcher.recipients_for_staff(db)
        message = f"New funding of {row.amount} received from {row.name or row.email or 'a supporter'}"
    except Exception as e:
        logger.exception("Funding fan-out for %s skipped: %s", funding_id, e)
        db.rollback()
        return 0
    return notification_service.fan_out(db, recipients, message, "/funding")


def list_fundings(db: Session) -> list[Funding]:
    return db.query(Funding).order_by(Funding.created_at.desc(), Funding.id.desc()).all()


def admin_stats(db: Session) -> dict[str, Any]:
    total_funding = db.query(func.coalesce(func.sum(Funding.amount), 0)).scalar()
    return {
        "totalUsers": db.query(User).count(),
        "totalDonors": db.query(User).filter(func.lower(User.role) == ROLE_DONOR).count(),
        "totalRequests": db.query(DonationRequest).count(),
        "totalFunding": float(total_funding or 0),
    }
