"""
Donation request lifecycle.

States: pending -> inprogress -> done; pending -> expired (date passed); pending|inprogress -> canceled.
Expiry is lazy: list calls sweep every stale pending request first, get_one/update expire the single
record they touch. There is no scheduler dependency; the optional background sweep in
vein.scheduler runs the same sweep_expired.

Fan-out (new request) and the targeted status notification run after the primary commit and never
affect its outcome.
"""
import logging
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from vein.core.clock import today as current_date
from vein.core.constants import (
    ALLOWED_STATUS_TRANSITIONS,
    DONATION_STATUSES,
    ROLE_ADMIN,
    STATUS_EXPIRED,
    STATUS_INPROGRESS,
    STATUS_PENDING,
)
from vein.core.errors import Forbidden, ValidationError
from vein.models.donation_request import DonationRequest
from vein.services import notification_service, recipient_matcher, user_service
from vein.services.auth_service import require_self

logger = logging.getLogger(__name__)

# Columns a client may set on create/update (identity, owner and created_at are not among them)
EDITABLE_FIELDS = (
    "requester_name",
    "recipient_name",
    "recipient_district",
    "recipient_upazila",
    "hospital_name",
    "full_address",
    "blood_group",
    "donation_date",
    "donation_time",
    "request_message",
    "donation_status",
    "donor_name",
    "donor_email",
)
PROTECTED_FIELDS = ("id", "_id", "created_at", "requester_email")


def to_dict(row: DonationRequest) -> dict[str, Any]:
    return {
        "_id": row.id,
        "id": row.id,
        "requesterName": row.requester_name,
        "requesterEmail": row.requester_email,
        "recipientName": row.recipient_name,
        "recipientDistrict": row.recipient_district,
        "recipientUpazila": row.recipient_upazila,
        "hospitalName": row.hospital_name,
        "fullAddress": row.full_address,
        "bloodGroup": row.blood_group,
        "donationDate": row.donation_date.isoformat() if row.donation_date else None,
        "donationTime": row.donation_time,
        "requestMessage": row.request_message,
        "donationStatus": row.donation_status,
        "donorName": row.donor_name,
        "donorEmail": row.donor_email,
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }


def is_past_due(donation_date: date | None, today: date) -> bool:
    return donation_date is not None and donation_date < today


# --- Expiry ---


def sweep_expired(db: Session, owner_email: str | None = None, today: date | None = None) -> int:
    """Bulk pending -> expired for every request dated before today. Idempotent. Returns rows changed."""
    today = today or current_date()
    q = db.query(DonationRequest).filter(
        DonationRequest.donation_status == STATUS_PENDING,
        DonationRequest.donation_date < today,
    )
    if owner_email is not None:
        q = q.filter(DonationRequest.requester_email == owner_email)
    updated = q.update({DonationRequest.donation_status: STATUS_EXPIRED}, synchronize_session=False)
    db.commit()
    if updated:
        logger.info("Expiry sweep: %s pending request(s) expired (owner=%s)", updated, owner_email or "*")
    return updated


def _expire_if_stale(db: Session, row: DonationRequest, today: date) -> None:
    if row.donation_status == STATUS_PENDING and is_past_due(row.donation_date, today):
        row.donation_status = STATUS_EXPIRED
        db.commit()
        logger.info("Lazy expiry: request %s expired", row.id)


# --- Create ---


def create_request(db: Session, requester_email: str, fields: dict[str, Any], today: date | None = None) -> DonationRequest:
    """Persist a new pending request owned by requester_email. Past dates are rejected before any write."""
    today = today or current_date()
    donation_date = fields.get("donation_date")
    if donation_date is None:
        raise ValidationError("donationDate is required")
    if is_past_due(donation_date, today):
        raise ValidationError("Donation date cannot be in the past")
    values = {k: fields[k] for k in EDITABLE_FIELDS if k in fields}
    values["donation_status"] = STATUS_PENDING
    values.pop("donor_name", None)
    values.pop("donor_email", None)
    row = DonationRequest(requester_email=requester_email, **values)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Donation request %s created by %s (%s, %s)", row.id, requester_email, row.blood_group, row.recipient_district)
    return row


def new_request_message(row: DonationRequest) -> str:
    when = row.donation_date.isoformat() if row.donation_date else "soon"
    return f"Urgent: {row.blood_group} blood needed in {row.recipient_district} on {when}"


def broadcast_new_request(db: Session, request_id: int) -> int:
    """Notify matching donors, admins and volunteers about a new request. Never raises."""
    try:
        row = db.get(DonationRequest, request_id)
        if row is None:
            return 0
        recipients = recipient_matcher.recipients_for_request(db, row.blood_group, row.recipient_district)
        message = new_request_message(row)
    except Exception as e:
        logger.exception("Fan-out for request %s skipped: %s", request_id, e)
        db.rollback()
        return 0
    return notification_service.fan_out(db, recipients, message, f"/donation-requests/{request_id}")


# --- Read ---


def list_all(db: Session, status: str | None = None, today: date | None = None) -> list[DonationRequest]:
    sweep_expired(db, today=today)
    q = db.query(DonationRequest)
    if status:
        q = q.filter(DonationRequest.donation_status == status)
    return q.order_by(DonationRequest.created_at.desc(), DonationRequest.id.desc()).all()


def list_mine(
    db: Session,
    owner_email: str | None,
    caller_email: str,
    status: str | None = None,
    limit: int | None = None,
    today: date | None = None,
) -> list[DonationRequest]:
    """Owner's requests, newest first. Only the owner may list them."""
    require_self(caller_email, owner_email)
    sweep_expired(db, owner_email=owner_email, today=today)
    q = db.query(DonationRequest).filter(DonationRequest.requester_email == owner_email)
    if status:
        q = q.filter(DonationRequest.donation_status == status)
    q = q.order_by(DonationRequest.created_at.desc(), DonationRequest.id.desc())
    if limit:
        q = q.limit(limit)
    return q.all()


def get_one(db: Session, request_id: int, today: date | None = None) -> DonationRequest | None:
    """Fetch by id; a stale pending record is expired in place before it is returned."""
    row = db.get(DonationRequest, request_id)
    if row is None:
        return None
    _expire_if_stale(db, row, today or current_date())
    return row


# --- Update / delete ---


def update_request(
    db: Session,
    request_id: int,
    patch: dict[str, Any],
    today: date | None = None,
) -> tuple[dict[str, int], str | None]:
    """
    Partial update. Returns (result counts, new status or None when the status did not change).
    Claiming (-> inprogress) a request whose stored date has passed is rejected, as is any status
    change not in ALLOWED_STATUS_TRANSITIONS for the stored (post-expiry) status.
    """
    today = today or current_date()
    patch = {k: v for k, v in patch.items() if k not in PROTECTED_FIELDS and k in EDITABLE_FIELDS}
    for required in ("donation_date", "donation_status"):
        if required in patch and patch[required] is None:
            del patch[required]
    new_status = patch.get("donation_status")
    if new_status is not None and new_status not in DONATION_STATUSES:
        raise ValidationError(f"Invalid donation status '{new_status}'")
    row = db.get(DonationRequest, request_id)
    if row is None:
        return {"matchedCount": 0, "modifiedCount": 0}, None
    _expire_if_stale(db, row, today)
    if new_status == STATUS_INPROGRESS and is_past_due(row.donation_date, today):
        raise ValidationError("Cannot accept a donation request whose date has passed")
    previous_status = row.donation_status
    if (
        new_status is not None
        and new_status != previous_status
        and new_status not in ALLOWED_STATUS_TRANSITIONS.get(previous_status, ())
    ):
        raise ValidationError(f"Cannot change donation status from '{previous_status}' to '{new_status}'")
    modified = 0
    for field, value in patch.items():
        if getattr(row, field) != value:
            setattr(row, field, value)
            modified = 1
    db.commit()
    changed = new_status if new_status is not None and new_status != previous_status else None
    return {"matchedCount": 1, "modifiedCount": modified}, changed


def status_change_message(status: str) -> str:
    return f"Your donation request status has been updated to {status}"


def notify_status_change(db: Session, request_id: int, status: str) -> int:
    """Targeted notification to the request's requester. Never raises."""
    try:
        row = db.get(DonationRequest, request_id)
        if row is None:
            return 0
        email = row.requester_email
    except Exception as e:
        logger.exception("Status notification for request %s skipped: %s", request_id, e)
        db.rollback()
        return 0
    return notification_service.notify_one(db, email, status_change_message(status), f"/donation-requests/{request_id}")


def delete_request(db: Session, request_id: int, caller_email: str) -> dict[str, int]:
    """Hard delete, any status. Allowed for the owner or an admin."""
    row = db.get(DonationRequest, request_id)
    if row is None:
        return {"deletedCount": 0}
    if row.requester_email != caller_email and user_service.current_role(db, caller_email) != ROLE_ADMIN:
        raise Forbidden()
    db.delete(row)
    db.commit()
    logger.info("Donation request %s deleted by %s", request_id, caller_email)
    return {"deletedCount": 1}
