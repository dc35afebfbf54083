"""
Donation requests API: public listing and lookup (with lazy expiry), authenticated create/update/delete.

Create broadcasts to matching donors, admins and volunteers; a status change notifies the requester.
Both notifications run as background tasks after the response and cannot fail the request.
"""
import logging
from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import field_validator
from sqlalchemy.orm import Session

from vein.api.deps import Identity, get_identity
from vein.api.schemas import CamelModel
from vein.core.clock import local_date
from vein.db.session import get_db, get_session_factory
from vein.services import donation_request_service as requests_service
from vein.services.notification_service import run_in_new_session

router = APIRouter()
logger = logging.getLogger(__name__)


class DonationRequestBody(CamelModel):
    requester_name: str | None = None
    recipient_name: str | None = None
    recipient_district: str | None = None
    recipient_upazila: str | None = None
    hospital_name: str | None = None
    full_address: str | None = None
    blood_group: str | None = None
    donation_date: date | None = None
    donation_time: str | None = None
    request_message: str | None = None
    donation_status: str | None = None
    donor_name: str | None = None
    donor_email: str | None = None

    @field_validator("donation_date", mode="before")
    @classmethod
    def date_only(cls, v: Any) -> Any:
        # Clients may send a full ISO timestamp; only its calendar date in DATE_TIMEZONE counts.
        if isinstance(v, str) and len(v) > 10:
            try:
                return local_date(datetime.fromisoformat(v.strip().replace("Z", "+00:00")))
            except ValueError:
                return v
        return v


# --- List ---


@router.get("/donation-requests")
def list_donation_requests(
    status: str | None = Query(None),
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    """All requests, newest first. Stale pending requests are expired before listing."""
    return [requests_service.to_dict(r) for r in requests_service.list_all(db, status=status)]


@router.get("/donation-requests/my")
def list_my_donation_requests(
    email: str | None = Query(None),
    status: str | None = Query(None),
    limit: int | None = Query(None, ge=1, le=500),
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    """The caller's own requests (email must match the session)."""
    rows = requests_service.list_mine(db, email, identity.email, status=status, limit=limit)
    return [requests_service.to_dict(r) for r in rows]


@router.get("/donation-requests/{request_id}")
def get_donation_request(request_id: int, db: Session = Depends(get_db)) -> dict[str, Any] | None:
    row = requests_service.get_one(db, request_id)
    return requests_service.to_dict(row) if row else None


# --- Create ---


@router.post("/donation-requests")
def create_donation_request(
    body: DonationRequestBody,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
) -> dict[str, Any]:
    """Create a pending request owned by the caller, then notify matching recipients."""
    row = requests_service.create_request(db, identity.email, body.fields_set())
    background_tasks.add_task(run_in_new_session, session_factory, requests_service.broadcast_new_request, row.id)
    return {"insertedId": row.id}


# --- Update / delete ---


@router.patch("/donation-requests/{request_id}")
def update_donation_request(
    request_id: int,
    body: DonationRequestBody,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
) -> dict[str, int]:
    """Partial update. Claiming a past-dated request is rejected; a status change notifies the requester."""
    result, new_status = requests_service.update_request(db, request_id, body.fields_set())
    if new_status is not None:
        logger.info("Request %s -> %s by %s", request_id, new_status, identity.email)
        background_tasks.add_task(
            run_in_new_session, session_factory, requests_service.notify_status_change, request_id, new_status
        )
    return result


@router.delete("/donation-requests/{request_id}")
def delete_donation_request(
    request_id: int,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    return requests_service.delete_request(db, request_id, identity.email)
