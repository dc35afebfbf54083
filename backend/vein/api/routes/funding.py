"""
Funding API: record contributions (notifies admins and volunteers), list them, dashboard stats, and
payment intent creation for the client-side checkout.
"""
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from vein.api.deps import Identity, get_identity, require_volunteer_or_admin
from vein.api.schemas import CamelModel
from vein.db.session import get_db, get_session_factory
from vein.services import funding_service, payment_service
from vein.services.notification_service import run_in_new_session

router = APIRouter()


class FundingRequest(CamelModel):
    amount: Any
    name: str | None = None
    email: str | None = None
    transaction_id: str | None = None


class PaymentIntentRequest(CamelModel):
    amount: Any
    currency: str | None = None


@router.post("/funding")
def record_funding(
    body: FundingRequest,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
) -> dict[str, Any]:
    fields = body.fields_set()
    fields.setdefault("email", identity.email)
    row = funding_service.record_funding(db, fields)
    background_tasks.add_task(run_in_new_session, session_factory, funding_service.broadcast_funding, row.id)
    return {"insertedId": row.id}


@router.get("/funding")
def list_funding(
    identity: Identity = Depends(require_volunteer_or_admin),
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    return [funding_service.to_dict(r) for r in funding_service.list_fundings(db)]


@router.get("/admin-stats")
def admin_stats(
    identity: Identity = Depends(require_volunteer_or_admin),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    return funding_service.admin_stats(db)


@router.post("/create-payment-intent")
def create_payment_intent(
    body: PaymentIntentRequest,
    identity: Identity = Depends(get_identity),
) -> dict[str, str]:
    """Delegate to the payment processor; returns the client secret for the checkout form."""
    return payment_service.create_payment_intent(body.amount, currency=body.currency)
