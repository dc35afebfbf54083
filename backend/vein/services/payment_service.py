"""
Payment processor client: lowest level, creates a Stripe PaymentIntent and returns its client secret.
Requires STRIPE_SECRET_KEY in .env.
"""
import logging
from decimal import Decimal
from typing import Any

import httpx

from vein.config import settings
from vein.core.errors import DependencyFailure
from vein.services.funding_service import parse_amount

logger = logging.getLogger(__name__)

PAYMENT_INTENTS_PATH = "/v1/payment_intents"


def to_minor_units(amount: Decimal) -> int:
    """10.50 -> 1050 (cents)."""
    return int((amount * 100).to_integral_value())


def create_payment_intent(
    amount: Any,
    *,
    currency: str | None = None,
    client: httpx.Client | None = None,
    timeout: float = 20.0,
) -> dict[str, str]:
    """POST one PaymentIntent. Any transport or processor error is a DependencyFailure."""
    minor = to_minor_units(parse_amount(amount))
    secret = settings.stripe_secret_key
    if not secret:
        raise DependencyFailure("Payment processor not configured. Add STRIPE_SECRET_KEY to .env.")
    url = f"{settings.stripe_api_base}{PAYMENT_INTENTS_PATH}"
    data = {
        "amount": str(minor),
        "currency": currency or settings.payment_currency,
        "payment_method_types[]": "card",
    }
    headers = {"Authorization": f"Bearer {secret}"}
    try:
        if client is not None:
            r = client.post(url, data=data, headers=headers)
        else:
            with httpx.Client(timeout=timeout) as c:
                r = c.post(url, data=data, headers=headers)
    except httpx.HTTPError as e:
        logger.warning("Payment intent request failed: %s", e, exc_info=True)
        raise DependencyFailure("Payment processor unavailable")
    if not r.is_success:
        logger.warning("Payment processor returned %s: %s", r.status_code, r.text[:500] if r.text else "")
        raise DependencyFailure(f"Payment processor error: {r.status_code}")
    try:
        body = r.json()
    except ValueError:
        raise DependencyFailure("Payment processor returned an invalid response")
    client_secret = body.get("client_secret")
    if not client_secret:
        raise DependencyFailure("Payment processor returned no client secret")
    return {"clientSecret": client_secret}
