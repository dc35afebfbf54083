from vein.models.donation_request import DonationRequest
from vein.models.funding import Funding
from vein.models.notification import Notification
from vein.models.user import User

__all__ = [
    "DonationRequest",
    "Funding",
    "Notification",
    "User",
]
