"""
Checkout gateway seam.

The payment processor itself lives outside this service: the gateway only has
to hand back a session id and a redirect URL. Completion arrives later through
``POST /payments/webhook``.
"""
import uuid
from dataclasses import dataclass
from typing import Optional

from app.core.config import settings


@dataclass
class CheckoutSession:
    id: str
    url: str


class CheckoutGateway:
    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or settings.CHECKOUT_BASE_URL).rstrip("/")

    def create_session(self, listing) -> CheckoutSession:
        session_id = f"cs_{uuid.uuid4().hex}"
        return CheckoutSession(
            id=session_id,
            url=f"{self.base_url}/{session_id}?listing={listing.id}",
        )


def get_checkout_gateway() -> CheckoutGateway:
    return CheckoutGateway()
