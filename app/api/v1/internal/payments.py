import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_webhook_secret
from app.schemas.local_listing import ActivationResult, LocalListing as LocalListingSchema, PaymentConfirmation
from app.services import listings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/webhook", response_model=ActivationResult, dependencies=[Depends(require_webhook_secret)])
def payment_webhook(data: PaymentConfirmation, db: Session = Depends(get_db)):
    """
    Payment processor callback for a completed listing checkout.

    Delivery is at-least-once: a repeat for an already ACTIVE listing returns
    ``changed: false`` without touching its expiry.
    """
    listing, changed = listings.activate_listing(db, data.listing_id, session_id=data.session_id)
    if not changed:
        logger.info("Duplicate payment confirmation for listing %s", listing.id)
    return ActivationResult(changed=changed, listing=LocalListingSchema.model_validate(listing))
