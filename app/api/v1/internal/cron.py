from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_cron_secret
from app.core.config import settings
from app.schemas.local_listing import ExpiryRun, ExpiryStats
from app.services import listings
from app.utils.timeutils import utcnow

router = APIRouter(prefix="/cron", tags=["Cron"], dependencies=[Depends(require_cron_secret)])


@router.post("/expire-local-listings", response_model=ExpiryRun)
def run_expiry(db: Session = Depends(get_db)):
    """Expire listings past their window and purge abandoned paid drafts."""
    now = utcnow()
    expired = listings.expire_listings(db, now)
    purged = listings.purge_abandoned_drafts(db, now, settings.DRAFT_RETENTION_DAYS)
    return ExpiryRun(expired_count=expired, purged_drafts=purged, timestamp=now)


@router.get("/expire-local-listings", response_model=ExpiryStats)
def expiry_status(db: Session = Depends(get_db)):
    """Dry run: what the next sweep would do, plus status/category counts."""
    return ExpiryStats(**listings.expiry_stats(db))
