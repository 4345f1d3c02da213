"""Scheduled tasks endpoint for cron jobs (Cloud Scheduler).

These endpoints are meant to be called by Cloud Scheduler or similar
cron services to trigger periodic maintenance.
"""

from fastapi import APIRouter, Depends, HTTPException, Header
from typing import Optional
import logging

from app.core.settings import settings
from app.deps import get_token_service
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)
router = APIRouter()


def verify_cron_secret(x_cron_secret: Optional[str] = Header(None)):
    """Verify the cron secret header for scheduled job authentication."""
    if x_cron_secret != settings.cron_secret:
        raise HTTPException(status_code=403, detail="Invalid cron secret")
    return True


@router.post("/purge-expired-tokens")
def purge_expired_tokens(
    service: TokenService = Depends(get_token_service),
    _verified: bool = Depends(verify_cron_secret)
):
    """Delete device tokens registered longer ago than the retention window.

    This endpoint should be called once per day by Cloud Scheduler.

    Example Cloud Scheduler config:
    - Schedule: 0 2 * * * (Every day at 2 AM UTC)
    - Target: POST https://api.example.com/scheduled/purge-expired-tokens
    - Headers: X-Cron-Secret: <your-secret>
    """
    logger.info(f"Purging tokens older than {settings.token_retention_days} days")
    deleted = service.purge_expired()
    return {
        "message": "Expired tokens purged",
        "retention_days": settings.token_retention_days,
        "deleted": deleted,
    }
