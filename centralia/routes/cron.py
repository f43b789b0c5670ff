import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..domain.scheduling.reminders import send_upcoming_reminders
from ..domain.scheduling.schemas import ReminderRunResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"])


@router.post("/send-reminders", response_model=ReminderRunResponse)
async def trigger_reminders(
    x_cron_secret: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    """
    Run the reminder sweep on demand (external schedulers).
    Requires X-Cron-Secret when CRON_SECRET is configured.
    """
    if config.CRON_SECRET and x_cron_secret != config.CRON_SECRET:
        logger.warning("Rejected reminder trigger with invalid cron secret")
        raise HTTPException(status_code=401, detail="Unauthorized")

    sent = await send_upcoming_reminders(db)
    return ReminderRunResponse(status="success", message="Reminders sent successfully", sent=sent)
