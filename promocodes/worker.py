import logging
from typing import Any

from arq import cron

from promocodes.core import database
from promocodes.core.config import settings
from promocodes.services.reporting_service import ReportingService
from promocodes.tasks import redis_settings

logger = logging.getLogger(__name__)


async def deactivate_promotion_codes_task(ctx: dict[str, Any]) -> int:
    """Background task: deactivate expired and exhausted promotion codes.

    Idempotent; runs daily and on demand from the admin API.
    """
    db = database.SessionLocal()
    try:
        service = ReportingService(db)
        count = service.deactivate_expired_or_exhausted()
        if count > 0:
            logger.info("Deactivation sweep switched off %d promotion codes", count)
        return count
    finally:
        db.close()


class WorkerSettings:
    functions = [
        deactivate_promotion_codes_task,
    ]
    cron_jobs = [
        cron(
            deactivate_promotion_codes_task,
            hour=settings.DISCOUNT_SWEEP_HOUR,
            minute=settings.DISCOUNT_SWEEP_MINUTE,
        ),
    ]
    redis_settings = redis_settings
