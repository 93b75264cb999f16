from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from promocodes.core.config import settings
from promocodes.models.shared import utc_now

redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    """Get or create Redis pool for arq"""
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job | None:
    """
    Enqueue a task to the arq worker.

    Args:
        task_name: Name of the task function
        *args: Positional arguments for the task
        **kwargs: Keyword arguments for the task, including arq options such
            as ``_job_id``

    Returns:
        Job object from arq, or None when a job with the same id is already
        queued or running
    """
    pool = await get_redis_pool()
    try:
        return await pool.enqueue_job(task_name, *args, **kwargs)
    finally:
        await pool.close()


async def enqueue_deactivation_sweep() -> Job | None:
    """Enqueue an immediate run of the discount code deactivation sweep.

    Requests within the same minute share one job id, so repeated admin
    triggers collapse into a single sweep.
    """
    return await enqueue_task(
        "deactivate_promotion_codes_task",
        _job_id=f"deactivate_promotion_codes:{utc_now():%Y%m%d%H%M}",
    )
