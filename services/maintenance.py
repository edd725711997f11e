# services/maintenance.py
# -*- coding: utf-8 -*-
"""
Periodic upkeep run on the python-telegram-bot JobQueue:
stale session reaping plus quota/cooldown sweeps every SESSION_SWEEP_INTERVAL_SECONDS,
and expired blob cleanup every STORAGE_CLEANUP_INTERVAL_SECONDS.
run_maintenance() is a plain function so it can be driven without a scheduler.
"""

import logging
from typing import Dict, List, Optional
from telegram.ext import ContextTypes, Job, JobQueue
from config import SESSION_SWEEP_INTERVAL_SECONDS, STORAGE_CLEANUP_INTERVAL_SECONDS
from services.container import BotServices

logger = logging.getLogger(__name__)


# ================================== run_maintenance(): One sweep over sessions, quotas and cooldowns ==================================
def run_maintenance(services: BotServices, now: Optional[float] = None) -> Dict[str, int]:
    reaped = services.sessions.reap_stale(max_age=services.session_max_age, now=now)
    stats = {
        "reaped_sessions": len(reaped),
        "dropped_quotas": services.admission.sweep_quotas(),
        "dropped_cooldowns": services.admission.sweep_cooldowns(now=now),
    }
    if reaped:
        logger.warning(f"Maintenance reaped {len(reaped)} stale session(s).")
    logger.debug(f"Maintenance: {stats}")
    return stats
# ================================== run_maintenance() end ==================================


async def maintenance_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    run_maintenance(context.job.data)


# ================================== storage_cleanup_job(): Deletes expired blobs ==================================
async def storage_cleanup_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    services: BotServices = context.job.data
    if services.blob_store is None:
        return
    try:
        await services.blob_store.delete_expired()
    except Exception as e:
        logger.warning(f"Storage cleanup failed: {e}")
# ================================== storage_cleanup_job() end ==================================


# ================================== schedule_maintenance(): Registers the repeating jobs ==================================
def schedule_maintenance(
    job_queue: JobQueue,
    services: BotServices,
    interval: float = SESSION_SWEEP_INTERVAL_SECONDS,
    cleanup_interval: float = STORAGE_CLEANUP_INTERVAL_SECONDS,
) -> List[Job]:
    """Returns the scheduled jobs; call job.schedule_removal() on each to stop them."""
    jobs = [job_queue.run_repeating(maintenance_job, interval=interval, first=interval, data=services, name="session_sweep")]
    if services.blob_store is not None:
        jobs.append(job_queue.run_repeating(storage_cleanup_job, interval=cleanup_interval, first=cleanup_interval, data=services, name="storage_cleanup"))
    logger.info(f"Maintenance scheduled: sweep every {interval}s" + (f", storage cleanup every {cleanup_interval}s" if len(jobs) > 1 else ""))
    return jobs
# ================================== schedule_maintenance() end ==================================

# services/maintenance.py end
