"""
Periodic trigger for the reconciliation engine.

The engine holds no timers; the app lifespan starts these loops when
BOOKER_RECONCILER_ENABLED is set. Each job opens its own session and runs
the synchronous engine code in a worker thread.
"""
import asyncio
import logging
from datetime import datetime
from resource_booking.config import settings
from resource_booking.db import SessionLocal
from resource_booking.store import BookingStore
from resource_booking.utils.scheduler import booking_stats, run_overdue_sweeps, run_reconciliation_pass

logger = logging.getLogger(__name__)


def _with_store(job):
    db = SessionLocal()
    try:
        return job(BookingStore(db))
    finally:
        db.close()


def reconcile_job():
    return _with_store(lambda store: run_reconciliation_pass(store, datetime.now(), include_sweeps=False))


def sweep_job():
    return _with_store(lambda store: run_overdue_sweeps(store, datetime.now()))


def stats_job():
    stats = _with_store(booking_stats)
    logger.info(f"Booking statistics: total={stats['total']} by_status={stats['by_status']}")
    return stats


async def run_periodically(name: str, interval_seconds: int, job):
    while True:
        try:
            await asyncio.to_thread(job)
        except Exception:
            logger.exception(f"Periodic job '{name}' failed")
        await asyncio.sleep(interval_seconds)


def start_background_tasks():
    jobs = [
        ("reconcile", settings.RECONCILE_INTERVAL_SECONDS, reconcile_job),
        ("overdue-expired sweep", settings.SWEEP_INTERVAL_SECONDS, sweep_job),
        ("stats", settings.STATS_INTERVAL_SECONDS, stats_job),
    ]
    tasks = []
    for name, interval, job in jobs:
        logger.info(f"Scheduling '{name}' every {interval}s")
        tasks.append(asyncio.create_task(run_periodically(name, interval, job)))
    return tasks


async def stop_background_tasks(tasks):
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
