"""
Renovate Background Scheduler

Runs periodic tasks:
- Open bidding on scheduled requests whose bidding start date has arrived
- Close bidding on requests whose bidding window has ended

Both default to once a day (BIDDING_SWEEP_INTERVAL_HOURS). The same sweeps are
exposed under /api/cron/ for deployments that prefer an external trigger.

Only starts when ENABLE_SCHEDULER=true to prevent running on multiple instances.
"""

import os
import logging

logger = logging.getLogger(__name__)


def _start_due_bidding(app):
    """INSPECTION_SCHEDULED -> BIDDING_OPEN for every request whose start date has arrived."""
    with app.app_context():
        from app.bidding import sweep_bidding_starts

        try:
            summary = sweep_bidding_starts()
        except Exception:
            logger.exception("Scheduler: bidding start sweep failed")
            return

        if summary["found"]:
            logger.info("Scheduler: opened %d, closed %d, failed %d of %d due request(s)",
                        summary["opened"], summary["closed"], summary["failed"], summary["found"])


def _close_expired_bidding(app):
    """BIDDING_OPEN -> BIDDING_CLOSED for every request whose bidding window has ended."""
    with app.app_context():
        from app.bidding import sweep_expired_bidding

        try:
            summary = sweep_expired_bidding()
        except Exception:
            logger.exception("Scheduler: bidding close sweep failed")
            return

        if summary["found"]:
            logger.info("Scheduler: closed %d, failed %d of %d expired request(s)",
                        summary["closed"], summary["failed"], summary["found"])


def init_scheduler(app):
    """Initialize and start the background scheduler.

    Only runs if ENABLE_SCHEDULER=true env var is set.
    """
    if os.environ.get("ENABLE_SCHEDULER", "").lower() != "true":
        logger.info("Scheduler disabled (set ENABLE_SCHEDULER=true to enable)")
        return None

    from apscheduler.schedulers.background import BackgroundScheduler

    hours = app.config.get("BIDDING_SWEEP_INTERVAL_HOURS", 24)

    try:
        scheduler = BackgroundScheduler(daemon=True)

        scheduler.add_job(
            _start_due_bidding,
            "interval",
            hours=hours,
            args=[app],
            id="start_due_bidding",
            name="Open bidding on scheduled requests",
            max_instances=1,
            coalesce=True,
        )

        scheduler.add_job(
            _close_expired_bidding,
            "interval",
            hours=hours,
            args=[app],
            id="close_expired_bidding",
            name="Close expired bidding windows",
            max_instances=1,
            coalesce=True,
        )

        scheduler.start()
        logger.info("Background scheduler started with 2 jobs (every %dh)", hours)
        return scheduler
    except Exception:
        logger.exception("Failed to start scheduler")
        return None
