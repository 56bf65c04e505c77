from __future__ import annotations

import atexit
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger


def start_scheduler(app):
    """
    Runs the late check on an interval inside an app context.
    Skipped in the reloader's watcher process so the job never runs twice.
    """
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        app.logger.info("[scheduler] debug reloader secondary process: scheduler skipped.")
        return None

    # imported here to avoid a cycle through the services package
    from bookstore.tasks.late_check import run_late_check_job

    minutes = int(app.config.get("LATE_CHECK_INTERVAL_MINUTES", 10))
    scheduler = BackgroundScheduler(timezone="UTC")

    def _job_wrapper():
        try:
            run_late_check_job(app)
        except Exception as ex:
            # keep the scheduler thread alive for the next tick
            app.logger.exception(f"[scheduler] late_check_job error: {ex}")

    scheduler.add_job(
        func=_job_wrapper,
        trigger=IntervalTrigger(minutes=minutes),
        id="late_check_job",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=120,
    )

    scheduler.start()
    app.logger.info(f"[scheduler] late check job started (every {minutes} minutes).")
    app.extensions["apscheduler"] = scheduler

    atexit.register(lambda: scheduler.shutdown(wait=False) if scheduler.running else None)
    return scheduler
