"""APScheduler wrapper driving the periodic poll cycle."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

POLL_JOB_ID = "pagewatch::poll"


class APSchedulerAdapter:
    """Run one job on a fixed minute interval on a single worker thread."""

    def __init__(self) -> None:
        # Cycles run one at a time; extraction threads belong to the poller
        self.scheduler = BackgroundScheduler(executors={"default": ThreadPoolExecutor(1)})
        self.logger = structlog.get_logger("pagewatch.scheduler").bind(component="scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self, wait: bool = True) -> None:
        if self.started:
            self.scheduler.shutdown(wait=wait)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_poll(
        self, callback: Callable[[], object], interval_minutes: int, run_now: bool = True
    ) -> None:
        trigger = self._build_trigger(interval_minutes)
        job_kwargs: dict = {}
        if run_now:
            job_kwargs["next_run_time"] = datetime.now(trigger.timezone)
        self.scheduler.add_job(
            callback,
            trigger=trigger,
            id=POLL_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_kwargs,
        )
        self.logger.info("job_scheduled", job=POLL_JOB_ID, interval_minutes=interval_minutes)

    @staticmethod
    def _build_trigger(interval_minutes: int) -> IntervalTrigger:
        if interval_minutes < 1:
            raise ValueError("Poll interval must be at least one minute")
        return IntervalTrigger(minutes=interval_minutes)


__all__ = ["APSchedulerAdapter", "POLL_JOB_ID"]
