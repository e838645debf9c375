"""Background job that drives the periodic tournament status check."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.background import BackgroundScheduler

from arenadmin.constants import SWEEP_INTERVAL_SECONDS

from .services import get_status_manager

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)

JOB_ID = "tournament-status-check"


class StatusCheckRunner:
    """Schedules a sweep every interval seconds on a background scheduler."""

    def __init__(self, app: Flask, interval: float | None = None) -> None:
        self.app = app
        self.interval = (
            interval
            if interval is not None
            else app.config.get("TOURNAMENT_SWEEP_INTERVAL_SECONDS", SWEEP_INTERVAL_SECONDS)
        )
        self.scheduler: BackgroundScheduler | None = None

    def run_once(self) -> None:
        """Perform one sweep inside the app context.

        A failed tick is logged; the next tick starts again from scratch.
        """
        with self.app.app_context():
            try:
                report = get_status_manager().sweep()
            except Exception as e:
                logger.error(f"Tournament status check failed: {e}")
                return
        logger.info(
            f"Tournament status checker tick finished: "
            f"{len(report.outcomes)} processed"
        )

    def start(self) -> None:
        if self.running:
            return
        self.scheduler = BackgroundScheduler()
        # One sweep at a time; missed ticks collapse into a single run.
        self.scheduler.add_job(
            self.run_once,
            "interval",
            seconds=self.interval,
            id=JOB_ID,
            name="Tournament status check",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(f"Tournament status checker started (every {self.interval}s)")

    def stop(self, wait: bool = True) -> None:
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
        self.scheduler = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running
