"""Background scheduler that keeps recurring effects caught up."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .services.contributions import RecurringReport, run_recurring

if TYPE_CHECKING:
    from .context import AppContext

logger = logging.getLogger("budgetcycle.scheduler")

CATCH_UP_JOB_ID = "recurring_catch_up"


class BackgroundScheduler:
    """Runs leftover collection and goal contributions on an interval."""

    def __init__(self, ctx: AppContext):
        """Initialize the scheduler with app context.

        Args:
            ctx: Application context with repositories and config
        """
        self.ctx = ctx
        self.scheduler: Optional[APScheduler] = None

    def start(self) -> None:
        """Run one catch-up immediately, then start the interval job."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.run_catch_up()

        self.scheduler = APScheduler()
        self.scheduler.add_job(
            func=self.run_catch_up,
            trigger=IntervalTrigger(minutes=self.ctx.config.CATCH_UP_MINUTES),
            id=CATCH_UP_JOB_ID,
            name="Recurring contribution catch-up",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(
            "Background scheduler started",
            extra={"interval_minutes": self.ctx.config.CATCH_UP_MINUTES},
        )

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def run_catch_up(self) -> Optional[RecurringReport]:
        """Execute one recurring pass; failures are logged so the job keeps running."""
        try:
            report = run_recurring(
                budget_repo=self.ctx.budget_repo,
                transaction_repo=self.ctx.transaction_repo,
                goal_repo=self.ctx.goal_repo,
                user_id=self.ctx.require_user_id(),
                now=datetime.now(),
            )
        except Exception as exc:
            logger.error(f"Recurring catch-up failed: {exc}", exc_info=True)
            return None
        logger.info(
            "Recurring catch-up finished",
            extra={
                "leftovers_collected": report.leftovers.collected,
                "goals_credited": report.contributed_goal_ids,
            },
        )
        return report


def create_scheduler(ctx: AppContext, *, auto_start: bool = False) -> BackgroundScheduler:
    """Create and optionally start a background scheduler."""
    scheduler = BackgroundScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler
