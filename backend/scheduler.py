# scheduler.py
# meal-time push jobs: each meal window fires on the hour, a user gets at most one
# notification per meal per local day

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Set, Tuple
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from collaborators import RecipientDirectory
from notifier import BatchReport, RecommendationNotifier

log = logging.getLogger("mealspot.scheduler")

# local hours each meal is pushed at
MEAL_SCHEDULES = {
    "breakfast": "8,9,10",
    "lunch": "12,13,14",
    "dinner": "18,19,20,21,22",
}


class DailySendLedger:
    """Remembers who already got which meal on which day."""

    def __init__(self):
        self._sent: Set[Tuple[str, str, date]] = set()

    def can_receive(self, user_id: str, meal_type: str, day: date) -> bool:
        return (user_id, meal_type, day) not in self._sent

    def mark_sent(self, user_id: str, meal_type: str, day: date) -> None:
        self._sent.add((user_id, meal_type, day))


class MealScheduler:
    def __init__(
        self,
        notifier: RecommendationNotifier,
        recipients: RecipientDirectory,
        timezone: str = "America/Vancouver",
        ledger: Optional[DailySendLedger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.notifier = notifier
        self.recipients = recipients
        self.timezone = ZoneInfo(timezone)
        self.ledger = ledger or DailySendLedger()
        self._clock = clock or (lambda: datetime.now(self.timezone))
        self.scheduler = AsyncIOScheduler(timezone=self.timezone)

    def register_jobs(self) -> None:
        for meal_type, hours in MEAL_SCHEDULES.items():
            self.scheduler.add_job(
                self.run_meal,
                CronTrigger(hour=hours, minute=0, timezone=self.timezone),
                args=[meal_type],
                id=f"notify-{meal_type}",
                name=f"{meal_type} recommendations",
                replace_existing=True,
            )
            log.info("%s notifications scheduled at hours %s", meal_type, hours)

    def start(self) -> None:
        if self.scheduler.running:
            log.warning("recommendation scheduler already running")
            return
        self.register_jobs()
        self.scheduler.start()
        log.info("recommendation scheduler started (%s)", self.timezone.key)

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            log.info("recommendation scheduler stopped")

    async def run_meal(self, meal_type: str) -> BatchReport:
        """Notify every eligible user who has not had this meal pushed today."""
        today = self._clock().date()
        users = await self.recipients.notifiable_users()
        pending = [uid for uid in users if self.ledger.can_receive(uid, meal_type, today)]
        if not pending:
            log.info("no pending users for %s on %s", meal_type, today)
            return BatchReport()

        report = await self.notifier.send_batch(pending, meal_type)
        for uid in report.delivered:
            self.ledger.mark_sent(uid, meal_type, today)
        log.info("%s run: %d already notified today, %d sent", meal_type, len(users) - len(pending), report.sent)
        return report
