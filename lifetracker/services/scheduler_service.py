"""
Scheduler service for periodic tasks.
Polls due reminders, takes the daily auto-backup and resets stale progress.
Runs on the asyncio event loop so jobs never run concurrently with each other.
"""
import logging
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from lifetracker.models import Reminder
from lifetracker.services.backup_service import BackupService
from lifetracker.services.quest_service import QuestService
from lifetracker.services.reminder_service import ReminderService
from lifetracker.services.settings_service import SettingsService
from lifetracker.constants import (
    DEFAULT_AUTO_BACKUP_KEEP,
    SCHEDULER_JOB_REMINDERS, SCHEDULER_JOB_AUTO_BACKUP, SCHEDULER_JOB_PROGRESS_RESET
)

logger = logging.getLogger("lifetracker.scheduler")

Notifier = Callable[[Reminder], None]


def log_notifier(reminder: Reminder) -> None:
    logger.info(f"{reminder.time} - Time for: {reminder.title}")


class SchedulerService:
    """Owns the APScheduler instance and its jobs"""

    def __init__(
        self,
        reminder_service: ReminderService,
        backup_service: BackupService,
        quest_service: QuestService,
        settings_service: SettingsService,
        notifier: Optional[Notifier] = None,
        auto_backup_keep: int = DEFAULT_AUTO_BACKUP_KEEP,
    ):
        self.reminder_service = reminder_service
        self.backup_service = backup_service
        self.quest_service = quest_service
        self.settings_service = settings_service
        self.notifier = notifier or log_notifier
        self.auto_backup_keep = auto_backup_keep
        self.scheduler: Optional[AsyncIOScheduler] = None

    async def run_reminder_check(self) -> int:
        """Hand every due reminder to the notifier"""
        try:
            due = self.reminder_service.check_due_reminders()
            for reminder in due:
                self.notifier(reminder)
            return len(due)
        except Exception as e:
            logger.error(f"Error in reminder check: {e}")
            return 0

    async def run_auto_backup(self) -> bool:
        """Create today's auto-backup when enabled"""
        try:
            settings = self.settings_service.load_user_settings()
            if not settings.auto_backup_enabled:
                return False

            ok, message = self.backup_service.auto_backup(self.auto_backup_keep)
            if ok:
                logger.info(message)
            return ok
        except Exception as e:
            logger.error(f"Error in auto backup: {e}")
            return False

    async def run_progress_reset(self) -> int:
        try:
            return self.quest_service.reset_daily_progress()
        except Exception as e:
            logger.error(f"Error in progress reset: {e}")
            return 0

    def start(self) -> None:
        """Start the scheduler; must be called with an event loop running"""
        logger.info("Starting life tracker scheduler")

        self.scheduler = AsyncIOScheduler()

        # Every job runs each minute; the jobs themselves decide whether there is work
        self.scheduler.add_job(
            self.run_reminder_check,
            CronTrigger(minute='*'),
            id=SCHEDULER_JOB_REMINDERS,
            replace_existing=True
        )
        self.scheduler.add_job(
            self.run_auto_backup,
            CronTrigger(minute='*'),
            id=SCHEDULER_JOB_AUTO_BACKUP,
            replace_existing=True
        )
        self.scheduler.add_job(
            self.run_progress_reset,
            CronTrigger(minute='*'),
            id=SCHEDULER_JOB_PROGRESS_RESET,
            replace_existing=True
        )

        self.scheduler.start()
        logger.info("Scheduler started successfully")

    def stop(self) -> None:
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)
