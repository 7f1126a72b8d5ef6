"""
Life tracker host runtime.
Configures logging, wires the store and services together and runs the
scheduler on an asyncio event loop until interrupted.
"""
import asyncio
import logging
from typing import Optional

from lifetracker.config import get_data_dir, get_backup_dir, get_log_path, get_auto_backup_keep
from lifetracker.store import DocumentStore
from lifetracker.services.quest_service import QuestService
from lifetracker.services.activity_service import ActivityService
from lifetracker.services.backup_service import BackupService
from lifetracker.services.reminder_service import ReminderService
from lifetracker.services.settings_service import SettingsService
from lifetracker.services.reading_stats_service import ReadingStatsService
from lifetracker.services.scheduler_service import SchedulerService, Notifier

logger = logging.getLogger("lifetracker")


def configure_logging() -> None:
    log_path = get_log_path()
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler()  # Also log to console
        ]
    )


class LifeTracker:
    """Store plus every service, sharing one store instance"""

    def __init__(
        self,
        data_dir: str,
        backup_dir: str,
        auto_backup_keep: int,
        notifier: Optional[Notifier] = None
    ):
        self.store = DocumentStore(data_dir)
        self.quests = QuestService(self.store)
        self.activity = ActivityService(self.store)
        self.reminders = ReminderService(self.store)
        self.settings = SettingsService(self.store)
        self.reading = ReadingStatsService(self.store)
        self.backups = BackupService(self.store, backup_dir)
        self.scheduler = SchedulerService(
            self.reminders,
            self.backups,
            self.quests,
            self.settings,
            notifier=notifier,
            auto_backup_keep=auto_backup_keep,
        )

    @classmethod
    def from_env(cls, notifier: Optional[Notifier] = None) -> "LifeTracker":
        data_dir = get_data_dir()
        return cls(data_dir, get_backup_dir(data_dir), get_auto_backup_keep(), notifier)

    def shutdown(self) -> None:
        """Stop the scheduler and write every cached domain to disk"""
        self.scheduler.stop()
        self.store.flush_all()


async def run(tracker: LifeTracker) -> None:
    tracker.scheduler.start()
    try:
        # Serve until cancelled
        await asyncio.Event().wait()
    finally:
        tracker.shutdown()


def main() -> None:
    configure_logging()
    tracker = LifeTracker.from_env()
    logger.info(f"Life tracker started with data in {tracker.store.data_dir}")
    try:
        asyncio.run(run(tracker))
    except KeyboardInterrupt:
        logger.info("Life tracker stopped")


if __name__ == "__main__":
    main()
