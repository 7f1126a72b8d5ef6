"""
Shared fixtures: a store on a temporary directory, every service on top of
it, and a clock that can be moved between days.
"""
import pytest
from datetime import datetime
from unittest.mock import patch

from lifetracker.store import DocumentStore
from lifetracker.services.quest_service import QuestService
from lifetracker.services.activity_service import ActivityService
from lifetracker.services.backup_service import BackupService
from lifetracker.services.reminder_service import ReminderService
from lifetracker.services.settings_service import SettingsService
from lifetracker.services.reading_stats_service import ReadingStatsService


class FakeClock:
    """Controls DateService.now() while the fixture is active"""

    def __init__(self, mock_dt):
        self.mock_dt = mock_dt

    def set(self, year, month, day, hour=12, minute=0):
        self.mock_dt.now.return_value = datetime(year, month, day, hour, minute, 0)

    @property
    def now(self) -> datetime:
        return self.mock_dt.now.return_value


@pytest.fixture
def clock():
    """Clock fixed at 2026-01-30 12:00 (a Friday) until moved"""
    with patch('lifetracker.services.date_service.datetime') as mock_dt:
        mock_dt.side_effect = lambda *args, **kwargs: datetime(*args, **kwargs)
        fake = FakeClock(mock_dt)
        fake.set(2026, 1, 30)
        yield fake


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return str(path)


@pytest.fixture
def backup_dir(tmp_path):
    return str(tmp_path / "backups")


@pytest.fixture
def store(data_dir):
    return DocumentStore(data_dir)


@pytest.fixture
def quest_service(store):
    return QuestService(store)


@pytest.fixture
def activity_service(store):
    return ActivityService(store)


@pytest.fixture
def backup_service(store, backup_dir):
    return BackupService(store, backup_dir)


@pytest.fixture
def reminder_service(store):
    return ReminderService(store)


@pytest.fixture
def settings_service(store):
    return SettingsService(store)


@pytest.fixture
def reading_service(store):
    return ReadingStatsService(store)
