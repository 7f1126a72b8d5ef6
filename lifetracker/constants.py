"""
Application-wide constants.
"""

# Quest types (partition keys of the quests domain)
QUEST_TYPE_DAILY = "daily"
QUEST_TYPE_WEEKLY = "weekly"
QUEST_TYPE_MONTHLY = "monthly"
QUEST_TYPES = (QUEST_TYPE_DAILY, QUEST_TYPE_WEEKLY, QUEST_TYPE_MONTHLY)

# Store domains
DOMAIN_SETTINGS = "settings"
DOMAIN_QUESTS = "quests"
DOMAIN_LOGS = "logs"
DOMAIN_REMINDERS = "reminders"
DOMAINS = (DOMAIN_SETTINGS, DOMAIN_QUESTS, DOMAIN_LOGS, DOMAIN_REMINDERS)

DOMAIN_FILES = {
    DOMAIN_SETTINGS: "lifetracker_settings.json",
    DOMAIN_QUESTS: "lifetracker_quests.json",
    DOMAIN_LOGS: "lifetracker_logs.json",
    DOMAIN_REMINDERS: "lifetracker_reminders.json",
}

# Keys inside domain documents
LOGS_KEY = "daily_logs"
REMINDERS_KEY = "reminders"
PERSISTENT_NOTES_KEY = "persistent_notes"
LAST_ID_KEY = "last_generated_id"

# Energy matching
ENERGY_ANY = "Any"

# Defaults
DEFAULT_ENERGY_CATEGORIES = ["Energetic", "Average", "Down"]
DEFAULT_TIME_SLOTS = ["Morning", "Afternoon", "Evening", "Night"]
DEFAULT_QUEST_CATEGORIES = ["Health", "Work", "Personal", "Learning"]
DEFAULT_PROGRESS_UNIT = "units"
DEFAULT_HEATMAP_WEEKS = 12

# Limits
MAX_TITLE_LENGTH = 200
MAX_NAME_LENGTH = 50
MAX_QUOTE_LENGTH = 200
MAX_TEXT_LENGTH = 500

# Date formats
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Weekday abbreviations, Monday first (matches date.weekday())
DAY_ABBREVIATIONS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
WEEKDAY_ABBREVIATIONS = {"Mon", "Tue", "Wed", "Thu", "Fri"}
WEEKEND_ABBREVIATIONS = {"Sat", "Sun"}

# Backups
BACKUP_VERSION = 1  # Increment when backup format changes
BACKUP_DIR_NAME = "lifetracker_backups"
BACKUP_FILE_PREFIX = "lifetracker_"
MANUAL_BACKUP_PREFIX = "lifetracker_backup_"
AUTO_BACKUP_PREFIX = "lifetracker_auto_"
BACKUP_EXTENSION = ".json"
TEMP_EXTENSION = ".tmp"
DEFAULT_AUTO_BACKUP_KEEP = 7

# Heat levels: 0 | 1-2 | 3-4 | 5+
HEAT_LEVEL_LOW_MAX = 2
HEAT_LEVEL_MEDIUM_MAX = 4

# Logging
DEFAULT_LOG_DIRECTORY_DEV = "./logs"
DEFAULT_LOG_FILE = "app.log"

# Scheduler
SCHEDULER_JOB_REMINDERS = "reminder_check"
SCHEDULER_JOB_AUTO_BACKUP = "auto_backup"
SCHEDULER_JOB_PROGRESS_RESET = "progress_reset"
