"""
Configuration management for MeetDesk
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "MeetDesk"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./meetdesk.db"
    DATABASE_BUSY_TIMEOUT_SECONDS: int = 15  # SQLite only: wait this long on a locked database

    # Logging
    LOG_LEVEL: str = "INFO"  # DEBUG=True forces DEBUG

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Meetings
    DEFAULT_MEETING_DURATION_MINUTES: int = 60
    DEFAULT_MEETING_TYPE: str = "virtual"

    # Reminder scheduler
    REMINDER_SCHEDULER_ENABLED: bool = True
    REMINDER_TICK_MINUTES: int = 5          # also the width of the due window
    REMINDER_LOOKAHEAD_HOURS: int = 24
    REMINDER_LEAD_TIMES: list[int] = [1440, 60, 30]  # minutes before the meeting
    AUTO_COMPLETE_AFTER_HOURS: int = 2
    REMINDER_STARTUP_DELAY_SECONDS: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
