"""
Application configuration.

File names are fixed constants; the data directory, log level and default
admin credentials can be overridden through CONCERT_* environment variables.
"""

import os
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# Constants
ATTENDEES_FILE = "attendees.dat"
CONCERTS_FILE = "concerts.dat"
VENUES_FILE = "venues.dat"
PERFORMERS_FILE = "performers.dat"
CREW_FILE = "crew.dat"
TICKETS_FILE = "tickets.dat"
PAYMENTS_FILE = "payments.dat"
FEEDBACK_FILE = "feedback.dat"
REPORTS_FILE = "reports.dat"
COMMUNICATIONS_FILE = "communications.dat"
AUTH_FILE = "auth.dat"
TRANSACTIONS_FILE = "transactions.csv"

DEFAULT_CURRENCY = "USD"


class Settings(BaseSettings):
    APP_NAME: str = "Concert Management System"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "WARNING"

    DATA_DIR: str = "data"

    ADMIN_USERNAME: str = "admin"
    ADMIN_DEFAULT_PASSWORD: str = "admin123"

    model_config = SettingsConfigDict(env_prefix="CONCERT_", case_sensitive=True)


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def data_path(filename: str) -> str:
    """Return the path of a data file inside the configured data directory."""
    return os.path.join(get_settings().DATA_DIR, filename)
