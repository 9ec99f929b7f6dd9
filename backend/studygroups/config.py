"""Application settings and validation."""

import os
from pathlib import Path

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")

BASE = Path(__file__).resolve().parent.parent


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    ENV: str
    DATABASE_URL: str
    API_PREFIX: str
    UNIQUE_SUBJECTS: bool
    AUTO_PROVISION_USERS: bool
    SEED_DEMO_DATA: bool
    ENABLE_DOCS: bool
    LOG_LEVEL: str
    SQL_ECHO: bool

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'studygroups.db'}")
        self.API_PREFIX = os.getenv("API_PREFIX", "").rstrip("/")
        # One group per subject unless explicitly relaxed.
        self.UNIQUE_SUBJECTS = _flag("UNIQUE_SUBJECTS", "true")
        self.AUTO_PROVISION_USERS = _flag("AUTO_PROVISION_USERS", "false")
        self.SEED_DEMO_DATA = _flag("SEED_DEMO_DATA", "true" if self.ENV == "dev" else "false")
        self.ENABLE_DOCS = _flag("ENABLE_DOCS", "true")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.SQL_ECHO = _flag("SQL_ECHO", "false")
        self._validate()

    def _validate(self):
        if self.API_PREFIX and not self.API_PREFIX.startswith("/"):
            raise RuntimeError("API_PREFIX must start with '/'")
        if not self.DATABASE_URL:
            raise RuntimeError("DATABASE_URL must not be empty")
        if self.LOG_LEVEL not in LOG_LEVELS:
            raise RuntimeError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")


settings = Settings()
