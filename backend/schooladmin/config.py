"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    ENV: str
    DATABASE_URL: str
    DB_POOL_SIZE: int
    DB_MAX_OVERFLOW: int
    DB_POOL_TIMEOUT: float
    DB_POOL_RECYCLE: int
    SQL_ECHO: bool
    LOG_LEVEL: str
    ALLOW_DEV_CORS: bool
    DEFAULT_SORT: str
    CODE_ALLOCATION_ATTEMPTS: int

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'school.db'}")
        self.DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
        self.DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "0"))
        self.DB_POOL_TIMEOUT = float(os.getenv("DB_POOL_TIMEOUT", "30"))  # seconds to wait for a free connection
        self.DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "10"))
        self.SQL_ECHO = _env_bool("SQL_ECHO", "false")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.ALLOW_DEV_CORS = _env_bool("ALLOW_DEV_CORS", "true")
        self.DEFAULT_SORT = os.getenv("DEFAULT_SORT", "desc").lower()
        self.CODE_ALLOCATION_ATTEMPTS = int(os.getenv("CODE_ALLOCATION_ATTEMPTS", "5"))
        self._validate()

    def _validate(self):
        if self.DEFAULT_SORT not in ("asc", "desc"):
            raise RuntimeError("DEFAULT_SORT must be either asc or desc")
        if self.DB_POOL_SIZE < 1:
            raise RuntimeError("DB_POOL_SIZE must be at least 1")
        if self.DB_MAX_OVERFLOW < 0 or self.DB_POOL_TIMEOUT < 0:
            raise RuntimeError("DB_MAX_OVERFLOW and DB_POOL_TIMEOUT must not be negative")
        if self.CODE_ALLOCATION_ATTEMPTS < 1:
            raise RuntimeError("CODE_ALLOCATION_ATTEMPTS must be at least 1")


settings = Settings()
