from pathlib import Path
import os
import tempfile
import pytest

# Point the app at a throwaway SQLite file before anything imports it.
_DB_DIR = Path(tempfile.mkdtemp(prefix="schooladmin-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"

from sqlmodel import SQLModel, Session  # noqa: E402
from schooladmin import models  # noqa: E402,F401
from schooladmin.database import engine  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db():
    """Start every test from empty tables."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s
