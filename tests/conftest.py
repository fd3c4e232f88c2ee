import os
import sys
from pathlib import Path

import pytest
from sqlmodel import SQLModel

test_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(test_root))

# Test database path
TEST_DB_PATH = os.path.join(test_root, "data", "test_cablehub.db")

# Ensure test DB path is used by the application before app imports engine
os.environ["CABLEHUB_DB_PATH"] = TEST_DB_PATH
os.makedirs(os.path.dirname(TEST_DB_PATH), exist_ok=True)

from app.database import engine  # noqa: E402

import app.models.drum  # noqa: E402,F401  ensure SQLModel metadata registered
import app.models.settings  # noqa: E402,F401


@pytest.fixture(autouse=True, scope="session")
def reset_db():
    # drop the test database if a previous run left it behind
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)
    SQLModel.metadata.create_all(engine)
    yield
    engine.dispose()
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest.fixture
def db_session():
    from sqlmodel import Session as _Session

    sess = _Session(engine)
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()
