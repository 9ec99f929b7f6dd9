import os

# Point the app at a private in-memory store before anything imports it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["UNIQUE_SUBJECTS"] = "true"
os.environ["AUTO_PROVISION_USERS"] = "false"
os.environ["API_PREFIX"] = ""

import pytest
from sqlmodel import Session

from studygroups import models
from studygroups.database import engine, create_db_and_tables, drop_db_and_tables


@pytest.fixture(autouse=True)
def reset_db():
    """Give every test a fresh, empty schema."""
    drop_db_and_tables()
    create_db_and_tables()
    yield


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def add_users():
    """Insert users in a short-lived session and return their ids."""
    def _add(*names, ids=None):
        with Session(engine) as s:
            users = []
            for idx, name in enumerate(names):
                user_id = ids[idx] if ids else None
                users.append(models.User(id=user_id, name=name))
            s.add_all(users)
            s.commit()
            return [u.id for u in users]
    return _add
