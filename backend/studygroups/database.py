"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine from
`settings.DATABASE_URL` and provides the request-scoped session
dependency used by the HTTP layer. By default the store is a SQLite file
next to the package (`studygroups.db`); `sqlite://` selects an in-memory
database shared across threads, which is what the tests use.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from .config import settings


def _build_engine(url: str):
    kwargs = {"echo": settings.SQL_ECHO}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # a single shared connection keeps the in-memory schema alive
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


engine = _build_engine(settings.DATABASE_URL)


SUBJECT_INDEX = "uq_studygroup_subject"


def ensure_subject_index(enabled: bool):
    """Create or drop the unique index that backs one-group-per-subject.

    With the index in place a racing insert of a second group for the
    same subject fails on commit instead of slipping past the read check.
    """
    with engine.begin() as conn:
        if not enabled:
            conn.exec_driver_sql(f"DROP INDEX IF EXISTS {SUBJECT_INDEX}")
            return
        try:
            conn.exec_driver_sql(
                f"CREATE UNIQUE INDEX IF NOT EXISTS {SUBJECT_INDEX} ON studygroup (subject)"
            )
        except IntegrityError as exc:
            raise RuntimeError(
                "UNIQUE_SUBJECTS is on but the database already holds several groups for one subject"
            ) from exc


def create_db_and_tables(unique_subjects: Optional[bool] = None):
    """Create database tables using SQLModel metadata.

    Intended for local development and tests; a real deployment would
    manage the schema with a migration tool instead. The subject index
    follows `unique_subjects`, defaulting to `settings.UNIQUE_SUBJECTS`.
    """
    # models must be imported so their tables are registered on the metadata
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    ensure_subject_index(settings.UNIQUE_SUBJECTS if unique_subjects is None else unique_subjects)


def drop_db_and_tables():
    """Drop every table known to the SQLModel metadata."""
    from . import models  # noqa: F401

    SQLModel.metadata.drop_all(engine)


def get_session():
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes.
    """
    with Session(engine) as session:
        yield session
