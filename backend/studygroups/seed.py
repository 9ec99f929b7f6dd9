"""Demo data for local development.

Seeds a handful of users and study groups into an empty database so the
API has something to show right after startup.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlmodel import Session, select

from . import models
from .config import settings
from .database import create_db_and_tables

logger = logging.getLogger("studygroups.seed")

DEMO_USERS = ["Alice", "Bob", "Charlie", "Diana", "Ethan", "Fiona", "George", "Helen"]

# (name, subject, indexes into DEMO_USERS)
DEMO_GROUPS = [
    ("Algebra Team", models.Subject.MATH, [0, 1, 4]),
    ("Organic Chemistry Circle", models.Subject.CHEMISTRY, [2, 5]),
    ("Physics Mechanics", models.Subject.PHYSICS, [3, 4, 6]),
    ("Quantum Study Group", models.Subject.PHYSICS, [1, 5, 7]),
    ("Math Olympiad Prep", models.Subject.MATH, [0, 2, 6]),
    ("Inorganic Chemistry Crew", models.Subject.CHEMISTRY, [3, 7]),
]


def seed_demo_data(session: Session, unique_subjects: Optional[bool] = None) -> dict:
    """Insert the demo users and groups unless a study group already exists.

    With subject uniqueness on, only the first group of each subject is
    inserted. Returns counts of what was created.
    """
    if unique_subjects is None:
        unique_subjects = settings.UNIQUE_SUBJECTS
    create_db_and_tables(unique_subjects=unique_subjects)
    if session.exec(select(models.StudyGroup.id)).first() is not None:
        return {"users": 0, "groups": 0}

    users = [models.User(name=n) for n in DEMO_USERS]
    session.add_all(users)

    # stagger creation dates so sorting is visible in the demo
    started = datetime.now(timezone.utc)
    seen = set()
    groups = []
    for offset, (name, subject, member_idx) in enumerate(DEMO_GROUPS):
        if unique_subjects and subject in seen:
            continue
        seen.add(subject)
        groups.append(models.StudyGroup(
            name=name,
            subject=subject,
            create_date=started + timedelta(minutes=offset),
            users=[users[i] for i in member_idx],
        ))
    session.add_all(groups)
    session.commit()
    created = {"users": len(users), "groups": len(groups)}
    logger.info("demo_data_seeded %s", json.dumps(created))
    return created
