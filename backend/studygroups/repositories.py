"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
study groups). Repositories stage changes on the session they are given
and leave committing to the caller, so that a whole service operation
runs in one transaction.
"""

from typing import Iterable, List, Optional

from sqlalchemy import delete
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from . import models


class UserRepository:
    """Lookups and inserts for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)

    def list_by_ids(self, user_ids: Iterable[int]) -> List[models.User]:
        """Return the users whose ids are in `user_ids` (unknown ids are skipped)."""
        ids = list(user_ids)
        if not ids:
            return []
        stmt = select(models.User).where(models.User.id.in_(ids))
        return list(self.session.exec(stmt).all())

    def add(self, user: models.User) -> models.User:
        """Stage a new user for insert on the next commit."""
        self.session.add(user)
        return user


class StudyGroupRepository:
    """Queries and membership changes for `StudyGroup` records."""
    def __init__(self, session: Session):
        self.session = session

    def _select(self):
        return select(models.StudyGroup).options(selectinload(models.StudyGroup.users))

    def get(self, group_id: int) -> Optional[models.StudyGroup]:
        """Fetch a study group with its members, or `None`."""
        stmt = self._select().where(models.StudyGroup.id == group_id)
        return self.session.exec(stmt).first()

    def list_all(self) -> List[models.StudyGroup]:
        """Return every study group with members loaded."""
        return list(self.session.exec(self._select()).all())

    def list_by_subject(self, subject: models.Subject) -> List[models.StudyGroup]:
        """Return all study groups for a given subject."""
        stmt = self._select().where(models.StudyGroup.subject == subject)
        return list(self.session.exec(stmt).all())

    def exists_by_subject(self, subject: models.Subject) -> bool:
        """Return True if any study group already uses `subject`."""
        stmt = select(models.StudyGroup.id).where(models.StudyGroup.subject == subject)
        return self.session.exec(stmt).first() is not None

    def add(self, group: models.StudyGroup) -> models.StudyGroup:
        """Stage a new study group (and its member links)."""
        self.session.add(group)
        return group

    def add_member(self, group: models.StudyGroup, user: models.User) -> None:
        group.users.append(user)
        self.session.add(group)

    def remove_member(self, group: models.StudyGroup, user_id: int) -> None:
        for u in list(group.users):
            if u.id == user_id:
                group.users.remove(u)
        self.session.add(group)

    def delete_all(self) -> None:
        """Delete every membership row, then every study group. Users stay."""
        self.session.execute(delete(models.StudyGroupUserLink))
        self.session.execute(delete(models.StudyGroup))
