"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Study groups and users are linked many-to-many through
`StudyGroupUserLink`, whose composite primary key makes a duplicate
membership impossible to store.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlmodel import SQLModel, Field, Relationship

NAME_MIN_LENGTH = 5
NAME_MAX_LENGTH = 30
USER_NAME_MAX_LENGTH = 50


class Subject(str, Enum):
    """Subjects a study group can be about."""
    MATH = "Math"
    CHEMISTRY = "Chemistry"
    PHYSICS = "Physics"


class SortOrder(str, Enum):
    """Ordering of study groups by creation date."""
    ASC = "asc"
    DESC = "desc"


class StudyGroupUserLink(SQLModel, table=True):
    """Membership row joining a `StudyGroup` to a `User`."""
    study_group_id: Optional[int] = Field(default=None, foreign_key="studygroup.id", primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", primary_key=True)


class User(SQLModel, table=True):
    """A user that can belong to any number of study groups."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=USER_NAME_MAX_LENGTH, nullable=False)


class StudyGroup(SQLModel, table=True):
    """A named group of users studying one subject.

    Fields:
    - `name`: 5 to 30 characters, checked by the service before insert
    - `subject`: one of `Subject`
    - `create_date`: defaults to the current UTC time
    - `users`: current members
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=NAME_MAX_LENGTH, nullable=False)
    subject: Subject = Field(index=True)
    create_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    users: List[User] = Relationship(link_model=StudyGroupUserLink)

    def has_member(self, user_id: int) -> bool:
        return any(u.id == user_id for u in self.users)
