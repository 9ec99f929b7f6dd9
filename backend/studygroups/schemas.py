"""Pydantic request/response schemas used by the API.

Request schemas accept loosely typed `name` and `subject` values; the
service checks them and reports failures with its own error kinds.
"""

from datetime import datetime, timezone
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserIn(BaseModel):
    """A member referenced in a create request."""
    id: Optional[int] = None
    name: Optional[str] = None


class StudyGroupIn(BaseModel):
    """Payload for creating a study group."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    subject: Optional[Union[str, int]] = None
    create_date: Optional[datetime] = Field(default=None, alias="createDate")
    users: Optional[List[UserIn]] = None


class UserOut(BaseModel):
    """User representation returned inside a study group."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class StudyGroupOut(BaseModel):
    """Study group representation returned by the list endpoint."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str
    subject: str
    create_date: datetime = Field(alias="createDate")
    users: List[UserOut] = Field(default_factory=list)

    @classmethod
    def from_model(cls, group) -> "StudyGroupOut":
        """Build the response shape from a loaded `StudyGroup` row."""
        return cls(
            id=group.id,
            name=group.name,
            subject=group.subject,
            create_date=group.create_date,
            users=[UserOut.model_validate(u) for u in group.users],
        )

    @field_validator("subject", mode="before")
    @classmethod
    def _subject_name(cls, value):
        return getattr(value, "value", value)

    @field_validator("create_date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes; they were stored as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
