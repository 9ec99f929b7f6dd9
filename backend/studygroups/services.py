"""Business logic for study groups.

`StudyGroupService` validates input, enforces the group invariants and
persists changes through the repositories. Each public operation runs
in the single transaction of the session it was given and returns a
`Result` instead of raising for business failures:

- VALIDATION: bad subject, name, sort order or user payload
- CONFLICT: duplicate subject or duplicate membership
- NOT_FOUND: missing group/user, non-membership, empty listing
- UNEXPECTED: the store failed; details are logged, never returned
"""

import functools
import json
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from . import models, repositories, schemas
from .config import settings
from .results import Result

logger = logging.getLogger("studygroups.service")

INVALID_SUBJECT = "Invalid subject value."
INVALID_NAME = (
    f"Name must be between {models.NAME_MIN_LENGTH} and {models.NAME_MAX_LENGTH} characters."
)
INVALID_USER_NAME = f"User name must be between 1 and {models.USER_NAME_MAX_LENGTH} characters."
INVALID_SORT = "Sort must be 'asc' or 'desc'."
USER_ID_REQUIRED = "User id is required."
DUPLICATE_SUBJECT = "A study group with the same subject already exists."
GROUP_NOT_FOUND = "Study group not found."
USER_NOT_FOUND = "User not found."
ALREADY_MEMBER = "User is already a member of the study group."
NOT_A_MEMBER = "User is not a member of the study group."
NO_GROUPS = "No study groups have been created."
NO_GROUPS_FOR_SUBJECT = "No study groups found for the specified subject."
SAVE_CONFLICT = "The study group conflicts with existing data."


def parse_subject(value: Union[str, int, models.Subject, None]) -> Optional[models.Subject]:
    """Map a subject to `Subject`, or None if unknown.

    Names match case-insensitively; integers are ordinals in definition
    order (0 Math, 1 Chemistry, 2 Physics).
    """
    if isinstance(value, models.Subject):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        subjects = list(models.Subject)
        return subjects[value] if 0 <= value < len(subjects) else None
    if not isinstance(value, str):
        return None
    wanted = value.strip().lower()
    for subject in models.Subject:
        if subject.value.lower() == wanted:
            return subject
    return None


def parse_sort(value: Union[str, models.SortOrder, None]) -> Optional[models.SortOrder]:
    """Map `asc`/`desc` (any case) to `SortOrder`; a missing value means ascending."""
    if isinstance(value, models.SortOrder):
        return value
    if value is None or not value.strip():
        return models.SortOrder.ASC
    try:
        return models.SortOrder(value.strip().lower())
    except ValueError:
        return None


def is_valid_name(name: Optional[str]) -> bool:
    if not name or not name.strip():
        return False
    return models.NAME_MIN_LENGTH <= len(name) <= models.NAME_MAX_LENGTH


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def sort_groups(groups: Iterable[models.StudyGroup], order: models.SortOrder) -> List[models.StudyGroup]:
    """Order groups by creation date, oldest first for ASC and newest first for DESC."""
    return sorted(groups, key=lambda g: _utc(g.create_date), reverse=order == models.SortOrder.DESC)


def _event(name: str, **fields) -> None:
    logger.info("%s %s", name, json.dumps(fields, ensure_ascii=True, default=str))


def store_guard(operation):
    """Turn store failures inside a service operation into an UNEXPECTED result.

    The transaction is rolled back and the exception is logged with its
    traceback; callers only ever see the generic message.
    """
    @functools.wraps(operation)
    def wrapper(self, *args, **kwargs):
        try:
            return operation(self, *args, **kwargs)
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(
                "store_failure %s",
                json.dumps({"operation": operation.__name__}, ensure_ascii=True),
            )
            return Result.unexpected()
    return wrapper


class StudyGroupService:
    """Create, list, search, join, leave and delete-all for study groups.

    The session is request scoped: the HTTP layer builds one service per
    request from the session yielded by `database.get_session`.
    """
    def __init__(
        self,
        session: Session,
        unique_subjects: Optional[bool] = None,
        auto_provision_users: Optional[bool] = None,
    ):
        self.session = session
        self.group_repo = repositories.StudyGroupRepository(session)
        self.user_repo = repositories.UserRepository(session)
        self.unique_subjects = settings.UNIQUE_SUBJECTS if unique_subjects is None else unique_subjects
        self.auto_provision_users = (
            settings.AUTO_PROVISION_USERS if auto_provision_users is None else auto_provision_users
        )

    def _commit(self, conflict_message: str) -> Optional[Result]:
        """Commit the pending transaction; an integrity violation becomes a CONFLICT."""
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            return Result.conflict(conflict_message)
        return None

    @store_guard
    def create(self, data: schemas.StudyGroupIn) -> Result:
        """Validate and persist a new study group.

        On success the result value is the created `StudyGroup`.
        """
        subject = parse_subject(data.subject)
        if subject is None:
            return Result.validation(INVALID_SUBJECT)
        if not is_valid_name(data.name):
            return Result.validation(INVALID_NAME)
        if self.unique_subjects and self.group_repo.exists_by_subject(subject):
            _event("study_group_rejected", reason="duplicate_subject", subject=subject.value)
            return Result.conflict(DUPLICATE_SUBJECT)

        members, failure = self._resolve_members(data.users or [])
        if failure is not None:
            # drop any users staged before the failing entry
            self.session.rollback()
            return failure

        group = models.StudyGroup(name=data.name, subject=subject, users=members)
        if data.create_date is not None:
            group.create_date = _utc(data.create_date)
        self.group_repo.add(group)
        # the subject index rejects a group committed by a racing request
        failure = self._commit(DUPLICATE_SUBJECT if self.unique_subjects else SAVE_CONFLICT)
        if failure is not None:
            return failure
        self.session.refresh(group)
        _event(
            "study_group_created",
            group_id=group.id,
            subject=subject.value,
            members=[u.id for u in members],
        )
        return Result.ok(group)

    def _resolve_members(self, users: List[schemas.UserIn]) -> Tuple[List[models.User], Optional[Result]]:
        """Turn the requested member list into `User` rows.

        Duplicate ids collapse into one membership. Unknown users are
        rejected unless auto-provisioning is enabled, in which case they
        are staged as new users.
        """
        requested = {}
        anonymous = []
        for entry in users:
            if entry.id is None:
                anonymous.append(entry)
            else:
                requested.setdefault(entry.id, entry)
        if anonymous and not self.auto_provision_users:
            return [], Result.validation(USER_ID_REQUIRED)

        found = {u.id: u for u in self.user_repo.list_by_ids(requested)}
        members = []
        for user_id, entry in requested.items():
            user = found.get(user_id)
            if user is None:
                if not self.auto_provision_users:
                    return [], Result.not_found(f"User not found: {user_id}.")
                if not self._is_valid_user_name(entry.name):
                    return [], Result.validation(INVALID_USER_NAME)
                user = self.user_repo.add(models.User(id=user_id, name=entry.name))
            members.append(user)
        for entry in anonymous:
            if not self._is_valid_user_name(entry.name):
                return [], Result.validation(INVALID_USER_NAME)
            members.append(self.user_repo.add(models.User(name=entry.name)))
        return members, None

    @staticmethod
    def _is_valid_user_name(name: Optional[str]) -> bool:
        return bool(name and name.strip()) and len(name) <= models.USER_NAME_MAX_LENGTH

    @store_guard
    def list_groups(self, sort: Union[str, models.SortOrder, None] = None) -> Result:
        """Return every study group, ordered by creation date."""
        order = parse_sort(sort)
        if order is None:
            return Result.validation(INVALID_SORT)
        groups = self.group_repo.list_all()
        if not groups:
            return Result.not_found(NO_GROUPS)
        return Result.ok(sort_groups(groups, order))

    @store_guard
    def search_by_subject(
        self,
        subject: Union[str, models.Subject, None],
        sort: Union[str, models.SortOrder, None] = None,
    ) -> Result:
        """Return the study groups of one subject, ordered by creation date."""
        parsed = parse_subject(subject)
        if parsed is None:
            return Result.validation(INVALID_SUBJECT)
        order = parse_sort(sort)
        if order is None:
            return Result.validation(INVALID_SORT)
        groups = self.group_repo.list_by_subject(parsed)
        if not groups:
            return Result.not_found(NO_GROUPS_FOR_SUBJECT)
        return Result.ok(sort_groups(groups, order))

    @store_guard
    def join(self, group_id: int, user_id: int) -> Result:
        """Add a user to a study group.

        The membership check and the insert share one transaction; if a
        concurrent request inserts the same membership first, the link
        table's primary key rejects ours and the result is a CONFLICT.
        """
        group = self.group_repo.get(group_id)
        if group is None:
            return Result.not_found(GROUP_NOT_FOUND)
        user = self.user_repo.get(user_id)
        if user is None:
            return Result.not_found(USER_NOT_FOUND)
        if group.has_member(user_id):
            return Result.conflict(ALREADY_MEMBER)
        self.group_repo.add_member(group, user)
        failure = self._commit(ALREADY_MEMBER)
        if failure is not None:
            return failure
        _event("study_group_joined", group_id=group_id, user_id=user_id)
        return Result.ok()

    @store_guard
    def leave(self, group_id: int, user_id: int) -> Result:
        """Remove a user from a study group."""
        group = self.group_repo.get(group_id)
        if group is None:
            return Result.not_found(GROUP_NOT_FOUND)
        if self.user_repo.get(user_id) is None:
            return Result.not_found(USER_NOT_FOUND)
        if not group.has_member(user_id):
            return Result.not_found(NOT_A_MEMBER)
        self.group_repo.remove_member(group, user_id)
        self.session.commit()
        _event("study_group_left", group_id=group_id, user_id=user_id)
        return Result.ok()

    @store_guard
    def delete_all(self) -> Result:
        """Remove every study group and membership; users are kept."""
        self.group_repo.delete_all()
        self.session.commit()
        _event("study_groups_deleted")
        return Result.ok()
