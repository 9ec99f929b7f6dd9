"""Tagged operation results returned by the service layer.

Business failures (bad input, duplicates, missing rows) are ordinary
outcomes of a study-group operation, so they travel back to the caller
as a `Result` carrying an `ErrorKind` and a human-readable message.
The HTTP layer turns the kind into a status code.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred."


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    UNEXPECTED = "unexpected"


class Result(BaseModel):
    """Outcome of a service operation.

    Attributes:
        success: Whether the operation completed
        value: Payload on success (a group, a list of groups, or None)
        error: Kind of failure (None if success=True)
        message: Human-readable failure description
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: bool
    value: Any = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, value: Any = None) -> "Result":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "Result":
        return cls(success=False, error=error, message=message)

    @classmethod
    def validation(cls, message: str) -> "Result":
        return cls.fail(ErrorKind.VALIDATION, message)

    @classmethod
    def conflict(cls, message: str) -> "Result":
        return cls.fail(ErrorKind.CONFLICT, message)

    @classmethod
    def not_found(cls, message: str) -> "Result":
        return cls.fail(ErrorKind.NOT_FOUND, message)

    @classmethod
    def unexpected(cls) -> "Result":
        return cls.fail(ErrorKind.UNEXPECTED, UNEXPECTED_ERROR_MESSAGE)
