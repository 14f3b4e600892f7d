# File location: src/quiz_portal/utils/errors.py
import enum
from typing import Any, Dict, Optional

from fastapi import status


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    UNAVAILABLE = "UNAVAILABLE"
    ATTEMPTS_EXCEEDED = "ATTEMPTS_EXCEEDED"
    SESSION_NOT_ACTIVE = "SESSION_NOT_ACTIVE"
    SESSION_BLOCKED = "SESSION_BLOCKED"
    SESSION_IN_PROGRESS = "SESSION_IN_PROGRESS"
    INVALID_INDEX = "INVALID_INDEX"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    DELETE_CONFLICT = "DELETE_CONFLICT"
    ALREADY_REVIEWED = "ALREADY_REVIEWED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class QuizPortalError(Exception):
    """
    Base class for every classified failure raised by the quiz core.

    Carries a stable `kind`, the HTTP status it maps to, a human-readable
    message and optional structured details that are merged into the
    response body.
    """

    kind: ErrorKind = ErrorKind.VALIDATION_FAILED
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "kind": self.kind.value}
        body.update(self.details)
        return body


class NotFoundError(QuizPortalError):
    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class QuizUnavailableError(QuizPortalError):
    kind = ErrorKind.UNAVAILABLE


class AttemptsExceededError(QuizPortalError):
    kind = ErrorKind.ATTEMPTS_EXCEEDED

    def __init__(self, count: int, limit: int):
        super().__init__(
            f"You have already attempted this quiz {count} times. Maximum attempts: {limit}",
            count=count,
            limit=limit,
        )


class SessionNotActiveError(QuizPortalError):
    kind = ErrorKind.SESSION_NOT_ACTIVE

    def __init__(self, message: str = "Session is not active"):
        super().__init__(message)


class SessionBlockedError(QuizPortalError):
    kind = ErrorKind.SESSION_BLOCKED

    def __init__(self, block_reason: Optional[str]):
        super().__init__("Session is blocked", block_reason=block_reason)


class SessionInProgressError(QuizPortalError):
    kind = ErrorKind.SESSION_IN_PROGRESS


class InvalidQuestionIndexError(QuizPortalError):
    kind = ErrorKind.INVALID_INDEX

    def __init__(self, index: int, question_count: int):
        super().__init__(
            "Invalid question index",
            question_index=index,
            question_count=question_count,
        )


class ValidationFailedError(QuizPortalError):
    kind = ErrorKind.VALIDATION_FAILED
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class DeleteConflictError(QuizPortalError):
    kind = ErrorKind.DELETE_CONFLICT
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, attempt_count: int):
        super().__init__(
            f"Cannot delete quiz. It has {attempt_count} student attempts.",
            attempt_count=attempt_count,
        )


class AlreadyReviewedError(QuizPortalError):
    kind = ErrorKind.ALREADY_REVIEWED
    status_code = status.HTTP_409_CONFLICT


class StoreUnavailableError(QuizPortalError):
    """Infrastructure failure talking to the database. Not a domain error."""

    kind = ErrorKind.STORE_UNAVAILABLE
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
