# File: src/quiz_portal/controllers/attempt_controller.py

import logging
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from ..models.quiz import Quiz
from ..models.student_session import StudentSession, TERMINAL_STATUSES
from ..utils.errors import AttemptsExceededError, QuizUnavailableError
from . import quiz_controller

logger = logging.getLogger(__name__)


def count_finished_attempts(db: Session, quiz_id: uuid.UUID, student_name: str) -> int:
    """
    Sessions this student has finished (in any terminal state) for the quiz.

    "This student" is the exact display name; there is no stronger identity
    for anonymous attempts.
    """
    return db.exec(
        select(func.count())
        .select_from(StudentSession)
        .where(
            StudentSession.quiz_id == quiz_id,
            StudentSession.student_name == student_name,
            StudentSession.status.in_(TERMINAL_STATUSES),
        )
    ).one()


def check_attempt_eligibility(db: Session, share_token: str, student_name: str) -> Quiz:
    """
    Decide whether `student_name` may start a new session on the quiz.

    Read-only. Returns the quiz when the student may proceed, raises
    NOT_FOUND, UNAVAILABLE or ATTEMPTS_EXCEEDED otherwise.
    """
    quiz = quiz_controller.get_quiz_by_share_token(db, share_token)

    if not quiz_controller.is_available(quiz):
        logger.warning(f"Quiz {quiz.id} requested outside its availability window")
        raise QuizUnavailableError("Quiz is not available at this time")

    if quiz.max_attempts is not None:
        finished = count_finished_attempts(db, quiz.id, student_name)
        if finished >= quiz.max_attempts:
            logger.warning(
                f"Student '{student_name}' exhausted attempts on quiz {quiz.id} ({finished}/{quiz.max_attempts})"
            )
            raise AttemptsExceededError(count=finished, limit=quiz.max_attempts)

    return quiz
