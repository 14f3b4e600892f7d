# src/quiz_portal/models/__init__.py

# Centralizes all model imports so SQLModel's metadata knows every table
# before create_all() or mapper configuration runs.
from .user import User
from .quiz import Quiz, Question, Option, QuestionType, Difficulty
from .student_session import (
    StudentSession,
    Answer,
    SessionStatus,
    ProctoringEventKind,
    ActivityAction,
    TERMINAL_STATUSES,
)

__all__ = [
    "User",
    "Quiz",
    "Question",
    "Option",
    "QuestionType",
    "Difficulty",
    "StudentSession",
    "Answer",
    "SessionStatus",
    "ProctoringEventKind",
    "ActivityAction",
    "TERMINAL_STATUSES",
]
