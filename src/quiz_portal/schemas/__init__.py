# src/quiz_portal/schemas/__init__.py
from .quiz import QuizRead, QuizReadWithDetails, StudentQuizRead
from .session import SessionStarted, SessionDetailRead
from .user import UserRead

__all__ = [
    "QuizRead",
    "QuizReadWithDetails",
    "StudentQuizRead",
    "SessionStarted",
    "SessionDetailRead",
    "UserRead",
]
