# File location: src/quiz_portal/models/quiz.py
import enum
import math
import uuid
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Column, Enum as SQLAlchemyEnum, JSON, Text
from sqlalchemy.ext.mutable import MutableList
from sqlmodel import SQLModel, Field, Relationship

from src.quiz_portal.utils.time import get_utc_time

if TYPE_CHECKING:
    from src.quiz_portal.models.user import User
    from src.quiz_portal.models.student_session import StudentSession


class QuestionType(str, enum.Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"
    ESSAY = "essay"


class Difficulty(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Quiz(SQLModel, table=True):
    __table_args__ = {"extend_existing": True}
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    teacher_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    shareable_link: Optional[str] = Field(default=None, unique=True, index=True)
    title: str
    description: Optional[str] = Field(default=None, sa_column=Column(Text))
    time_limit: Optional[int] = None  # minutes
    is_active: bool = Field(default=True)
    is_public: bool = Field(default=False)
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None

    # Settings
    allow_review: bool = Field(default=True)
    show_correct_answers: bool = Field(default=False)
    randomize_questions: bool = Field(default=False)
    max_attempts: Optional[int] = Field(default=1)
    tab_shift_limit: Optional[int] = Field(default=3)
    enable_proctoring: bool = Field(default=True)

    tags: List[str] = Field(default_factory=list, sa_column=Column(MutableList.as_mutable(JSON)))
    category: Optional[str] = None
    difficulty: Difficulty = Field(
        default=Difficulty.MEDIUM,
        sa_column=Column(SQLAlchemyEnum(Difficulty, values_callable=_enum_values), nullable=False),
    )

    # Maintained fields
    total_points: int = Field(default=0)
    attempts_count: int = Field(default=0)
    score_sum: float = Field(default=0.0)
    average_score: float = Field(default=0.0)

    created_at: datetime = Field(default_factory=get_utc_time)
    updated_at: datetime = Field(default_factory=get_utc_time)

    teacher: "User" = Relationship(back_populates="quizzes")
    questions: List["Question"] = Relationship(
        back_populates="quiz",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Question.position"},
    )
    sessions: List["StudentSession"] = Relationship(back_populates="quiz")

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def estimated_duration(self) -> int:
        """Minutes: the time limit if set, else per-question limits (60s default)."""
        if self.time_limit:
            return self.time_limit
        if self.questions:
            seconds = sum(q.time_limit or 60 for q in self.questions)
            return math.ceil(seconds / 60)
        return 30

    @property
    def settings(self) -> dict:
        return {
            "allow_review": self.allow_review,
            "show_correct_answers": self.show_correct_answers,
            "randomize_questions": self.randomize_questions,
            "max_attempts": self.max_attempts,
            "tab_shift_limit": self.tab_shift_limit,
            "enable_proctoring": self.enable_proctoring,
        }

    def find_question(self, question_id: uuid.UUID) -> Optional["Question"]:
        return next((q for q in self.questions if q.id == question_id), None)


class Question(SQLModel, table=True):
    __table_args__ = {"extend_existing": True}
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    quiz_id: uuid.UUID = Field(foreign_key="quiz.id", index=True)
    position: int = Field(default=0)
    text: str = Field(sa_column=Column(Text, nullable=False))
    type: QuestionType = Field(
        sa_column=Column(SQLAlchemyEnum(QuestionType, values_callable=_enum_values), nullable=False)
    )
    correct_answer: Optional[str] = None
    points: int = Field(default=1)  # Points for a correct answer
    time_limit: Optional[int] = None  # seconds
    explanation: str = Field(default="")

    quiz: Quiz = Relationship(back_populates="questions")
    options: List["Option"] = Relationship(
        back_populates="question",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Option.position"},
    )

    @property
    def is_multiple_choice(self) -> bool:
        return self.type == QuestionType.MULTIPLE_CHOICE


class Option(SQLModel, table=True):
    __table_args__ = {"extend_existing": True}
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    question_id: uuid.UUID = Field(foreign_key="question.id", index=True)
    position: int = Field(default=0)
    text: str
    is_correct: bool = Field(default=False)

    question: Question = Relationship(back_populates="options")
