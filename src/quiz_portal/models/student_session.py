# File location: src/quiz_portal/models/student_session.py
import enum
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, Enum as SQLAlchemyEnum, JSON, Text, UniqueConstraint
from sqlalchemy.ext.mutable import MutableList
from sqlmodel import SQLModel, Field, Relationship

from src.quiz_portal.models.quiz import Quiz
from src.quiz_portal.utils.time import get_utc_time


class SessionStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    BLOCKED = "blocked"


TERMINAL_STATUSES = (SessionStatus.COMPLETED, SessionStatus.ABANDONED, SessionStatus.BLOCKED)


class ProctoringEventKind(str, enum.Enum):
    TAB_HIDDEN = "tab-hidden"
    TAB_VISIBLE = "tab-visible"
    WINDOW_BLUR = "window-blur"
    WINDOW_FOCUS = "window-focus"


class ActivityAction(str, enum.Enum):
    QUIZ_STARTED = "quiz-started"
    QUESTION_ANSWERED = "question-answered"
    TAB_SHIFT = "tab-shift"
    QUIZ_BLOCKED = "quiz-blocked"
    QUIZ_COMPLETED = "quiz-completed"
    QUIZ_ABANDONED = "quiz-abandoned"


class StudentSession(SQLModel, table=True):
    __tablename__ = "student_session"
    __table_args__ = {"extend_existing": True}
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    session_token: str = Field(unique=True, index=True)
    quiz_id: uuid.UUID = Field(foreign_key="quiz.id", index=True)
    student_name: str = Field(index=True)
    student_email: Optional[str] = None

    start_time: datetime = Field(default_factory=get_utc_time)
    end_time: Optional[datetime] = None
    duration: int = Field(default=0)  # seconds
    status: SessionStatus = Field(
        default=SessionStatus.ACTIVE,
        sa_column=Column(
            SQLAlchemyEnum(SessionStatus, values_callable=lambda e: [m.value for m in e]),
            nullable=False,
            index=True,
        ),
    )

    score: int = Field(default=0)
    max_score: int  # snapshot of quiz.total_points when the session started
    percentage: int = Field(default=0)

    tab_shift_count: int = Field(default=0)
    tab_shifts: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(MutableList.as_mutable(JSON)))
    suspicious_activity: bool = Field(default=False)
    warnings: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(MutableList.as_mutable(JSON)))
    is_blocked: bool = Field(default=False)
    block_reason: Optional[str] = None
    activity_log: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(MutableList.as_mutable(JSON)))

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    review_notes: Optional[str] = Field(default=None, sa_column=Column(Text))
    reviewed_by: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id")
    reviewed_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=get_utc_time)
    updated_at: datetime = Field(default_factory=get_utc_time)

    quiz: Quiz = Relationship(back_populates="sessions")
    answers: List["Answer"] = Relationship(
        back_populates="session",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Answer.submitted_at"},
    )

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def log_activity(self, action: ActivityAction, **details: Any) -> None:
        self.activity_log.append({
            "action": action.value,
            "timestamp": get_utc_time().isoformat(),
            "details": details,
        })

    def find_answer(self, question_id: uuid.UUID) -> Optional["Answer"]:
        return next((a for a in self.answers if a.question_id == question_id), None)


class Answer(SQLModel, table=True):
    """
    One question's response inside a session.

    The value is stored as a tagged pair: `selected_option_id` for
    multiple-choice questions, `text_answer` for every other type. Correctness
    and points stay unset until the session is completed.
    """

    __table_args__ = (
        UniqueConstraint("session_id", "question_id", name="uq_answer_session_question"),
        {"extend_existing": True},
    )
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    session_id: uuid.UUID = Field(foreign_key="student_session.id", index=True)
    # Not a foreign key: the question may be edited out of the quiz later
    question_id: uuid.UUID
    selected_option_id: Optional[uuid.UUID] = None
    text_answer: Optional[str] = Field(default=None, sa_column=Column(Text))
    is_correct: bool = Field(default=False)
    points: int = Field(default=0)
    time_spent: int = Field(default=0)  # seconds
    submitted_at: datetime = Field(default_factory=get_utc_time)

    session: StudentSession = Relationship(back_populates="answers")
