# File location: src/quiz_portal/schemas/session.py
from pydantic import BaseModel, EmailStr, Field, StrictBool, field_validator
import uuid
from typing import Any, Dict, List, Optional, Union
from datetime import datetime

from src.quiz_portal.models.student_session import SessionStatus, ProctoringEventKind
from src.quiz_portal.schemas.quiz import StudentQuizRead, StudentQuizSettings

# --- Requests ---

class StartSessionRequest(BaseModel):
    student_name: str = Field(..., min_length=1, max_length=50)
    student_email: Optional[EmailStr] = None

    @field_validator("student_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Student name is required")
        return v

    @field_validator("student_email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v

class AnswerSubmission(BaseModel):
    question_index: int
    # Option id for multiple-choice questions, free text otherwise
    answer: Union[StrictBool, str, int, float]
    time_spent: int = Field(default=0, ge=0)  # seconds

class ProctoringEventRequest(BaseModel):
    event: ProctoringEventKind = ProctoringEventKind.TAB_HIDDEN
    duration: int = Field(default=0, ge=0)  # milliseconds

class AbandonRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=255)

# --- Responses ---

class SessionStarted(BaseModel):
    session_token: str
    quiz: StudentQuizRead

class AnswerAccepted(BaseModel):
    session_token: str
    question_index: int
    question_id: uuid.UUID
    submitted_at: datetime

class WarningRead(BaseModel):
    type: str
    message: str
    timestamp: str

class ProctoringEventRecorded(BaseModel):
    session_token: str
    status: SessionStatus
    tab_shift_count: int
    is_blocked: bool
    block_reason: Optional[str] = None
    warnings: List[WarningRead] = []

class SessionCompleted(BaseModel):
    session_token: str
    score: int
    max_score: int
    percentage: int
    duration: int
    tab_shift_count: int
    suspicious_activity: bool
    completed_at: datetime

class SessionAbandoned(BaseModel):
    session_token: str
    status: SessionStatus
    reason: Optional[str] = None

class SessionInfo(BaseModel):
    id: uuid.UUID
    session_token: str
    student_name: str
    start_time: datetime
    status: SessionStatus
    # Minutes left; None when the quiz has no time limit
    time_remaining: Optional[float] = None
    tab_shift_count: int
    warnings: List[WarningRead] = []
    is_blocked: bool
    block_reason: Optional[str] = None

class QuizBrief(BaseModel):
    id: uuid.UUID
    title: str
    time_limit: Optional[int] = None
    total_points: int
    settings: StudentQuizSettings

    class Config:
        from_attributes = True

class SessionStatusRead(BaseModel):
    session: SessionInfo
    quiz: QuizBrief

class SessionDetailsRead(BaseModel):
    session: SessionInfo
    quiz: StudentQuizRead

class AnswerProgress(BaseModel):
    question_id: uuid.UUID
    submitted_at: datetime
    time_spent: int

    class Config:
        from_attributes = True

class ProgressSummary(BaseModel):
    answered_questions: int
    total_questions: int
    percentage: int
    remaining_questions: int

class SessionProgressRead(BaseModel):
    progress: ProgressSummary
    answers: List[AnswerProgress]

# --- Teacher-facing session views ---

class SessionSummaryRead(BaseModel):
    id: uuid.UUID
    session_token: str
    student_name: str
    student_email: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: int
    score: int
    max_score: int
    percentage: int
    status: SessionStatus
    tab_shift_count: int
    suspicious_activity: bool
    is_blocked: bool
    block_reason: Optional[str] = None

    class Config:
        from_attributes = True

class AnswerRead(BaseModel):
    question_id: uuid.UUID
    selected_option_id: Optional[uuid.UUID] = None
    text_answer: Optional[str] = None
    is_correct: bool
    points: int
    time_spent: int
    submitted_at: datetime

    class Config:
        from_attributes = True

class SessionDetailRead(SessionSummaryRead):
    answers: List[AnswerRead] = []
    tab_shifts: List[Dict[str, Any]] = []
    warnings: List[WarningRead] = []
    activity_log: List[Dict[str, Any]] = []
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    review_notes: Optional[str] = None
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None

class ReviewRequest(BaseModel):
    notes: str = Field(..., min_length=1)

class ScoreCheckRead(BaseModel):
    session_id: uuid.UUID
    status: SessionStatus
    stored_score: int
    recomputed_score: int
    stored_percentage: int
    recomputed_percentage: int
    max_score: int
    skipped_question_ids: List[uuid.UUID] = []
    matches: bool
