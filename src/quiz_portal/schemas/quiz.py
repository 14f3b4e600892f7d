# File location: src/quiz_portal/schemas/quiz.py
from pydantic import BaseModel, Field, field_validator, model_validator
import uuid
from typing import List, Optional
from datetime import datetime

from src.quiz_portal.models.quiz import QuestionType, Difficulty

# --- Option Schemas ---

class OptionBase(BaseModel):
    text: str = Field(..., min_length=1)
    is_correct: bool = False

class OptionCreate(OptionBase):
    # Echo an existing id back on update to keep the option's identity
    id: Optional[uuid.UUID] = None

class OptionRead(OptionBase):
    id: uuid.UUID

    class Config:
        from_attributes = True

# --- Question Schemas ---

class QuestionBase(BaseModel):
    text: str = Field(..., min_length=1)
    type: QuestionType
    points: int = Field(default=1, ge=1)
    time_limit: Optional[int] = Field(default=None, ge=1)  # seconds

class QuestionCreate(QuestionBase):
    id: Optional[uuid.UUID] = None
    options: List[OptionCreate] = []
    correct_answer: Optional[str] = None
    explanation: str = ""

    @model_validator(mode="after")
    def check_answer_key(self) -> "QuestionCreate":
        if not self.text.strip():
            raise ValueError("Question text cannot be empty")
        if self.type == QuestionType.MULTIPLE_CHOICE:
            if not self.options:
                raise ValueError("Multiple-choice questions need at least one option")
            if not any(opt.is_correct for opt in self.options):
                raise ValueError("Multiple-choice questions need at least one correct option")
            for i, opt in enumerate(self.options):
                if not opt.text.strip():
                    raise ValueError(f"Option {i + 1} text cannot be empty")
            self.correct_answer = None
        else:
            if not self.correct_answer or not self.correct_answer.strip():
                raise ValueError(f"{self.type.value} questions need a correct answer")
            self.options = []
        return self

class QuestionRead(QuestionBase):
    id: uuid.UUID
    options: List[OptionRead] = []
    correct_answer: Optional[str] = None
    explanation: str = ""

    class Config:
        from_attributes = True

# --- Quiz Schemas ---

class QuizSettings(BaseModel):
    allow_review: bool = True
    show_correct_answers: bool = False
    randomize_questions: bool = False
    max_attempts: Optional[int] = Field(default=1, ge=1)
    tab_shift_limit: Optional[int] = Field(default=3, ge=0)
    enable_proctoring: bool = True

    class Config:
        from_attributes = True

class QuizBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    time_limit: Optional[int] = Field(default=None, ge=1)  # minutes
    is_active: bool = True
    is_public: bool = False
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    tags: List[str] = []
    category: Optional[str] = None
    difficulty: Difficulty = Difficulty.MEDIUM

class QuizCreate(QuizBase):
    questions: List[QuestionCreate] = []
    settings: Optional[QuizSettings] = None

    @model_validator(mode="after")
    def check_window(self) -> "QuizCreate":
        if self.scheduled_start and self.scheduled_end and self.scheduled_end < self.scheduled_start:
            raise ValueError("scheduled_end must not be before scheduled_start")
        return self

class QuizUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    time_limit: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None
    is_public: Optional[bool] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    tags: Optional[List[str]] = None
    category: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    questions: Optional[List[QuestionCreate]] = None
    settings: Optional[QuizSettings] = None

    @field_validator("title", "is_active", "is_public", "difficulty", "tags")
    @classmethod
    def reject_null(cls, v):
        # Omit the field to leave it unchanged; these columns are NOT NULL
        if v is None:
            raise ValueError("may be omitted but not null")
        return v

    @model_validator(mode="after")
    def check_window(self) -> "QuizUpdate":
        if self.scheduled_start and self.scheduled_end and self.scheduled_end < self.scheduled_start:
            raise ValueError("scheduled_end must not be before scheduled_start")
        return self

class QuizRead(QuizBase):
    id: uuid.UUID
    teacher_id: uuid.UUID
    shareable_link: str
    question_count: int
    total_points: int
    attempts_count: int
    average_score: float
    settings: QuizSettings
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class QuizReadWithDetails(QuizRead):
    questions: List[QuestionRead] = []

# --- Student-facing projections (no answer keys, no explanations) ---

class StudentOptionRead(BaseModel):
    id: uuid.UUID
    text: str

    class Config:
        from_attributes = True

class StudentQuestionRead(BaseModel):
    id: uuid.UUID
    text: str
    type: QuestionType
    points: int
    time_limit: Optional[int] = None
    options: List[StudentOptionRead] = []

    class Config:
        from_attributes = True

class StudentQuizSettings(BaseModel):
    allow_review: bool
    randomize_questions: bool
    max_attempts: Optional[int] = None
    tab_shift_limit: Optional[int] = None
    enable_proctoring: bool

    class Config:
        from_attributes = True

class StudentQuizRead(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    time_limit: Optional[int] = None
    total_points: int
    settings: StudentQuizSettings
    questions: List[StudentQuestionRead] = []

    class Config:
        from_attributes = True

class QuizPublicInfo(BaseModel):
    """What anyone holding the share link sees before starting."""
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    time_limit: Optional[int] = None
    question_count: int
    total_points: int
    estimated_duration: int
    settings: StudentQuizSettings
    teacher: Optional[str] = None
    tags: List[str] = []
    category: Optional[str] = None
    difficulty: Difficulty

# --- Teacher dashboard ---

class RecentQuiz(BaseModel):
    id: uuid.UUID
    title: str
    shareable_link: str
    created_at: datetime
    attempts_count: int
    average_score: float

    class Config:
        from_attributes = True

class DashboardStatistics(BaseModel):
    total_quizzes: int
    active_quizzes: int
    total_sessions: int
    completed_sessions: int

class DashboardRead(BaseModel):
    statistics: DashboardStatistics
    recent_quizzes: List[RecentQuiz]
