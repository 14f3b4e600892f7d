# File: src/quiz_portal/routers/teacher_router.py

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from typing import List, Optional
import uuid

from ..db.session import get_db
from ..controllers import quiz_controller, session_controller
from ..models.student_session import SessionStatus
from ..models.user import User
from ..schemas.quiz import QuizCreate, QuizUpdate, QuizRead, QuizReadWithDetails, DashboardRead
from ..schemas.session import SessionSummaryRead, SessionDetailRead, ReviewRequest, ScoreCheckRead
from ..utils.dependencies import get_current_teacher

# Every route here is owner-scoped: a teacher only ever sees their own quizzes
router = APIRouter(
    prefix="/teacher",
    tags=["Teacher"],
)


# --- Quiz Management Endpoints ---

@router.post("/quizzes", response_model=QuizReadWithDetails, status_code=status.HTTP_201_CREATED)
def create_quiz(
    quiz_data: QuizCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(get_current_teacher),
):
    """Creates a quiz with its questions and options and mints its share link."""
    return quiz_controller.create_quiz(db, teacher, quiz_data)


@router.get("/quizzes", response_model=List[QuizRead])
def list_quizzes(
    q: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    teacher: User = Depends(get_current_teacher),
):
    """Lists the teacher's quizzes, newest first."""
    return quiz_controller.list_teacher_quizzes(db, teacher, q=q, is_active=is_active)


@router.get("/quizzes/{quiz_id}", response_model=QuizReadWithDetails)
def get_quiz(
    quiz_id: uuid.UUID,
    db: Session = Depends(get_db),
    teacher: User = Depends(get_current_teacher),
):
    return quiz_controller.get_teacher_quiz(db, teacher, quiz_id)


@router.put("/quizzes/{quiz_id}", response_model=QuizReadWithDetails)
def update_quiz(
    quiz_id: uuid.UUID,
    quiz_data: QuizUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(get_current_teacher),
):
    """Update a quiz. Sending `questions` replaces the question list."""
    return quiz_controller.update_quiz(db, teacher, quiz_id, quiz_data)


@router.delete("/quizzes/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quiz(
    quiz_id: uuid.UUID,
    db: Session = Depends(get_db),
    teacher: User = Depends(get_current_teacher),
):
    """Delete a quiz that nobody has attempted yet."""
    quiz_controller.delete_quiz(db, teacher, quiz_id)


@router.get("/quizzes/{quiz_id}/sessions", response_model=List[SessionSummaryRead])
def list_quiz_sessions(
    quiz_id: uuid.UUID,
    session_status: Optional[SessionStatus] = None,
    db: Session = Depends(get_db),
    teacher: User = Depends(get_current_teacher),
):
    return session_controller.list_quiz_sessions(db, teacher, quiz_id, status=session_status)


# --- Session Review Endpoints ---

@router.get("/sessions/{session_id}", response_model=SessionDetailRead)
def get_session(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    teacher: User = Depends(get_current_teacher),
):
    return session_controller.get_teacher_session(db, teacher, session_id)


@router.put("/sessions/{session_id}/review", response_model=SessionDetailRead)
def review_session(
    session_id: uuid.UUID,
    review: ReviewRequest,
    db: Session = Depends(get_db),
    teacher: User = Depends(get_current_teacher),
):
    """Attach review notes to a finished session (once)."""
    return session_controller.review_session(db, teacher, session_id, review.notes)


@router.get("/sessions/{session_id}/score-check", response_model=ScoreCheckRead)
def check_session_score(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    teacher: User = Depends(get_current_teacher),
):
    """Re-score the stored answers and compare with what was recorded."""
    return session_controller.verify_session_score(db, teacher, session_id)


@router.get("/dashboard", response_model=DashboardRead)
def get_dashboard(
    db: Session = Depends(get_db),
    teacher: User = Depends(get_current_teacher),
):
    return quiz_controller.get_dashboard(db, teacher)
