# File: src/quiz_portal/routers/quiz_router.py

from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session
from typing import Optional

from ..db.session import get_db
from ..controllers import quiz_controller, session_controller
from ..schemas.quiz import QuizPublicInfo
from ..schemas.session import (
    StartSessionRequest,
    SessionStarted,
    SessionDetailsRead,
    AnswerSubmission,
    AnswerAccepted,
    ProctoringEventRequest,
    ProctoringEventRecorded,
    SessionCompleted,
    AbandonRequest,
    SessionAbandoned,
)
from ..utils.errors import QuizUnavailableError

# Student-facing and unauthenticated: everything is keyed by opaque tokens
router = APIRouter(
    prefix="/quiz",
    tags=["Quiz Attempts"],
)


@router.get(
    "/{share_token}",
    response_model=QuizPublicInfo,
    summary="Get a quiz by its share link",
)
def get_shared_quiz(share_token: str, db: Session = Depends(get_db)):
    quiz = quiz_controller.get_quiz_by_share_token(db, share_token)
    if not quiz_controller.is_available(quiz):
        raise QuizUnavailableError("Quiz is not available at this time")
    return quiz_controller.to_public_info(quiz)


@router.post(
    "/{share_token}/start",
    response_model=SessionStarted,
    status_code=status.HTTP_201_CREATED,
    summary="Start a new attempt",
)
def start_quiz_session(
    share_token: str,
    payload: StartSessionRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    session, quiz = session_controller.start_session(
        db,
        share_token,
        payload.student_name,
        student_email=payload.student_email,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return SessionStarted(
        session_token=session.session_token,
        quiz=quiz_controller.to_student_view(quiz),
    )


@router.get(
    "/session/{session_token}",
    response_model=SessionDetailsRead,
    summary="Get an active attempt with its questions",
)
def get_quiz_session(session_token: str, db: Session = Depends(get_db)):
    return session_controller.get_session_details(db, session_token)


@router.post(
    "/session/{session_token}/answer",
    response_model=AnswerAccepted,
    summary="Submit an answer for one question",
)
def submit_answer(
    session_token: str,
    payload: AnswerSubmission,
    db: Session = Depends(get_db),
):
    session, answer = session_controller.submit_answer(
        db,
        session_token,
        payload.question_index,
        payload.answer,
        payload.time_spent,
    )
    return AnswerAccepted(
        session_token=session.session_token,
        question_index=payload.question_index,
        question_id=answer.question_id,
        submitted_at=answer.submitted_at,
    )


@router.post(
    "/session/{session_token}/tab-shift",
    response_model=ProctoringEventRecorded,
    summary="Report a tab or window focus change",
)
def track_tab_shift(
    session_token: str,
    payload: Optional[ProctoringEventRequest] = None,
    db: Session = Depends(get_db),
):
    payload = payload or ProctoringEventRequest()
    session = session_controller.record_proctoring_event(db, session_token, payload.event, payload.duration)
    return ProctoringEventRecorded(
        session_token=session.session_token,
        status=session.status,
        tab_shift_count=session.tab_shift_count,
        is_blocked=session.is_blocked,
        block_reason=session.block_reason,
        warnings=session.warnings or [],
    )


@router.post(
    "/session/{session_token}/complete",
    response_model=SessionCompleted,
    summary="Finish the attempt and get the score",
)
def complete_quiz_session(session_token: str, db: Session = Depends(get_db)):
    session = session_controller.complete_session(db, session_token)
    return SessionCompleted(
        session_token=session.session_token,
        score=session.score,
        max_score=session.max_score,
        percentage=session.percentage,
        duration=session.duration,
        tab_shift_count=session.tab_shift_count,
        suspicious_activity=session.suspicious_activity,
        completed_at=session.end_time,
    )


@router.post(
    "/session/{session_token}/abandon",
    response_model=SessionAbandoned,
    summary="Give up on the attempt",
)
def abandon_quiz_session(
    session_token: str,
    payload: Optional[AbandonRequest] = None,
    db: Session = Depends(get_db),
):
    reason = payload.reason if payload else None
    session = session_controller.abandon_session(db, session_token, reason)
    return SessionAbandoned(
        session_token=session.session_token,
        status=session.status,
        reason=session.block_reason,
    )
