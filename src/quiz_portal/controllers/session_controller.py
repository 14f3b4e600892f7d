# File: src/quiz_portal/controllers/session_controller.py
"""
Lifecycle of one student's attempt at one quiz.

    active -> completed | abandoned | blocked

Every transition loads the session, checks it is still active, applies the
change and commits once. Nothing is written when a precondition fails.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional, Tuple, Union

from sqlmodel import Session, select

from ..db.session import store_guard
from ..models.quiz import Quiz, Question
from ..models.student_session import (
    StudentSession,
    Answer,
    SessionStatus,
    ProctoringEventKind,
    ActivityAction,
    TERMINAL_STATUSES,
)
from ..models.user import User
from ..schemas.session import (
    SessionInfo,
    SessionStatusRead,
    SessionDetailsRead,
    SessionProgressRead,
    ProgressSummary,
    AnswerProgress,
    QuizBrief,
    ScoreCheckRead,
)
from ..utils.errors import (
    NotFoundError,
    SessionBlockedError,
    SessionNotActiveError,
    SessionInProgressError,
    InvalidQuestionIndexError,
    ValidationFailedError,
    AlreadyReviewedError,
)
from ..utils.scoring import score_answers, compute_percentage
from ..utils.security import commit_with_unique_token, generate_session_token
from ..utils.time import get_utc_time, ensure_utc, seconds_between
from . import attempt_controller, quiz_controller

logger = logging.getLogger(__name__)

TAB_SHIFT_BLOCK_REASON = "Exceeded tab shift limit"
DEFAULT_ABANDON_REASON = "Student abandoned quiz"
# Warnings start once the count goes past this
TAB_SHIFT_WARNING_AFTER = 2

AnswerValue = Union[bool, str, int, float]


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


# --- Loading and guards ---

def _load_session(db: Session, session_token: str, lock: bool = False) -> StudentSession:
    statement = select(StudentSession).where(StudentSession.session_token == session_token)
    if lock:
        statement = statement.with_for_update()
    session = db.exec(statement).first()
    if not session:
        logger.warning(f"Session not found for token {session_token}")
        raise NotFoundError("Session not found")
    return session


def _ensure_mutable(session: StudentSession) -> None:
    """The last check before any write: only an active, unblocked session changes."""
    if session.is_blocked or session.status == SessionStatus.BLOCKED:
        logger.warning(f"Rejected mutation on blocked session {session.id}")
        raise SessionBlockedError(session.block_reason)
    if not session.is_active:
        logger.warning(f"Rejected mutation on {session.status.value} session {session.id}")
        raise SessionNotActiveError()


def _recompute_totals(session: StudentSession) -> None:
    session.score = sum(answer.points for answer in session.answers)
    session.percentage = compute_percentage(session.score, session.max_score)


def _finish(session: StudentSession, status: SessionStatus, now: datetime) -> None:
    session.status = status
    session.end_time = now
    session.duration = max(0, seconds_between(session.start_time, now))


def _save(db: Session, session: StudentSession, now: datetime) -> None:
    _recompute_totals(session)
    session.updated_at = now
    db.add(session)
    db.commit()
    db.refresh(session)


def time_remaining(session: StudentSession, quiz: Quiz, now: Optional[datetime] = None) -> Optional[float]:
    """Minutes left on the clock, or None when the quiz is untimed. Never stored."""
    if not quiz.time_limit:
        return None
    now = ensure_utc(now) if now else get_utc_time()
    elapsed = (now - ensure_utc(session.start_time)).total_seconds() / 60
    return max(0.0, quiz.time_limit - elapsed)


# --- Transitions ---

def start_session(
    db: Session,
    share_token: str,
    student_name: str,
    student_email: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Tuple[StudentSession, Quiz]:
    with store_guard(db, "start the quiz session"):
        quiz = attempt_controller.check_attempt_eligibility(db, share_token, student_name)

        session = StudentSession(
            quiz_id=quiz.id,
            student_name=student_name,
            student_email=student_email.lower() if student_email else None,
            start_time=get_utc_time(),
            status=SessionStatus.ACTIVE,
            max_score=quiz.total_points,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        session.log_activity(ActivityAction.QUIZ_STARTED, quiz_id=str(quiz.id), quiz_title=quiz.title)
        commit_with_unique_token(db, session, "session_token", generate_session_token)

    logger.info(f"Session {session.id} started by '{student_name}' on quiz {quiz.id} (max score {session.max_score})")
    return session, quiz


def _coerce_answer_value(question: Question, value: AnswerValue) -> Tuple[Optional[uuid.UUID], Optional[str]]:
    """Split a raw answer into (selected_option_id, text_answer) by question type."""
    if question.is_multiple_choice:
        if isinstance(value, bool):
            raise ValidationFailedError("Multiple-choice answers must be an option id")
        try:
            return uuid.UUID(str(value)), None
        except ValueError:
            raise ValidationFailedError("Multiple-choice answers must be an option id")
    if isinstance(value, bool):
        return None, "true" if value else "false"
    return None, str(value)


def submit_answer(
    db: Session,
    session_token: str,
    question_index: int,
    value: AnswerValue,
    time_spent: int = 0,
) -> Tuple[StudentSession, Answer]:
    """Record (or overwrite) the answer for one question. Never scores it."""
    with store_guard(db, "submit the answer"):
        session = _load_session(db, session_token, lock=True)
        _ensure_mutable(session)

        questions = session.quiz.questions
        if question_index < 0 or question_index >= len(questions):
            logger.warning(f"Invalid question index {question_index} on session {session.id}")
            raise InvalidQuestionIndexError(question_index, len(questions))

        # The index is only a view convenience; the question id is what gets stored
        question = questions[question_index]
        selected_option_id, text_answer = _coerce_answer_value(question, value)
        now = get_utc_time()

        answer = session.find_answer(question.id)
        if answer is None:
            answer = Answer(question_id=question.id)
            session.answers.append(answer)
        answer.selected_option_id = selected_option_id
        answer.text_answer = text_answer
        answer.time_spent = time_spent
        answer.submitted_at = now

        session.log_activity(
            ActivityAction.QUESTION_ANSWERED,
            question_id=str(question.id),
            question_index=question_index,
            time_spent=time_spent,
        )
        _save(db, session, now)
        db.refresh(answer)

    logger.info(f"Session {session.id} answered question {question.id} (index {question_index})")
    return session, answer


def record_proctoring_event(
    db: Session,
    session_token: str,
    event: ProctoringEventKind = ProctoringEventKind.TAB_HIDDEN,
    duration: int = 0,
) -> StudentSession:
    """
    Log one visibility/focus change and apply the tab-shift threshold.

    With a limit of L, the (L+1)-th event blocks the session for good.
    """
    with store_guard(db, "record the proctoring event"):
        session = _load_session(db, session_token, lock=True)
        _ensure_mutable(session)

        now = get_utc_time()
        timestamp = now.isoformat()
        session.tab_shifts.append({"event": event.value, "timestamp": timestamp, "duration": duration})
        session.tab_shift_count += 1
        count = session.tab_shift_count
        session.log_activity(ActivityAction.TAB_SHIFT, event=event.value, count=count)

        if count > TAB_SHIFT_WARNING_AFTER:
            session.warnings.append({
                "type": "tab-shift",
                "message": f"Tab shift detected! This is your {_ordinal(count)} shift.",
                "timestamp": timestamp,
            })

        limit = session.quiz.tab_shift_limit
        if limit and count > limit:
            session.suspicious_activity = True
            session.is_blocked = True
            session.block_reason = TAB_SHIFT_BLOCK_REASON
            session.warnings.append({
                "type": "suspicious-activity",
                "message": f"Quiz blocked: {TAB_SHIFT_BLOCK_REASON.lower()} ({count} > {limit}).",
                "timestamp": timestamp,
            })
            _finish(session, SessionStatus.BLOCKED, now)
            session.log_activity(ActivityAction.QUIZ_BLOCKED, reason=TAB_SHIFT_BLOCK_REASON, count=count, limit=limit)

        _save(db, session, now)

    if session.is_blocked:
        logger.warning(f"Session {session.id} blocked after {count} tab shifts (limit {limit})")
    else:
        logger.info(f"Session {session.id} recorded {event.value} ({count} so far)")
    return session


def complete_session(db: Session, session_token: str) -> StudentSession:
    """Score every stored answer, close the session and fold it into quiz stats."""
    with store_guard(db, "complete the quiz session"):
        session = _load_session(db, session_token, lock=True)
        _ensure_mutable(session)

        quiz = session.quiz
        result = score_answers(quiz, session.answers)
        outcomes = {r.question_id: r for r in result.results}
        for answer in session.answers:
            outcome = outcomes.get(answer.question_id)
            if outcome is not None:
                answer.is_correct = outcome.is_correct
                answer.points = outcome.points

        now = get_utc_time()
        _recompute_totals(session)
        _finish(session, SessionStatus.COMPLETED, now)
        session.log_activity(ActivityAction.QUIZ_COMPLETED, score=session.score, percentage=session.percentage)

        # Completion and the statistics update commit together or not at all
        quiz_controller.update_stats(db, session.quiz_id, session.score, commit=False)
        _save(db, session, now)

    logger.info(
        f"Session {session.id} completed: {session.score}/{session.max_score} ({session.percentage}%)"
        + (f", skipped {len(result.skipped_question_ids)} orphaned answers" if result.skipped_question_ids else "")
    )
    return session


def abandon_session(db: Session, session_token: str, reason: Optional[str] = None) -> StudentSession:
    """Close the session without scoring anything."""
    with store_guard(db, "abandon the quiz session"):
        session = _load_session(db, session_token, lock=True)
        _ensure_mutable(session)

        now = get_utc_time()
        reason = reason or DEFAULT_ABANDON_REASON
        _finish(session, SessionStatus.ABANDONED, now)
        session.block_reason = reason
        session.log_activity(ActivityAction.QUIZ_ABANDONED, reason=reason)
        _save(db, session, now)

    logger.info(f"Session {session.id} abandoned: {reason}")
    return session


# --- Student-facing reads ---

def _session_info(session: StudentSession, quiz: Quiz) -> SessionInfo:
    return SessionInfo(
        id=session.id,
        session_token=session.session_token,
        student_name=session.student_name,
        start_time=session.start_time,
        status=session.status,
        time_remaining=time_remaining(session, quiz),
        tab_shift_count=session.tab_shift_count,
        warnings=session.warnings or [],
        is_blocked=session.is_blocked,
        block_reason=session.block_reason,
    )


def get_session_details(db: Session, session_token: str) -> SessionDetailsRead:
    session = _load_session(db, session_token)
    if not session.is_active:
        raise SessionNotActiveError()
    quiz = session.quiz
    return SessionDetailsRead(session=_session_info(session, quiz), quiz=quiz_controller.to_student_view(quiz))


def get_session_status(db: Session, session_token: str) -> SessionStatusRead:
    session = _load_session(db, session_token)
    quiz = session.quiz
    return SessionStatusRead(session=_session_info(session, quiz), quiz=QuizBrief.model_validate(quiz))


def get_session_progress(db: Session, session_token: str) -> SessionProgressRead:
    session = _load_session(db, session_token)
    if not session.is_active:
        raise SessionNotActiveError()
    total = session.quiz.question_count
    answered = len(session.answers)
    return SessionProgressRead(
        progress=ProgressSummary(
            answered_questions=answered,
            total_questions=total,
            percentage=compute_percentage(answered, total),
            remaining_questions=max(0, total - answered),
        ),
        answers=[AnswerProgress.model_validate(a) for a in session.answers],
    )


# --- Teacher-facing reads and review ---

def list_quiz_sessions(
    db: Session,
    teacher: User,
    quiz_id: uuid.UUID,
    status: Optional[SessionStatus] = None,
) -> List[StudentSession]:
    quiz = quiz_controller.get_teacher_quiz(db, teacher, quiz_id)
    statement = select(StudentSession).where(StudentSession.quiz_id == quiz.id)
    if status is not None:
        statement = statement.where(StudentSession.status == status)
    return db.exec(statement.order_by(StudentSession.created_at.desc())).all()


def get_teacher_session(db: Session, teacher: User, session_id: uuid.UUID) -> StudentSession:
    session = db.exec(
        select(StudentSession)
        .join(Quiz, Quiz.id == StudentSession.quiz_id)
        .where(StudentSession.id == session_id, Quiz.teacher_id == teacher.id)
    ).first()
    if not session:
        raise NotFoundError("Session not found")
    return session


def review_session(db: Session, teacher: User, session_id: uuid.UUID, notes: str) -> StudentSession:
    """Attach the teacher's review to a finished session. Write-once."""
    with store_guard(db, "save the review"):
        session = get_teacher_session(db, teacher, session_id)
        if session.status not in TERMINAL_STATUSES:
            raise SessionInProgressError("Only finished sessions can be reviewed")
        if session.reviewed_at is not None:
            raise AlreadyReviewedError("Session has already been reviewed")

        now = get_utc_time()
        session.review_notes = notes
        session.reviewed_by = teacher.id
        session.reviewed_at = now
        session.updated_at = now
        db.add(session)
        db.commit()
        db.refresh(session)

    logger.info(f"Session {session.id} reviewed by {teacher.id}")
    return session


def verify_session_score(db: Session, teacher: User, session_id: uuid.UUID) -> ScoreCheckRead:
    """Re-run scoring against the stored answers without changing anything."""
    session = get_teacher_session(db, teacher, session_id)
    result = score_answers(session.quiz, session.answers)
    recomputed_percentage = compute_percentage(result.score, session.max_score)
    # Only a completed session has been scored; the others legitimately read zero
    expected_score = result.score if session.status == SessionStatus.COMPLETED else 0
    expected_percentage = recomputed_percentage if session.status == SessionStatus.COMPLETED else 0
    return ScoreCheckRead(
        session_id=session.id,
        status=session.status,
        stored_score=session.score,
        recomputed_score=result.score,
        stored_percentage=session.percentage,
        recomputed_percentage=recomputed_percentage,
        max_score=session.max_score,
        skipped_question_ids=result.skipped_question_ids,
        matches=(session.score == expected_score and session.percentage == expected_percentage),
    )
