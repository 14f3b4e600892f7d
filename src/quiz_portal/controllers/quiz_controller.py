# File: src/quiz_portal/controllers/quiz_controller.py

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, update
from sqlmodel import Session, select

from ..config.settings import get_settings
from ..models.quiz import Quiz, Question, Option, QuestionType
from ..models.student_session import StudentSession, SessionStatus
from ..models.user import User
from ..schemas.quiz import (
    QuizCreate,
    QuizUpdate,
    QuestionCreate,
    QuizSettings,
    StudentQuizRead,
    QuizPublicInfo,
    DashboardRead,
    DashboardStatistics,
    RecentQuiz,
)
from ..utils.errors import NotFoundError, DeleteConflictError, ValidationFailedError
from ..utils.scoring import compute_total_points
from ..utils.security import commit_with_unique_token, generate_share_token
from ..utils.time import get_utc_time, ensure_utc

logger = logging.getLogger(__name__)

app_settings = get_settings()


def recalculate_total_points(quiz: Quiz) -> int:
    quiz.total_points = compute_total_points(quiz.questions)
    return quiz.total_points


def is_available(quiz: Quiz, now: Optional[datetime] = None) -> bool:
    """Active and inside the scheduled window; an unset bound is open."""
    if not quiz.is_active:
        return False
    now = ensure_utc(now) if now else get_utc_time()
    start = ensure_utc(quiz.scheduled_start)
    end = ensure_utc(quiz.scheduled_end)
    if start and now < start:
        return False
    if end and now > end:
        return False
    return True


def _apply_settings(quiz: Quiz, settings: QuizSettings, partial: bool = False) -> None:
    # A partial update only touches the settings the client actually sent
    for key, value in settings.model_dump(exclude_unset=partial).items():
        setattr(quiz, key, value)


def _default_settings() -> QuizSettings:
    return QuizSettings(
        max_attempts=app_settings.default_max_attempts,
        tab_shift_limit=app_settings.default_tab_shift_limit,
    )


def _sync_options(question: Question, options_data) -> None:
    existing = {opt.id: opt for opt in question.options}
    options: List[Option] = []
    for position, option_data in enumerate(options_data):
        option = existing.get(option_data.id) if option_data.id else None
        if option is None:
            option = Option(text=option_data.text.strip(), is_correct=option_data.is_correct)
        else:
            option.text = option_data.text.strip()
            option.is_correct = option_data.is_correct
        option.position = position
        options.append(option)
    # delete-orphan removes options the teacher dropped
    question.options = options


def _sync_questions(quiz: Quiz, questions_data: List[QuestionCreate]) -> None:
    """
    Replace the quiz's questions with `questions_data`.

    Questions (and options) whose id is echoed back keep their identity, so
    answers recorded against them still resolve. Unknown ids get a fresh one.
    """
    existing: Dict[uuid.UUID, Question] = {q.id: q for q in quiz.questions}
    questions: List[Question] = []
    for position, data in enumerate(questions_data):
        question = existing.get(data.id) if data.id else None
        if question is None:
            question = Question(text=data.text.strip(), type=data.type)
        question.position = position
        question.text = data.text.strip()
        question.type = data.type
        question.points = data.points
        question.time_limit = data.time_limit
        question.explanation = data.explanation
        if data.type == QuestionType.MULTIPLE_CHOICE:
            question.correct_answer = None
            _sync_options(question, data.options)
        else:
            question.correct_answer = data.correct_answer.strip()
            question.options = []
        questions.append(question)
    quiz.questions = questions
    recalculate_total_points(quiz)


def create_quiz(db: Session, teacher: User, payload: QuizCreate) -> Quiz:
    logger.info(f"Creating quiz '{payload.title}' for teacher {teacher.id}")
    quiz = Quiz(**payload.model_dump(exclude={"questions", "settings"}), teacher_id=teacher.id)
    _apply_settings(quiz, payload.settings or _default_settings())
    _sync_questions(quiz, payload.questions)

    # The share token is minted exactly once, here
    commit_with_unique_token(db, quiz, "shareable_link", generate_share_token)
    logger.info(f"Quiz {quiz.id} created with {quiz.question_count} questions, {quiz.total_points} points")
    return quiz


def get_teacher_quiz(db: Session, teacher: User, quiz_id: uuid.UUID) -> Quiz:
    quiz = db.exec(select(Quiz).where(Quiz.id == quiz_id, Quiz.teacher_id == teacher.id)).first()
    if not quiz:
        logger.warning(f"Quiz {quiz_id} not found for teacher {teacher.id}")
        raise NotFoundError("Quiz not found")
    return quiz


def list_teacher_quizzes(
    db: Session,
    teacher: User,
    q: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> List[Quiz]:
    statement = select(Quiz).where(Quiz.teacher_id == teacher.id)
    if q:
        statement = statement.where(Quiz.title.ilike(f"%{q}%"))
    if is_active is not None:
        statement = statement.where(Quiz.is_active == is_active)
    statement = statement.order_by(Quiz.created_at.desc())
    return db.exec(statement).all()


def update_quiz(db: Session, teacher: User, quiz_id: uuid.UUID, payload: QuizUpdate) -> Quiz:
    quiz = get_teacher_quiz(db, teacher, quiz_id)
    changes = payload.model_dump(exclude_unset=True, exclude={"questions", "settings"})
    for key, value in changes.items():
        setattr(quiz, key, value)
    if payload.settings is not None:
        _apply_settings(quiz, payload.settings, partial=True)

    start = ensure_utc(quiz.scheduled_start)
    end = ensure_utc(quiz.scheduled_end)
    if start and end and end < start:
        db.rollback()
        raise ValidationFailedError("scheduled_end must not be before scheduled_start")

    if payload.questions is not None:
        _sync_questions(quiz, payload.questions)
    else:
        recalculate_total_points(quiz)
    quiz.updated_at = get_utc_time()

    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    logger.info(f"Quiz {quiz.id} updated; total points now {quiz.total_points}")
    return quiz


def delete_quiz(db: Session, teacher: User, quiz_id: uuid.UUID) -> None:
    quiz = get_teacher_quiz(db, teacher, quiz_id)
    attempt_count = db.exec(
        select(func.count()).select_from(StudentSession).where(StudentSession.quiz_id == quiz.id)
    ).one()
    if attempt_count > 0:
        logger.warning(f"Refusing to delete quiz {quiz.id}: {attempt_count} sessions reference it")
        raise DeleteConflictError(attempt_count)
    db.delete(quiz)
    db.commit()
    logger.info(f"Quiz {quiz_id} deleted")


def get_quiz_by_share_token(db: Session, share_token: str) -> Quiz:
    quiz = db.exec(
        select(Quiz).where(Quiz.shareable_link == share_token, Quiz.is_active == True)
    ).first()
    if not quiz:
        raise NotFoundError("Quiz not found or inactive")
    return quiz


def update_stats(db: Session, quiz_id: uuid.UUID, score: float, commit: bool = True) -> None:
    """
    Fold one completed attempt into the quiz's running statistics.

    A single UPDATE keeps concurrent completions from losing increments; the
    right-hand side sees the row's pre-update values. With commit=False the
    UPDATE joins the caller's transaction.
    """
    db.execute(
        update(Quiz)
        .where(Quiz.id == quiz_id)
        .values(
            attempts_count=Quiz.attempts_count + 1,
            score_sum=Quiz.score_sum + score,
            average_score=(Quiz.score_sum + score) / (Quiz.attempts_count + 1),
        )
        .execution_options(synchronize_session=False)
    )
    if commit:
        # commit expires loaded Quiz instances, so readers see the new values
        db.commit()
    logger.info(f"Quiz {quiz_id} statistics updated with score {score}")


def to_student_view(quiz: Quiz) -> StudentQuizRead:
    """Quiz as a student may see it: no answer keys, no explanations."""
    return StudentQuizRead.model_validate(quiz)


def to_public_info(quiz: Quiz) -> QuizPublicInfo:
    return QuizPublicInfo(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        time_limit=quiz.time_limit,
        question_count=quiz.question_count,
        total_points=quiz.total_points,
        estimated_duration=quiz.estimated_duration,
        settings=quiz.settings,
        teacher=quiz.teacher.full_name if quiz.teacher else None,
        tags=quiz.tags or [],
        category=quiz.category,
        difficulty=quiz.difficulty,
    )


def get_dashboard(db: Session, teacher: User) -> DashboardRead:
    quiz_ids = select(Quiz.id).where(Quiz.teacher_id == teacher.id)

    def _count(statement) -> int:
        return db.exec(statement).one()

    statistics = DashboardStatistics(
        total_quizzes=_count(select(func.count()).select_from(Quiz).where(Quiz.teacher_id == teacher.id)),
        active_quizzes=_count(
            select(func.count()).select_from(Quiz).where(Quiz.teacher_id == teacher.id, Quiz.is_active == True)
        ),
        total_sessions=_count(
            select(func.count()).select_from(StudentSession).where(StudentSession.quiz_id.in_(quiz_ids))
        ),
        completed_sessions=_count(
            select(func.count()).select_from(StudentSession).where(
                StudentSession.quiz_id.in_(quiz_ids),
                StudentSession.status == SessionStatus.COMPLETED,
            )
        ),
    )
    recent = db.exec(
        select(Quiz).where(Quiz.teacher_id == teacher.id).order_by(Quiz.created_at.desc()).limit(5)
    ).all()
    return DashboardRead(
        statistics=statistics,
        recent_quizzes=[RecentQuiz.model_validate(q) for q in recent],
    )
