# File location: src/quiz_portal/utils/scoring.py
"""
Answer evaluation and score arithmetic.

Everything here is pure: it reads a Quiz and a session's Answers and returns
numbers. Persisting the outcome is the session controller's job.
"""
import math
import logging
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from src.quiz_portal.models.quiz import Question, Quiz, QuestionType
from src.quiz_portal.models.student_session import Answer

logger = logging.getLogger(__name__)


@dataclass
class AnswerResult:
    question_id: uuid.UUID
    is_correct: bool
    points: int


@dataclass
class ScoreResult:
    score: int = 0
    results: List[AnswerResult] = field(default_factory=list)
    skipped_question_ids: List[uuid.UUID] = field(default_factory=list)


def _normalize(text: Optional[str]) -> str:
    return (text or "").strip().casefold()


def evaluate_answer(question: Question, answer: Answer) -> Tuple[bool, int]:
    """Return (is_correct, points) for one answer against its question."""
    if question.is_multiple_choice:
        selected = next(
            (opt for opt in question.options if opt.id == answer.selected_option_id),
            None,
        )
        is_correct = bool(selected and selected.is_correct)
    elif question.type in (QuestionType.TRUE_FALSE, QuestionType.SHORT_ANSWER, QuestionType.ESSAY):
        is_correct = (
            answer.text_answer is not None
            and _normalize(answer.text_answer) == _normalize(question.correct_answer)
        )
    else:
        raise ValueError(f"Unsupported question type: {question.type}")

    return is_correct, (question.points if is_correct else 0)


def score_answers(quiz: Quiz, answers: Iterable[Answer]) -> ScoreResult:
    """
    Evaluate every answer against the quiz as it stands now.

    Answers whose question is no longer part of the quiz are skipped and
    contribute nothing.
    """
    result = ScoreResult()
    for answer in answers:
        question = quiz.find_question(answer.question_id)
        if question is None:
            logger.warning(f"Skipping answer for question {answer.question_id}: no longer in quiz {quiz.id}")
            result.skipped_question_ids.append(answer.question_id)
            continue
        is_correct, points = evaluate_answer(question, answer)
        result.results.append(AnswerResult(question_id=question.id, is_correct=is_correct, points=points))
        result.score += points
    return result


def compute_percentage(score: int, max_score: int) -> int:
    """score / max_score * 100, rounded half up. Zero when nothing is scorable."""
    if not max_score:
        return 0
    return int(math.floor(score / max_score * 100 + 0.5))


def compute_total_points(questions: Iterable[Question]) -> int:
    return sum((q.points or 1) for q in questions)
