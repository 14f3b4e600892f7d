import uuid

from src.quiz_portal.models.quiz import Quiz, Question, Option, QuestionType
from src.quiz_portal.models.student_session import Answer
from src.quiz_portal.utils.scoring import (
    evaluate_answer,
    score_answers,
    compute_percentage,
    compute_total_points,
)


def _mc_question(points=2):
    options = [
        Option(text="A", is_correct=False, position=0),
        Option(text="B", is_correct=True, position=1),
        Option(text="C", is_correct=False, position=2),
    ]
    return Question(text="Pick B", type=QuestionType.MULTIPLE_CHOICE, points=points, options=options)


def _text_question(answer="Paris", points=3, type_=QuestionType.SHORT_ANSWER):
    return Question(text="Capital of France?", type=type_, points=points, correct_answer=answer)


def _quiz(*questions):
    return Quiz(title="Scoring", teacher_id=uuid.uuid4(), questions=list(questions))


def test_multiple_choice_matches_option_id():
    question = _mc_question()
    correct = question.options[1]
    wrong = question.options[0]

    assert evaluate_answer(question, Answer(question_id=question.id, selected_option_id=correct.id)) == (True, 2)
    assert evaluate_answer(question, Answer(question_id=question.id, selected_option_id=wrong.id)) == (False, 0)


def test_multiple_choice_unknown_option_is_incorrect():
    question = _mc_question()
    answer = Answer(question_id=question.id, selected_option_id=uuid.uuid4())
    assert evaluate_answer(question, answer) == (False, 0)


def test_text_answers_ignore_case_and_surrounding_whitespace():
    question = _text_question()
    assert evaluate_answer(question, Answer(question_id=question.id, text_answer="  paris ")) == (True, 3)
    assert evaluate_answer(question, Answer(question_id=question.id, text_answer="Lyon")) == (False, 0)


def test_missing_text_answer_is_incorrect():
    question = _text_question()
    assert evaluate_answer(question, Answer(question_id=question.id)) == (False, 0)


def test_true_false_compares_normalized_text():
    question = _text_question(answer="True", points=1, type_=QuestionType.TRUE_FALSE)
    assert evaluate_answer(question, Answer(question_id=question.id, text_answer="true")) == (True, 1)
    assert evaluate_answer(question, Answer(question_id=question.id, text_answer="false")) == (False, 0)


def test_score_answers_sums_points_of_correct_answers():
    mc = _mc_question()
    text = _text_question()
    quiz = _quiz(mc, text)
    answers = [
        Answer(question_id=mc.id, selected_option_id=mc.options[1].id),
        Answer(question_id=text.id, text_answer="Paris"),
    ]

    result = score_answers(quiz, answers)

    assert result.score == 5
    assert [r.is_correct for r in result.results] == [True, True]
    assert result.skipped_question_ids == []


def test_score_answers_skips_answers_to_removed_questions():
    mc = _mc_question()
    quiz = _quiz(mc)
    removed_id = uuid.uuid4()
    answers = [
        Answer(question_id=mc.id, selected_option_id=mc.options[1].id),
        Answer(question_id=removed_id, text_answer="Paris"),
    ]

    result = score_answers(quiz, answers)

    assert result.score == 2
    assert len(result.results) == 1
    assert result.skipped_question_ids == [removed_id]


def test_compute_percentage_rounds_half_up():
    assert compute_percentage(5, 5) == 100
    assert compute_percentage(1, 8) == 13  # 12.5
    assert compute_percentage(2, 3) == 67
    assert compute_percentage(1, 3) == 33
    assert compute_percentage(0, 5) == 0


def test_compute_percentage_with_nothing_scorable():
    assert compute_percentage(0, 0) == 0


def test_compute_total_points():
    assert compute_total_points([_mc_question(points=2), _text_question(points=3)]) == 5
    assert compute_total_points([]) == 0
