from datetime import timedelta

from src.quiz_portal.utils.time import get_utc_time


def _create_quiz(teacher_client, payload):
    response = teacher_client.post("/api/teacher/quizzes", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _start(client, link, name="Ana"):
    response = client.post(f"/api/quiz/{link}/start", json={"student_name": name})
    assert response.status_code == 201, response.text
    return response.json()["session_token"]


def _option_id(quiz, text):
    return next(opt["id"] for opt in quiz["questions"][0]["options"] if opt["text"] == text)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_public_quiz_info(teacher_client, sample_quiz_payload):
    quiz = _create_quiz(teacher_client, sample_quiz_payload)

    response = teacher_client.get(f"/api/quiz/{quiz['shareable_link']}")

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "European Capitals"
    assert body["question_count"] == 2
    assert body["total_points"] == 5
    assert body["teacher"] == "Ms. Teacher"
    assert "questions" not in body


def test_unknown_share_link_is_404(client):
    response = client.get("/api/quiz/does-not-exist")
    assert response.status_code == 404
    assert response.json()["kind"] == "NOT_FOUND"


def test_scheduled_quiz_is_unavailable(teacher_client, sample_quiz_payload):
    start = (get_utc_time() + timedelta(days=1)).isoformat()
    quiz = _create_quiz(teacher_client, {**sample_quiz_payload, "scheduled_start": start})

    response = teacher_client.get(f"/api/quiz/{quiz['shareable_link']}")
    assert response.status_code == 400
    assert response.json()["kind"] == "UNAVAILABLE"

    response = teacher_client.post(f"/api/quiz/{quiz['shareable_link']}/start", json={"student_name": "Ana"})
    assert response.status_code == 400
    assert response.json()["kind"] == "UNAVAILABLE"


def test_start_requires_a_name(teacher_client, sample_quiz_payload):
    quiz = _create_quiz(teacher_client, sample_quiz_payload)

    for body in ({}, {"student_name": "   "}, {"student_name": "x" * 51}):
        response = teacher_client.post(f"/api/quiz/{quiz['shareable_link']}/start", json=body)
        assert response.status_code == 422
        assert response.json()["kind"] == "VALIDATION_FAILED"


def test_start_returns_quiz_without_answer_keys(teacher_client, sample_quiz_payload):
    quiz = _create_quiz(teacher_client, sample_quiz_payload)

    response = teacher_client.post(
        f"/api/quiz/{quiz['shareable_link']}/start",
        json={"student_name": " Ana ", "student_email": "ANA@example.com"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["session_token"]
    assert len(body["quiz"]["questions"]) == 2
    assert "correct_answer" not in response.text
    assert "is_correct" not in response.text
    assert "explanation" not in response.text


def test_full_attempt(teacher_client, sample_quiz_payload):
    quiz = _create_quiz(teacher_client, sample_quiz_payload)
    token = _start(teacher_client, quiz["shareable_link"])

    response = teacher_client.post(
        f"/api/quiz/session/{token}/answer",
        json={"question_index": 0, "answer": _option_id(quiz, "B"), "time_spent": 8},
    )
    assert response.status_code == 200
    assert response.json()["question_id"] == quiz["questions"][0]["id"]

    response = teacher_client.post(
        f"/api/quiz/session/{token}/answer",
        json={"question_index": 1, "answer": "Paris"},
    )
    assert response.status_code == 200

    progress = teacher_client.get(f"/api/student/session/{token}/progress").json()
    assert progress["progress"]["answered_questions"] == 2

    response = teacher_client.post(f"/api/quiz/session/{token}/complete")
    assert response.status_code == 200
    body = response.json()
    assert body["score"] == 5
    assert body["max_score"] == 5
    assert body["percentage"] == 100
    assert body["suspicious_activity"] is False

    status_read = teacher_client.get(f"/api/student/session/{token}/status").json()
    assert status_read["session"]["status"] == "completed"

    # single-attempt quiz: the same name cannot start again
    response = teacher_client.post(f"/api/quiz/{quiz['shareable_link']}/start", json={"student_name": "Ana"})
    assert response.status_code == 400
    body = response.json()
    assert body["kind"] == "ATTEMPTS_EXCEEDED"
    assert body["count"] == 1
    assert body["limit"] == 1


def test_session_details(teacher_client, sample_quiz_payload):
    quiz = _create_quiz(teacher_client, sample_quiz_payload)
    token = _start(teacher_client, quiz["shareable_link"])

    response = teacher_client.get(f"/api/quiz/session/{token}")

    assert response.status_code == 200
    body = response.json()
    assert body["session"]["status"] == "active"
    assert body["session"]["time_remaining"] is None
    assert body["quiz"]["id"] == quiz["id"]


def test_invalid_question_index(teacher_client, sample_quiz_payload):
    quiz = _create_quiz(teacher_client, sample_quiz_payload)
    token = _start(teacher_client, quiz["shareable_link"])

    response = teacher_client.post(f"/api/quiz/session/{token}/answer", json={"question_index": 5, "answer": "x"})

    assert response.status_code == 400
    assert response.json()["kind"] == "INVALID_INDEX"


def test_tab_shifts_block_the_session(teacher_client, sample_quiz_payload):
    quiz = _create_quiz(teacher_client, sample_quiz_payload)
    token = _start(teacher_client, quiz["shareable_link"])

    for _ in range(3):
        response = teacher_client.post(f"/api/quiz/session/{token}/tab-shift")
        assert response.status_code == 200
        assert response.json()["is_blocked"] is False

    response = teacher_client.post(f"/api/quiz/session/{token}/tab-shift", json={"event": "window-blur"})
    assert response.status_code == 200
    body = response.json()
    assert body["tab_shift_count"] == 4
    assert body["is_blocked"] is True
    assert body["status"] == "blocked"
    assert body["block_reason"] == "Exceeded tab shift limit"

    response = teacher_client.post(f"/api/quiz/session/{token}/tab-shift")
    assert response.status_code == 400
    assert response.json()["kind"] == "SESSION_BLOCKED"
    assert response.json()["block_reason"] == "Exceeded tab shift limit"

    response = teacher_client.post(f"/api/quiz/session/{token}/answer", json={"question_index": 1, "answer": "Paris"})
    assert response.json()["kind"] == "SESSION_BLOCKED"


def test_abandon_then_complete(teacher_client, sample_quiz_payload):
    quiz = _create_quiz(teacher_client, sample_quiz_payload)
    token = _start(teacher_client, quiz["shareable_link"])

    response = teacher_client.post(f"/api/quiz/session/{token}/abandon", json={"reason": "Out of time"})
    assert response.status_code == 200
    assert response.json() == {"session_token": token, "status": "abandoned", "reason": "Out of time"}

    response = teacher_client.post(f"/api/quiz/session/{token}/complete")
    assert response.status_code == 400
    assert response.json()["kind"] == "SESSION_NOT_ACTIVE"

    response = teacher_client.get(f"/api/student/session/{token}/progress")
    assert response.json()["kind"] == "SESSION_NOT_ACTIVE"


def test_abandon_without_body(teacher_client, sample_quiz_payload):
    quiz = _create_quiz(teacher_client, sample_quiz_payload)
    token = _start(teacher_client, quiz["shareable_link"])

    response = teacher_client.post(f"/api/quiz/session/{token}/abandon")
    assert response.status_code == 200
    assert response.json()["reason"] == "Student abandoned quiz"


def test_unknown_session_token(client):
    response = client.post("/api/quiz/session/nope/complete")
    assert response.status_code == 404
    assert response.json()["kind"] == "NOT_FOUND"
