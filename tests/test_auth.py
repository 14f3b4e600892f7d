from datetime import timedelta

from src.quiz_portal.models.user import User
from src.quiz_portal.utils.security import create_access_token, decode_access_token, hash_password, verify_password
from src.quiz_portal.utils.time import get_utc_time


def _register(client, email="new.teacher@example.com", password="secret123"):
    return client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "full_name": "New Teacher"},
    )


def _login(client, email="new.teacher@example.com", password="secret123"):
    return client.post("/api/auth/token", data={"username": email, "password": password})


def test_password_hashing():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)


def test_register_login_and_me(client):
    response = _register(client)
    assert response.status_code == 201
    assert response.json()["role"] == "teacher"

    response = _login(client)
    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["token_type"] == "bearer"

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "new.teacher@example.com"


def test_duplicate_registration(client):
    _register(client)
    response = _register(client, email="New.Teacher@example.com")
    assert response.status_code == 400


def test_wrong_password(client):
    _register(client)
    assert _login(client, password="nope").status_code == 401


def test_teacher_routes_need_a_token(client):
    assert client.get("/api/teacher/quizzes").status_code == 401
    response = client.get("/api/teacher/quizzes", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_students_cannot_author_quizzes(client, db):
    student = User(email="student@example.com", hashed_password="x", role="student")
    db.add(student)
    db.commit()
    db.refresh(student)
    token = create_access_token({"user_id": str(student.id), "role": student.role})

    response = client.get("/api/teacher/quizzes", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403


def test_authenticated_teacher_creates_a_quiz(client, sample_quiz_payload):
    _register(client)
    token = _login(client).json()["access_token"]

    response = client.post(
        "/api/teacher/quizzes",
        json=sample_quiz_payload,
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 201
    assert response.json()["total_points"] == 5


def test_access_token_expiry_is_measured_in_utc():
    token = create_access_token({"user_id": "abc"}, expires_delta=timedelta(minutes=30))
    payload = decode_access_token(token)

    remaining = payload["exp"] - get_utc_time().timestamp()
    assert 29 * 60 <= remaining <= 30 * 60
    assert payload["user_id"] == "abc"


def test_health_reports_an_aware_timestamp(client):
    timestamp = client.get("/health").json()["timestamp"]
    assert timestamp.endswith("+00:00")
