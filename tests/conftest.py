import copy

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import src.quiz_portal.models  # noqa: F401
from src.quiz_portal.controllers import quiz_controller
from src.quiz_portal.db.session import get_db
from src.quiz_portal.main import app
from src.quiz_portal.models.user import User
from src.quiz_portal.schemas.quiz import QuizCreate
from src.quiz_portal.utils.dependencies import get_current_teacher


# One multiple-choice question (B correct, 2 points) and one short answer
# ("Paris", 3 points): 5 points in total.
SAMPLE_QUIZ = {
    "title": "European Capitals",
    "description": "A short geography check",
    "questions": [
        {
            "text": "Which letter is correct?",
            "type": "multiple-choice",
            "points": 2,
            "options": [
                {"text": "A", "is_correct": False},
                {"text": "B", "is_correct": True},
                {"text": "C", "is_correct": False},
            ],
            "explanation": "B is the only correct option.",
        },
        {
            "text": "What is the capital of France?",
            "type": "short-answer",
            "points": 3,
            "correct_answer": "Paris",
            "explanation": "Paris has been the capital since 987.",
        },
    ],
}


@pytest.fixture
def sample_quiz_payload():
    return copy.deepcopy(SAMPLE_QUIZ)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def teacher(db):
    user = User(
        email="teacher@example.com",
        full_name="Ms. Teacher",
        hashed_password="not-a-real-hash",
        role="teacher",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def make_quiz(db, teacher, sample_quiz_payload):
    """Create a quiz through the store; keyword overrides merge into the sample."""
    def _make(**overrides):
        payload = {**sample_quiz_payload, **overrides}
        return quiz_controller.create_quiz(db, teacher, QuizCreate(**payload))
    return _make


@pytest.fixture
def client(engine):
    def _get_test_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def teacher_client(client, teacher):
    app.dependency_overrides[get_current_teacher] = lambda: teacher
    return client
