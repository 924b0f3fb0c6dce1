# tests/conftest.py
# Shared fixtures: in-memory SQLite, dependency override, users, quizzes.
# Environment is set before any app module is imported.

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["RATE_LIMIT_PER_HOUR"] = "100000"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import AnswerOption, Category, Question, Quiz, User
from app.utils.security import create_access_token, hash_password

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# One hash for every fixture user; bcrypt is deliberately slow
PASSWORD = "correct-horse-battery"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def password():
    return PASSWORD


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(role="user", email=None, is_active=True):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password_hash=PASSWORD_HASH,
            full_name=f"Test User {counter['n']}",
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(role="admin")


def _headers_for(user):
    token = create_access_token({"user_id": str(user.id), "email": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return _headers_for


@pytest.fixture
def auth_headers(user):
    return _headers_for(user)


@pytest.fixture
def admin_headers(admin):
    return _headers_for(admin)


@pytest.fixture
def make_quiz(db_session):
    def _make_quiz(passing_score=70, questions_per_attempt=10, is_published=True, title="Capitals"):
        category = db_session.query(Category).filter(Category.name == "Geography").first()
        if not category:
            category = Category(name="Geography")
            db_session.add(category)
            db_session.flush()

        quiz = Quiz(
            category_id=category.id,
            title=title,
            description="World capitals",
            difficulty_level="easy",
            questions_per_attempt=questions_per_attempt,
            time_limit_minutes=15,
            passing_score=passing_score,
            is_published=is_published,
        )
        db_session.add(quiz)
        db_session.commit()
        db_session.refresh(quiz)
        return quiz

    return _make_quiz


@pytest.fixture
def add_question(db_session):
    def _add_question(quiz, options, question_type="multiple_choice", points=1, display_order=0, text="Q?"):
        """options: list of (text, is_correct)"""
        question = Question(
            quiz_id=quiz.id,
            question_type=question_type,
            question_text=text,
            points=points,
            display_order=display_order,
        )
        question.options = [
            AnswerOption(option_text=option_text, is_correct=is_correct, display_order=i)
            for i, (option_text, is_correct) in enumerate(options)
        ]
        db_session.add(question)
        db_session.commit()
        db_session.refresh(question)
        return question

    return _add_question


@pytest.fixture
def build_quiz(make_quiz, add_question):
    """Quiz with `count` single-choice questions, each with a "right" and a "wrong" option"""
    def _build_quiz(count, passing_score=70, **quiz_kwargs):
        quiz = make_quiz(passing_score=passing_score, questions_per_attempt=count, **quiz_kwargs)
        questions = [
            add_question(quiz, [("right", True), ("wrong", False)], display_order=i, text=f"Question {i}")
            for i in range(count)
        ]
        return quiz, questions

    return _build_quiz


def _option(question, text):
    return next(option.id for option in question.options if option.option_text == text)


@pytest.fixture
def option_id():
    return _option


@pytest.fixture
def answers_for():
    """Answer the first n_correct questions right and the rest wrong"""
    def _answers_for(questions, n_correct, as_json=False):
        answers = []
        for i, question in enumerate(questions):
            chosen = _option(question, "right" if i < n_correct else "wrong")
            if as_json:
                answers.append({"question_id": str(question.id), "selected_options": [str(chosen)]})
            else:
                answers.append({"question_id": question.id, "selected_options": [chosen]})
        return answers

    return _answers_for
