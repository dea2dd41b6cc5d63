from __future__ import annotations

import os

# in-memory база до импорта surveyscore.database
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from surveyscore.database import Base, get_db
from surveyscore.utils.question_types import AssessmentStatus, QuestionType, ScoringType
from surveyscore.utils.structure import (
    AssessmentNode,
    AssessmentStructure,
    OptionNode,
    QuestionNode,
    SectionNode,
)


def choice_question(qid: str, section_id: str = "s1", order: int = 0, **kwargs) -> QuestionNode:
    kwargs.setdefault("question_type", QuestionType.SINGLE_CHOICE)
    kwargs.setdefault("max_points", 5)
    return QuestionNode(id=qid, section_id=section_id, display_order=order, **kwargs)


def option(oid: str, qid: str, order: int = 0, points=None, numeric_value=None) -> OptionNode:
    return OptionNode(id=oid, question_id=qid, display_order=order, points=points, numeric_value=numeric_value)


def two_question_structure(
    pass_score: float | None = 5,
    status: AssessmentStatus = AssessmentStatus.ACTIVE,
    q2_disabled: bool = False,
) -> AssessmentStructure:
    """Одна FIXED-секция, два вопроса по 5 баллов: вариант 'right' = 5, 'wrong' = 0."""
    assessment = AssessmentNode(id="a1", title="Quiz", status=status, scoring_type=ScoringType.FIXED_SCORE)
    section = SectionNode(id="s1", assessment_id="a1", scoring_type=ScoringType.FIXED_SCORE, pass_score=pass_score)
    questions = [
        choice_question("q1", order=0, is_required=True),
        choice_question("q2", order=1, is_required=True, is_disabled=q2_disabled),
    ]
    options = [
        option("q1-right", "q1", 0, points=5),
        option("q1-wrong", "q1", 1, points=0),
        option("q2-right", "q2", 0, points=5),
        option("q2-wrong", "q2", 1, points=0),
    ]
    return AssessmentStructure.build(assessment, [section], questions, options)


@pytest.fixture
def quiz() -> AssessmentStructure:
    return two_question_structure()


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    import surveyscore.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    from surveyscore.main import app

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
