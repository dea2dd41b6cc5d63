from datetime import datetime
from sqlalchemy import Column, String, Integer, Float, Boolean, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from surveyscore.database import Base
from surveyscore.utils.question_types import ResponseStatus


class Response(Base):
    __tablename__ = "assessment_response"

    id = Column("response_id", String, primary_key=True)
    assessment_id = Column(String, ForeignKey("assessment.assessment_id", ondelete="CASCADE"), nullable=False, index=True)
    assessment = relationship("Assessment", back_populates="responses")

    respondent_id = Column(String(500), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=ResponseStatus.STARTED.value, index=True)
    ip_address = Column(String(50), nullable=True)
    user_agent = Column(Text, nullable=True)

    # заполняется движком оценки, руками не редактируется
    total_score = Column(Float, nullable=True)
    max_score = Column(Float, nullable=True)
    score_percentage = Column(Float, nullable=True)
    is_passed = Column(Boolean, nullable=True)

    time_spent_seconds = Column(Integer, nullable=True)
    started_at = Column(DateTime, nullable=True)
    submitted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    answers = relationship("Answer", back_populates="response", cascade="all, delete-orphan")


class Answer(Base):
    __tablename__ = "assessment_response_answer"

    id = Column("answer_id", String, primary_key=True)
    response_id = Column(String, ForeignKey("assessment_response.response_id", ondelete="CASCADE"), nullable=False, index=True)
    response = relationship("Response", back_populates="answers")

    # ссылки без владения: вопрос и вариант живут в структуре анкеты
    question_id = Column(String, ForeignKey("question.question_id"), nullable=False, index=True)
    option_id = Column(String, ForeignKey("question_option.option_id"), nullable=True)

    answer_payload = Column(JSON, nullable=False)
    answer_value = Column(Text, nullable=True)
    answer_score = Column(Float, nullable=True)
    is_correct = Column(Boolean, nullable=True)

    time_spent_seconds = Column(Integer, nullable=True)
    answered_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
