from datetime import datetime
from sqlalchemy import Column, String, Integer, Float, Boolean, Text, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from surveyscore.database import Base
from surveyscore.utils.question_types import AssessmentStatus, ScoringType


class Assessment(Base):
    __tablename__ = "assessment"

    id = Column("assessment_id", String, primary_key=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    assessment_type = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=AssessmentStatus.DRAFT.value, index=True)
    scoring_type = Column(String(30), nullable=False, default=ScoringType.FIXED_SCORE.value)
    show_results = Column(Boolean, nullable=False, default=True)

    time_limit_minutes = Column(Integer, nullable=True)
    expires_at = Column(DateTime, nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    created_by = Column(String(255), nullable=True)

    sections = relationship(
        "Section",
        back_populates="assessment",
        cascade="all, delete-orphan",
        order_by="Section.display_order",
    )
    # ответы не принадлежат структуре: удаление только через ON DELETE CASCADE в БД
    responses = relationship("Response", back_populates="assessment", passive_deletes=True)

    @property
    def has_time_limit(self) -> bool:
        return self.time_limit_minutes is not None and self.time_limit_minutes > 0

    def is_accepting_responses(self, now: datetime | None = None) -> bool:
        # статус ACTIVE и срок не истёк
        if not AssessmentStatus(self.status).accepts_responses:
            return False
        now = now or datetime.utcnow()
        if self.expires_at is not None and now > self.expires_at:
            return False
        return True


class Section(Base):
    __tablename__ = "assessment_section"

    id = Column("section_id", String, primary_key=True)
    assessment_id = Column(String, ForeignKey("assessment.assessment_id", ondelete="CASCADE"), nullable=False, index=True)
    assessment = relationship("Assessment", back_populates="sections")

    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False)

    scoring_type = Column(String(30), nullable=False, default=ScoringType.FIXED_SCORE.value)
    max_score = Column(Float, nullable=True)
    pass_score = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    questions = relationship(
        "Question",
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="Question.display_order",
    )

    __table_args__ = (
        Index("idx_section_display_order", "assessment_id", "display_order"),
    )


class Question(Base):
    __tablename__ = "question"

    id = Column("question_id", String, primary_key=True)
    section_id = Column(String, ForeignKey("assessment_section.section_id", ondelete="CASCADE"), nullable=False, index=True)
    section = relationship("Section", back_populates="questions")

    question_text = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    question_type = Column(String(30), nullable=False, index=True)
    display_order = Column(Integer, nullable=False)

    is_required = Column(Boolean, nullable=False, default=False)
    is_disabled = Column(Boolean, nullable=False, default=False)
    time_limit_seconds = Column(Integer, nullable=True)

    scoring_type = Column(String(30), nullable=False, default=ScoringType.FIXED_SCORE.value)
    max_points = Column(Float, nullable=True)

    # строки матрицы и границы для NUMERIC/SLIDER
    matrix_rows = Column(JSON, nullable=True)
    min_value = Column(Float, nullable=True)
    max_value = Column(Float, nullable=True)

    image_url = Column(String(2048), nullable=True)
    video_url = Column(String(2048), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    options = relationship(
        "Option",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="Option.display_order",
    )

    __table_args__ = (
        Index("idx_question_display_order", "section_id", "display_order"),
    )


class Option(Base):
    __tablename__ = "question_option"

    id = Column("option_id", String, primary_key=True)
    question_id = Column(String, ForeignKey("question.question_id", ondelete="CASCADE"), nullable=False, index=True)
    question = relationship("Question", back_populates="options")

    option_text = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False)

    points = Column(Float, nullable=True)
    numeric_value = Column(Float, nullable=True)

    image_url = Column(String(2048), nullable=True)
    image_alt_text = Column(String(500), nullable=True)
    video_url = Column(String(2048), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_option_display_order", "question_id", "display_order"),
    )
