from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

class StartResponseRequest(BaseModel):
    assessment_id: str
    respondent_id: Optional[str] = None

class StartResponseOut(BaseModel):
    response_id: str
    assessment_id: str
    title: str
    time_limit_minutes: Optional[int] = None
    sections: List[dict] = []

class AnswerIn(BaseModel):
    question_id: str
    payload: Optional[Dict[str, Any]] = None
    time_spent_seconds: Optional[int] = Field(default=None, ge=0)

class SubmitAnswersRequest(BaseModel):
    answers: List[AnswerIn]

class QuestionResultOut(BaseModel):
    question_id: str = Field(alias="questionId")
    score: float
    max_points: float = Field(alias="maxPoints")
    is_correct: Optional[bool] = Field(default=None, alias="isCorrect")
    class Config:
        populate_by_name = True

class SectionResultOut(BaseModel):
    section_id: str = Field(alias="sectionId")
    score: float
    max_score: float = Field(alias="maxScore")
    is_passed: Optional[bool] = Field(default=None, alias="isPassed")
    class Config:
        populate_by_name = True

class EvaluationResultOut(BaseModel):
    response_id: Optional[str] = Field(default=None, alias="responseId")
    total_score: Optional[float] = Field(default=None, alias="totalScore")
    max_score: Optional[float] = Field(default=None, alias="maxScore")
    score_percentage: Optional[float] = Field(default=None, alias="scorePercentage")
    is_passed: Optional[bool] = Field(default=None, alias="isPassed")
    per_question: List[QuestionResultOut] = Field(default=[], alias="perQuestion")
    per_section: List[SectionResultOut] = Field(default=[], alias="perSection")
    class Config:
        from_attributes = True
        populate_by_name = True

class ResponseOut(BaseModel):
    id: str
    assessment_id: str
    status: str
    total_score: Optional[float] = None
    max_score: Optional[float] = None
    score_percentage: Optional[float] = None
    is_passed: Optional[bool] = None
    time_spent_seconds: Optional[int] = None
    class Config:
        from_attributes = True
