from __future__ import annotations
import logging
from datetime import datetime
from uuid import uuid4
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from surveyscore.database import get_db
from surveyscore.models.assessment import Assessment
from surveyscore.models.response import Response, Answer
from surveyscore.schemas.response import (
    StartResponseRequest,
    StartResponseOut,
    SubmitAnswersRequest,
    EvaluationResultOut,
    ResponseOut,
)
from surveyscore.utils.errors import (
    AnswerValidationFailed,
    AssessmentNotAccepting,
    RequiredAnswerMissing,
    StructuralInconsistency,
)
from surveyscore.utils.evaluator import evaluate
from surveyscore.utils.question_types import ResponseStatus
from surveyscore.utils.snapshot import build_structure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/responses", tags=["Responses"])


def _public_tree(assessment: Assessment) -> List[dict]:
    """Структура для респондента: без баллов и без отключённых вопросов."""
    return [
        {
            "id": s.id,
            "title": s.title,
            "questions": [
                {
                    "id": q.id,
                    "text": q.question_text,
                    "type": q.question_type,
                    "required": q.is_required,
                    "time_limit_seconds": q.time_limit_seconds,
                    "rows": q.matrix_rows or [],
                    "options": [{"id": o.id, "text": o.option_text} for o in q.options],
                }
                for q in s.questions
                if not q.is_disabled
            ],
        }
        for s in assessment.sections
    ]


@router.post("/start", response_model=StartResponseOut)
def start_response(payload: StartResponseRequest, request: Request, db: Session = Depends(get_db)) -> StartResponseOut:
    assessment: Assessment | None = db.get(Assessment, payload.assessment_id)
    if not assessment:
        raise HTTPException(status_code=404, detail="Анкета не найдена")
    if not assessment.is_accepting_responses():
        raise HTTPException(status_code=409, detail="Анкета не принимает ответы")

    now = datetime.utcnow()
    response = Response(
        id=str(uuid4()),
        assessment_id=assessment.id,
        respondent_id=payload.respondent_id,
        status=ResponseStatus.STARTED.value,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        started_at=now,
    )
    db.add(response)
    db.commit()
    logger.info("Response %s started for assessment %s", response.id, assessment.id)

    return StartResponseOut(
        response_id=response.id,
        assessment_id=assessment.id,
        title=assessment.title,
        time_limit_minutes=assessment.time_limit_minutes,
        sections=_public_tree(assessment),
    )


@router.post("/{response_id}/submit", response_model=EvaluationResultOut)
def submit_answers(response_id: str, payload: SubmitAnswersRequest, db: Session = Depends(get_db)):
    response: Response | None = db.get(Response, response_id)
    if not response:
        raise HTTPException(status_code=404, detail="Ответ не найден")
    # повторная оценка того же ответа запрещена
    if response.status != ResponseStatus.STARTED.value:
        raise HTTPException(status_code=409, detail="Ответ уже отправлен")

    assessment = response.assessment
    try:
        structure = build_structure(assessment)
        result = evaluate(
            structure,
            [(a.question_id, a.payload) for a in payload.answers],
            accepting_responses=assessment.is_accepting_responses(),
            response_id=response.id,
        )
    except AssessmentNotAccepting as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RequiredAnswerMissing as e:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "required_answer_missing",
                "question_ids": e.question_ids,
                "errors": [err.as_dict() for err in e.errors],
            },
        )
    except AnswerValidationFailed as e:
        raise HTTPException(
            status_code=422,
            detail={"error": "answer_validation_failed", "errors": [err.as_dict() for err in e.errors]},
        )
    except StructuralInconsistency as e:
        logger.error("Assessment %s has inconsistent structure: %s", assessment.id, e)
        raise HTTPException(status_code=500, detail=f"Структура анкеты некорректна: {e}")

    # --- Сохраняем рассчитанные поля ---
    now = datetime.utcnow()
    time_spent = int((now - response.started_at).total_seconds()) if response.started_at else None

    # захват строки одним UPDATE: параллельная отправка того же ответа получит 0 строк
    claimed = (
        db.query(Response)
        .filter(Response.id == response.id, Response.status == ResponseStatus.STARTED.value)
        .update(
            {
                Response.total_score: result.total_score,
                Response.max_score: result.max_score,
                Response.score_percentage: result.score_percentage,
                Response.is_passed: result.is_passed,
                Response.status: ResponseStatus.SCORED.value,
                Response.submitted_at: now,
                Response.time_spent_seconds: time_spent,
                Response.updated_at: now,
            },
            synchronize_session=False,
        )
    )
    if claimed != 1:
        db.rollback()
        logger.warning("Response %s was already submitted by a concurrent request", response_id)
        raise HTTPException(status_code=409, detail="Ответ уже отправлен")

    submitted: Dict[str, Any] = {a.question_id: a for a in payload.answers}
    for qs in result.per_question:
        if not qs.answered:
            continue
        item = submitted[qs.question_id]
        db.add(Answer(
            id=str(uuid4()),
            response_id=response.id,
            question_id=qs.question_id,
            option_id=qs.option_id,
            answer_payload=item.payload,
            answer_value=qs.answer_value,
            answer_score=qs.score,
            is_correct=qs.is_correct,
            time_spent_seconds=item.time_spent_seconds,
            answered_at=now,
        ))
    db.commit()

    logger.info(
        "Response %s scored: %s/%s passed=%s",
        response_id, result.total_score, result.max_score, result.is_passed,
    )
    return EvaluationResultOut(**result.as_dict())


@router.get("/{response_id}", response_model=ResponseOut)
def get_response(response_id: str, db: Session = Depends(get_db)) -> ResponseOut:
    response: Response | None = db.get(Response, response_id)
    if not response:
        raise HTTPException(status_code=404, detail="Ответ не найден")

    out = ResponseOut.model_validate(response)
    if not response.assessment.show_results:
        # результаты скрыты настройкой анкеты
        out.total_score = out.max_score = out.score_percentage = None
        out.is_passed = None
    return out
