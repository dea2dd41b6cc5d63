from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from surveyscore.database import get_db
from surveyscore.models.assessment import Assessment
from surveyscore.utils.catalog_loader import import_all
from surveyscore.utils.errors import StructuralInconsistency
from surveyscore.utils.snapshot import build_structure

router = APIRouter(prefix="/assessments", tags=["Assessments"])


@router.post("/import")
def import_catalog(db: Session = Depends(get_db)):
    """Импорт всех YAML-анкет из каталога (upsert)."""
    return import_all(db)


@router.get("/{assessment_id}")
def get_assessment(assessment_id: str, db: Session = Depends(get_db)):
    assessment = db.get(Assessment, assessment_id)
    if not assessment:
        raise HTTPException(status_code=404, detail="Анкета не найдена")
    try:
        structure = build_structure(assessment)
    except StructuralInconsistency as e:
        raise HTTPException(status_code=500, detail=f"Структура анкеты некорректна: {e}")

    return {
        "id": assessment.id,
        "title": assessment.title,
        "status": assessment.status,
        "scoring_type": assessment.scoring_type,
        "accepting_responses": assessment.is_accepting_responses(),
        "has_time_limit": assessment.has_time_limit,
        "sections": [
            {
                "id": s.id,
                "title": s.title,
                "scoring_type": s.scoring_type.value,
                "max_score": s.max_score,
                "pass_score": s.pass_score,
                "questions": len([q for q in structure.section_questions(s.id) if not q.is_disabled]),
            }
            for s in structure.ordered_sections()
        ],
    }
