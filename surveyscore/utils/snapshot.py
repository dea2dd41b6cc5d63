# surveyscore/utils/snapshot.py
from __future__ import annotations

from typing import List

from sqlalchemy.orm import Session

from surveyscore.models.assessment import Assessment
from surveyscore.utils.structure import (
    AssessmentNode,
    AssessmentStructure,
    OptionNode,
    QuestionNode,
    SectionNode,
)


def build_structure(assessment: Assessment) -> AssessmentStructure:
    """
    Переводит ORM-дерево анкеты в неизменяемый снимок для движка.
    Порядок секций/вопросов/вариантов: по display_order.
    """
    sections: List[SectionNode] = []
    questions: List[QuestionNode] = []
    options: List[OptionNode] = []

    for s in assessment.sections:
        sections.append(SectionNode(
            id=s.id,
            assessment_id=s.assessment_id,
            scoring_type=s.scoring_type,
            display_order=s.display_order,
            max_score=s.max_score,
            pass_score=s.pass_score,
            title=s.title,
        ))
        for q in s.questions:
            questions.append(QuestionNode(
                id=q.id,
                section_id=q.section_id,
                question_type=q.question_type,
                scoring_type=q.scoring_type,
                max_points=q.max_points,
                display_order=q.display_order,
                is_required=bool(q.is_required),
                is_disabled=bool(q.is_disabled),
                time_limit_seconds=q.time_limit_seconds,
                matrix_rows=tuple(q.matrix_rows or ()),
                min_value=q.min_value,
                max_value=q.max_value,
                text=q.question_text,
            ))
            for o in q.options:
                options.append(OptionNode(
                    id=o.id,
                    question_id=o.question_id,
                    display_order=o.display_order,
                    points=o.points,
                    numeric_value=o.numeric_value,
                    text=o.option_text,
                ))

    node = AssessmentNode(
        id=assessment.id,
        title=assessment.title,
        status=assessment.status,
        scoring_type=assessment.scoring_type,
        show_results=bool(assessment.show_results),
        time_limit_minutes=assessment.time_limit_minutes,
        expires_at=assessment.expires_at,
    )
    return AssessmentStructure.build(node, sections, questions, options)


def load_structure(db: Session, assessment_id: str) -> AssessmentStructure:
    """
    Загружает анкету по id и строит снимок.
    ValueError: если анкеты нет.
    """
    assessment = db.get(Assessment, assessment_id)
    if not assessment:
        raise ValueError(f"Анкета '{assessment_id}' не найдена")
    return build_structure(assessment)
