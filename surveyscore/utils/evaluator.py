from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

from surveyscore.utils.aggregation import (
    AssessmentFormula,
    SectionFormula,
    SectionScore,
    aggregate_assessment,
    aggregate_section,
)
from surveyscore.utils.errors import (
    AnswerValidationFailed,
    AssessmentNotAccepting,
    DuplicateAnswer,
    RequiredAnswerMissing,
    UnknownQuestion,
    ValidationError,
)
from surveyscore.utils.question_types import QuestionType
from surveyscore.utils.scoring import QuestionFormula, QuestionScore, score_question
from surveyscore.utils.structure import AssessmentStructure
from surveyscore.utils.validation import ValidatedAnswer, has_answer, validate_answer

logger = logging.getLogger(__name__)

AnswersInput = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


@dataclass(frozen=True)
class ScoringHooks:
    """Внешние функции для FORMULA_BASED на каждом уровне."""
    question_formula: QuestionFormula | None = None
    section_formula: SectionFormula | None = None
    assessment_formula: AssessmentFormula | None = None


@dataclass(frozen=True)
class EvaluationResult:
    response_id: str | None
    total_score: float
    max_score: float
    score_percentage: float
    is_passed: bool
    per_question: Tuple[QuestionScore, ...]
    per_section: Tuple[SectionScore, ...]

    def as_dict(self) -> dict:
        return {
            "response_id": self.response_id,
            "total_score": self.total_score,
            "max_score": self.max_score,
            "score_percentage": self.score_percentage,
            "is_passed": self.is_passed,
            "per_question": [q.as_dict() for q in self.per_question],
            "per_section": [s.as_dict() for s in self.per_section],
        }


def _collect_payloads(
    structure: AssessmentStructure,
    answers: AnswersInput,
) -> Tuple[Dict[str, Any], List[ValidationError]]:
    """Приводит ответы к {question_id: payload}; неизвестные и повторные id: ошибки."""
    pairs = answers.items() if isinstance(answers, Mapping) else answers
    payloads: Dict[str, Any] = {}
    errors: List[ValidationError] = []
    for question_id, payload in pairs:
        question_id = str(question_id)
        if question_id not in structure.questions:
            errors.append(UnknownQuestion(question_id, "вопрос не входит в анкету"))
            continue
        if question_id in payloads:
            errors.append(DuplicateAnswer(question_id, "на вопрос передано несколько ответов"))
            continue
        payloads[question_id] = payload
    return payloads, errors


def evaluate(
    structure: AssessmentStructure,
    answers: AnswersInput,
    accepting_responses: bool,
    response_id: str | None = None,
    hooks: ScoringHooks | None = None,
) -> EvaluationResult:
    """
    Полная оценка одного ответа респондента:
      1) анкета должна принимать ответы (решение принимает вызывающий код);
      2) все обязательные включённые вопросы отвечены: иначе RequiredAnswerMissing
         со списком всех таких вопросов и ошибками валидации остальных ответов;
      3) каждый ответ проходит валидацию: иначе AnswerValidationFailed со всеми ошибками;
      4) подсчёт баллов по вопросам;
      5) свёртка в секции и в анкету.
    Чистая функция: одинаковые входы дают одинаковый результат.
    """
    hooks = hooks or ScoringHooks()
    assessment = structure.assessment

    if not accepting_responses:
        logger.warning("Assessment %s is not accepting responses (status=%s)", assessment.id, assessment.status.value)
        raise AssessmentNotAccepting(f"Анкета {assessment.id} не принимает ответы")

    payloads, errors = _collect_payloads(structure, answers)

    missing = [
        q.id
        for q in structure.enabled_questions()
        if q.is_required
        and q.question_type is not QuestionType.SCORE
        and not has_answer(q, payloads.get(q.id))
    ]

    validated: Dict[str, ValidatedAnswer] = {}
    for q in structure.enabled_questions():
        payload = payloads.get(q.id)
        if not has_answer(q, payload):
            continue
        try:
            validated[q.id] = validate_answer(q, payload, structure.question_options(q.id))
        except ValidationError as e:
            errors.append(e)

    if missing:
        logger.warning(
            "Response %s: %d required question(s) unanswered, %d invalid answer(s)",
            response_id, len(missing), len(errors),
        )
        raise RequiredAnswerMissing(missing, errors)
    if errors:
        logger.warning("Response %s: %d answer(s) failed validation", response_id, len(errors))
        raise AnswerValidationFailed(errors)

    per_question: List[QuestionScore] = []
    per_section: List[SectionScore] = []
    for section in structure.ordered_sections():
        scores = [
            score_question(q, validated.get(q.id), structure.question_options(q.id), hooks.question_formula)
            for q in structure.section_questions(section.id)
            if not q.is_disabled
        ]
        per_question.extend(scores)
        per_section.append(aggregate_section(section, scores, hooks.section_formula))

    total = aggregate_assessment(assessment, per_section, hooks.assessment_formula)
    logger.debug(
        "Response %s scored: %s/%s (%.2f%%) passed=%s",
        response_id, total.total_score, total.max_score, total.score_percentage, total.is_passed,
    )

    return EvaluationResult(
        response_id=response_id,
        total_score=total.total_score,
        max_score=total.max_score,
        score_percentage=total.score_percentage,
        is_passed=total.is_passed,
        per_question=tuple(per_question),
        per_section=tuple(per_section),
    )
