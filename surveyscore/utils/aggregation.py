from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

from surveyscore.utils.errors import FormulaNotConfigured
from surveyscore.utils.question_types import ScoringType
from surveyscore.utils.scoring import PRECISION, QuestionScore, formula_result
from surveyscore.utils.structure import AssessmentNode, SectionNode

SectionFormula = Callable[[SectionNode, Sequence[QuestionScore]], float]
AssessmentFormula = Callable[[AssessmentNode, Sequence["SectionScore"]], float]


@dataclass(frozen=True)
class SectionScore:
    section_id: str
    scoring_type: ScoringType
    score: float
    max_score: float
    pass_score: float | None = None
    is_passed: bool | None = None

    @property
    def is_scored(self) -> bool:
        return self.scoring_type is not ScoringType.NO_SCORING

    def as_dict(self) -> dict:
        return {
            "section_id": self.section_id,
            "score": self.score,
            "max_score": self.max_score,
            "is_passed": self.is_passed,
        }


@dataclass(frozen=True)
class AssessmentScore:
    total_score: float
    max_score: float
    score_percentage: float
    is_passed: bool


def _round(value: float) -> float:
    return round(float(value), PRECISION)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def fold_scores(scoring_type: ScoringType, items: Sequence[Tuple[float, float]], level_max: float) -> float:
    """
    Сворачивает пары (балл, максимум) нижнего уровня в балл уровня выше.
    FORMULA_BASED сюда не попадает: у него своя функция.
    """
    if scoring_type is ScoringType.NO_SCORING:
        return 0.0

    if scoring_type is ScoringType.FIXED_SCORE:
        return _round(sum(score for score, _ in items))

    raw_max = sum(m for _, m in items)
    if raw_max <= 0:
        return 0.0

    if scoring_type is ScoringType.WEIGHTED_SCORE:
        # вес = доля максимума элемента в сумме максимумов
        total = 0.0
        for score, max_value in items:
            if max_value <= 0:
                continue
            total += (score / max_value) * (max_value / raw_max) * level_max
        return _round(total)

    if scoring_type is ScoringType.DYNAMIC_SCORE:
        raw = sum(score for score, _ in items)
        return _round(_clamp(raw / raw_max * level_max, 0.0, level_max))

    raise ValueError(f"Неподдерживаемый тип свёртки: {scoring_type}")


def score_percentage(total_score: float, max_score: float) -> float:
    if max_score <= 0:
        return 0.0
    return round(_clamp(total_score / max_score * 100.0, 0.0, 100.0), 2)


def aggregate_section(
    section: SectionNode,
    question_scores: Sequence[QuestionScore],
    formula: SectionFormula | None = None,
) -> SectionScore:
    """Балл секции по её собственному scoring_type; отключённые вопросы уже отсеяны."""
    stype = section.scoring_type
    if stype is ScoringType.NO_SCORING:
        return SectionScore(section.id, stype, 0.0, 0.0, section.pass_score, None)

    if section.max_score is not None:
        max_score = float(section.max_score)
    else:
        max_score = _round(sum(q.max_points for q in question_scores))

    if stype is ScoringType.FORMULA_BASED:
        if formula is None:
            raise FormulaNotConfigured(f"Секция {section.id}: FORMULA_BASED без функции свёртки")
        raw = formula_result(formula(section, question_scores), f"Секция {section.id}")
        score = _round(_clamp(raw, 0.0, max_score))
    else:
        score = fold_scores(stype, [(q.score, q.max_points) for q in question_scores], max_score)

    is_passed = None
    if section.pass_score is not None:
        is_passed = score >= section.pass_score
    return SectionScore(section.id, stype, score, max_score, section.pass_score, is_passed)


def aggregate_assessment(
    assessment: AssessmentNode,
    section_scores: Sequence[SectionScore],
    formula: AssessmentFormula | None = None,
) -> AssessmentScore:
    """
    Итог по анкете из баллов секций.
    Пройдено, если пройдена каждая оцениваемая секция с заданным pass_score;
    секция без порога прохождение не блокирует.
    """
    stype = assessment.scoring_type
    scored: List[SectionScore] = [s for s in section_scores if s.is_scored]
    is_passed = all(s.is_passed for s in scored if s.pass_score is not None)

    if stype is ScoringType.NO_SCORING:
        return AssessmentScore(0.0, 0.0, 0.0, is_passed)

    max_score = _round(sum(s.max_score for s in scored))
    if stype is ScoringType.FORMULA_BASED:
        if formula is None:
            raise FormulaNotConfigured(f"Анкета {assessment.id}: FORMULA_BASED без функции свёртки")
        raw = formula_result(formula(assessment, section_scores), f"Анкета {assessment.id}")
        total = _round(_clamp(raw, 0.0, max_score))
    else:
        total = fold_scores(stype, [(s.score, s.max_score) for s in scored], max_score)

    return AssessmentScore(total, max_score, score_percentage(total, max_score), is_passed)
