from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from surveyscore.utils.errors import FormulaNotConfigured, StructuralInconsistency
from surveyscore.utils.question_types import QuestionType, ScoringType
from surveyscore.utils.structure import OptionNode, QuestionNode
from surveyscore.utils.validation import NUMBER_TYPES, ORDER_TYPES, ValidatedAnswer

# (answer, question) -> сырой балл; результат зажимается в [0, max_points]
QuestionFormula = Callable[[ValidatedAnswer, QuestionNode], float]

# strategy(question, answer, options, formula) -> (score, is_correct)
QuestionStrategy = Callable[
    [QuestionNode, ValidatedAnswer, Sequence[OptionNode], Optional[QuestionFormula]],
    Tuple[float, Optional[bool]],
]

PRECISION = 4


@dataclass(frozen=True)
class QuestionScore:
    question_id: str
    section_id: str
    scoring_type: ScoringType
    score: float
    max_points: float
    is_correct: bool | None = None
    answered: bool = False
    option_id: str | None = None
    answer_value: str | None = None

    def as_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "score": self.score,
            "max_points": self.max_points,
            "is_correct": self.is_correct,
        }


def _round(value: float) -> float:
    return round(float(value), PRECISION)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def formula_result(raw, where: str) -> float:
    """Результат внешней функции FORMULA_BASED: только конечное число."""
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise StructuralInconsistency(f"{where}: функция расчёта вернула не число: {raw!r}") from e
    if not math.isfinite(value):
        raise StructuralInconsistency(f"{where}: функция расчёта вернула {value}")
    return value


def _points(option: OptionNode) -> float:
    return float(option.points or 0.0)


def effective_max_points(question: QuestionNode, options: Sequence[OptionNode]) -> float:
    """
    Максимум баллов за вопрос.
    Явный max_points важнее; иначе выводим из вариантов по форме ответа.
    NO_SCORING и SCORE в знаменатель не входят.
    """
    if question.scoring_type is ScoringType.NO_SCORING or question.question_type is QuestionType.SCORE:
        return 0.0
    if question.max_points is not None:
        return float(question.max_points)

    pts = [_points(o) for o in options]
    if not pts:
        return 0.0
    qtype = question.question_type
    if qtype.allows_multiple_selections or qtype in ORDER_TYPES:
        return _round(sum(p for p in pts if p > 0))
    if qtype is QuestionType.MATRIX:
        return _round(len(question.matrix_rows) * max(max(pts), 0.0))
    return _round(max(max(pts), 0.0))


# --------------------- Стратегии ---------------------

def _score_none(question, answer, options, formula):
    return 0.0, None


def _fixed_sum(question: QuestionNode, answer: ValidatedAnswer, options: Sequence[OptionNode]) -> float:
    by_id = {o.id: o for o in options}
    qtype = question.question_type

    if qtype in ORDER_TYPES:
        # балл варианта засчитывается, если он стоит на авторской позиции
        authored = [o.id for o in options]
        return sum(
            _points(by_id[oid])
            for pos, oid in enumerate(answer.option_ids)
            if pos < len(authored) and authored[pos] == oid
        )

    # выбор/матрица: каждый выбранный вариант (строка) даёт свои points
    return sum(_points(by_id[oid]) for oid in answer.option_ids if oid in by_id)


def _score_fixed(question, answer, options, formula):
    score = _round(_fixed_sum(question, answer, options))
    return score, score == _round(effective_max_points(question, options))


def _numeric_values(question: QuestionNode, answer: ValidatedAnswer, options: Sequence[OptionNode]) -> List[float]:
    if question.question_type in NUMBER_TYPES:
        return [answer.value] if answer.value is not None else []
    if question.question_type in ORDER_TYPES:
        return []
    by_id = {o.id: o for o in options}
    return [
        float(by_id[oid].numeric_value)
        for oid in answer.option_ids
        if oid in by_id and by_id[oid].numeric_value is not None
    ]


def _numeric_range(question: QuestionNode, options: Sequence[OptionNode]) -> Tuple[float | None, float | None]:
    if question.question_type in NUMBER_TYPES and (question.min_value is not None or question.max_value is not None):
        return question.min_value, question.max_value
    values = [float(o.numeric_value) for o in options if o.numeric_value is not None]
    if not values:
        return question.min_value, question.max_value
    return min(values), max(values)


def _score_dynamic(question, answer, options, formula):
    max_points = effective_max_points(question, options)
    values = _numeric_values(question, answer, options)
    if not values:
        return 0.0, None
    value = sum(values) / len(values)

    lo, hi = _numeric_range(question, options)
    if lo is None or hi is None or hi <= lo:
        # диапазон не определён: берём значение как есть
        return _round(_clamp(value, 0.0, max_points)), None
    share = _clamp((value - lo) / (hi - lo), 0.0, 1.0)
    return _round(share * max_points), None


def _score_formula(question, answer, options, formula):
    if formula is None:
        raise FormulaNotConfigured(f"Вопрос {question.id}: FORMULA_BASED без функции расчёта")
    raw = formula_result(formula(answer, question), f"Вопрос {question.id}")
    return _round(_clamp(raw, 0.0, effective_max_points(question, options))), None


QUESTION_STRATEGIES: Dict[ScoringType, QuestionStrategy] = {
    ScoringType.NO_SCORING: _score_none,
    ScoringType.FIXED_SCORE: _score_fixed,
    # вес применяется на уровне секции, здесь расчёт как у FIXED
    ScoringType.WEIGHTED_SCORE: _score_fixed,
    ScoringType.DYNAMIC_SCORE: _score_dynamic,
    ScoringType.FORMULA_BASED: _score_formula,
}


def resolve_question_strategy(scoring_type: ScoringType | str) -> QuestionStrategy:
    return QUESTION_STRATEGIES[ScoringType(scoring_type)]


def score_question(
    question: QuestionNode,
    answer: ValidatedAnswer | None,
    options: Sequence[OptionNode] = (),
    formula: QuestionFormula | None = None,
) -> QuestionScore:
    """
    Считает балл одного вопроса по его scoring_type.
    answer=None: вопрос без ответа: 0 баллов, максимум учитывается.
    Отключённые вопросы сюда не попадают (их отсекает вызывающий код).
    """
    max_points = effective_max_points(question, options)
    if answer is None:
        return QuestionScore(
            question_id=question.id,
            section_id=question.section_id,
            scoring_type=question.scoring_type,
            score=0.0,
            max_points=max_points,
        )

    strategy = resolve_question_strategy(question.scoring_type)
    score, is_correct = strategy(question, answer, options, formula)
    return QuestionScore(
        question_id=question.id,
        section_id=question.section_id,
        scoring_type=question.scoring_type,
        score=score,
        max_points=max_points,
        is_correct=is_correct,
        answered=True,
        option_id=answer.option_id,
        answer_value=answer.answer_value,
    )
