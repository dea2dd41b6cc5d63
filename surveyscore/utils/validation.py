from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Mapping, Sequence, Tuple

from surveyscore.utils.errors import (
    IncompleteMatrixAnswer,
    IncompletePermutation,
    InvalidOptionReference,
    MalformedPayload,
    MultipleSelectionNotAllowed,
    ReadOnlyQuestionType,
)
from surveyscore.utils.question_types import QuestionType
from surveyscore.utils.structure import OptionNode, QuestionNode


SELECTION_KEYS = ("optionId", "optionIds")

ORDER_TYPES = {QuestionType.RANKING, QuestionType.ORDERING}
NUMBER_TYPES = {QuestionType.NUMERIC, QuestionType.SLIDER}


@dataclass(frozen=True)
class ValidatedAnswer:
    """Ответ, прошедший проверку формы. Всё, что нужно для подсчёта баллов."""
    question_id: str
    question_type: QuestionType
    option_ids: Tuple[str, ...] = ()            # выбранные варианты / порядок для ranking
    value: float | None = None
    text: str | None = None
    moment: datetime | None = None
    matrix: Tuple[Tuple[str, str], ...] = ()    # (row_id, option_id) в порядке строк

    @property
    def option_id(self) -> str | None:
        """Ссылка на вариант: только когда выбран ровно один."""
        if self.question_type in ORDER_TYPES or self.question_type is QuestionType.MATRIX:
            return None
        return self.option_ids[0] if len(self.option_ids) == 1 else None

    @property
    def answer_value(self) -> str:
        """Плоское текстовое представление ответа (для выгрузок и поиска)."""
        if self.matrix:
            return ";".join(f"{row}={opt}" for row, opt in self.matrix)
        if self.question_type in ORDER_TYPES:
            return ">".join(self.option_ids)
        if self.option_ids:
            return ",".join(self.option_ids)
        if self.value is not None:
            return repr(self.value)
        if self.moment is not None:
            return self.moment.isoformat()
        return self.text or ""


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def has_answer(question: QuestionNode, payload: Any) -> bool:
    """
    Есть ли в payload хоть какой-то ответ.
    None, {} и пустое значение под ключом типа считаются отсутствием ответа.
    """
    if _is_blank(payload):
        return False
    if not isinstance(payload, Mapping):
        return True  # форма неверна: пусть валидатор скажет MalformedPayload
    key = question.question_type.traits.payload_key
    keys = SELECTION_KEYS if key in SELECTION_KEYS else (key,)
    present = [k for k in keys if k in payload]
    if not present:
        return True
    return any(not _is_blank(payload[k]) for k in present)


def _as_id(question_id: str, raw: Any) -> str:
    if isinstance(raw, bool) or not isinstance(raw, (str, int)):
        raise MalformedPayload(question_id, f"некорректный идентификатор: {raw!r}")
    return str(raw)


def _as_id_list(question_id: str, raw: Any, key: str) -> List[str]:
    if not isinstance(raw, (list, tuple)):
        raise MalformedPayload(question_id, f"'{key}' должен быть массивом")
    return [_as_id(question_id, x) for x in raw]


def _dedupe(ids: Sequence[str]) -> List[str]:
    # дубликаты схлопываются, первое вхождение сохраняет позицию
    return list(dict.fromkeys(ids))


def _require_key(question: QuestionNode, payload: Mapping, key: str) -> Any:
    if key not in payload:
        raise MalformedPayload(question.id, f"ожидается поле '{key}'")
    return payload[key]


# --------------------- Проверки по типам ---------------------

def _validate_selection(question: QuestionNode, payload: Mapping, options: Sequence[OptionNode]) -> ValidatedAnswer:
    traits = question.question_type.traits
    if "optionIds" in payload:
        ids = _as_id_list(question.id, payload["optionIds"], "optionIds")
    elif "optionId" in payload:
        ids = [_as_id(question.id, payload["optionId"])]
    else:
        raise MalformedPayload(question.id, "ожидается поле 'optionId' или 'optionIds'")

    ids = _dedupe(ids)

    if traits.requires_options:
        known = {o.id for o in options}
        unknown = [i for i in ids if i not in known]
        if unknown:
            raise InvalidOptionReference(question.id, f"неизвестные варианты: {', '.join(unknown)}")

    if not traits.allows_multiple_selections and len(ids) > 1:
        raise MultipleSelectionNotAllowed(question.id, f"допускается один вариант, получено {len(ids)}")

    return ValidatedAnswer(question.id, question.question_type, option_ids=tuple(ids))


def _validate_number(question: QuestionNode, payload: Mapping) -> ValidatedAnswer:
    raw = _require_key(question, payload, "value")
    if isinstance(raw, bool):
        raise MalformedPayload(question.id, "значение должно быть числом")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise MalformedPayload(question.id, f"значение должно быть числом: {raw!r}")
    if not math.isfinite(value):
        raise MalformedPayload(question.id, "значение должно быть конечным числом")
    if question.min_value is not None and value < question.min_value:
        raise MalformedPayload(question.id, f"значение {value} меньше минимума {question.min_value}")
    if question.max_value is not None and value > question.max_value:
        raise MalformedPayload(question.id, f"значение {value} больше максимума {question.max_value}")
    return ValidatedAnswer(question.id, question.question_type, value=value)


def _validate_text(question: QuestionNode, payload: Mapping) -> ValidatedAnswer:
    raw = _require_key(question, payload, "text")
    if not isinstance(raw, str):
        raise MalformedPayload(question.id, "'text' должен быть строкой")
    return ValidatedAnswer(question.id, question.question_type, text=raw)


def _validate_datetime(question: QuestionNode, payload: Mapping) -> ValidatedAnswer:
    raw = _require_key(question, payload, "datetime")
    if not isinstance(raw, str):
        raise MalformedPayload(question.id, "'datetime' должен быть строкой ISO-8601")
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        raise MalformedPayload(question.id, f"не удалось разобрать дату/время: {raw!r}")
    return ValidatedAnswer(question.id, question.question_type, moment=moment)


def _validate_order(question: QuestionNode, payload: Mapping, options: Sequence[OptionNode]) -> ValidatedAnswer:
    order = _as_id_list(question.id, _require_key(question, payload, "order"), "order")
    expected = {o.id for o in options}
    if len(order) != len(expected) or set(order) != expected:
        missing = sorted(expected - set(order))
        foreign = sorted(set(order) - expected)
        details = []
        if missing:
            details.append(f"пропущены: {', '.join(missing)}")
        if foreign:
            details.append(f"лишние: {', '.join(foreign)}")
        if len(order) != len(set(order)):
            details.append("есть повторы")
        raise IncompletePermutation(question.id, "; ".join(details) or "не перестановка вариантов")
    return ValidatedAnswer(question.id, question.question_type, option_ids=tuple(order))


def _validate_matrix(question: QuestionNode, payload: Mapping, options: Sequence[OptionNode]) -> ValidatedAnswer:
    rows = _require_key(question, payload, "rows")
    if not isinstance(rows, Mapping):
        raise MalformedPayload(question.id, "'rows' должен быть объектом {rowId: optionId}")

    given = {str(k): v for k, v in rows.items() if v is not None}
    missing = [r for r in question.matrix_rows if r not in given]
    extra = sorted(set(given) - set(question.matrix_rows))
    if missing or extra:
        parts = []
        if missing:
            parts.append(f"нет ответа в строках: {', '.join(missing)}")
        if extra:
            parts.append(f"необъявленные строки: {', '.join(extra)}")
        raise IncompleteMatrixAnswer(question.id, "; ".join(parts))

    known = {o.id for o in options}
    cells: List[Tuple[str, str]] = []
    for row in question.matrix_rows:
        opt = _as_id(question.id, given[row])
        if opt not in known:
            raise InvalidOptionReference(question.id, f"строка {row}: неизвестный вариант {opt}")
        cells.append((row, opt))
    return ValidatedAnswer(
        question.id,
        question.question_type,
        option_ids=tuple(opt for _, opt in cells),
        matrix=tuple(cells),
    )


# --------------------- Точка входа ---------------------

def validate_answer(question: QuestionNode, payload: Any, options: Sequence[OptionNode] = ()) -> ValidatedAnswer:
    """
    Проверяет сырой ответ против контракта типа вопроса.
    options: варианты именно этого вопроса.
    Бросает подкласс ValidationError при любой проблеме.
    """
    qtype = question.question_type
    if qtype is QuestionType.SCORE:
        raise ReadOnlyQuestionType(question.id, "вопрос типа SCORE вычисляется, ответ не принимается")
    if not isinstance(payload, Mapping):
        raise MalformedPayload(question.id, "ответ должен быть объектом")

    if qtype in NUMBER_TYPES:
        return _validate_number(question, payload)
    if qtype is QuestionType.TEXT:
        return _validate_text(question, payload)
    if qtype is QuestionType.DATE_TIME:
        return _validate_datetime(question, payload)
    if qtype in ORDER_TYPES:
        return _validate_order(question, payload, options)
    if qtype is QuestionType.MATRIX:
        return _validate_matrix(question, payload, options)
    return _validate_selection(question, payload, options)
