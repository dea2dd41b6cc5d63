from __future__ import annotations

from typing import Iterable, List


class EvaluationError(Exception):
    """Базовое исключение движка оценки ответов."""
    pass


# --------------------- Ошибки валидации ответа ---------------------

class ValidationError(EvaluationError):
    """Ответ не соответствует контракту типа вопроса."""

    code = "validation_error"

    def __init__(self, question_id: str, message: str):
        super().__init__(f"{question_id}: {message}")
        self.question_id = question_id
        self.message = message

    def as_dict(self) -> dict:
        return {"question_id": self.question_id, "code": self.code, "message": self.message}


class InvalidOptionReference(ValidationError):
    code = "invalid_option_reference"


class MultipleSelectionNotAllowed(ValidationError):
    code = "multiple_selection_not_allowed"


class MalformedPayload(ValidationError):
    code = "malformed_payload"


class IncompletePermutation(ValidationError):
    code = "incomplete_permutation"


class IncompleteMatrixAnswer(ValidationError):
    code = "incomplete_matrix_answer"


class ReadOnlyQuestionType(ValidationError):
    code = "read_only_question_type"


class UnknownQuestion(ValidationError):
    code = "unknown_question"


class DuplicateAnswer(ValidationError):
    code = "duplicate_answer"


# --------------------- Ошибки уровня ответа целиком ---------------------

class RequiredAnswerMissing(EvaluationError):
    """
    Нет ответов на обязательные вопросы (список целиком, а не первый).
    errors: ошибки валидации остальных ответов, найденные в том же проходе.
    """

    def __init__(self, question_ids: Iterable[str], errors: Iterable[ValidationError] = ()):
        self.question_ids: List[str] = list(question_ids)
        self.errors: List[ValidationError] = list(errors)
        super().__init__(f"Нет ответов на обязательные вопросы: {', '.join(self.question_ids)}")


class AnswerValidationFailed(EvaluationError):
    """Один или несколько ответов не прошли валидацию."""

    def __init__(self, errors: Iterable[ValidationError]):
        self.errors: List[ValidationError] = list(errors)
        self.question_ids: List[str] = [e.question_id for e in self.errors]
        super().__init__(f"Ответы не прошли проверку: {', '.join(self.question_ids)}")


class AssessmentNotAccepting(EvaluationError):
    """Анкета сейчас не принимает ответы."""
    pass


class StructuralInconsistency(EvaluationError):
    """Дерево анкеты собрано некорректно: ошибка вызывающего кода, не респондента."""
    pass


class FormulaNotConfigured(StructuralInconsistency):
    """FORMULA_BASED без переданной функции расчёта."""
    pass
