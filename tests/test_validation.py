from datetime import datetime

import pytest

from surveyscore.utils.errors import (
    IncompleteMatrixAnswer,
    IncompletePermutation,
    InvalidOptionReference,
    MalformedPayload,
    MultipleSelectionNotAllowed,
    ReadOnlyQuestionType,
)
from surveyscore.utils.question_types import QuestionType
from surveyscore.utils.structure import QuestionNode
from surveyscore.utils.validation import has_answer, validate_answer

from conftest import option


def q(qtype, **kwargs):
    return QuestionNode(id="q", section_id="s", question_type=qtype, **kwargs)


OPTS = [option("a", "q", 0, points=1), option("b", "q", 1, points=2), option("c", "q", 2, points=3)]


def test_single_choice_accepts_known_option():
    answer = validate_answer(q(QuestionType.SINGLE_CHOICE), {"optionId": "b"}, OPTS)
    assert answer.option_ids == ("b",)
    assert answer.option_id == "b"
    assert answer.answer_value == "b"


def test_unknown_option_is_rejected():
    with pytest.raises(InvalidOptionReference):
        validate_answer(q(QuestionType.DROPDOWN), {"optionId": "zzz"}, OPTS)


def test_single_choice_with_two_distinct_options_is_rejected():
    with pytest.raises(MultipleSelectionNotAllowed):
        validate_answer(q(QuestionType.LIKERT_SCALE), {"optionIds": ["a", "b"]}, OPTS)


def test_single_choice_repeating_same_option_collapses():
    answer = validate_answer(q(QuestionType.RATING), {"optionIds": ["a", "a"]}, OPTS)
    assert answer.option_ids == ("a",)


def test_multiple_choice_duplicates_are_deduplicated_in_first_seen_order():
    answer = validate_answer(q(QuestionType.MULTIPLE_CHOICE), {"optionIds": ["c", "a", "c", "a"]}, OPTS)
    assert answer.option_ids == ("c", "a")
    assert answer.option_id is None


def test_file_upload_references_are_not_checked_against_options():
    answer = validate_answer(q(QuestionType.FILE_UPLOAD), {"optionIds": ["file-1", "file-2"]}, ())
    assert answer.option_ids == ("file-1", "file-2")


@pytest.mark.parametrize("payload", [{"value": "abc"}, {"value": None}, {"value": True}, {"value": "nan"}, {}])
def test_numeric_rejects_non_numbers(payload):
    with pytest.raises(MalformedPayload):
        validate_answer(q(QuestionType.NUMERIC), payload)


def test_numeric_parses_numeric_strings():
    assert validate_answer(q(QuestionType.NUMERIC), {"value": "4.5"}).value == 4.5


def test_slider_respects_declared_bounds():
    slider = q(QuestionType.SLIDER, min_value=0, max_value=10)
    assert validate_answer(slider, {"value": 10}).value == 10.0
    with pytest.raises(MalformedPayload):
        validate_answer(slider, {"value": 11})


def test_datetime_parsing():
    answer = validate_answer(q(QuestionType.DATE_TIME), {"datetime": "2025-12-08T10:30:00Z"})
    assert answer.moment.year == 2025 and answer.moment.tzinfo is not None
    assert validate_answer(q(QuestionType.DATE_TIME), {"datetime": "2025-12-08"}).moment == datetime(2025, 12, 8)
    with pytest.raises(MalformedPayload):
        validate_answer(q(QuestionType.DATE_TIME), {"datetime": "next tuesday"})


def test_text_must_be_string():
    assert validate_answer(q(QuestionType.TEXT), {"text": "hello"}).answer_value == "hello"
    with pytest.raises(MalformedPayload):
        validate_answer(q(QuestionType.TEXT), {"text": 42})


def test_ranking_must_be_full_permutation():
    ranking = q(QuestionType.RANKING)
    answer = validate_answer(ranking, {"order": ["c", "a", "b"]}, OPTS)
    assert answer.option_ids == ("c", "a", "b")
    assert answer.answer_value == "c>a>b"


@pytest.mark.parametrize("order", [["a", "b"], ["a", "b", "b"], ["a", "b", "c", "x"], ["a", "b", "x"]])
def test_ranking_incomplete_permutations_are_rejected(order):
    with pytest.raises(IncompletePermutation):
        validate_answer(q(QuestionType.ORDERING), {"order": order}, OPTS)


def test_matrix_needs_every_declared_row():
    matrix = q(QuestionType.MATRIX, matrix_rows=("r1", "r2"))
    answer = validate_answer(matrix, {"rows": {"r2": "b", "r1": "a"}}, OPTS)
    assert answer.matrix == (("r1", "a"), ("r2", "b"))

    with pytest.raises(IncompleteMatrixAnswer):
        validate_answer(matrix, {"rows": {"r1": "a"}}, OPTS)
    with pytest.raises(IncompleteMatrixAnswer):
        validate_answer(matrix, {"rows": {"r1": "a", "r2": "b", "r3": "c"}}, OPTS)
    with pytest.raises(InvalidOptionReference):
        validate_answer(matrix, {"rows": {"r1": "a", "r2": "nope"}}, OPTS)


def test_score_type_is_read_only():
    with pytest.raises(ReadOnlyQuestionType):
        validate_answer(q(QuestionType.SCORE), {"value": 3})


def test_non_mapping_payload_is_malformed():
    with pytest.raises(MalformedPayload):
        validate_answer(q(QuestionType.SINGLE_CHOICE), ["a"], OPTS)


def test_has_answer():
    choice = q(QuestionType.SINGLE_CHOICE)
    assert not has_answer(choice, None)
    assert not has_answer(choice, {})
    assert not has_answer(choice, {"optionId": None})
    assert not has_answer(q(QuestionType.MULTIPLE_CHOICE), {"optionIds": []})
    assert has_answer(choice, {"optionId": "a"})
    assert has_answer(choice, {"unexpected": 1})
