import pytest

from surveyscore.utils.question_types import (
    QUESTION_TRAITS,
    AssessmentStatus,
    QuestionType,
    ScoringType,
    traits_for,
)


def test_every_question_type_has_traits():
    assert set(QUESTION_TRAITS) == set(QuestionType)
    assert len(QuestionType) == 15


def test_requires_options_table():
    expected = {
        QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE, QuestionType.DROPDOWN,
        QuestionType.RATING, QuestionType.LIKERT_SCALE, QuestionType.RANKING,
        QuestionType.IMAGE_CHOICE, QuestionType.MATRIX,
    }
    assert {t for t in QuestionType if t.requires_options} == expected


def test_multiple_selection_and_scale_tables():
    assert {t for t in QuestionType if t.allows_multiple_selections} == {
        QuestionType.MULTIPLE_CHOICE, QuestionType.FILE_UPLOAD,
    }
    assert {t for t in QuestionType if t.is_scale_based} == {
        QuestionType.RATING, QuestionType.LIKERT_SCALE, QuestionType.SLIDER,
    }


def test_traits_for_accepts_strings():
    assert traits_for("SLIDER").payload_key == "value"
    assert traits_for(QuestionType.SCORE).payload_key is None


def test_status_helpers():
    assert AssessmentStatus.ACTIVE.accepts_responses
    assert not AssessmentStatus.PAUSED.accepts_responses
    assert {s for s in AssessmentStatus if s.is_inactive} == {
        AssessmentStatus.ARCHIVED, AssessmentStatus.CLOSED, AssessmentStatus.EXPIRED,
    }
    assert AssessmentStatus.DRAFT.description.startswith("Draft")


@pytest.mark.parametrize("scoring_type", list(ScoringType))
def test_requires_configuration(scoring_type):
    assert scoring_type.requires_configuration is (scoring_type is not ScoringType.NO_SCORING)
