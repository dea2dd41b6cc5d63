from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class AssessmentStatus(str, Enum):
    """Жизненный цикл анкеты / assessment lifecycle."""

    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    CLOSED = "CLOSED"
    ARCHIVED = "ARCHIVED"
    EXPIRED = "EXPIRED"

    @property
    def description(self) -> str:
        return _STATUS_DESCRIPTIONS[self]

    @property
    def accepts_responses(self) -> bool:
        return self is AssessmentStatus.ACTIVE

    @property
    def is_inactive(self) -> bool:
        return self in (AssessmentStatus.ARCHIVED, AssessmentStatus.CLOSED, AssessmentStatus.EXPIRED)


_STATUS_DESCRIPTIONS = {
    AssessmentStatus.DRAFT: "Draft - assessment is being created/configured",
    AssessmentStatus.ACTIVE: "Active - assessment is published and accepting responses",
    AssessmentStatus.PAUSED: "Paused - assessment is temporarily unavailable",
    AssessmentStatus.CLOSED: "Closed - assessment is no longer accepting responses",
    AssessmentStatus.ARCHIVED: "Archived - assessment is archived and hidden",
    AssessmentStatus.EXPIRED: "Expired - assessment expiry date has passed",
}


class ResponseStatus(str, Enum):
    STARTED = "STARTED"
    SUBMITTED = "SUBMITTED"
    SCORED = "SCORED"
    ABANDONED = "ABANDONED"


class ScoringType(str, Enum):
    NO_SCORING = "NO_SCORING"
    FIXED_SCORE = "FIXED_SCORE"
    WEIGHTED_SCORE = "WEIGHTED_SCORE"
    DYNAMIC_SCORE = "DYNAMIC_SCORE"
    FORMULA_BASED = "FORMULA_BASED"

    @property
    def description(self) -> str:
        return _SCORING_DESCRIPTIONS[self]

    @property
    def requires_configuration(self) -> bool:
        return self is not ScoringType.NO_SCORING


_SCORING_DESCRIPTIONS = {
    ScoringType.NO_SCORING: "No Scoring - informational only",
    ScoringType.FIXED_SCORE: "Fixed Score - each question/option has a predefined score",
    ScoringType.WEIGHTED_SCORE: "Weighted Score - questions have different weights within a section",
    ScoringType.DYNAMIC_SCORE: "Dynamic Score - score based on response value (e.g. slider position)",
    ScoringType.FORMULA_BASED: "Formula Based - custom formula supplied by the caller",
}


class QuestionType(str, Enum):
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TEXT = "TEXT"
    NUMERIC = "NUMERIC"
    RATING = "RATING"
    LIKERT_SCALE = "LIKERT_SCALE"
    DROPDOWN = "DROPDOWN"
    SLIDER = "SLIDER"
    RANKING = "RANKING"
    ORDERING = "ORDERING"
    DATE_TIME = "DATE_TIME"
    IMAGE_CHOICE = "IMAGE_CHOICE"
    FILE_UPLOAD = "FILE_UPLOAD"
    SCORE = "SCORE"
    MATRIX = "MATRIX"

    @property
    def traits(self) -> "QuestionTraits":
        return QUESTION_TRAITS[self]

    @property
    def requires_options(self) -> bool:
        return self.traits.requires_options

    @property
    def allows_multiple_selections(self) -> bool:
        return self.traits.allows_multiple_selections

    @property
    def is_scale_based(self) -> bool:
        return self.traits.is_scale_based


@dataclass(frozen=True)
class QuestionTraits:
    """Структурные требования типа вопроса."""
    requires_options: bool
    allows_multiple_selections: bool
    is_scale_based: bool
    payload_key: str | None   # ключ в JSON-ответе; None: ответ не принимается
    description: str


def _t(opts: bool, multi: bool, scale: bool, key: str | None, description: str) -> QuestionTraits:
    return QuestionTraits(opts, multi, scale, key, description)


# Фиксированная таблица: тип -> (options?, multi?, scale?, payload key)
QUESTION_TRAITS: Dict[QuestionType, QuestionTraits] = {
    QuestionType.SINGLE_CHOICE:   _t(True,  False, False, "optionId",  "Single Choice - select one option"),
    QuestionType.MULTIPLE_CHOICE: _t(True,  True,  False, "optionIds", "Multiple Choice - select multiple options"),
    QuestionType.TEXT:            _t(False, False, False, "text",      "Text - free-form text response"),
    QuestionType.NUMERIC:         _t(False, False, False, "value",     "Numeric - integer or decimal input"),
    QuestionType.RATING:          _t(True,  False, True,  "optionId",  "Rating - rate on a numeric scale"),
    QuestionType.LIKERT_SCALE:    _t(True,  False, True,  "optionId",  "Likert Scale - agreement scale"),
    QuestionType.DROPDOWN:        _t(True,  False, False, "optionId",  "Dropdown - select one from a list"),
    QuestionType.SLIDER:          _t(False, False, True,  "value",     "Slider - numeric value via slider"),
    QuestionType.RANKING:         _t(True,  False, False, "order",     "Ranking - rank options in preferred order"),
    QuestionType.ORDERING:        _t(False, False, False, "order",     "Ordering - order items in sequence"),
    QuestionType.DATE_TIME:       _t(False, False, False, "datetime",  "Date/Time - date and/or time input"),
    QuestionType.IMAGE_CHOICE:    _t(True,  False, False, "optionId",  "Image Choice - select an image"),
    QuestionType.FILE_UPLOAD:     _t(False, True,  False, "optionIds", "File Upload - upload file(s)"),
    QuestionType.SCORE:           _t(False, False, False, None,        "Score - calculated/display-only score"),
    QuestionType.MATRIX:          _t(True,  False, False, "rows",      "Matrix - grid of rows x rating columns"),
}


def traits_for(question_type: QuestionType | str) -> QuestionTraits:
    """Возвращает требования для типа вопроса (принимает и enum, и строку)."""
    return QUESTION_TRAITS[QuestionType(question_type)]
