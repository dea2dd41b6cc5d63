from datetime import datetime, timedelta

import pytest

from surveyscore.utils.errors import StructuralInconsistency
from surveyscore.utils.question_types import AssessmentStatus, QuestionType
from surveyscore.utils.structure import AssessmentNode, AssessmentStructure, QuestionNode, SectionNode

from conftest import choice_question, option, two_question_structure


NOW = datetime(2026, 1, 1, 12, 0)


def test_accepting_responses_requires_active_and_not_expired():
    active = AssessmentNode(id="a", status="ACTIVE")
    assert active.is_accepting_responses(NOW)

    expired = AssessmentNode(id="a", status="ACTIVE", expires_at=NOW - timedelta(minutes=1))
    assert not expired.is_accepting_responses(NOW)

    future = AssessmentNode(id="a", status="ACTIVE", expires_at=NOW + timedelta(days=1))
    assert future.is_accepting_responses(NOW)

    paused = AssessmentNode(id="a", status=AssessmentStatus.PAUSED)
    assert not paused.is_accepting_responses(NOW)


def test_has_time_limit():
    assert AssessmentNode(id="a", time_limit_minutes=10).has_time_limit
    assert not AssessmentNode(id="a", time_limit_minutes=0).has_time_limit
    assert not AssessmentNode(id="a").has_time_limit


def test_children_are_ordered_by_display_order_then_insertion():
    a = AssessmentNode(id="a")
    sections = [SectionNode(id="s2", assessment_id="a", display_order=2), SectionNode(id="s1", assessment_id="a", display_order=1)]
    questions = [
        choice_question("late", section_id="s1", order=5),
        choice_question("tie-1", section_id="s1", order=1),
        choice_question("tie-2", section_id="s1", order=1),
    ]
    structure = AssessmentStructure.build(a, sections, questions)

    assert structure.section_ids == ("s1", "s2")
    assert [q.id for q in structure.section_questions("s1")] == ["tie-1", "tie-2", "late"]
    assert structure.section_questions("s2") == []


def test_snapshot_is_read_only():
    structure = two_question_structure()
    with pytest.raises(TypeError):
        structure.questions["q9"] = None
    with pytest.raises(AttributeError):
        structure.assessment.title = "changed"


def test_question_in_unknown_section_is_inconsistent():
    a = AssessmentNode(id="a")
    with pytest.raises(StructuralInconsistency):
        AssessmentStructure.build(a, [SectionNode(id="s1", assessment_id="a")], [choice_question("q", section_id="nope")])


def test_section_of_other_assessment_is_inconsistent():
    with pytest.raises(StructuralInconsistency):
        AssessmentStructure.build(AssessmentNode(id="a"), [SectionNode(id="s1", assessment_id="b")], [])


def test_option_of_unknown_question_and_duplicate_ids():
    a = AssessmentNode(id="a")
    s = SectionNode(id="s1", assessment_id="a")
    with pytest.raises(StructuralInconsistency):
        AssessmentStructure.build(a, [s], [choice_question("q")], [option("o", "other")])
    with pytest.raises(StructuralInconsistency):
        AssessmentStructure.build(a, [s], [choice_question("q"), choice_question("q")])


def test_matrix_without_rows_is_inconsistent():
    a = AssessmentNode(id="a")
    s = SectionNode(id="s1", assessment_id="a")
    matrix = QuestionNode(id="m", section_id="s1", question_type=QuestionType.MATRIX)
    with pytest.raises(StructuralInconsistency):
        AssessmentStructure.build(a, [s], [matrix])
