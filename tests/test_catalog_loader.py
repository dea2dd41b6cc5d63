from pathlib import Path

import pytest

from surveyscore.models.assessment import Assessment
from surveyscore.utils.catalog_loader import (
    CatalogError,
    build_assessment,
    discover_assessments,
    import_all,
    import_assessment_file,
)
from surveyscore.utils.question_types import QuestionType
from surveyscore.utils.snapshot import build_structure, load_structure

CATALOG = Path(__file__).resolve().parents[1] / "surveyscore" / "assessment_catalog"
SAFETY_ID = "6f1c2a4e-0d7b-4c1e-9a55-2b8f3d9e7a10"


def test_discover_finds_bundled_catalog():
    files = discover_assessments(CATALOG)
    assert [p.name for p in files] == ["safety_induction.yaml"]


def test_discover_missing_root_is_empty(tmp_path):
    assert discover_assessments(tmp_path / "nope") == []


def test_import_bundled_assessment_and_build_snapshot(db_session):
    result = import_all(db_session, CATALOG)
    assert result["imported"] == [SAFETY_ID]
    assert result["errors"] == {}

    structure = load_structure(db_session, SAFETY_ID)
    assert structure.assessment.title == "Workplace safety induction"
    assert structure.assessment.has_time_limit
    assert len(structure.section_ids) == 2
    first = structure.ordered_sections()[0]
    assert first.pass_score == 5
    ranking = structure.section_questions(first.id)[1]
    assert ranking.question_type is QuestionType.RANKING
    assert len(structure.question_options(ranking.id)) == 3


def test_reimport_replaces_existing_assessment(db_session):
    path = CATALOG / "safety_induction.yaml"
    import_assessment_file(db_session, path)
    import_assessment_file(db_session, path)
    assert db_session.query(Assessment).count() == 1


def test_invalid_files_are_collected(tmp_path, db_session):
    (tmp_path / "bad_type.yaml").write_text(
        "assessment:\n  title: Broken\n  sections:\n    - questions:\n        - {type: WHATEVER}\n",
        encoding="utf-8",
    )
    (tmp_path / "not_mapping.yml").write_text("- just\n- a list\n", encoding="utf-8")

    result = import_all(db_session, tmp_path)
    assert result["count"] == 0
    assert len(result["errors"]) == 2

    with pytest.raises(CatalogError):
        import_all(db_session, tmp_path, stop_on_error=True)


def test_build_assessment_validates_option_bearing_types():
    data = {"assessment": {"title": "T", "sections": [{"questions": [{"type": "SINGLE_CHOICE"}]}]}}
    with pytest.raises(CatalogError):
        build_assessment(data)


def test_matrix_rows_survive_into_snapshot():
    data = {
        "assessment": {
            "id": "a",
            "title": "Grid",
            "sections": [{
                "id": "s",
                "questions": [{
                    "id": "m",
                    "type": "MATRIX",
                    "rows": ["speed", "quality"],
                    "options": [{"id": "lo", "points": 0}, {"id": "hi", "points": 1}],
                }],
            }],
        }
    }
    structure = build_structure(build_assessment(data))
    assert structure.questions["m"].matrix_rows == ("speed", "quality")
    assert structure.assessment.status.value == "DRAFT"


def test_malformed_file_does_not_stop_the_rest_of_the_catalog(tmp_path, db_session):
    (tmp_path / "a_bad.yaml").write_text(
        "assessment:\n  title: Broken\n  sections:\n    - just a string\n",
        encoding="utf-8",
    )
    (tmp_path / "b_bad_order.yaml").write_text(
        "assessment:\n  title: Broken order\n  sections:\n    - display_order: first\n",
        encoding="utf-8",
    )
    (tmp_path / "c_good.yaml").write_text(
        (CATALOG / "safety_induction.yaml").read_text(encoding="utf-8"),
        encoding="utf-8",
    )

    result = import_all(db_session, tmp_path)
    assert result["imported"] == [SAFETY_ID]
    assert set(Path(p).name for p in result["errors"]) == {"a_bad.yaml", "b_bad_order.yaml"}
    assert db_session.query(Assessment).count() == 1


@pytest.mark.parametrize("question", [
    "just text",
    {"type": "TEXT", "time_limit_seconds": "soon"},
    {"type": "SINGLE_CHOICE", "options": ["yes", "no"]},
    {"type": "MATRIX", "rows": "speed", "options": [{"id": "o"}]},
])
def test_malformed_nodes_raise_catalog_error(question):
    data = {"assessment": {"title": "T", "sections": [{"questions": [question]}]}}
    with pytest.raises(CatalogError):
        build_assessment(data)
