from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Any
from uuid import uuid4

import yaml
from sqlalchemy.orm import Session

from surveyscore.database import CATALOG_ROOT
from surveyscore.models.assessment import Assessment, Section, Question, Option
from surveyscore.utils.question_types import AssessmentStatus, QuestionType, ScoringType

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Исключение при проблемах с каталогом анкет."""
    pass


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Читает YAML и возвращает dict. Бросает CatalogError при ошибке."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise CatalogError(f"Ошибка чтения YAML {path}: {e}") from e
    if not isinstance(data, dict):
        raise CatalogError(f"Формат YAML должен быть объектом (mapping): {path}")
    return data


def discover_assessments(root: Path | None = None) -> List[Path]:
    """
    Ищет все файлы *.yaml / *.yml в каталоге анкет.
    Возвращает отсортированный список путей.
    """
    root = Path(root) if root else CATALOG_ROOT
    if not root.exists():
        return []
    return sorted([p for p in root.rglob("*.y*ml") if p.is_file()])


def _enum(enum_cls, value: Any, default, where: str):
    if value is None:
        return default.value
    try:
        return enum_cls(str(value).strip().upper()).value
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise CatalogError(f"{where}: недопустимое значение {value!r}, ожидается одно из: {allowed}")


def _float(value: Any, where: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise CatalogError(f"{where}: ожидается число, получено {value!r}") from e


def _int(value: Any, where: str, default: int | None = None) -> int | None:
    if value is None:
        return default
    if isinstance(value, bool):
        raise CatalogError(f"{where}: ожидается целое число, получено {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise CatalogError(f"{where}: ожидается целое число, получено {value!r}") from e


def _datetime(value: Any, where: str) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as e:
        raise CatalogError(f"{where}: неверная дата {value!r}") from e


def _list(raw: Dict[str, Any], key: str, where: str) -> List[Dict[str, Any]]:
    items = raw.get(key) or []
    if not isinstance(items, list):
        raise CatalogError(f"{where}: '{key}' должен быть массивом")
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise CatalogError(f"{where}: {key}[{i}] должен быть объектом (mapping), получено {item!r}")
    return items


def _build_option(raw: Dict[str, Any], order: int, question_id: str, where: str) -> Option:
    return Option(
        id=str(raw.get("id") or uuid4()),
        question_id=question_id,
        option_text=str(raw.get("text") or ""),
        description=raw.get("description"),
        display_order=_int(raw.get("display_order"), f"{where}.display_order", order),
        points=_float(raw.get("points"), f"{where}.points"),
        numeric_value=_float(raw.get("numeric_value"), f"{where}.numeric_value"),
        image_url=raw.get("image_url"),
        image_alt_text=raw.get("image_alt_text"),
        video_url=raw.get("video_url"),
    )


def _build_question(raw: Dict[str, Any], order: int, section_id: str, where: str) -> Question:
    if "type" not in raw:
        raise CatalogError(f"{where}: отсутствует поле 'type'")
    qtype = _enum(QuestionType, raw["type"], QuestionType.TEXT, f"{where}.type")
    question_id = str(raw.get("id") or uuid4())

    rows = raw.get("rows")
    if qtype == QuestionType.MATRIX.value and not rows:
        raise CatalogError(f"{where}: для MATRIX нужен список 'rows'")
    if rows is not None and not isinstance(rows, list):
        raise CatalogError(f"{where}: 'rows' должен быть массивом")

    question = Question(
        id=question_id,
        section_id=section_id,
        question_text=str(raw.get("text") or ""),
        description=raw.get("description"),
        question_type=qtype,
        display_order=_int(raw.get("display_order"), f"{where}.display_order", order),
        is_required=bool(raw.get("required", False)),
        is_disabled=bool(raw.get("disabled", False)),
        time_limit_seconds=_int(raw.get("time_limit_seconds"), f"{where}.time_limit_seconds"),
        scoring_type=_enum(ScoringType, raw.get("scoring_type"), ScoringType.FIXED_SCORE, f"{where}.scoring_type"),
        max_points=_float(raw.get("max_points"), f"{where}.max_points"),
        matrix_rows=[str(r) for r in rows] if rows else None,
        min_value=_float(raw.get("min_value"), f"{where}.min_value"),
        max_value=_float(raw.get("max_value"), f"{where}.max_value"),
        image_url=raw.get("image_url"),
        video_url=raw.get("video_url"),
    )
    options = _list(raw, "options", where)
    if QuestionType(qtype).requires_options and not options:
        raise CatalogError(f"{where}: тип {qtype} требует варианты ответа")
    question.options = [
        _build_option(o, i, question_id, f"{where}.options[{i}]") for i, o in enumerate(options)
    ]
    return question


def build_assessment(data: Dict[str, Any], source: str = "<dict>") -> Assessment:
    """Строит ORM-дерево анкеты из разобранного YAML (без записи в БД)."""
    raw = data.get("assessment")
    if not isinstance(raw, dict):
        raise CatalogError(f"{source}: отсутствует раздел 'assessment'")
    if not raw.get("title"):
        raise CatalogError(f"{source}: assessment.title пуст")

    assessment_id = str(raw.get("id") or uuid4())
    assessment = Assessment(
        id=assessment_id,
        title=str(raw["title"]),
        description=raw.get("description"),
        assessment_type=raw.get("assessment_type"),
        instructions=raw.get("instructions"),
        status=_enum(AssessmentStatus, raw.get("status"), AssessmentStatus.DRAFT, f"{source}: status"),
        scoring_type=_enum(ScoringType, raw.get("scoring_type"), ScoringType.FIXED_SCORE, f"{source}: scoring_type"),
        show_results=bool(raw.get("show_results", True)),
        time_limit_minutes=_int(raw.get("time_limit_minutes"), f"{source}: time_limit_minutes"),
        expires_at=_datetime(raw.get("expires_at"), f"{source}: expires_at"),
        created_by=raw.get("created_by"),
    )

    sections = []
    for i, s in enumerate(_list(raw, "sections", source)):
        where = f"{source}: sections[{i}]"
        section_id = str(s.get("id") or uuid4())
        section = Section(
            id=section_id,
            assessment_id=assessment_id,
            title=str(s.get("title") or f"Section {i + 1}"),
            description=s.get("description"),
            display_order=_int(s.get("display_order"), f"{where}.display_order", i),
            scoring_type=_enum(ScoringType, s.get("scoring_type"), ScoringType.FIXED_SCORE, f"{where}.scoring_type"),
            max_score=_float(s.get("max_score"), f"{where}.max_score"),
            pass_score=_float(s.get("pass_score"), f"{where}.pass_score"),
        )
        section.questions = [
            _build_question(q, j, section_id, f"{where}.questions[{j}]")
            for j, q in enumerate(_list(s, "questions", where))
        ]
        sections.append(section)
    assessment.sections = sections
    return assessment


def import_assessment_file(db: Session, path: Path) -> str:
    """
    Импортирует один YAML-файл анкеты в БД (upsert по assessment.id).
    Анкету, на которую уже есть ответы, не заменяем: CatalogError.
    Возвращает id анкеты.
    """
    assessment = build_assessment(_load_yaml(path), str(path))

    existed = db.get(Assessment, assessment.id)
    if existed:
        if existed.responses:
            raise CatalogError(
                f"{path}: у анкеты {assessment.id} уже есть ответы ({len(existed.responses)}), структура не заменяется"
            )
        db.delete(existed)
        db.flush()

    db.add(assessment)
    db.commit()
    logger.info("Imported assessment %s from %s", assessment.id, path)
    return assessment.id


def import_all(db: Session, root: Path | None = None, stop_on_error: bool = False) -> Dict[str, Any]:
    """
    Импортирует все анкеты из каталога.
    Возвращает словарь: { imported: [ids], errors: {path: error}, root: str, count: int }
    Если stop_on_error=True: при первой ошибке бросает исключение.
    """
    root = Path(root) if root else CATALOG_ROOT
    files = discover_assessments(root)
    imported: List[str] = []
    errors: Dict[str, str] = {}

    for p in files:
        try:
            imported.append(import_assessment_file(db, p))
        except CatalogError as e:
            db.rollback()
            logger.warning("Failed to import %s: %s", p, e)
            errors[str(p)] = str(e)
            if stop_on_error:
                raise

    return {"imported": imported, "errors": errors, "root": str(root), "count": len(imported)}


if __name__ == "__main__":
    # Локальный запуск: python -m surveyscore.utils.catalog_loader
    from surveyscore.database import SessionLocal
    logging.basicConfig(level=logging.INFO)
    db = SessionLocal()
    try:
        result = import_all(db)
        print("Импорт завершён:", result)
    finally:
        db.close()
