"""
Неизменяемый снимок структуры анкеты для движка оценки.

Дерево Assessment -> Section -> Question -> Option хранится как "арена":
сущности лежат в словарях по id, связи родитель -> дети: в отдельных
индексах. Все словари обёрнуты в MappingProxyType, так что во время оценки
снимок только читается.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Tuple

from surveyscore.utils.errors import StructuralInconsistency
from surveyscore.utils.question_types import AssessmentStatus, QuestionType, ScoringType


@dataclass(frozen=True)
class OptionNode:
    id: str
    question_id: str
    display_order: int = 0
    points: float | None = None
    numeric_value: float | None = None
    text: str = ""


@dataclass(frozen=True)
class QuestionNode:
    id: str
    section_id: str
    question_type: QuestionType
    scoring_type: ScoringType = ScoringType.FIXED_SCORE
    max_points: float | None = None
    display_order: int = 0
    is_required: bool = False
    is_disabled: bool = False
    time_limit_seconds: int | None = None
    matrix_rows: Tuple[str, ...] = ()
    min_value: float | None = None
    max_value: float | None = None
    text: str = ""

    def __post_init__(self):
        # допускаем строки из YAML/БД
        object.__setattr__(self, "question_type", QuestionType(self.question_type))
        object.__setattr__(self, "scoring_type", ScoringType(self.scoring_type))
        object.__setattr__(self, "matrix_rows", tuple(self.matrix_rows or ()))


@dataclass(frozen=True)
class SectionNode:
    id: str
    assessment_id: str
    scoring_type: ScoringType = ScoringType.FIXED_SCORE
    display_order: int = 0
    max_score: float | None = None
    pass_score: float | None = None
    title: str = ""

    def __post_init__(self):
        object.__setattr__(self, "scoring_type", ScoringType(self.scoring_type))


@dataclass(frozen=True)
class AssessmentNode:
    id: str
    title: str = ""
    status: AssessmentStatus = AssessmentStatus.DRAFT
    scoring_type: ScoringType = ScoringType.FIXED_SCORE
    show_results: bool = True
    time_limit_minutes: int | None = None
    expires_at: datetime | None = None

    def __post_init__(self):
        object.__setattr__(self, "status", AssessmentStatus(self.status))
        object.__setattr__(self, "scoring_type", ScoringType(self.scoring_type))

    @property
    def has_time_limit(self) -> bool:
        return self.time_limit_minutes is not None and self.time_limit_minutes > 0

    def is_accepting_responses(self, now: datetime) -> bool:
        """ACTIVE и срок действия не истёк. Часы передаёт вызывающий код."""
        if not self.status.accepts_responses:
            return False
        if self.expires_at is not None and now > self.expires_at:
            return False
        return True


def _ordered(nodes: Iterable) -> Tuple[str, ...]:
    # sorted() стабилен: при равном display_order остаётся порядок вставки
    return tuple(n.id for n in sorted(nodes, key=lambda n: n.display_order))


def _index(kind: str, nodes: Iterable) -> Dict[str, object]:
    result: Dict[str, object] = {}
    for n in nodes:
        if n.id in result:
            raise StructuralInconsistency(f"Повторяющийся id {kind}: {n.id}")
        result[n.id] = n
    return result


@dataclass(frozen=True, eq=False)
class AssessmentStructure:
    assessment: AssessmentNode
    sections: Mapping[str, SectionNode]
    questions: Mapping[str, QuestionNode]
    options: Mapping[str, OptionNode]
    section_ids: Tuple[str, ...]
    question_ids_by_section: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    option_ids_by_question: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        assessment: AssessmentNode,
        sections: Iterable[SectionNode],
        questions: Iterable[QuestionNode],
        options: Iterable[OptionNode] = (),
    ) -> "AssessmentStructure":
        """
        Собирает снимок и проверяет согласованность дерева.
        StructuralInconsistency: если ребёнок ссылается на несуществующего
        родителя (или на чужую анкету), либо id повторяются.
        """
        sections = list(sections)
        questions = list(questions)
        options = list(options)

        section_map = _index("section", sections)
        question_map = _index("question", questions)
        option_map = _index("option", options)

        for s in sections:
            if s.assessment_id != assessment.id:
                raise StructuralInconsistency(
                    f"Секция {s.id} принадлежит анкете {s.assessment_id}, а не {assessment.id}"
                )

        by_section: Dict[str, List[QuestionNode]] = {s.id: [] for s in sections}
        for q in questions:
            if q.section_id not in by_section:
                raise StructuralInconsistency(f"Вопрос {q.id} ссылается на неизвестную секцию {q.section_id}")
            if q.question_type is QuestionType.MATRIX and not q.matrix_rows:
                raise StructuralInconsistency(f"У матричного вопроса {q.id} не заданы строки")
            by_section[q.section_id].append(q)

        by_question: Dict[str, List[OptionNode]] = {q.id: [] for q in questions}
        for o in options:
            if o.question_id not in by_question:
                raise StructuralInconsistency(f"Вариант {o.id} ссылается на неизвестный вопрос {o.question_id}")
            by_question[o.question_id].append(o)

        return cls(
            assessment=assessment,
            sections=MappingProxyType(section_map),
            questions=MappingProxyType(question_map),
            options=MappingProxyType(option_map),
            section_ids=_ordered(sections),
            question_ids_by_section=MappingProxyType({k: _ordered(v) for k, v in by_section.items()}),
            option_ids_by_question=MappingProxyType({k: _ordered(v) for k, v in by_question.items()}),
        )

    # --------------------- Навигация ---------------------

    def ordered_sections(self) -> List[SectionNode]:
        return [self.sections[sid] for sid in self.section_ids]

    def section_questions(self, section_id: str) -> List[QuestionNode]:
        return [self.questions[qid] for qid in self.question_ids_by_section.get(section_id, ())]

    def question_options(self, question_id: str) -> List[OptionNode]:
        return [self.options[oid] for oid in self.option_ids_by_question.get(question_id, ())]

    def iter_questions(self) -> Iterator[QuestionNode]:
        """Все вопросы в порядке отображения (секция, затем вопрос)."""
        for sid in self.section_ids:
            yield from self.section_questions(sid)

    def enabled_questions(self) -> Iterator[QuestionNode]:
        return (q for q in self.iter_questions() if not q.is_disabled)
