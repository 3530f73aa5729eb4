from __future__ import annotations

import enum
import typing as t

import pydantic as p

from .base import BaseModel, WithAuthors, WithTimestamps
from .id import BlockID, SubjectID, TestID


class GradingStatus(enum.Enum):
    Active = "ACTIVE"
    Inactive = "INACTIVE"
    Deleted = "DELETED"


class EvaluationType(enum.Enum):
    Competency = "COMPETENCY"
    Score = "SCORE"


class BlockType(enum.Enum):
    Regular = "REGULAR"
    Competency = "COMPETENCY"
    SoftSkill = "SOFT_SKILL"
    AcademicRecommendation = "ACADEMIC_RECOMMENDATION"
    Specialization = "SPECIALIZATION"
    Transversal = "TRANSVERSAL"
    Retake = "RETAKE"


class CriteriaType(enum.Enum):
    Mark = "MARK"
    Average = "AVERAGE"


class ComparisonOperator(enum.Enum):
    GTE = "GTE"
    LTE = "LTE"
    GT = "GT"
    LT = "LT"
    E = "E"


# criteria are authored upstream and never validated here, so an operator we
# don't recognize is kept as a plain string and simply never matches
Operator = t.Annotated[ComparisonOperator | str, p.Field(union_mode="left_to_right")]


class MarkCondition(BaseModel):
    """Compares one notation mark against a threshold.

    With `subject` or `test` set, the notation is read from that entity's
    entry in the score lookup; otherwise from the enclosing entity's own marks.
    """

    criteria_type: CriteriaType = CriteriaType.Mark
    subject: SubjectID | None = None
    test: TestID | None = None
    notation_text: str | None = None
    comparison_operator: Operator
    mark: float


class AverageCondition(BaseModel):
    """Compares the enclosing entity's own rolled-up score against a threshold."""

    criteria_type: CriteriaType = CriteriaType.Average
    comparison_operator: Operator
    mark: float


def _criteria_type(v: t.Any) -> str | None:
    ct = v.get("criteria_type") if isinstance(v, dict) else getattr(v, "criteria_type", None)
    return ct.value if isinstance(ct, CriteriaType) else ct


Condition = t.Annotated[
    t.Annotated[MarkCondition, p.Tag(CriteriaType.Mark.value)]
    | t.Annotated[AverageCondition, p.Tag(CriteriaType.Average.value)],
    p.Discriminator(_criteria_type),
]


class ConditionGroup(BaseModel):
    conditions: list[Condition] = []


class CriteriaSet(BaseModel):
    groups: list[ConditionGroup] = p.Field(
        default=[],
        validation_alias=p.AliasChoices(
            "groups", "block_criteria_groups", "subject_criteria_groups", "test_criteria_groups"
        ),
    )


class PassingCriteria(BaseModel):
    pass_criteria: CriteriaSet | None = None
    fail_criteria: CriteriaSet | None = None


class Notation(BaseModel):
    notation_text: str
    max_points: float = p.Field(ge=0)


class Test(WithAuthors, WithTimestamps):
    __test__: t.ClassVar[bool] = False  # not a pytest class

    test_id: TestID
    subject_id: SubjectID

    name: str
    description: str = ""
    weight: float = p.Field(ge=0)
    notations: list[Notation] = []
    position: int = 0
    status: GradingStatus = GradingStatus.Active
    passing_criteria: PassingCriteria | None = p.Field(
        default=None, validation_alias=p.AliasChoices("passing_criteria", "test_passing_criteria")
    )


class Subject(WithAuthors, WithTimestamps):
    subject_id: SubjectID
    block_id: BlockID

    name: str
    description: str = ""
    coefficient: float = p.Field(ge=0)
    position: int = 0
    status: GradingStatus = GradingStatus.Active
    passing_criteria: PassingCriteria | None = p.Field(
        default=None, validation_alias=p.AliasChoices("passing_criteria", "subject_passing_criteria")
    )


class SubjectWithTests(Subject):
    tests: list[Test] = []


class Block(WithAuthors, WithTimestamps):
    block_id: BlockID

    name: str
    description: str = ""
    evaluation_type: EvaluationType = EvaluationType.Score
    block_type: BlockType = BlockType.Regular
    is_counted_in_final_transcript: bool = True
    position: int = 0
    status: GradingStatus = GradingStatus.Active
    passing_criteria: PassingCriteria | None = p.Field(
        default=None, validation_alias=p.AliasChoices("passing_criteria", "block_passing_criteria")
    )


class BlockWithSubjects(Block):
    subjects: list[SubjectWithTests] = []
