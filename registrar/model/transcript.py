import enum
import typing as t

from .base import BaseModel, WithAuthors, WithTimestamps
from .id import BlockID, StudentID, SubjectID, TestID, TranscriptID


class Outcome(enum.Enum):
    Pass = "PASS"
    Fail = "FAIL"

    @classmethod
    def of(cls, passed: bool) -> "Outcome":
        return cls.Pass if passed else cls.Fail


class TestResult(BaseModel):
    __test__: t.ClassVar[bool] = False  # not a pytest class

    test_id: TestID
    test_result: Outcome
    test_total_mark: float
    test_weighted_mark: float


class SubjectResult(BaseModel):
    subject_id: SubjectID
    subject_result: Outcome
    subject_total_mark: float
    test_results: list[TestResult] = []


class BlockResult(BaseModel):
    block_id: BlockID
    block_result: Outcome
    block_total_mark: float
    subject_results: list[SubjectResult] = []


class FinalTranscriptResult(WithAuthors, WithTimestamps):
    """A student's complete transcript, replaced wholesale on every calculation."""

    transcript_id: TranscriptID
    student_id: StudentID
    overall_result: Outcome
    block_results: list[BlockResult] = []
