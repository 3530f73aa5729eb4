import datetime
import enum

from .base import BaseModel, WithAuthors, WithTimestamps
from .id import StudentID, StudentTestResultID, TestID


class StudentTestResultStatus(enum.Enum):
    Pending = "PENDING"
    Validated = "VALIDATED"
    Deleted = "DELETED"


class NotationMark(BaseModel):
    notation_text: str
    mark: float


class StudentTestResult(WithAuthors, WithTimestamps):
    student_test_result_id: StudentTestResultID
    student_id: StudentID
    test_id: TestID

    marks: list[NotationMark] = []
    average_mark: float
    mark_entry_date: datetime.datetime
    status: StudentTestResultStatus = StudentTestResultStatus.Pending
