import enum

from pydantic import EmailStr

from .base import WithTimestamps
from .id import StudentID


class StudentStatus(enum.Enum):
    Active = "ACTIVE"
    Inactive = "INACTIVE"
    Deleted = "DELETED"


class Student(WithTimestamps):
    student_id: StudentID
    first_name: str
    last_name: str
    email: EmailStr
    status: StudentStatus = StudentStatus.Active

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
