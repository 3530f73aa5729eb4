import datetime
import enum
import typing as t

from sqlalchemy import ForeignKey, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import DateTime

from registrar.model import BlockID, BlockType, EvaluationType, GradingStatus, Outcome, StudentID, StudentStatus, \
    StudentTestResultID, StudentTestResultStatus, SubjectID, TestID, TranscriptID, UserID

from .type import ShortUUIDKeyType, ValueEnumMapper

# JSONB documents; SQL NULL rather than JSON null when absent
Document = JSONB(none_as_null=True)


class base(MappedAsDataclass, DeclarativeBase):
    type_annotation_map = {
        UserID: ShortUUIDKeyType(UserID),
        StudentID: ShortUUIDKeyType(StudentID),
        BlockID: ShortUUIDKeyType(BlockID),
        SubjectID: ShortUUIDKeyType(SubjectID),
        TestID: ShortUUIDKeyType(TestID),
        StudentTestResultID: ShortUUIDKeyType(StudentTestResultID),
        TranscriptID: ShortUUIDKeyType(TranscriptID),
        datetime.datetime: DateTime(timezone=True),
        enum.Enum: ValueEnumMapper,
    }


# Users & Students


class users(base):
    __tablename__ = "users"

    user_id: Mapped[UserID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(unique=True)
    name: Mapped[str]
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class students(base):
    __tablename__ = "students"

    student_id: Mapped[StudentID] = mapped_column(primary_key=True)
    first_name: Mapped[str]
    last_name: Mapped[str]
    email: Mapped[str] = mapped_column(unique=True)
    status: Mapped[StudentStatus] = mapped_column(default=StudentStatus.Active)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Grading structure: blocks > subjects > tests


class blocks(base):
    __tablename__ = "blocks"

    block_id: Mapped[BlockID] = mapped_column(primary_key=True)
    created_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    updated_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    name: Mapped[str]
    description: Mapped[str] = mapped_column(default="")
    evaluation_type: Mapped[EvaluationType] = mapped_column(default=EvaluationType.Score)
    block_type: Mapped[BlockType] = mapped_column(default=BlockType.Regular)
    is_counted_in_final_transcript: Mapped[bool] = mapped_column(default=True)
    position: Mapped[int] = mapped_column(default=0)
    status: Mapped[GradingStatus] = mapped_column(default=GradingStatus.Active)
    passing_criteria: Mapped[dict[str, t.Any] | None] = mapped_column(Document, default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class subjects(base):
    __tablename__ = "subjects"

    subject_id: Mapped[SubjectID] = mapped_column(primary_key=True)
    block_id: Mapped[BlockID] = mapped_column(ForeignKey("blocks.block_id"), index=True)
    created_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    updated_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    name: Mapped[str]
    coefficient: Mapped[float]
    description: Mapped[str] = mapped_column(default="")
    position: Mapped[int] = mapped_column(default=0)
    status: Mapped[GradingStatus] = mapped_column(default=GradingStatus.Active)
    passing_criteria: Mapped[dict[str, t.Any] | None] = mapped_column(Document, default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class tests(base):
    __tablename__ = "tests"

    test_id: Mapped[TestID] = mapped_column(primary_key=True)
    subject_id: Mapped[SubjectID] = mapped_column(ForeignKey("subjects.subject_id"), index=True)
    created_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    updated_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    name: Mapped[str]
    weight: Mapped[float]
    description: Mapped[str] = mapped_column(default="")
    notations: Mapped[list[dict[str, t.Any]]] = mapped_column(JSONB, default_factory=list)
    position: Mapped[int] = mapped_column(default=0)
    status: Mapped[GradingStatus] = mapped_column(default=GradingStatus.Active)
    passing_criteria: Mapped[dict[str, t.Any] | None] = mapped_column(Document, default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Marks & transcripts


class student_test_results(base):
    __tablename__ = "student_test_results"

    student_test_result_id: Mapped[StudentTestResultID] = mapped_column(primary_key=True)
    student_id: Mapped[StudentID] = mapped_column(ForeignKey("students.student_id"), index=True)
    test_id: Mapped[TestID] = mapped_column(ForeignKey("tests.test_id"))
    created_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    updated_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    average_mark: Mapped[float]
    mark_entry_date: Mapped[datetime.datetime]
    marks: Mapped[list[dict[str, t.Any]]] = mapped_column(JSONB, default_factory=list)
    status: Mapped[StudentTestResultStatus] = mapped_column(default=StudentTestResultStatus.Pending)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class final_transcript_results(base):
    __tablename__ = "final_transcript_results"

    transcript_id: Mapped[TranscriptID] = mapped_column(primary_key=True)
    student_id: Mapped[StudentID] = mapped_column(ForeignKey("students.student_id"), unique=True)
    created_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    updated_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    overall_result: Mapped[Outcome]
    block_results: Mapped[list[dict[str, t.Any]]] = mapped_column(JSONB, default_factory=list)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())
