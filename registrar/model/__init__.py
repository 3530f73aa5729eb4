__all__ = [
    # Base
    "BaseModel",
    "WithAuthors",
    "WithCtime",
    "WithMtime",
    "WithTimestamps",
    # Enums
    "DeploymentEnvironment",
    # ID Types
    "UserID",
    "StudentID",
    "BlockID",
    "SubjectID",
    "TestID",
    "StudentTestResultID",
    "TranscriptID",
    # Users & Students
    "User",
    "Student",
    "StudentStatus",
    # Grading structure
    "Block",
    "BlockType",
    "BlockWithSubjects",
    "EvaluationType",
    "GradingStatus",
    "Notation",
    "Subject",
    "SubjectWithTests",
    "Test",
    # Criteria
    "AverageCondition",
    "ComparisonOperator",
    "Condition",
    "ConditionGroup",
    "CriteriaSet",
    "CriteriaType",
    "MarkCondition",
    "PassingCriteria",
    # Student results
    "NotationMark",
    "StudentTestResult",
    "StudentTestResultStatus",
    # Transcripts
    "BlockResult",
    "FinalTranscriptResult",
    "Outcome",
    "SubjectResult",
    "TestResult",
]

from .base import BaseModel, WithAuthors, WithCtime, WithMtime, WithTimestamps
from .enum import DeploymentEnvironment
from .grading import AverageCondition, Block, BlockType, BlockWithSubjects, ComparisonOperator, Condition, \
    ConditionGroup, CriteriaSet, CriteriaType, EvaluationType, GradingStatus, MarkCondition, Notation, \
    PassingCriteria, Subject, SubjectWithTests, Test
from .id import BlockID, StudentID, StudentTestResultID, SubjectID, TestID, TranscriptID, UserID
from .result import NotationMark, StudentTestResult, StudentTestResultStatus
from .student import Student, StudentStatus
from .transcript import BlockResult, FinalTranscriptResult, Outcome, SubjectResult, TestResult
from .user import User
