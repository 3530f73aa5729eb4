"""Tests for registrar.storage.transcript, and for calculating transcripts against the database."""

from __future__ import annotations

import typing as t

import pytest
from sqlalchemy.orm import Session

from registrar.core.config import TranscriptSettings
from registrar.model import Block, BlockResult, BlockID, Outcome, PassingCriteria, Student, StudentID, \
    StudentTestResult, Subject, Test, TranscriptID, User
from registrar.storage import transcript as transcript_storage
from registrar.transcript import calculate_final_transcript

pytestmark = pytest.mark.database

AtLeastHalf = PassingCriteria.model_validate({
    "pass_criteria": {
        "groups": [{"conditions": [{"criteria_type": "AVERAGE", "comparison_operator": "GTE", "mark": 50}]}]
    },
})


def block_result(outcome: Outcome, mark: float) -> BlockResult:
    return BlockResult(block_id=BlockID(), block_result=outcome, block_total_mark=mark)


class TestUpsert(object):
    """Tests for transcript_storage.upsert()."""

    def test_upsert_creates(self, db_session: Session, test_student: Student, test_user: User) -> None:
        blocks = [block_result(Outcome.Pass, 72.2)]

        with db_session.begin():
            result = transcript_storage.upsert(
                test_student.student_id,
                overall_result=Outcome.Pass,
                block_results=blocks,
                initiated_by=test_user.user_id,
                session=db_session,
            )

        assert result is not None
        assert result.student_id == test_student.student_id
        assert result.overall_result is Outcome.Pass
        assert result.block_results == blocks
        assert result.created_by == test_user.user_id

    def test_upsert_replaces(
        self,
        db_session: Session,
        test_student: Student,
        test_user: User,
        user_factory: t.Callable[..., User],
    ) -> None:
        """A second upsert replaces the document but keeps the transcript's identity and creator."""
        other = user_factory()

        with db_session.begin():
            first = transcript_storage.upsert(
                test_student.student_id,
                overall_result=Outcome.Pass,
                block_results=[block_result(Outcome.Pass, 60), block_result(Outcome.Pass, 70)],
                initiated_by=test_user.user_id,
                session=db_session,
            )
        with db_session.begin():
            second = transcript_storage.upsert(
                test_student.student_id,
                overall_result=Outcome.Fail,
                block_results=[block_result(Outcome.Fail, 20)],
                initiated_by=other.user_id,
                session=db_session,
            )

        assert first is not None and second is not None
        assert second.transcript_id == first.transcript_id
        assert second.overall_result is Outcome.Fail
        assert [b.block_total_mark for b in second.block_results] == [20]
        assert second.created_by == test_user.user_id
        assert second.updated_by == other.user_id


class TestGetAndDelete(object):
    """Tests for transcript_storage.get() and delete()."""

    def test_get_by_either_key(self, db_session: Session, test_student: Student, test_user: User) -> None:
        with db_session.begin():
            stored = transcript_storage.upsert(
                test_student.student_id,
                overall_result=Outcome.Fail,
                block_results=[],
                initiated_by=test_user.user_id,
                session=db_session,
            )
            assert stored is not None
            by_id = transcript_storage.get(transcript_id=stored.transcript_id, session=db_session)
            by_student = transcript_storage.get(student_id=test_student.student_id, session=db_session)

        assert by_id == by_student == stored

    def test_get_missing(self, db_session: Session) -> None:
        with db_session.begin():
            assert transcript_storage.get(student_id=StudentID(), session=db_session) is None
            assert transcript_storage.get(transcript_id=TranscriptID(), session=db_session) is None

    def test_get_requires_exactly_one_key(self, db_session: Session) -> None:
        with db_session.begin():
            with pytest.raises(ValueError):
                transcript_storage.get(session=db_session)

    def test_delete(self, db_session: Session, test_student: Student, test_user: User) -> None:
        with db_session.begin():
            transcript_storage.upsert(
                test_student.student_id,
                overall_result=Outcome.Pass,
                block_results=[],
                initiated_by=test_user.user_id,
                session=db_session,
            )
            assert transcript_storage.delete(test_student.student_id, session=db_session)
            assert not transcript_storage.delete(test_student.student_id, session=db_session)
            assert transcript_storage.get(student_id=test_student.student_id, session=db_session) is None


class TestCalculate(object):
    """calculate_final_transcript() over a grading tree stored in the database."""

    def test_calculate_and_recalculate(
        self,
        db_session: Session,
        test_student: Student,
        test_user: User,
        block_factory: t.Callable[..., Block],
        subject_factory: t.Callable[..., Subject],
        test_factory: t.Callable[..., Test],
        result_factory: t.Callable[..., StudentTestResult],
    ) -> None:
        block = block_factory(passing_criteria=AtLeastHalf)
        math = subject_factory(block, name="Mathematics", coefficient=2, passing_criteria=AtLeastHalf, position=1)
        french = subject_factory(block, name="French", coefficient=3, passing_criteria=AtLeastHalf, position=2)
        midterm = test_factory(math, name="Midterm", weight=0.6, passing_criteria=AtLeastHalf, position=1)
        final = test_factory(math, name="Final", weight=0.4, passing_criteria=AtLeastHalf, position=2)
        essay = test_factory(french, name="Essay", weight=1.0, passing_criteria=AtLeastHalf)
        result_factory(test_student, midterm, oral=80)
        result_factory(test_student, final, oral=40, written=60)
        result_factory(test_student, essay, written=75)

        settings = TranscriptSettings()
        first = calculate_final_transcript(
            test_student.student_id, test_user.user_id, session=db_session, settings=settings
        )

        (result,) = [b for b in first.block_results if b.block_id == block.block_id]
        assert result.block_total_mark == 72.2
        assert result.block_result is Outcome.Pass
        assert [s.subject_total_mark for s in result.subject_results] == [136.0, 225.0]
        assert [x.test_weighted_mark for x in result.subject_results[0].test_results] == [48.0, 20.0]

        second = calculate_final_transcript(
            test_student.student_id, test_user.user_id, session=db_session, settings=settings
        )
        assert second.transcript_id == first.transcript_id
        assert second.block_results == first.block_results
        assert second.overall_result is first.overall_result
