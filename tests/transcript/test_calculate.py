"""Tests for calculate_final_transcript() against in-memory storage."""

from __future__ import annotations

import contextlib
import datetime
import typing as t

import pytest
from builders import AUTHOR, EPOCH, average, criteria, make_block, make_result, make_subject, make_test

from registrar.core.config import TranscriptSettings
from registrar.model import BlockResult, BlockWithSubjects, FinalTranscriptResult, GradingStatus, Outcome, \
    StudentID, StudentTestResult, TranscriptID, UserID
from registrar.storage import block as block_storage
from registrar.storage import student_test_result as result_storage
from registrar.storage import transcript as transcript_storage
from registrar.transcript import calculate_final_transcript, TranscriptPersistenceError


class FakeSession(object):
    """Stands in for a Session: counts transactions, executes nothing."""

    def __init__(self, in_transaction: bool = False):
        self._in_transaction = in_transaction
        self.begun = 0

    def in_transaction(self) -> bool:
        return self._in_transaction

    def begin(self) -> t.ContextManager[None]:
        self.begun += 1
        return contextlib.nullcontext()


class FakeStorage(object):
    """Serves a fixed grading tree and result set, and keeps upserted transcripts by student."""

    def __init__(self, blocks: list[BlockWithSubjects], results: list[StudentTestResult]):
        self.blocks = blocks
        self.results = results
        self.transcripts: dict[StudentID, FinalTranscriptResult] = {}
        self.find_calls: list[dict[str, t.Any]] = []
        self.fail_upsert = False

    def find_blocks(self, **kw: t.Any) -> list[BlockWithSubjects]:
        self.find_calls.append(kw)
        return self.blocks

    def find_results(self, *, student_id: StudentID, **kw: t.Any) -> list[StudentTestResult]:
        return [r for r in self.results if r.student_id == student_id]

    def upsert(
        self,
        student_id: StudentID,
        *,
        overall_result: Outcome,
        block_results: list[BlockResult],
        initiated_by: UserID,
        **kw: t.Any,
    ) -> FinalTranscriptResult | None:
        if self.fail_upsert:
            return None
        previous = self.transcripts.get(student_id)
        now = datetime.datetime.now(datetime.UTC)
        self.transcripts[student_id] = FinalTranscriptResult(
            transcript_id=previous.transcript_id if previous else TranscriptID(),
            student_id=student_id,
            overall_result=overall_result,
            block_results=block_results,
            created_by=previous.created_by if previous else initiated_by,
            updated_by=initiated_by,
            create_time=previous.create_time if previous else EPOCH,
            update_time=now,
        )
        return self.transcripts[student_id]


@pytest.fixture
def student_id() -> StudentID:
    return StudentID()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def settings() -> TranscriptSettings:
    return TranscriptSettings()


@pytest.fixture
def storage(monkeypatch: pytest.MonkeyPatch) -> FakeStorage:
    fake = FakeStorage([], [])
    monkeypatch.setattr(block_storage, "find", fake.find_blocks)
    monkeypatch.setattr(result_storage, "find", fake.find_results)
    monkeypatch.setattr(transcript_storage, "upsert", fake.upsert)
    return fake


def owned(result: StudentTestResult, student_id: StudentID) -> StudentTestResult:
    return result.model_copy(update={"student_id": student_id})


def test_requests_active_tree(
    storage: FakeStorage, session: FakeSession, settings: TranscriptSettings, student_id: StudentID
) -> None:
    calculate_final_transcript(student_id, AUTHOR, session=session, settings=settings)  # type: ignore[arg-type]

    (call,) = storage.find_calls
    assert call["status"] is GradingStatus.Active
    assert call["with_subjects"] is True
    assert session.begun == 1


def test_joins_open_transaction(storage: FakeStorage, settings: TranscriptSettings, student_id: StudentID) -> None:
    session = FakeSession(in_transaction=True)

    calculate_final_transcript(student_id, AUTHOR, session=session, settings=settings)  # type: ignore[arg-type]

    assert session.begun == 0


def test_no_blocks_passes(
    storage: FakeStorage, session: FakeSession, settings: TranscriptSettings, student_id: StudentID
) -> None:
    """With nothing to fail, the transcript passes vacuously."""
    transcript = calculate_final_transcript(
        student_id, AUTHOR, session=session, settings=settings  # type: ignore[arg-type]
    )

    assert transcript.overall_result is Outcome.Pass
    assert transcript.block_results == []


def test_all_blocks_pass(
    storage: FakeStorage, session: FakeSession, settings: TranscriptSettings, student_id: StudentID
) -> None:
    t1, t2 = make_test(weight=0.6), make_test(weight=0.4)
    t3 = make_test()
    storage.blocks = [make_block(make_subject(t1, t2)), make_block(make_subject(t3, coefficient=2))]
    storage.results = [
        owned(make_result(t1, average_mark=80), student_id),
        owned(make_result(t2, average_mark=50), student_id),
        owned(make_result(t3, average_mark=55), student_id),
        # another student's result is never seen
        make_result(t3, average_mark=0),
    ]

    transcript = calculate_final_transcript(
        student_id, AUTHOR, session=session, settings=settings  # type: ignore[arg-type]
    )

    assert transcript.overall_result is Outcome.Pass
    assert [b.block_result for b in transcript.block_results] == [Outcome.Pass, Outcome.Pass]
    assert [b.block_total_mark for b in transcript.block_results] == [68.0, 55.0]
    assert transcript.block_results[1].subject_results[0].subject_total_mark == 110.0


def test_one_failing_block_fails_transcript(
    storage: FakeStorage, session: FakeSession, settings: TranscriptSettings, student_id: StudentID
) -> None:
    t1, t2 = make_test(), make_test()
    storage.blocks = [make_block(make_subject(t1)), make_block(make_subject(t2))]
    storage.results = [
        owned(make_result(t1, average_mark=90), student_id),
        owned(make_result(t2, average_mark=20), student_id),
    ]

    transcript = calculate_final_transcript(
        student_id, AUTHOR, session=session, settings=settings  # type: ignore[arg-type]
    )

    assert transcript.overall_result is Outcome.Fail
    assert [b.block_result for b in transcript.block_results] == [Outcome.Pass, Outcome.Fail]


def test_missing_results_fail(
    storage: FakeStorage, session: FakeSession, settings: TranscriptSettings, student_id: StudentID
) -> None:
    storage.blocks = [make_block(make_subject(make_test()))]

    transcript = calculate_final_transcript(
        student_id, AUTHOR, session=session, settings=settings  # type: ignore[arg-type]
    )

    (block,) = transcript.block_results
    assert block.block_total_mark == 0.0
    assert block.subject_results[0].test_results[0].test_result is Outcome.Fail
    assert transcript.overall_result is Outcome.Fail


def test_recalculation_is_idempotent(
    storage: FakeStorage, session: FakeSession, settings: TranscriptSettings, student_id: StudentID
) -> None:
    test = make_test()
    storage.blocks = [make_block(make_subject(test), passing=criteria(pass_=[[average("GT", 10)]]))]
    storage.results = [owned(make_result(test, oral=12, written=14), student_id)]

    first = calculate_final_transcript(student_id, AUTHOR, session=session, settings=settings)  # type: ignore[arg-type]
    second = calculate_final_transcript(
        student_id, UserID(), session=session, settings=settings  # type: ignore[arg-type]
    )

    assert second.transcript_id == first.transcript_id
    assert second.overall_result == first.overall_result
    assert second.block_results == first.block_results
    assert second.created_by == AUTHOR
    assert len(storage.transcripts) == 1


def test_settings_control_precision(storage: FakeStorage, session: FakeSession, student_id: StudentID) -> None:
    test = make_test()
    storage.blocks = [make_block(make_subject(test))]
    storage.results = [owned(make_result(test, average_mark=61.23456), student_id)]

    transcript = calculate_final_transcript(
        student_id, AUTHOR, session=session, settings=TranscriptSettings(precision=3)  # type: ignore[arg-type]
    )

    assert transcript.block_results[0].block_total_mark == 61.235


def test_failed_upsert_raises(
    storage: FakeStorage, session: FakeSession, settings: TranscriptSettings, student_id: StudentID
) -> None:
    storage.fail_upsert = True

    with pytest.raises(TranscriptPersistenceError) as exc_info:
        calculate_final_transcript(student_id, AUTHOR, session=session, settings=settings)  # type: ignore[arg-type]

    assert exc_info.value.student_id == student_id
