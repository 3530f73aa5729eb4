from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla
from sqlalchemy.dialects.postgresql import insert

from registrar.core import di
from registrar.model import BlockResult, FinalTranscriptResult, Outcome, StudentID, TranscriptID, UserID

from . import Session
from .table import final_transcript_results


def get(
    *,
    student_id: StudentID | None = None,
    transcript_id: TranscriptID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> FinalTranscriptResult | None:
    """Get a transcript by student or by its own ID.

    Exactly one of student_id or transcript_id must be provided.
    """
    if (student_id is None) == (transcript_id is None):
        raise ValueError("Exactly one of student_id or transcript_id must be provided")

    stmt = sqla.select(final_transcript_results.__table__)
    if student_id is not None:
        stmt = stmt.where(final_transcript_results.student_id == student_id)
    else:
        stmt = stmt.where(final_transcript_results.transcript_id == transcript_id)
    row = session.execute(stmt).mappings().one_or_none()
    return FinalTranscriptResult(**row) if row else None


def upsert(
    student_id: StudentID,
    *,
    overall_result: Outcome,
    block_results: t.Sequence[BlockResult],
    initiated_by: UserID,
    session: Session = di.Provide["storage.persistent.session"],
) -> FinalTranscriptResult | None:
    """Create or replace the transcript of a student.

    The stored document is replaced wholesale; `created_by` and `create_time`
    survive from the first calculation. Returns the stored transcript, or
    None if it could not be read back.
    """
    stmt = insert(final_transcript_results).values(
        transcript_id=TranscriptID(),
        student_id=student_id,
        created_by=initiated_by,
        updated_by=initiated_by,
        overall_result=overall_result,
        block_results=[b.model_dump(mode="json") for b in block_results],
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["student_id"],
        set_={
            "overall_result": stmt.excluded.overall_result,
            "block_results": stmt.excluded.block_results,
            "updated_by": stmt.excluded.updated_by,
            "update_time": datetime.datetime.now(datetime.UTC),
        },
    )
    session.execute(stmt)
    session.flush()
    return get(student_id=student_id, session=session)


def delete(
    student_id: StudentID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Delete a student's transcript.

    Returns:
        True if deleted, False if not found
    """
    stmt = sqla.delete(final_transcript_results).where(final_transcript_results.student_id == student_id)
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]
