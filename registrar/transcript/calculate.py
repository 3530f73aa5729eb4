from __future__ import annotations

import contextlib
import logging
import typing as t

from sqlalchemy.orm import Session

from registrar.core import di
from registrar.core.config import TranscriptSettings
from registrar.model import FinalTranscriptResult, GradingStatus, Outcome, StudentID, UserID
from registrar.storage import block as block_storage
from registrar.storage import student_test_result as result_storage
from registrar.storage import transcript as transcript_storage

from .aggregate import aggregate_block
from .errors import TranscriptPersistenceError
from .lookup import ScoreLookup

logger = logging.getLogger(__name__)


def _transaction(session: Session) -> t.ContextManager[t.Any]:
    # join a transaction the caller already holds open
    if session.in_transaction():
        return contextlib.nullcontext()
    return session.begin()


@di.inject
def calculate_final_transcript(
    student_id: StudentID,
    initiating_user_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    settings: TranscriptSettings = di.Provide["config.transcript", di.as_(TranscriptSettings)],
) -> FinalTranscriptResult:
    """Recalculate a student's final transcript from scratch and store it.

    Every ACTIVE block, with its ACTIVE subjects and their ACTIVE tests, is
    aggregated against all of the student's test results; the transcript
    passes only if every block does. The stored transcript is replaced
    wholesale, so repeated runs over unchanged data store the same document.

    Raises:
        TranscriptPersistenceError: If the transcript could not be stored
    """
    logger.info(
        "calculating final transcript",
        extra={"student_id": student_id, "initiated_by": initiating_user_id},
    )

    with _transaction(session):
        blocks = block_storage.find(status=GradingStatus.Active, with_subjects=True, session=session)
        results = result_storage.find(student_id=student_id, session=session)
        lookup = ScoreLookup.seed(results)

        block_results = [
            aggregate_block(
                block, lookup, weight_tolerance=settings.weight_tolerance, precision=settings.precision
            ).result
            for block in blocks
        ]
        overall = Outcome.of(all(b.block_result is Outcome.Pass for b in block_results))

        transcript = transcript_storage.upsert(
            student_id,
            overall_result=overall,
            block_results=block_results,
            initiated_by=initiating_user_id,
            session=session,
        )
        if transcript is None:
            raise TranscriptPersistenceError(student_id)

    logger.info(
        "final transcript stored",
        extra={
            "student_id": student_id,
            "transcript_id": transcript.transcript_id,
            "overall_result": overall.value,
            "blocks": len(block_results),
        },
    )
    return transcript
