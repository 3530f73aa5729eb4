"""Roll marks up the grading tree: tests into subjects, subjects into blocks.

Subjects and blocks record their own score in the lookup before deciding
their own outcome, so their AVERAGE conditions and anything aggregated later
can read it. A test without a result is entered as a zero. Only the reported
marks are rounded; sums carry full precision.
"""

from __future__ import annotations

import logging
import typing as t

from registrar.lib.util import round_mark
from registrar.model import BlockResult, BlockWithSubjects, SubjectResult, SubjectWithTests, Test, TestResult

from .criteria import decide
from .lookup import ScoreLookup

logger = logging.getLogger(__name__)

class TestRollup(t.NamedTuple):
    __test__ = False  # not a pytest class

    result: TestResult
    weighted_mark: float


class SubjectRollup(t.NamedTuple):
    result: SubjectResult
    score: float
    total_mark: float


class BlockRollup(t.NamedTuple):
    result: BlockResult
    score: float


def aggregate_test(test: Test, lookup: ScoreLookup, *, precision: int = 2) -> TestRollup:
    entry = lookup.get(test.test_id)
    if entry is None:
        # a test the student has no result for is scored as zero rather than skipped
        entry = lookup.record(test.test_id, average_mark=0.0, marks=[])
    outcome = decide(test.passing_criteria, lookup, entry.average_mark, entry.marks or [])
    weighted_mark = entry.average_mark * test.weight

    logger.debug(
        "test decided",
        extra={"test_id": test.test_id, "average_mark": entry.average_mark, "result": outcome.value},
    )
    return TestRollup(
        result=TestResult(
            test_id=test.test_id,
            test_result=outcome,
            test_total_mark=round_mark(entry.average_mark, precision),
            test_weighted_mark=round_mark(weighted_mark, precision),
        ),
        weighted_mark=weighted_mark,
    )


def aggregate_subject(
    subject: SubjectWithTests, lookup: ScoreLookup, *, weight_tolerance: float = 0.01, precision: int = 2
) -> SubjectRollup:
    test_results: list[TestResult] = []
    weighted_sum = 0.0
    weight_sum = 0.0
    for test in subject.tests:
        rollup = aggregate_test(test, lookup, precision=precision)
        test_results.append(rollup.result)
        weighted_sum += rollup.weighted_mark
        weight_sum += test.weight

    if abs(weight_sum - 1.0) > weight_tolerance:
        logger.warning(
            "test weights of subject do not sum to 1",
            extra={"subject_id": subject.subject_id, "weight_sum": weight_sum},
        )

    score = weighted_sum
    lookup.record(subject.subject_id, average_mark=score)
    outcome = decide(subject.passing_criteria, lookup, score)
    total_mark = score * subject.coefficient

    logger.debug(
        "subject decided",
        extra={"subject_id": subject.subject_id, "score": score, "result": outcome.value},
    )
    return SubjectRollup(
        result=SubjectResult(
            subject_id=subject.subject_id,
            subject_result=outcome,
            subject_total_mark=round_mark(total_mark, precision),
            test_results=test_results,
        ),
        score=score,
        total_mark=total_mark,
    )


def aggregate_block(
    block: BlockWithSubjects, lookup: ScoreLookup, *, weight_tolerance: float = 0.01, precision: int = 2
) -> BlockRollup:
    subject_results: list[SubjectResult] = []
    weighted_sum = 0.0
    coefficient_sum = 0.0
    for subject in block.subjects:
        rollup = aggregate_subject(subject, lookup, weight_tolerance=weight_tolerance, precision=precision)
        subject_results.append(rollup.result)
        weighted_sum += rollup.total_mark
        coefficient_sum += subject.coefficient

    score = weighted_sum / coefficient_sum if coefficient_sum > 0 else 0.0
    lookup.record(block.block_id, average_mark=score)
    outcome = decide(block.passing_criteria, lookup, score)

    logger.debug(
        "block decided",
        extra={"block_id": block.block_id, "score": score, "result": outcome.value},
    )
    return BlockRollup(
        result=BlockResult(
            block_id=block.block_id,
            block_result=outcome,
            block_total_mark=round_mark(score, precision),
            subject_results=subject_results,
        ),
        score=score,
    )
