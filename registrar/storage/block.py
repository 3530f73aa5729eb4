from __future__ import annotations

import collections
import typing as t

import sqlalchemy as sqla

import registrar.lib.util as util
from registrar.core import di
from registrar.lib import NotSet
from registrar.model import Block, BlockID, BlockType, BlockWithSubjects, EvaluationType, GradingStatus, \
    PassingCriteria, SubjectID, SubjectWithTests, Test, UserID

from . import Session
from . import subject as subject_storage
from . import test as test_storage
from .table import blocks


@t.overload
def get(
    block_id: BlockID,
    *,
    with_subjects: t.Literal[False] = ...,
    session: Session = ...,
) -> Block | None: ...


@t.overload
def get(
    block_id: BlockID,
    *,
    with_subjects: t.Literal[True],
    session: Session = ...,
) -> BlockWithSubjects | None: ...


def get(
    block_id: BlockID,
    *,
    with_subjects: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> Block | BlockWithSubjects | None:
    stmt = sqla.select(blocks.__table__).where(blocks.block_id == block_id)
    row = session.execute(stmt).mappings().one_or_none()
    if row is None:
        return None

    block = Block(**row)
    if with_subjects:
        return _populate([block], status=None, session=session)[0]
    return block


@t.overload
def find(
    *,
    status: GradingStatus | None = ...,
    with_subjects: t.Literal[False] = ...,
    session: Session = ...,
) -> tuple[Block, ...]: ...


@t.overload
def find(
    *,
    status: GradingStatus | None = ...,
    with_subjects: t.Literal[True],
    session: Session = ...,
) -> tuple[BlockWithSubjects, ...]: ...


def find(
    *,
    status: GradingStatus | None = None,
    with_subjects: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Block, ...] | tuple[BlockWithSubjects, ...]:
    """Find blocks ordered by position.

    With `with_subjects`, each block carries its subjects and each subject its
    tests, in position order. `status` then filters every level of the tree,
    so `find(status=GradingStatus.Active, with_subjects=True)` yields exactly
    the structure a transcript is calculated over.
    """
    stmt = sqla.select(blocks.__table__).order_by(blocks.position, blocks.name)
    if status is not None:
        stmt = stmt.where(blocks.status == status)
    found = [Block(**row) for row in session.execute(stmt).mappings().all()]

    if with_subjects:
        return _populate(found, status=status, session=session)
    return tuple(found)


def _populate(
    found: list[Block], *, status: GradingStatus | None, session: Session
) -> tuple[BlockWithSubjects, ...]:
    block_ids = [b.block_id for b in found]
    subjects = subject_storage.find(block_id=block_ids, status=status, session=session) if block_ids else ()
    subject_ids = [s.subject_id for s in subjects]
    tests = test_storage.find(subject_id=subject_ids, status=status, session=session) if subject_ids else ()

    tests_by_subject: dict[SubjectID, list[Test]] = collections.defaultdict(list)
    for test in tests:
        tests_by_subject[test.subject_id].append(test)

    subjects_by_block: dict[BlockID, list[SubjectWithTests]] = collections.defaultdict(list)
    for subject in subjects:
        subjects_by_block[subject.block_id].append(
            SubjectWithTests(**subject.model_dump(), tests=tests_by_subject[subject.subject_id])
        )

    return tuple(BlockWithSubjects(**b.model_dump(), subjects=subjects_by_block[b.block_id]) for b in found)


def create(
    *,
    name: str,
    created_by: UserID,
    description: str = "",
    evaluation_type: EvaluationType = EvaluationType.Score,
    block_type: BlockType = BlockType.Regular,
    is_counted_in_final_transcript: bool = True,
    position: int = 0,
    status: GradingStatus = GradingStatus.Active,
    passing_criteria: PassingCriteria | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Block:
    block = blocks(
        block_id=BlockID(),
        created_by=created_by,
        updated_by=created_by,
        name=name,
        description=description,
        evaluation_type=evaluation_type,
        block_type=block_type,
        is_counted_in_final_transcript=is_counted_in_final_transcript,
        position=position,
        status=status,
        passing_criteria=passing_criteria.model_dump(mode="json") if passing_criteria else None,
    )
    session.add(block)
    session.flush()
    return get(block.block_id, session=session)  # type: ignore[return-value]


def update(
    block_id: BlockID,
    *,
    updated_by: UserID,
    name: str | NotSet = NotSet(),
    description: str | NotSet = NotSet(),
    evaluation_type: EvaluationType | NotSet = NotSet(),
    block_type: BlockType | NotSet = NotSet(),
    is_counted_in_final_transcript: bool | NotSet = NotSet(),
    position: int | NotSet = NotSet(),
    status: GradingStatus | NotSet = NotSet(),
    passing_criteria: PassingCriteria | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> Block:
    """Update a block.

    Uses NotSet sentinel for parameters where None is a valid update value.

    Raises:
        KeyError: If block_id does not correspond to a block
    """
    values = util.provided(
        name=name,
        description=description,
        evaluation_type=evaluation_type,
        block_type=block_type,
        is_counted_in_final_transcript=is_counted_in_final_transcript,
        position=position,
        status=status,
    )
    if not isinstance(passing_criteria, NotSet):
        values["passing_criteria"] = passing_criteria.model_dump(mode="json") if passing_criteria else None

    stmt = sqla.update(blocks).where(blocks.block_id == block_id).values(updated_by=updated_by, **values)
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Block {block_id} not found")

    session.flush()
    return get(block_id, session=session)  # type: ignore[return-value]


def delete(
    block_id: BlockID,
    *,
    updated_by: UserID,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Mark a block DELETED; its subjects and tests drop out with it.

    Returns:
        True if deleted, False if not found
    """
    stmt = (
        sqla.update(blocks)
        .where(blocks.block_id == block_id)
        .values(status=GradingStatus.Deleted, updated_by=updated_by)
    )
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]
