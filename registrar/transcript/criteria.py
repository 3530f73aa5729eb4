"""Boolean evaluation of passing criteria.

A `CriteriaSet` holds when any of its groups holds, and a `ConditionGroup`
when all of its conditions hold. Every condition reads a single source value
and compares it against its threshold; a source value that can't be resolved
makes the condition false.
"""

from __future__ import annotations

import operator
import typing as t

from registrar.model import AverageCondition, ComparisonOperator, Condition, ConditionGroup, CriteriaSet, \
    MarkCondition, NotationMark, Outcome, PassingCriteria

from .lookup import ScoreLookup

Comparisons: t.Final[dict[ComparisonOperator, t.Callable[[float, float], bool]]] = {
    ComparisonOperator.GTE: operator.ge,
    ComparisonOperator.LTE: operator.le,
    ComparisonOperator.GT: operator.gt,
    ComparisonOperator.LT: operator.lt,
    ComparisonOperator.E: operator.eq,
}


def compare(value: float, op: ComparisonOperator | str, threshold: float) -> bool:
    """Apply `op`; an operator outside ComparisonOperator never holds"""
    if not isinstance(op, ComparisonOperator):
        return False
    return Comparisons[op](value, threshold)


def _own_mark(marks: t.Sequence[NotationMark], notation_text: str) -> float | None:
    for m in marks:
        if m.notation_text == notation_text:
            return m.mark
    return None


def source_value(
    condition: Condition, lookup: ScoreLookup, self_score: float, self_marks: t.Sequence[NotationMark]
) -> float | None:
    match condition:
        case AverageCondition():
            return self_score
        case MarkCondition(notation_text=None):
            return None
        case MarkCondition(subject=ref, notation_text=text) if ref is not None:
            entry = lookup.get(ref)
            return entry.mark_for(text) if entry else None
        case MarkCondition(test=ref, notation_text=text) if ref is not None:
            entry = lookup.get(ref)
            return entry.mark_for(text) if entry else None
        case MarkCondition(notation_text=text):
            return _own_mark(self_marks, text)
    return None


def evaluate_condition(
    condition: Condition, lookup: ScoreLookup, self_score: float, self_marks: t.Sequence[NotationMark] = ()
) -> bool:
    value = source_value(condition, lookup, self_score, self_marks)
    if value is None:
        return False
    return compare(value, condition.comparison_operator, condition.mark)


def evaluate_group(
    group: ConditionGroup, lookup: ScoreLookup, self_score: float, self_marks: t.Sequence[NotationMark] = ()
) -> bool:
    # an empty group holds vacuously
    return all(evaluate_condition(c, lookup, self_score, self_marks) for c in group.conditions)


def evaluate_criteria_set(
    criteria: CriteriaSet | None,
    lookup: ScoreLookup,
    self_score: float,
    self_marks: t.Sequence[NotationMark] = (),
) -> bool:
    if criteria is None:
        return False
    return any(evaluate_group(g, lookup, self_score, self_marks) for g in criteria.groups)


def decide(
    passing: PassingCriteria | None,
    lookup: ScoreLookup,
    self_score: float,
    self_marks: t.Sequence[NotationMark] = (),
) -> Outcome:
    """PASS when the pass criteria hold and the fail criteria don't.

    Fail criteria take precedence, and an entity with no criteria at all fails.
    """
    if passing is None:
        return Outcome.Fail
    passed = evaluate_criteria_set(passing.pass_criteria, lookup, self_score, self_marks)
    failed = evaluate_criteria_set(passing.fail_criteria, lookup, self_score, self_marks)
    return Outcome.of(passed and not failed)
