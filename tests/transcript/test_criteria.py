"""Tests for registrar.transcript.criteria."""

from __future__ import annotations

import pytest
from builders import average, criteria, mark

from registrar.model import ConditionGroup, CriteriaSet, NotationMark, Outcome, PassingCriteria, SubjectID, TestID
from registrar.transcript import decide, evaluate_condition, evaluate_criteria_set, evaluate_group, ScoreLookup


def cond(raw: dict[str, object]):
    return ConditionGroup.model_validate({"conditions": [raw]}).conditions[0]


class TestEvaluateCondition(object):
    """Tests for evaluate_condition()."""

    @pytest.mark.parametrize(
        "op, threshold, expected",
        [
            ("GTE", 60, True),
            ("GTE", 60.5, False),
            ("LTE", 60, True),
            ("LTE", 59.9, False),
            ("GT", 60, False),
            ("GT", 59, True),
            ("LT", 60, False),
            ("LT", 61, True),
            ("E", 60, True),
            ("E", 60.01, False),
        ],
    )
    def test_average_operators(self, lookup: ScoreLookup, op: str, threshold: float, expected: bool) -> None:
        """AVERAGE compares the entity's own score with each operator."""
        assert evaluate_condition(cond(average(op, threshold)), lookup, 60.0) is expected

    def test_unknown_operator_is_false(self, lookup: ScoreLookup) -> None:
        """An operator outside the known set never holds, even when the value would otherwise match."""
        c = cond(average("NEQ", 10))
        assert c.comparison_operator == "NEQ"
        assert evaluate_condition(c, lookup, 60.0) is False

    def test_mark_reads_own_marks(self, lookup: ScoreLookup) -> None:
        """MARK without a reference reads the notation from the entity's own raw marks."""
        own = [NotationMark(notation_text="oral", mark=14), NotationMark(notation_text="written", mark=8)]

        assert evaluate_condition(cond(mark("GTE", 10, "oral")), lookup, 0.0, own) is True
        assert evaluate_condition(cond(mark("GTE", 10, "written")), lookup, 0.0, own) is False

    def test_mark_ignores_self_score(self, lookup: ScoreLookup) -> None:
        """MARK never falls back to the entity's own score."""
        assert evaluate_condition(cond(mark("GTE", 0, "oral")), lookup, 99.0, []) is False

    def test_mark_without_notation_is_false(self, lookup: ScoreLookup) -> None:
        """MARK with no notation_text is unresolvable."""
        own = [NotationMark(notation_text="oral", mark=14)]
        assert evaluate_condition(cond(mark("GTE", 0, None)), lookup, 99.0, own) is False

    def test_mark_reads_referenced_test(self, lookup: ScoreLookup) -> None:
        """MARK with a test reference reads that test's raw marks from the lookup."""
        other = TestID()
        lookup.record(other, average_mark=12, marks=[NotationMark(notation_text="lab", mark=16)])

        assert evaluate_condition(cond(mark("GT", 15, "lab", test=other)), lookup, 0.0) is True
        assert evaluate_condition(cond(mark("GT", 15, "exam", test=other)), lookup, 0.0) is False

    def test_mark_on_unknown_entity_is_false(self, lookup: ScoreLookup) -> None:
        """A reference to an entity absent from the lookup is unresolvable."""
        assert evaluate_condition(cond(mark("GTE", 0, "lab", test=TestID())), lookup, 50.0) is False

    def test_mark_on_entry_without_marks_is_false(self, lookup: ScoreLookup) -> None:
        """Subject entries carry a score but no marks, so MARK on a subject can't resolve."""
        subject_id = SubjectID()
        lookup.record(subject_id, average_mark=80)

        assert evaluate_condition(cond(mark("GTE", 0, "lab", subject=subject_id)), lookup, 50.0) is False

    def test_subject_reference_takes_precedence(self, lookup: ScoreLookup) -> None:
        """With both references set, the subject's entry is the one read."""
        subject_id, test_id = SubjectID(), TestID()
        lookup.record(subject_id, average_mark=0, marks=[NotationMark(notation_text="lab", mark=1)])
        lookup.record(test_id, average_mark=0, marks=[NotationMark(notation_text="lab", mark=20)])

        c = cond(mark("GTE", 10, "lab", test=test_id, subject=subject_id))
        assert evaluate_condition(c, lookup, 0.0) is False


class TestEvaluateGroupsAndSets(object):
    """Tests for evaluate_group() and evaluate_criteria_set()."""

    def test_group_is_conjunction(self, lookup: ScoreLookup) -> None:
        """A group holds only when every condition holds."""
        group = ConditionGroup.model_validate({"conditions": [average("GTE", 50), average("LT", 70)]})

        assert evaluate_group(group, lookup, 60.0) is True
        assert evaluate_group(group, lookup, 75.0) is False

    def test_empty_group_holds(self, lookup: ScoreLookup) -> None:
        """An empty group holds vacuously."""
        assert evaluate_group(ConditionGroup(), lookup, 0.0) is True

    def test_set_is_disjunction(self, lookup: ScoreLookup) -> None:
        """A set holds when any group holds."""
        cs = criteria(pass_=[[average("GTE", 90)], [average("LT", 10)]]).pass_criteria

        assert evaluate_criteria_set(cs, lookup, 95.0) is True
        assert evaluate_criteria_set(cs, lookup, 5.0) is True
        assert evaluate_criteria_set(cs, lookup, 50.0) is False

    def test_missing_or_empty_set_is_false(self, lookup: ScoreLookup) -> None:
        """No set, or a set with no groups, never holds."""
        assert evaluate_criteria_set(None, lookup, 100.0) is False
        assert evaluate_criteria_set(CriteriaSet(), lookup, 100.0) is False

    def test_stored_group_field_names_are_accepted(self) -> None:
        """Level-specific group field names validate as groups."""
        for field in ("block_criteria_groups", "subject_criteria_groups", "test_criteria_groups"):
            cs = CriteriaSet.model_validate({field: [{"conditions": [average("GTE", 1)]}]})
            assert len(cs.groups) == 1


class TestDecide(object):
    """Tests for decide()."""

    def test_pass(self, lookup: ScoreLookup) -> None:
        assert decide(criteria(pass_=[[average("GTE", 50)]]), lookup, 50.0) is Outcome.Pass

    def test_fail_takes_precedence(self, lookup: ScoreLookup) -> None:
        """When both sets hold, the result is FAIL."""
        pc = criteria(pass_=[[average("GTE", 50)]], fail=[[average("LT", 80)]])

        assert decide(pc, lookup, 60.0) is Outcome.Fail
        assert decide(pc, lookup, 85.0) is Outcome.Pass

    def test_fail_criteria_alone_never_pass(self, lookup: ScoreLookup) -> None:
        """Without pass criteria nothing passes, even when the fail criteria don't hold."""
        pc = criteria(fail=[[average("LT", 10)]])
        assert decide(pc, lookup, 90.0) is Outcome.Fail

    def test_no_criteria_fails(self, lookup: ScoreLookup) -> None:
        """An entity with no criteria configured fails."""
        assert decide(None, lookup, 100.0) is Outcome.Fail
        assert decide(PassingCriteria(), lookup, 100.0) is Outcome.Fail

    def test_criteria_round_trip_through_documents(self, lookup: ScoreLookup) -> None:
        """Criteria dumped to JSON validate back and decide the same way."""
        pc = criteria(pass_=[[average("GTE", 50), mark("GTE", 10, "oral")]])
        restored = PassingCriteria.model_validate(pc.model_dump(mode="json"))
        own = [NotationMark(notation_text="oral", mark=12)]

        assert decide(restored, lookup, 55.0, own) is Outcome.Pass
        assert decide(restored, lookup, 45.0, own) is Outcome.Fail
