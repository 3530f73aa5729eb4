from __future__ import annotations

import typing as t

from registrar.model import BaseModel, NotationMark, StudentTestResult

# tests, subjects and blocks share one key space: their prefixed IDs never collide
EntityID = str


class ScoreEntry(BaseModel):
    """What criteria can see of a graded entity: its score, and for tests the raw marks"""

    average_mark: float
    marks: list[NotationMark] | None = None

    def mark_for(self, notation_text: str) -> float | None:
        for m in self.marks or ():
            if m.notation_text == notation_text:
                return m.mark
        return None


class ScoreLookup(object):
    """Scores accumulated over one transcript calculation.

    Seeded with the student's test results, then written by every subject and
    block as it is aggregated, so that criteria can refer to siblings and to
    anything aggregated earlier. One instance per calculation.
    """

    def __init__(self, entries: t.Mapping[EntityID, ScoreEntry] | None = None):
        self._entries: dict[EntityID, ScoreEntry] = dict(entries or {})

    @classmethod
    def seed(cls, results: t.Iterable[StudentTestResult]) -> ScoreLookup:
        """Build a lookup keyed by test ID; a later result for the same test replaces an earlier one"""
        lookup = cls()
        for r in results:
            lookup.record(r.test_id, average_mark=r.average_mark, marks=r.marks)
        return lookup

    def get(self, entity_id: EntityID) -> ScoreEntry | None:
        return self._entries.get(entity_id)

    def record(
        self, entity_id: EntityID, *, average_mark: float, marks: t.Sequence[NotationMark] | None = None
    ) -> ScoreEntry:
        entry = ScoreEntry(average_mark=average_mark, marks=list(marks) if marks is not None else None)
        self._entries[entity_id] = entry
        return entry

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"<ScoreLookup {len(self)} entries>"
