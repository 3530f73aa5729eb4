__all__ = [
    "ScoreEntry",
    "ScoreLookup",
    "TranscriptError",
    "TranscriptPersistenceError",
    "aggregate_block",
    "aggregate_subject",
    "aggregate_test",
    "calculate_final_transcript",
    "decide",
    "evaluate_condition",
    "evaluate_criteria_set",
    "evaluate_group",
]

from .aggregate import aggregate_block, aggregate_subject, aggregate_test
from .calculate import calculate_final_transcript
from .criteria import decide, evaluate_condition, evaluate_criteria_set, evaluate_group
from .errors import TranscriptError, TranscriptPersistenceError
from .lookup import ScoreEntry, ScoreLookup
