import annotated_types as ant
import typing as t

from .base import BaseSettings


class TranscriptSettings(BaseSettings):
    """Tunables for the transcript calculation."""

    # test weights within a subject should sum to 1; beyond this we warn
    weight_tolerance: t.Annotated[float, ant.Ge(0)] = 0.01
    # decimal places kept on reported test, subject and block marks
    precision: t.Annotated[int, ant.Ge(0)] = 2
