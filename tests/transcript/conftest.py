import pytest

from registrar.transcript import ScoreLookup


@pytest.fixture
def lookup() -> ScoreLookup:
    return ScoreLookup()
