from registrar.model import StudentID


class TranscriptError(Exception):
    """Base class for failures of a transcript calculation"""


class TranscriptPersistenceError(TranscriptError):
    """The upsert of a final transcript did not yield a stored document"""

    def __init__(self, student_id: StudentID):
        self.student_id = student_id
        super().__init__(f"final transcript for {student_id} could not be stored")
