"""Error taxonomy shared by the session engine and its collaborators."""

from __future__ import annotations


class AssessmentEngineError(Exception):
    """Base class for every terminal-to-the-operation engine error."""


class NotFoundError(AssessmentEngineError):
    """Raised when an assessment or result does not exist."""


class AlreadyCompletedError(AssessmentEngineError):
    """Raised when the student already has a result for the assessment."""

    def __init__(self, student_id: str, assessment_id: str) -> None:
        super().__init__(
            f"Student {student_id} already completed assessment {assessment_id}."
        )
        self.student_id = student_id
        self.assessment_id = assessment_id


class ImageMissingError(AssessmentEngineError):
    """Raised when a question image reference cannot be resolved."""


class GradingFetchError(AssessmentEngineError):
    """Raised when the canonical assessment cannot be fetched for grading."""


class ResultWriteError(AssessmentEngineError):
    """Raised when the result store rejects or fails to persist a result."""


class NetworkError(AssessmentEngineError):
    """Raised for any other failed collaborator call."""
