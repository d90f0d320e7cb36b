class EvaluationError(Exception):
    """Base exception for evaluation request errors."""


class InvalidSubmissionError(EvaluationError):
    """Raised when a submission is missing required fields or documents."""


class VisaTypeNotFoundError(EvaluationError):
    """Raised when the country/visa type pair is not in the reference data."""


class EvaluationNotFoundError(EvaluationError):
    """Raised when an evaluation does not exist or belongs to another user."""
