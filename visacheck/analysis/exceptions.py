class AnalysisError(Exception):
    """Raised when document analysis fails."""


class InvalidResponseFormatError(AnalysisError):
    """Raised when the model reply is not a conforming evaluation result."""


class AnalysisNetworkError(AnalysisError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""
