class ExtractionError(Exception):
    """Raised when text cannot be extracted from a document."""


class UnsupportedFileTypeError(ExtractionError):
    """Raised when a document type has no extractor."""
