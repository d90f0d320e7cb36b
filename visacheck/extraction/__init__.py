from visacheck.extraction.extractor import DOCUMENT_SEPARATOR, DocumentExtractor, combine_texts
from visacheck.extraction.models import ExtractedDocument

__all__ = ["DOCUMENT_SEPARATOR", "DocumentExtractor", "ExtractedDocument", "combine_texts"]
