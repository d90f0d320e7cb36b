"""Dispatches uploaded files to the extractor for their type."""

from visacheck.config.settings import Settings
from visacheck.extraction.base import BaseTextExtractor
from visacheck.extraction.docx_adapter import DocxAdapter
from visacheck.extraction.exceptions import UnsupportedFileTypeError
from visacheck.extraction.factory import PdfExtractorFactory
from visacheck.extraction.models import ExtractedDocument
from visacheck.logging.logger import Log

DOCUMENT_SEPARATOR = "\n\n=== NEXT DOCUMENT ===\n\n"

MIME_TO_EXTENSION: dict[str, str] = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}


def normalize_file_type(declared_type: str) -> str:
    """Map a MIME type or file extension (``.PDF``, ``docx``) to a bare extension."""
    value = declared_type.strip().lower()
    if value in MIME_TO_EXTENSION:
        return MIME_TO_EXTENSION[value]
    return value.replace(".", "")


def is_supported_mime_type(mime_type: str) -> bool:
    return mime_type.strip().lower() in MIME_TO_EXTENSION


def extension_for_mime_type(mime_type: str) -> str:
    return MIME_TO_EXTENSION.get(mime_type.strip().lower(), "unknown")


def count_words(text: str) -> int:
    return len(text.split())


def combine_texts(texts: list[str]) -> str:
    """Join per-document texts, keeping a visible boundary between files.

    The separator is a hint for the model, not a security boundary.
    """
    return DOCUMENT_SEPARATOR.join(texts)


class DocumentExtractor:
    """Extracts plain text from PDF, DOC and DOCX uploads."""

    def __init__(
        self,
        pdf_extractor: BaseTextExtractor,
        word_extractor: BaseTextExtractor,
    ) -> None:
        self._adapters: dict[str, BaseTextExtractor] = {
            "pdf": pdf_extractor,
            "docx": word_extractor,
            "doc": word_extractor,
        }

    def extract(
        self,
        content: bytes,
        declared_type: str,
        file_name: str | None = None,
    ) -> ExtractedDocument:
        """Extract text from one file.

        Args:
            content: Raw file bytes.
            declared_type: MIME type or extension of the file.
            file_name: Original file name, carried into the result.

        Raises:
            UnsupportedFileTypeError: if the type is not pdf, doc or docx.
            ExtractionError: if the underlying library fails.
        """
        file_type = normalize_file_type(declared_type)
        adapter = self._adapters.get(file_type)
        if adapter is None:
            raise UnsupportedFileTypeError(
                f"Unsupported file type: {declared_type}. Supported types: PDF, DOC, DOCX"
            )
        chunks = adapter.extract_chunks(content)
        text = adapter.join_chunks(chunks)
        word_count = count_words(text)
        page_count = len(chunks) if adapter.chunks_are_pages else None
        Log.info(
            f"Extracted {word_count} words from {file_name or 'document'}",
            pages=page_count,
        )
        return ExtractedDocument(
            text=text,
            word_count=word_count,
            file_name=file_name,
            page_count=page_count,
        )


def build_document_extractor(settings: Settings) -> DocumentExtractor:
    return DocumentExtractor(
        pdf_extractor=PdfExtractorFactory.create(settings),
        word_extractor=DocxAdapter(),
    )
