from abc import ABC, abstractmethod
from typing import ClassVar

from visacheck.extraction.exceptions import ExtractionError


class BaseTextExtractor(ABC):
    """Contract for document text extraction adapters.

    Adapters only split a file into text chunks (PDF pages, Word paragraphs
    and table cells). Empty-file checks, error wrapping and joining live
    here so every format fails and joins the same way.
    """

    format_label: ClassVar[str] = "document"
    chunk_separator: ClassVar[str] = "\n"
    chunks_are_pages: ClassVar[bool] = False

    def extract(self, content: bytes) -> str:
        """Extract plain text from raw file bytes.

        Raises:
            ExtractionError: if the file is empty or the library fails.
        """
        return self.join_chunks(self.extract_chunks(content))

    def extract_chunks(self, content: bytes) -> list[str]:
        if not content:
            raise ExtractionError(f"Failed to extract text from {self.format_label}: file is empty")
        try:
            return [chunk.strip() for chunk in self._read_chunks(content)]
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(
                f"Failed to extract text from {self.format_label}: {exc}"
            ) from exc

    def join_chunks(self, chunks: list[str]) -> str:
        return self.chunk_separator.join(chunk for chunk in chunks if chunk)

    @abstractmethod
    def _read_chunks(self, content: bytes) -> list[str]:
        """Open the file with the underlying library and return its text chunks in order."""
