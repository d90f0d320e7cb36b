import io
from collections.abc import Iterator

from docx import Document
from docx.document import Document as DocxDocument

from visacheck.extraction.base import BaseTextExtractor


class DocxAdapter(BaseTextExtractor):
    """Extracts paragraph and table text from Word documents using python-docx.

    Only OOXML containers can be read. Legacy binary ``.doc`` files raise
    ExtractionError.
    """

    format_label = "Word document"

    def _read_chunks(self, content: bytes) -> list[str]:
        return list(self._iter_text(Document(io.BytesIO(content))))

    @staticmethod
    def _iter_text(document: DocxDocument) -> Iterator[str]:
        for paragraph in document.paragraphs:
            yield paragraph.text
        for table in document.tables:
            for row in table.rows:
                for cell in row.cells:
                    yield cell.text
