import io

import pdfplumber

from visacheck.extraction.base import BaseTextExtractor


class PdfPlumberAdapter(BaseTextExtractor):
    """Reads PDF pages with pdfplumber. Pages without a text layer come back empty."""

    format_label = "PDF"
    chunk_separator = "\n\n"
    chunks_are_pages = True

    def _read_chunks(self, content: bytes) -> list[str]:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            return [page.extract_text() or "" for page in pdf.pages]
