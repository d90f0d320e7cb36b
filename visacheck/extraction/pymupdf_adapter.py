import pymupdf

from visacheck.extraction.base import BaseTextExtractor


class PyMuPdfAdapter(BaseTextExtractor):
    """Reads PDF pages with PyMuPDF; faster than pdfplumber on large scans."""

    format_label = "PDF"
    chunk_separator = "\n\n"
    chunks_are_pages = True

    def _read_chunks(self, content: bytes) -> list[str]:
        with pymupdf.open(stream=content, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
            if doc.needs_pass:
                raise ValueError("document is password protected")
            return [page.get_text() for page in doc]
