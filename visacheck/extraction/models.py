from dataclasses import dataclass


@dataclass(frozen=True)
class ExtractedDocument:
    """Plain text pulled from one uploaded file."""

    text: str
    word_count: int
    file_name: str | None = None
    page_count: int | None = None  # None for formats without pages
