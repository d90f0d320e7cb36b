import pytest

from visacheck.extraction.docx_adapter import DocxAdapter
from visacheck.extraction.exceptions import ExtractionError


class TestDocxAdapter:
    def test_extracts_paragraphs_and_tables(self, sample_docx_bytes: bytes) -> None:
        result = DocxAdapter().extract(sample_docx_bytes)
        assert "Senior Software Engineer at Example Corp" in result
        assert "Salary" in result
        assert "EUR 65000" in result

    def test_legacy_binary_doc_raises(self) -> None:
        # OLE compound file header, not an OOXML zip
        legacy = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 64
        with pytest.raises(ExtractionError, match="Word document"):
            DocxAdapter().extract(legacy)
