from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from visacheck.database.models import EvaluationRecord, StoredDocument


class VerdictKind(str, Enum):
    """How an evaluation ended.

    FLAGGED is a successful analysis of a malicious document; it is stored
    with status ``completed`` and ``isMalicious`` set.
    """

    CLEAN = "clean"
    FLAGGED = "flagged"
    FAILED = "failed"

    @classmethod
    def from_record(cls, record: EvaluationRecord) -> "VerdictKind | None":
        if record.status == "failed":
            return cls.FAILED
        if record.status != "completed" or record.result is None:
            return None
        return cls.FLAGGED if record.result.is_malicious else cls.CLEAN


@dataclass(frozen=True)
class UploadedFile:
    """One file from a multipart submission, held in memory."""

    file_name: str
    content: bytes
    mime_type: str
    document_type: str = "general"


@dataclass(frozen=True)
class SignedDocument:
    """A stored document with a temporary download URL."""

    document: StoredDocument
    signed_url: str

    def to_dict(self) -> dict[str, Any]:
        return {**self.document.to_json(), "signedUrl": self.signed_url}


@dataclass(frozen=True)
class EvaluationOutcome:
    """An evaluation row plus what a caller needs to render it."""

    record: EvaluationRecord
    documents: list[SignedDocument] = field(default_factory=list)
    error_message: str | None = None

    @property
    def verdict(self) -> VerdictKind | None:
        return VerdictKind.from_record(self.record)

    @property
    def succeeded(self) -> bool:
        return self.verdict in (VerdictKind.CLEAN, VerdictKind.FLAGGED)


@dataclass(frozen=True)
class EvaluationPage:
    """One page of a user's evaluations."""

    records: list[EvaluationRecord]
    total: int
    limit: int
    skip: int

    @property
    def has_more(self) -> bool:
        return self.total > self.skip + len(self.records)
