"""Runs one evaluation request end to end.

Pipeline: resolve visa type -> reserve quota -> insert pending row -> mark
processing -> store and extract each upload -> persist documents -> analyze
-> mark completed or failed. There is no queue; the caller waits for the
single LLM call.
"""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from visacheck.analysis.analyzer import Analyzer
from visacheck.analysis.exceptions import AnalysisError
from visacheck.analysis.models import EvaluationResult
from visacheck.config.visa_data import get_country, get_visa_type
from visacheck.database.models import EvaluationRecord, StoredDocument
from visacheck.database.repositories.evaluation_repository import EvaluationRepository
from visacheck.evaluation.exceptions import InvalidSubmissionError, VisaTypeNotFoundError
from visacheck.evaluation.models import (
    EvaluationOutcome,
    EvaluationPage,
    SignedDocument,
    UploadedFile,
)
from visacheck.extraction.exceptions import ExtractionError
from visacheck.extraction.extractor import (
    DocumentExtractor,
    combine_texts,
    extension_for_mime_type,
    is_supported_mime_type,
)
from visacheck.logging.logger import Log
from visacheck.quota.gate import QuotaGate
from visacheck.quota.models import QuotaReservation
from visacheck.storage.base import BaseDocumentStorage
from visacheck.storage.exceptions import StorageError

MAX_PAGE_SIZE = 100


class EvaluationOrchestrator:
    """Coordinates quota, storage, extraction, analysis and persistence."""

    def __init__(
        self,
        *,
        evaluation_repository: EvaluationRepository,
        quota_gate: QuotaGate,
        storage: BaseDocumentStorage,
        extractor: DocumentExtractor,
        analyzer: Analyzer,
        signed_url_ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._evaluations = evaluation_repository
        self._quota = quota_gate
        self._storage = storage
        self._extractor = extractor
        self._analyzer = analyzer
        self._signed_url_ttl = signed_url_ttl_seconds
        self._clock = clock

    def create_evaluation(
        self,
        user_id: int,
        country: str,
        visa_type_code: str,
        uploads: Sequence[UploadedFile],
    ) -> EvaluationOutcome:
        """Analyze the uploaded documents against one visa type.

        Once the row exists, failures do not raise: the row is marked
        ``failed``, the quota reservation is released and the outcome carries
        ``error_message``.

        Raises:
            InvalidSubmissionError: missing fields, no documents or an unsupported file type.
            VisaTypeNotFoundError: unknown country/visa type pair.
            QuotaExceededError: no evaluations left in the current period.
        """
        if not country or not visa_type_code:
            raise InvalidSubmissionError("Country and visa type are required")
        if not uploads:
            raise InvalidSubmissionError("At least one document is required")
        for upload in uploads:
            if not is_supported_mime_type(upload.mime_type):
                raise InvalidSubmissionError(
                    f"Unsupported file type: {upload.mime_type}. Supported: PDF, DOC, DOCX"
                )

        visa_type = get_visa_type(country, visa_type_code)
        country_ref = get_country(country)
        if visa_type is None or country_ref is None:
            raise VisaTypeNotFoundError(
                f"Visa type {visa_type_code} not found for country {country}"
            )

        reservation = self._quota.reserve(user_id)
        record = self._open_evaluation(reservation, country_ref.code, visa_type.code)
        Log.info(
            f"Created evaluation {record.id} for user {user_id}: "
            f"{country_ref.code} - {visa_type.code}, {len(uploads)} document(s)"
        )

        documents: list[StoredDocument] = []
        error: str | None = None
        try:
            self._evaluations.mark_processing(record.id)
            texts, error = self._store_and_extract(user_id, uploads, documents)
            if documents:
                self._evaluations.update_documents(record.id, documents)
            if error is None:
                result = self._analyzer.analyze(combine_texts(texts), visa_type, country_ref.name)
                completed = self._evaluations.mark_completed(record.id, result)
        except AnalysisError as exc:
            error = str(exc)
        except Exception as exc:
            Log.exception(f"Unexpected error processing evaluation {record.id}")
            error = str(exc)

        if error is not None:
            return self._fail(record, reservation, documents, error)
        Log.info(
            f"Evaluation {record.id} completed",
            malicious=result.is_malicious,
            score=result.score,
        )
        return EvaluationOutcome(record=completed, documents=self._sign(documents))

    def list_evaluations(
        self,
        user_id: int,
        *,
        status: str | None = None,
        country: str | None = None,
        visa_type: str | None = None,
        limit: int = 20,
        skip: int = 0,
    ) -> EvaluationPage:
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        skip = max(0, skip)
        records, total = self._evaluations.list_for_user(
            user_id,
            status=status,
            country=country.upper() if country else None,
            visa_type=visa_type.upper() if visa_type else None,
            limit=limit,
            skip=skip,
        )
        return EvaluationPage(records=records, total=total, limit=limit, skip=skip)

    def get_evaluation(self, user_id: int, evaluation_id: int) -> EvaluationOutcome:
        """Return an owned evaluation with freshly signed document URLs.

        Raises:
            EvaluationNotFoundError: if it does not exist or has another owner.
        """
        record = self._evaluations.find_for_user(evaluation_id, user_id)
        return EvaluationOutcome(record=record, documents=self._sign(record.documents))

    def delete_evaluation(self, user_id: int, evaluation_id: int) -> None:
        """Delete an owned evaluation. Stored files are left in place.

        Raises:
            EvaluationNotFoundError: if it does not exist or has another owner.
        """
        self._evaluations.delete_for_user(evaluation_id, user_id)
        Log.info(f"Deleted evaluation {evaluation_id} for user {user_id}")

    def _open_evaluation(
        self,
        reservation: QuotaReservation,
        country: str,
        visa_type: str,
    ) -> EvaluationRecord:
        if not reservation.is_subscription:
            record = self._evaluations.create_within_limit(
                reservation.user_id,
                country,
                visa_type,
                limit=reservation.limit,
                since=reservation.period_start,
            )
            if record is None:
                Log.warning("Quota exceeded", user_id=reservation.user_id, plan="free")
                raise reservation.exceeded()
            return record

        try:
            return self._evaluations.create(reservation.user_id, country, visa_type)
        except Exception:
            self._quota.release(reservation)
            raise

    def _store_and_extract(
        self,
        user_id: int,
        uploads: Sequence[UploadedFile],
        documents: list[StoredDocument],
    ) -> tuple[list[str], str | None]:
        """Store then extract each upload, stopping at the first failure.

        Stored files are appended to ``documents`` as they land. Returns the
        extracted texts and the failure message, if any.
        """
        texts: list[str] = []
        for upload in uploads:
            try:
                documents.append(self._store(user_id, upload))
                extracted = self._extractor.extract(
                    upload.content, upload.mime_type, upload.file_name
                )
            except (StorageError, ExtractionError) as exc:
                return texts, f"Failed to process file {upload.file_name}: {exc}"
            texts.append(extracted.text)
        return texts, None

    def _store(self, user_id: int, upload: UploadedFile) -> StoredDocument:
        key = self._storage.upload(
            upload.content,
            user_id=user_id,
            file_name=upload.file_name,
            mime_type=upload.mime_type,
            extension=extension_for_mime_type(upload.mime_type),
        )
        return StoredDocument(
            type=upload.document_type,
            storage_key=key,
            file_name=upload.file_name,
            uploaded_at=self._clock(),
        )

    def _fail(
        self,
        record: EvaluationRecord,
        reservation: QuotaReservation,
        documents: list[StoredDocument],
        message: str,
    ) -> EvaluationOutcome:
        Log.error(f"Evaluation {record.id} failed: {message}")
        failed = self._evaluations.mark_failed(record.id, EvaluationResult.failure(message))
        self._quota.release(reservation)
        return EvaluationOutcome(
            record=failed,
            documents=self._sign(documents),
            error_message=message,
        )

    def _sign(self, documents: list[StoredDocument]) -> list[SignedDocument]:
        return [
            SignedDocument(
                document=doc,
                signed_url=self._storage.signed_url(doc.storage_key, self._signed_url_ttl),
            )
            for doc in documents
        ]
