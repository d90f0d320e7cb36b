from datetime import UTC, datetime, timedelta

import pytest

from visacheck.analysis.models import Checkpoint, EvaluationResult
from visacheck.database.models import StoredDocument
from visacheck.database.repositories.evaluation_repository import EvaluationRepository
from visacheck.evaluation.exceptions import EvaluationNotFoundError

RESULT = EvaluationResult(
    is_malicious=False,
    score=64,
    summary="Adequate application.",
    checkpoints=[Checkpoint(checkpoint="Valid Passport", status="met", score=80)],
    weaknesses=["No salary evidence."],
    raw_analysis='{"isMalicious": false}',
)


@pytest.mark.integration
class TestEvaluationLifecycle:
    def test_create_store_documents_and_complete(self, seed_user: int) -> None:
        repo = EvaluationRepository()
        record = repo.create(seed_user, "DE", "EU_BLUE_CARD")
        assert record.status == "pending"
        assert record.documents == []

        repo.mark_processing(record.id)
        with pytest.raises(EvaluationNotFoundError):
            repo.mark_processing(record.id)

        document = StoredDocument(
            type="resume",
            storage_key=f"visa-docs/{seed_user}/x.pdf",
            file_name="cv.pdf",
            uploaded_at=datetime.now(UTC),
        )
        repo.update_documents(record.id, [document])
        completed = repo.mark_completed(record.id, RESULT)

        assert completed.status == "completed"
        assert completed.processed_at is not None
        assert completed.documents == [document]
        assert completed.result == RESULT

    def test_mark_failed_stores_placeholder(self, seed_user: int) -> None:
        repo = EvaluationRepository()
        record = repo.create(seed_user, "US", "H1B")

        failed = repo.mark_failed(record.id, EvaluationResult.failure("timeout"))

        assert failed.status == "failed"
        assert failed.result is not None
        assert failed.result.score == 0
        assert failed.result.summary == "Analysis failed: timeout"


@pytest.mark.integration
class TestOwnerScoping:
    def test_other_user_cannot_read_or_delete(self, seed_user: int) -> None:
        repo = EvaluationRepository()
        record = repo.create(seed_user, "US", "H1B")

        with pytest.raises(EvaluationNotFoundError):
            repo.find_for_user(record.id, seed_user + 1_000_000)
        with pytest.raises(EvaluationNotFoundError):
            repo.delete_for_user(record.id, seed_user + 1_000_000)

        assert repo.find_for_user(record.id, seed_user).id == record.id

    def test_delete_removes_row(self, seed_user: int) -> None:
        repo = EvaluationRepository()
        record = repo.create(seed_user, "US", "H1B")

        repo.delete_for_user(record.id, seed_user)

        with pytest.raises(EvaluationNotFoundError):
            repo.find_for_user(record.id, seed_user)


@pytest.mark.integration
class TestListing:
    def test_filters_pages_and_hides_raw_analysis(self, seed_user: int) -> None:
        repo = EvaluationRepository()
        for _ in range(3):
            repo.mark_completed(repo.create(seed_user, "US", "H1B").id, RESULT)
        repo.create(seed_user, "FR", "TALENT_PASSPORT")

        records, total = repo.list_for_user(seed_user, country="US", limit=2, skip=0)

        assert total == 3
        assert len(records) == 2
        assert all(r.country == "US" for r in records)
        assert records[0].id > records[1].id
        assert records[0].result is not None
        assert records[0].result.raw_analysis is None

    def test_counts_only_rows_since_cutoff(self, seed_user: int) -> None:
        repo = EvaluationRepository()
        repo.create(seed_user, "US", "H1B")

        assert repo.count_created_since(seed_user, datetime.now(UTC) - timedelta(hours=1)) == 1
        assert repo.count_created_since(seed_user, datetime.now(UTC) + timedelta(hours=1)) == 0
