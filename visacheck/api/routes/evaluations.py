from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import JSONResponse

from visacheck.api.dependencies import get_orchestrator, get_services, require_api_key
from visacheck.api.exceptions import PayloadTooLargeError
from visacheck.api.serializers import serialize_created, serialize_outcome, serialize_page
from visacheck.api.services import Services
from visacheck.database.models import ApiKeyRecord
from visacheck.evaluation.exceptions import InvalidSubmissionError
from visacheck.evaluation.models import UploadedFile
from visacheck.evaluation.orchestrator import EvaluationOrchestrator

router = APIRouter(prefix="/api/v1/evaluations", tags=["evaluations"])


def _read_uploads(
    documents: list[UploadFile],
    document_types: list[str],
    services: Services,
) -> list[UploadedFile]:
    settings = services.settings
    if len(documents) > settings.max_files_per_request:
        raise InvalidSubmissionError(
            f"Too many files. Maximum is {settings.max_files_per_request} per request"
        )

    uploads = []
    for index, document in enumerate(documents):
        content = document.file.read(settings.max_file_size_bytes + 1)
        if len(content) > settings.max_file_size_bytes:
            raise PayloadTooLargeError(
                f"File {document.filename} exceeds the "
                f"{settings.max_file_size_bytes // (1024 * 1024)}MB limit"
            )
        uploads.append(
            UploadedFile(
                file_name=document.filename or f"document-{index + 1}",
                content=content,
                mime_type=document.content_type or "application/octet-stream",
                document_type=document_types[index] if index < len(document_types) else "general",
            )
        )
    return uploads


@router.post("", status_code=status.HTTP_201_CREATED)
def create_evaluation(
    country: str = Form(default=""),
    visa_type: str = Form(default="", alias="visaType"),
    documents: list[UploadFile] | None = File(default=None),
    document_types: list[str] | None = Form(default=None, alias="documentTypes"),
    api_key: ApiKeyRecord = Depends(require_api_key),
    services: Services = Depends(get_services),
    orchestrator: EvaluationOrchestrator = Depends(get_orchestrator),
):
    """Upload documents and analyze them against a visa type."""
    uploads = _read_uploads(documents or [], document_types or [], services)
    outcome = orchestrator.create_evaluation(api_key.user_id, country, visa_type, uploads)

    if not outcome.succeeded:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "message": f"Document analysis failed: {outcome.error_message}",
                "evaluationId": outcome.record.id,
            },
        )
    return {
        "success": True,
        "message": "Evaluation created successfully",
        "data": serialize_created(outcome),
    }


@router.get("")
def list_evaluations(
    status_filter: str | None = Query(default=None, alias="status"),
    country: str | None = None,
    visa_type: str | None = Query(default=None, alias="visaType"),
    limit: int = Query(default=20, ge=1, le=100),
    skip: int = Query(default=0, ge=0),
    api_key: ApiKeyRecord = Depends(require_api_key),
    orchestrator: EvaluationOrchestrator = Depends(get_orchestrator),
):
    page = orchestrator.list_evaluations(
        api_key.user_id,
        status=status_filter,
        country=country,
        visa_type=visa_type,
        limit=limit,
        skip=skip,
    )
    return {"success": True, "data": serialize_page(page)}


@router.get("/{evaluation_id}")
def get_evaluation(
    evaluation_id: int,
    api_key: ApiKeyRecord = Depends(require_api_key),
    orchestrator: EvaluationOrchestrator = Depends(get_orchestrator),
):
    outcome = orchestrator.get_evaluation(api_key.user_id, evaluation_id)
    return {"success": True, "data": serialize_outcome(outcome)}


@router.delete("/{evaluation_id}")
def delete_evaluation(
    evaluation_id: int,
    api_key: ApiKeyRecord = Depends(require_api_key),
    orchestrator: EvaluationOrchestrator = Depends(get_orchestrator),
):
    orchestrator.delete_evaluation(api_key.user_id, evaluation_id)
    return {"success": True, "message": "Evaluation deleted successfully"}
