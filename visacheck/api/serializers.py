"""JSON shapes returned by the HTTP API (camelCase, as clients expect)."""

from datetime import datetime
from typing import Any

from visacheck.config.visa_data import Country, VisaDocument, VisaType
from visacheck.database.models import EvaluationRecord
from visacheck.evaluation.models import EvaluationOutcome, EvaluationPage


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def serialize_evaluation(record: EvaluationRecord, include_raw: bool = False) -> dict[str, Any]:
    return {
        "id": record.id,
        "userId": record.user_id,
        "country": record.country,
        "visaType": record.visa_type,
        "status": record.status,
        "documents": [doc.to_json() for doc in record.documents],
        "result": record.result.to_dict(include_raw=include_raw) if record.result else None,
        "createdAt": _iso(record.created_at),
        "processedAt": _iso(record.processed_at),
    }


def serialize_outcome(outcome: EvaluationOutcome) -> dict[str, Any]:
    """Full view of one evaluation, documents carrying signed URLs."""
    data = serialize_evaluation(outcome.record, include_raw=True)
    data["documents"] = [doc.to_dict() for doc in outcome.documents]
    return data


def serialize_created(outcome: EvaluationOutcome) -> dict[str, Any]:
    record = outcome.record
    return {
        "evaluationId": record.id,
        "status": record.status,
        "country": record.country,
        "visaType": record.visa_type,
        "documentsUploaded": len(outcome.documents),
        "documents": [doc.to_dict() for doc in outcome.documents],
        "result": record.result.to_dict(include_raw=False) if record.result else None,
        "createdAt": _iso(record.created_at),
        "processedAt": _iso(record.processed_at),
    }


def serialize_page(page: EvaluationPage) -> dict[str, Any]:
    return {
        "evaluations": [serialize_evaluation(record) for record in page.records],
        "pagination": {
            "total": page.total,
            "limit": page.limit,
            "skip": page.skip,
            "hasMore": page.has_more,
        },
    }


def _serialize_document(doc: VisaDocument) -> dict[str, Any]:
    return {
        "type": doc.type,
        "displayName": doc.display_name,
        "required": doc.required,
        "description": doc.description,
    }


def serialize_visa_type(visa_type: VisaType) -> dict[str, Any]:
    return {
        "code": visa_type.code,
        "name": visa_type.name,
        "description": visa_type.description,
        "minSalary": visa_type.min_salary,
        "currency": visa_type.currency,
        "processingTime": visa_type.processing_time,
        "validityPeriod": visa_type.validity_period,
        "requiredDocuments": [_serialize_document(d) for d in visa_type.required_documents],
    }


def serialize_country(country: Country) -> dict[str, Any]:
    return {
        "code": country.code,
        "name": country.name,
        "flag": country.flag,
        "visaTypes": [serialize_visa_type(v) for v in country.visa_types],
    }
