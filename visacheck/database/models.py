from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from visacheck.analysis.models import EvaluationResult


@dataclass(frozen=True)
class ApiKeyRecord:
    """Represents an active row from the api_keys table."""

    id: int
    user_id: int
    key: str
    name: str
    last_used_at: datetime | None = None


@dataclass(frozen=True)
class PlanRecord:
    """Represents a row from the plans table."""

    id: int
    name: str
    tier: str
    billing_period: str
    call_limit: int
    price_cents: int = 0


@dataclass(frozen=True)
class SubscriptionRecord:
    """Represents a row from the subscriptions table joined with its plan."""

    id: int
    user_id: int
    plan: PlanRecord
    status: str
    current_period_start: datetime
    current_period_end: datetime
    calls_used: int
    stripe_subscription_id: str | None = None
    cancel_at_period_end: bool = False
    canceled_at: datetime | None = None


@dataclass(frozen=True)
class SubscriptionUpdate:
    """Outcome of applying a payment-provider update to a subscription row."""

    subscription_id: int
    usage_reset: bool


@dataclass(frozen=True)
class StoredDocument:
    """One uploaded file attached to an evaluation."""

    type: str
    storage_key: str
    file_name: str
    uploaded_at: datetime

    def to_json(self) -> dict[str, str]:
        return {
            "type": self.type,
            "storageKey": self.storage_key,
            "fileName": self.file_name,
            "uploadedAt": self.uploaded_at.isoformat(),
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "StoredDocument":
        return cls(
            type=data["type"],
            storage_key=data["storageKey"],
            file_name=data["fileName"],
            uploaded_at=datetime.fromisoformat(data["uploadedAt"]),
        )


@dataclass
class EvaluationRecord:
    """Represents a row from the evaluations table."""

    id: int
    user_id: int
    country: str
    visa_type: str
    status: str
    documents: list[StoredDocument] = field(default_factory=list)
    result: EvaluationResult | None = None
    created_at: datetime | None = None
    processed_at: datetime | None = None


@dataclass(frozen=True)
class ApiUsageEntry:
    """One audit row for an API-key-authenticated call."""

    user_id: int
    api_key: str
    endpoint: str
    method: str
    status_code: int
    success: bool
    response_time_ms: int | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
