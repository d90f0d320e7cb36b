from dataclasses import dataclass
from pathlib import Path

from visacheck.analysis.factory import AnalyzerFactory
from visacheck.billing.subscription_events import SubscriptionEventHandler
from visacheck.billing.webhook_verifier import StripeWebhookVerifier
from visacheck.config.exceptions import ConfigurationError
from visacheck.config.settings import Settings
from visacheck.database.repositories.api_key_repository import ApiKeyRepository
from visacheck.database.repositories.api_usage_repository import ApiUsageRepository
from visacheck.database.repositories.evaluation_repository import EvaluationRepository
from visacheck.database.repositories.plan_repository import PlanRepository
from visacheck.database.repositories.subscription_repository import SubscriptionRepository
from visacheck.evaluation.orchestrator import EvaluationOrchestrator
from visacheck.extraction.extractor import build_document_extractor
from visacheck.logging.logger import Log
from visacheck.quota.gate import QuotaGate
from visacheck.storage.factory import DocumentStorageFactory


@dataclass
class Services:
    """Service objects shared by all requests, attached to ``app.state``.

    ``orchestrator`` is None when the analysis or storage configuration is
    invalid; ``configuration_error`` then says why. ``webhook_verifier`` is
    None without a Stripe webhook secret.
    """

    settings: Settings
    api_keys: ApiKeyRepository
    api_usage: ApiUsageRepository
    quota_gate: QuotaGate
    subscription_events: SubscriptionEventHandler
    webhook_verifier: StripeWebhookVerifier | None = None
    orchestrator: EvaluationOrchestrator | None = None
    configuration_error: str | None = None
    webhook_configuration_error: str | None = None

    def require_orchestrator(self) -> EvaluationOrchestrator:
        if self.orchestrator is None:
            raise ConfigurationError(
                self.configuration_error or "Evaluation service is not configured"
            )
        return self.orchestrator

    def require_webhook_verifier(self) -> StripeWebhookVerifier:
        if self.webhook_verifier is None:
            raise ConfigurationError(
                self.webhook_configuration_error or "Stripe webhooks are not configured"
            )
        return self.webhook_verifier


def build_services(settings: Settings) -> Services:
    """Build every service from settings.

    A configuration problem in the analysis or storage layer is logged and
    disables evaluations instead of stopping the whole service. A missing
    webhook secret disables the Stripe webhook route the same way.
    """
    subscription_repo = SubscriptionRepository()
    evaluation_repo = EvaluationRepository()
    quota_gate = QuotaGate(subscription_repo, PlanRepository(), evaluation_repo)

    services = Services(
        settings=settings,
        api_keys=ApiKeyRepository(),
        api_usage=ApiUsageRepository(),
        quota_gate=quota_gate,
        subscription_events=SubscriptionEventHandler(subscription_repo),
    )

    try:
        services.webhook_verifier = StripeWebhookVerifier(settings.stripe_webhook_secret)
    except ConfigurationError as exc:
        Log.error(f"Stripe webhooks disabled, configuration error: {exc}")
        services.webhook_configuration_error = str(exc)

    try:
        services.orchestrator = EvaluationOrchestrator(
            evaluation_repository=evaluation_repo,
            quota_gate=quota_gate,
            storage=DocumentStorageFactory.create(settings),
            extractor=build_document_extractor(settings),
            analyzer=AnalyzerFactory.create(settings),
            signed_url_ttl_seconds=settings.signed_url_ttl_seconds,
        )
    except ConfigurationError as exc:
        Log.error(f"Evaluations disabled, configuration error: {exc}")
        services.configuration_error = str(exc)
    return services
