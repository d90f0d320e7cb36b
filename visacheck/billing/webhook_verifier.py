import json
from typing import Any

import stripe

from visacheck.billing.exceptions import InvalidWebhookPayloadError, WebhookSignatureError
from visacheck.config.exceptions import ConfigurationError


class StripeWebhookVerifier:
    """Checks the Stripe-Signature header and decodes the event body."""

    def __init__(self, webhook_secret: str) -> None:
        if not webhook_secret:
            raise ConfigurationError("Stripe webhook secret is not configured")
        self._webhook_secret = webhook_secret

    def verify(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Return the event as a plain dict.

        Raises:
            WebhookSignatureError: if the signature is missing or invalid.
            InvalidWebhookPayloadError: if the body is not a JSON event.
        """
        if not signature:
            raise WebhookSignatureError("No stripe signature")
        try:
            stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise WebhookSignatureError(f"Webhook Error: {exc}") from exc
        except ValueError as exc:
            raise InvalidWebhookPayloadError(f"Webhook Error: {exc}") from exc

        try:
            event = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidWebhookPayloadError(f"Webhook Error: {exc}") from exc
        if not isinstance(event, dict) or not isinstance(event.get("type"), str):
            raise InvalidWebhookPayloadError("Webhook Error: payload is not an event")
        return event
