class WebhookError(Exception):
    """Base exception for payment-provider webhook handling."""


class WebhookSignatureError(WebhookError):
    """Raised when a webhook payload fails signature verification."""


class InvalidWebhookPayloadError(WebhookError):
    """Raised when a webhook payload is not a usable event object."""
