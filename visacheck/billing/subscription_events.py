"""Keeps local subscription rows in sync with Stripe lifecycle events."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from visacheck.billing.exceptions import InvalidWebhookPayloadError
from visacheck.database.repositories.subscription_repository import SubscriptionRepository
from visacheck.logging.logger import Log

RENEWAL_BILLING_REASON = "subscription_cycle"


def _from_timestamp(value: Any) -> datetime | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return datetime.fromtimestamp(value, tz=UTC)


def _period_bounds(subscription: dict[str, Any]) -> tuple[Any, Any]:
    start = subscription.get("current_period_start")
    end = subscription.get("current_period_end")
    if start is None or end is None:
        # newer API versions only report the period on subscription items
        items = (subscription.get("items") or {}).get("data") or []
        if items:
            start = start if start is not None else items[0].get("current_period_start")
            end = end if end is not None else items[0].get("current_period_end")
    return start, end


def _invoice_subscription_id(invoice: dict[str, Any]) -> str | None:
    ref = invoice.get("subscription")
    if ref is None:
        parent = invoice.get("parent") or {}
        ref = (parent.get("subscription_details") or {}).get("subscription")
    if isinstance(ref, dict):
        ref = ref.get("id")
    return ref if isinstance(ref, str) and ref else None


def _invoice_period(invoice: dict[str, Any]) -> tuple[datetime | None, datetime | None]:
    # the subscription line carries the period being paid for; the invoice's
    # own period_start/period_end describe the previous cycle
    for line in (invoice.get("lines") or {}).get("data") or []:
        period = line.get("period") or {}
        start = _from_timestamp(period.get("start"))
        if start is not None:
            return start, _from_timestamp(period.get("end"))
    return None, None


def _metadata_id(metadata: dict[str, Any], key: str) -> int | None:
    value = metadata.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def _customer_id(subscription: dict[str, Any]) -> str:
    customer = subscription.get("customer")
    if isinstance(customer, dict):
        customer = customer.get("id")
    return customer if isinstance(customer, str) else ""


def _require_id(obj: dict[str, Any]) -> None:
    if not isinstance(obj.get("id"), str):
        raise InvalidWebhookPayloadError("Subscription object has no id")


class SubscriptionEventHandler:
    """Applies Stripe webhook events to the subscriptions table.

    Events for subscriptions this service does not know about are logged
    and ignored, as are event types it does not handle.
    """

    def __init__(
        self,
        subscription_repository: SubscriptionRepository,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._subscriptions = subscription_repository
        self._clock = clock
        self._handlers: dict[str, Callable[[dict[str, Any]], None]] = {
            "customer.subscription.created": self._on_subscription_created,
            "customer.subscription.updated": self._on_subscription_updated,
            "customer.subscription.deleted": self._on_subscription_deleted,
            "invoice.payment_succeeded": self._on_invoice_payment_succeeded,
            "invoice.payment_failed": self._on_invoice_payment_failed,
        }

    def handle(self, event: dict[str, Any]) -> bool:
        """Dispatch one event. Returns False for unhandled event types.

        Raises:
            InvalidWebhookPayloadError: if the event has no data object.
        """
        event_type = event.get("type", "")
        handler = self._handlers.get(event_type)
        if handler is None:
            Log.info(f"Unhandled event type: {event_type}")
            return False

        obj = (event.get("data") or {}).get("object")
        if not isinstance(obj, dict):
            raise InvalidWebhookPayloadError(f"Event {event_type} has no data object")
        Log.info("Received webhook event", type=event_type, id=event.get("id"))
        handler(obj)
        return True

    def _on_subscription_created(self, subscription: dict[str, Any]) -> None:
        _require_id(subscription)
        metadata = subscription.get("metadata") or {}
        user_id = _metadata_id(metadata, "userId")
        plan_id = _metadata_id(metadata, "planId")
        if user_id is None or plan_id is None:
            Log.error(
                f"Missing userId or planId in subscription metadata: {subscription['id']}",
                metadata=metadata,
            )
            return

        now = self._clock()
        raw_start, raw_end = _period_bounds(subscription)
        created_id = self._subscriptions.create_from_provider(
            user_id=user_id,
            plan_id=plan_id,
            stripe_customer_id=_customer_id(subscription),
            stripe_subscription_id=subscription["id"],
            status=subscription.get("status", "active"),
            current_period_start=_from_timestamp(raw_start) or now,
            current_period_end=_from_timestamp(raw_end) or now + timedelta(days=30),
            cancel_at_period_end=bool(subscription.get("cancel_at_period_end")),
        )
        if created_id is None:
            Log.info(
                f"Subscription {subscription['id']} already exists or references an "
                "unknown user or plan, skipping creation"
            )
            return
        Log.info(f"Subscription created for user {user_id}", subscription=created_id)

    def _on_subscription_updated(self, subscription: dict[str, Any]) -> None:
        _require_id(subscription)
        raw_start, raw_end = _period_bounds(subscription)
        period_start = _from_timestamp(raw_start)
        period_end = _from_timestamp(raw_end)

        update = self._subscriptions.apply_provider_update(
            subscription["id"],
            status=subscription.get("status", "active"),
            current_period_start=period_start,
            current_period_end=period_end,
            cancel_at_period_end=bool(subscription.get("cancel_at_period_end")),
            canceled_at=_from_timestamp(subscription.get("canceled_at")),
        )
        if update is None:
            Log.error(f"Subscription not found: {subscription['id']}")
            return
        if update.usage_reset:
            Log.info(f"Usage reset for subscription {subscription['id']} due to period renewal")
        Log.info(f"Subscription updated: {subscription['id']}")

    def _on_subscription_deleted(self, subscription: dict[str, Any]) -> None:
        _require_id(subscription)
        if not self._subscriptions.mark_canceled(subscription["id"], self._clock()):
            Log.error(f"Subscription not found: {subscription['id']}")
            return
        Log.info(f"Subscription deleted: {subscription['id']}")

    def _on_invoice_payment_succeeded(self, invoice: dict[str, Any]) -> None:
        subscription_id = _invoice_subscription_id(invoice)
        if subscription_id is None:
            Log.info(f"Invoice payment succeeded for non-subscription invoice: {invoice.get('id')}")
            return
        if invoice.get("billing_reason") != RENEWAL_BILLING_REASON:
            return
        period_start, period_end = _invoice_period(invoice)
        if period_start is None:
            Log.warning(f"Renewal invoice {invoice.get('id')} has no billing period, usage not reset")
            return
        update = self._subscriptions.renew_period(subscription_id, period_start, period_end)
        if update is None:
            Log.error(f"Subscription not found for invoice: {invoice.get('id')}")
            return
        if update.usage_reset:
            Log.info(f"Usage reset for subscription {subscription_id} due to successful renewal payment")

    def _on_invoice_payment_failed(self, invoice: dict[str, Any]) -> None:
        Log.warning(
            "Invoice payment failed",
            invoice=invoice.get("id"),
            subscription=_invoice_subscription_id(invoice),
        )
