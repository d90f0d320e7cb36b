from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from visacheck.billing.exceptions import InvalidWebhookPayloadError
from visacheck.billing.subscription_events import SubscriptionEventHandler
from visacheck.database.models import SubscriptionUpdate

NOW = datetime(2026, 3, 15, tzinfo=UTC)
PERIOD_START = datetime(2026, 4, 1, tzinfo=UTC)
PERIOD_END = datetime(2026, 5, 1, tzinfo=UTC)


def _make_handler() -> tuple[SubscriptionEventHandler, MagicMock]:
    repository = MagicMock()
    repository.apply_provider_update.return_value = SubscriptionUpdate(
        subscription_id=7, usage_reset=True
    )
    return SubscriptionEventHandler(repository, clock=lambda: NOW), repository


def _event(event_type: str, obj: dict) -> dict:
    return {"id": "evt_1", "type": event_type, "data": {"object": obj}}


class TestSubscriptionUpdated:
    def test_applies_period_and_status(self) -> None:
        handler, repository = _make_handler()

        handled = handler.handle(
            _event(
                "customer.subscription.updated",
                {
                    "id": "sub_123",
                    "status": "active",
                    "current_period_start": int(PERIOD_START.timestamp()),
                    "current_period_end": int(PERIOD_END.timestamp()),
                    "cancel_at_period_end": True,
                },
            )
        )

        assert handled is True
        repository.apply_provider_update.assert_called_once_with(
            "sub_123",
            status="active",
            current_period_start=PERIOD_START,
            current_period_end=PERIOD_END,
            cancel_at_period_end=True,
            canceled_at=None,
        )

    def test_reads_period_from_subscription_items(self) -> None:
        handler, repository = _make_handler()

        handler.handle(
            _event(
                "customer.subscription.updated",
                {
                    "id": "sub_123",
                    "status": "active",
                    "items": {
                        "data": [
                            {
                                "current_period_start": int(PERIOD_START.timestamp()),
                                "current_period_end": int(PERIOD_END.timestamp()),
                            }
                        ]
                    },
                },
            )
        )

        kwargs = repository.apply_provider_update.call_args.kwargs
        assert kwargs["current_period_start"] == PERIOD_START
        assert kwargs["current_period_end"] == PERIOD_END

    def test_status_only_change_keeps_stored_period(self) -> None:
        handler, repository = _make_handler()
        repository.apply_provider_update.return_value = SubscriptionUpdate(
            subscription_id=7, usage_reset=False
        )

        handler.handle(
            _event("customer.subscription.updated", {"id": "sub_123", "status": "past_due"})
        )

        kwargs = repository.apply_provider_update.call_args.kwargs
        assert kwargs["status"] == "past_due"
        assert kwargs["current_period_start"] is None
        assert kwargs["current_period_end"] is None

    def test_missing_status_defaults_to_active(self) -> None:
        handler, repository = _make_handler()

        handler.handle(_event("customer.subscription.updated", {"id": "sub_123"}))

        kwargs = repository.apply_provider_update.call_args.kwargs
        assert kwargs["status"] == "active"
        assert kwargs["current_period_start"] is None

    def test_unknown_subscription_is_ignored(self) -> None:
        handler, repository = _make_handler()
        repository.apply_provider_update.return_value = None

        assert handler.handle(_event("customer.subscription.updated", {"id": "sub_x"})) is True

    def test_object_without_id_rejected(self) -> None:
        handler, _repository = _make_handler()
        with pytest.raises(InvalidWebhookPayloadError, match="no id"):
            handler.handle(_event("customer.subscription.updated", {"status": "active"}))


class TestSubscriptionDeleted:
    def test_marks_canceled(self) -> None:
        handler, repository = _make_handler()

        handler.handle(_event("customer.subscription.deleted", {"id": "sub_123"}))

        repository.mark_canceled.assert_called_once_with("sub_123", NOW)


class TestSubscriptionCreated:
    def _created_event(self, **overrides: object) -> dict:
        subscription = {
            "id": "sub_new",
            "customer": "cus_1",
            "status": "active",
            "metadata": {"userId": "10", "planId": "2"},
            "current_period_start": int(PERIOD_START.timestamp()),
            "current_period_end": int(PERIOD_END.timestamp()),
        }
        subscription.update(overrides)
        return _event("customer.subscription.created", subscription)

    def test_inserts_subscription_from_metadata(self) -> None:
        handler, repository = _make_handler()
        repository.create_from_provider.return_value = 31

        assert handler.handle(self._created_event()) is True

        repository.create_from_provider.assert_called_once_with(
            user_id=10,
            plan_id=2,
            stripe_customer_id="cus_1",
            stripe_subscription_id="sub_new",
            status="active",
            current_period_start=PERIOD_START,
            current_period_end=PERIOD_END,
            cancel_at_period_end=False,
        )

    def test_expanded_customer_object(self) -> None:
        handler, repository = _make_handler()

        handler.handle(self._created_event(customer={"id": "cus_9", "email": "a@b.c"}))

        assert repository.create_from_provider.call_args.kwargs["stripe_customer_id"] == "cus_9"

    def test_defaults_missing_period_for_new_row(self) -> None:
        handler, repository = _make_handler()

        handler.handle(
            self._created_event(current_period_start=None, current_period_end=None)
        )

        kwargs = repository.create_from_provider.call_args.kwargs
        assert kwargs["current_period_start"] == NOW
        assert kwargs["current_period_end"] == NOW + timedelta(days=30)

    def test_missing_metadata_skips_insert(self) -> None:
        handler, repository = _make_handler()

        handler.handle(self._created_event(metadata={"userId": "10"}))

        repository.create_from_provider.assert_not_called()

    def test_non_numeric_metadata_skips_insert(self) -> None:
        handler, repository = _make_handler()

        handler.handle(self._created_event(metadata={"userId": "abc", "planId": "2"}))

        repository.create_from_provider.assert_not_called()

    def test_redelivery_is_tolerated(self) -> None:
        handler, repository = _make_handler()
        repository.create_from_provider.side_effect = [31, None]

        assert handler.handle(self._created_event()) is True
        assert handler.handle(self._created_event()) is True
        assert repository.create_from_provider.call_count == 2


def _renewal_invoice(subscription_ref: dict | None = None, **overrides: object) -> dict:
    invoice = {
        "id": "in_1",
        "subscription": "sub_123",
        "billing_reason": "subscription_cycle",
        "lines": {
            "data": [
                {
                    "period": {
                        "start": int(PERIOD_START.timestamp()),
                        "end": int(PERIOD_END.timestamp()),
                    }
                }
            ]
        },
    }
    if subscription_ref is not None:
        invoice.update(subscription_ref)
    invoice.update(overrides)
    return invoice


class TestInvoicePaymentSucceeded:
    def test_renewal_goes_through_period_check(self) -> None:
        handler, repository = _make_handler()
        repository.renew_period.return_value = SubscriptionUpdate(
            subscription_id=7, usage_reset=True
        )

        handler.handle(_event("invoice.payment_succeeded", _renewal_invoice()))

        repository.renew_period.assert_called_once_with("sub_123", PERIOD_START, PERIOD_END)
        repository.apply_provider_update.assert_not_called()

    def test_redelivered_invoice_reuses_period_check(self) -> None:
        handler, repository = _make_handler()
        repository.renew_period.side_effect = [
            SubscriptionUpdate(subscription_id=7, usage_reset=True),
            SubscriptionUpdate(subscription_id=7, usage_reset=False),
        ]
        event = _event("invoice.payment_succeeded", _renewal_invoice())

        handler.handle(event)
        handler.handle(event)

        assert repository.renew_period.call_count == 2
        assert {c.args for c in repository.renew_period.call_args_list} == {
            ("sub_123", PERIOD_START, PERIOD_END)
        }

    def test_reads_subscription_from_parent_details(self) -> None:
        handler, repository = _make_handler()

        handler.handle(
            _event(
                "invoice.payment_succeeded",
                _renewal_invoice(
                    {"parent": {"subscription_details": {"subscription": "sub_456"}}},
                    subscription=None,
                ),
            )
        )

        assert repository.renew_period.call_args.args[0] == "sub_456"

    def test_invoice_without_line_period_does_not_reset(self) -> None:
        handler, repository = _make_handler()

        handler.handle(_event("invoice.payment_succeeded", _renewal_invoice(lines={"data": []})))

        repository.renew_period.assert_not_called()

    def test_first_invoice_does_not_reset(self) -> None:
        handler, repository = _make_handler()

        handler.handle(
            _event(
                "invoice.payment_succeeded",
                _renewal_invoice(billing_reason="subscription_create"),
            )
        )

        repository.renew_period.assert_not_called()

    def test_non_subscription_invoice_ignored(self) -> None:
        handler, repository = _make_handler()

        handler.handle(_event("invoice.payment_succeeded", {"id": "in_1"}))

        repository.renew_period.assert_not_called()


class TestDispatch:
    def test_unhandled_type_returns_false(self) -> None:
        handler, repository = _make_handler()

        assert handler.handle(_event("checkout.session.completed", {"id": "cs_1"})) is False
        repository.assert_not_called()

    def test_payment_failed_only_logs(self) -> None:
        handler, repository = _make_handler()

        assert handler.handle(_event("invoice.payment_failed", {"id": "in_1"})) is True
        repository.renew_period.assert_not_called()
        repository.apply_provider_update.assert_not_called()

    def test_missing_data_object_rejected(self) -> None:
        handler, _repository = _make_handler()
        with pytest.raises(InvalidWebhookPayloadError, match="no data object"):
            handler.handle({"type": "customer.subscription.deleted", "data": {}})
