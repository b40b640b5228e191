"""Tests for the NotificationLog aggregate and its delivery state machine."""

import pytest
from notifications.notification.events import (
    NotificationDelivered,
    NotificationFailed,
    NotificationLogged,
    NotificationRetried,
    NotificationSent,
)
from notifications.notification.notification import NotificationLog, NotificationStatus
from protean.exceptions import ValidationError


def _make_log(channel="sms"):
    return NotificationLog.create(
        business_id="biz-001",
        order_id="ord-001",
        recipient="+525512345678",
        channel=channel,
        notification_type="order_ready",
        content="Tu pedido TAC-000001 está listo para recoger.",
    )


def _failed_log(times=1):
    log = _make_log()
    for attempt in range(times):
        if attempt:
            log.retry(max_retries=times + 1)
        log.mark_failed("Twilio error 21211: invalid number")
    log._events.clear()
    return log


class TestCreate:
    def test_new_entry_is_pending(self):
        log = _make_log()
        assert log.status == NotificationStatus.PENDING.value
        assert log.retry_count == 0
        assert log.stubbed is False
        assert log.created_at is not None

    def test_raises_logged_event(self):
        log = _make_log()
        assert len(log._events) == 1
        assert isinstance(log._events[0], NotificationLogged)
        assert log._events[0].channel == "sms"

    def test_rejects_unknown_channel(self):
        with pytest.raises(ValidationError):
            _make_log(channel="push")


class TestSend:
    def test_mark_sent(self):
        log = _make_log()
        log._events.clear()

        log.mark_sent(external_id="SM123")

        assert log.status == NotificationStatus.SENT.value
        assert log.external_id == "SM123"
        assert log.sent_at is not None
        assert isinstance(log._events[0], NotificationSent)

    def test_mark_sent_stubbed(self):
        log = _make_log()
        log.mark_sent(stubbed=True)
        assert log.stubbed is True
        assert log.external_id is None

    def test_cannot_send_twice(self):
        log = _make_log()
        log.mark_sent()
        with pytest.raises(ValidationError):
            log.mark_sent()


class TestFailure:
    def test_failure_counts_towards_retry_budget(self):
        log = _make_log()
        log._events.clear()

        log.mark_failed("provider down")

        assert log.status == NotificationStatus.FAILED.value
        assert log.error_message == "provider down"
        assert log.retry_count == 1
        assert isinstance(log._events[0], NotificationFailed)

    def test_sent_entry_cannot_fail(self):
        log = _make_log()
        log.mark_sent()
        with pytest.raises(ValidationError):
            log.mark_failed("late failure")


class TestDelivery:
    def test_mark_delivered(self):
        log = _make_log()
        log.mark_sent()
        log._events.clear()

        log.mark_delivered()

        assert log.status == NotificationStatus.DELIVERED.value
        assert log.delivered_at is not None
        assert isinstance(log._events[0], NotificationDelivered)

    def test_pending_entry_cannot_be_delivered(self):
        with pytest.raises(ValidationError):
            _make_log().mark_delivered()

    def test_failed_entry_cannot_be_delivered(self):
        with pytest.raises(ValidationError):
            _failed_log().mark_delivered()


class TestRetry:
    def test_retry_returns_to_pending(self):
        log = _failed_log()

        log.retry(max_retries=3)

        assert log.status == NotificationStatus.PENDING.value
        assert log.retry_count == 1
        assert isinstance(log._events[0], NotificationRetried)

    def test_retry_then_send_clears_error(self):
        log = _failed_log()
        log.retry(max_retries=3)
        log.mark_sent(external_id="SM456")
        assert log.error_message is None

    def test_retry_budget_exhausted(self):
        log = _failed_log(times=3)
        assert log.retry_count == 3
        with pytest.raises(ValidationError) as exc:
            log.retry(max_retries=3)
        assert "retry_count" in exc.value.messages

    def test_only_failed_entries_are_retried(self):
        log = _make_log()
        with pytest.raises(ValidationError):
            log.retry(max_retries=3)
