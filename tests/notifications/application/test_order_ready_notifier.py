"""Application tests for the ordering → notifications order-ready bridge."""

import asyncio
from uuid import uuid4

import pytest
from notifications.channel import ChannelSet
from notifications.channel.fake_sms import FakeSMSAdapter
from notifications.notification.dispatcher import NotificationDispatcher
from notifications.notification.ordering_events import make_order_ready_notifier

from shared.errors import ProviderError


def _order(**overrides):
    order = {
        "id": str(uuid4()),
        "business_id": f"biz-{uuid4().hex[:8]}",
        "order_number": "TAC-000007",
        "status": "ready",
        "notification_method": "sms",
        "customer_phone": "+525512345678",
        "pickup_time": None,
    }
    order.update(overrides)
    return order


class TestOrderReadyNotifier:
    def setup_method(self):
        self.sms = FakeSMSAdapter()
        self.notify = make_order_ready_notifier(NotificationDispatcher(ChannelSet(sms=self.sms)))

    def test_returns_true_when_sent(self):
        assert asyncio.run(self.notify(_order())) is True
        assert self.sms.sent_messages[0]["body"] == "Tu pedido TAC-000007 está listo para recoger. Hora: por confirmar"

    def test_provider_failure_is_raised(self):
        self.sms.configure(should_succeed=False, failure_reason="invalid number")

        with pytest.raises(ProviderError) as exc:
            asyncio.run(self.notify(_order()))

        assert exc.value.message == "sms: invalid number"

    def test_no_contact_details(self):
        with pytest.raises(ProviderError) as exc:
            asyncio.run(self.notify(_order(customer_phone=None)))
        assert exc.value.message == "No contact information for the requested channels"
