"""Cross-domain tests: an order reaching ``ready`` notifies its customer."""

import asyncio
from uuid import uuid4

from notifications.channel import ChannelSet
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.channel.fake_sms import FakeSMSAdapter
from notifications.config import NotificationSettings
from notifications.notification.dispatcher import NotificationDispatcher
from notifications.notification.ordering_events import make_order_ready_notifier
from ordering.order.protean_store import ProteanOrderStore
from ordering.order.status_engine import StatusTransitionEngine
from ordering.realtime.live_orders import LiveOrderView

_ITEMS = [{"product_id": "prod-1", "name": "Gringa", "quantity": 2, "unit_price": 45.0}]


class TestOrderReadyFlow:
    def setup_method(self):
        self.business_id = f"biz-{uuid4().hex[:8]}"
        self.email = FakeEmailAdapter()
        self.sms = FakeSMSAdapter()
        self.dispatcher = NotificationDispatcher(
            ChannelSet(email=self.email, sms=self.sms), NotificationSettings(send_timeout=2.0)
        )
        self.store = ProteanOrderStore()
        self.engine = StatusTransitionEngine(self.store, notifier=make_order_ready_notifier(self.dispatcher))

    def _walk_to_ready(self, **customer):
        async def walk():
            created = await self.engine.create_order(self.business_id, "gringas-don-pepe", _ITEMS, **customer)
            assert created.success, created.error_message
            order_id = created.order["id"]
            for status in ("confirmed", "preparing"):
                assert (await self.engine.update_status(order_id, status)).success
            return await self.engine.update_status(order_id, "ready", changed_by="kitchen")

        return asyncio.run(walk())

    def test_ready_order_sends_sms_and_sets_flag(self):
        result = self._walk_to_ready(customer_phone="+525512345678", notification_method="sms")

        assert result.success is True
        assert result.notification_sent is True
        assert result.order["notification_sent"] is True
        assert self.sms.sent_messages[0]["body"].startswith(f"Tu pedido {result.order['order_number']} está listo")

        [log] = asyncio.run(self.dispatcher.get_notification_history(result.order["id"]))
        assert log["status"] == "sent"
        assert log["notification_type"] == "order_ready"
        assert log["business_id"] == self.business_id

    def test_failed_notification_keeps_order_ready(self):
        self.email.configure(should_succeed=False, failure_reason="Mailbox unavailable")

        result = self._walk_to_ready(customer_email="ana@example.com")

        assert result.success is True
        assert result.order["status"] == "ready"
        assert result.order["notification_sent"] is False
        assert result.notification_error == "email: Mailbox unavailable"

    def test_live_board_sees_ready_order_with_flag(self):
        board = LiveOrderView(self.store, self.business_id, statuses={"ready"})
        asyncio.run(board.activate())

        result = self._walk_to_ready(customer_phone="+525512345678", notification_method="sms")

        row = board.get(result.order["id"])
        assert row["status"] == "ready"
        assert row["notification_sent"] is True
        board.close()
