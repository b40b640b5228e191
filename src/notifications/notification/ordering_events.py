"""Bridge from the ordering context: tell customers when their order is ready.

The status engine takes an async callable that receives the updated order
row and returns whether the customer was notified. This module builds that
callable around a :class:`NotificationDispatcher`; a failed send is raised as
a ``ProviderError`` so the engine can report the dispatcher's message.
"""

import structlog
from notifications.notification.dispatcher import NotificationDispatcher, OrderNotice

from shared.errors import ProviderError

logger = structlog.get_logger(__name__)


def make_order_ready_notifier(
    dispatcher: NotificationDispatcher,
    locale: str | None = None,
    send_to_all_channels: bool = False,
):
    async def notify_order_ready(order: dict) -> bool:
        notice = OrderNotice.from_order(order)
        result = await dispatcher.send_order_ready_notification(
            notice,
            send_to_all_channels=send_to_all_channels,
            locale=locale,
        )
        if not result.success:
            logger.warning(
                "order_ready_notification_incomplete",
                order_id=notice.order_id,
                channels=result.channels_sent,
                error=result.error,
            )
            raise ProviderError("notifications", result.error or "order ready notification failed")
        return True

    return notify_order_ready
