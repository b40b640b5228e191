"""Domain events for the NotificationLog aggregate."""

from notifications.domain import notifications
from protean.fields import Boolean, DateTime, Identifier, Integer, String


@notifications.event(part_of="NotificationLog")
class NotificationLogged:
    """An outbound message was logged before it was handed to a channel."""

    __version__ = 1

    log_id: Identifier(required=True)
    business_id: Identifier(required=True)
    order_id: Identifier()
    channel: String(required=True)
    notification_type: String(required=True)
    created_at: DateTime(required=True)


@notifications.event(part_of="NotificationLog")
class NotificationSent:
    """The channel provider accepted the message, or it was recorded in stub mode."""

    __version__ = 1

    log_id: Identifier(required=True)
    channel: String(required=True)
    external_id: String()
    stubbed: Boolean(default=False)
    sent_at: DateTime(required=True)


@notifications.event(part_of="NotificationLog")
class NotificationDelivered:
    """The provider confirmed delivery to the recipient."""

    __version__ = 1

    log_id: Identifier(required=True)
    channel: String(required=True)
    delivered_at: DateTime(required=True)


@notifications.event(part_of="NotificationLog")
class NotificationFailed:
    """A send attempt failed."""

    __version__ = 1

    log_id: Identifier(required=True)
    channel: String(required=True)
    reason: String(required=True)
    retry_count: Integer(required=True)
    failed_at: DateTime(required=True)


@notifications.event(part_of="NotificationLog")
class NotificationRetried:
    """A failed entry went back to pending for another attempt."""

    __version__ = 1

    log_id: Identifier(required=True)
    channel: String(required=True)
    retry_count: Integer(required=True)
    retried_at: DateTime(required=True)
