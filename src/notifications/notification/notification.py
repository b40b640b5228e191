"""NotificationLog aggregate: one outbound customer message and its delivery lifecycle.

Every send through the dispatcher writes a log entry first, so there is a
record of the attempt even when the provider call never returns.

State Machine (4 states):
    PENDING → SENT → DELIVERED
    PENDING → FAILED → (retry) → PENDING
"""

from datetime import UTC, datetime
from enum import Enum

from notifications.domain import notifications
from notifications.notification.events import (
    NotificationDelivered,
    NotificationFailed,
    NotificationLogged,
    NotificationRetried,
    NotificationSent,
)
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationChannel(Enum):
    EMAIL = "email"
    SMS = "sms"
    TELEGRAM = "telegram"


class NotificationType(Enum):
    ORDER_CREATED = "order_created"
    ORDER_CONFIRMED = "order_confirmed"
    ORDER_PREPARING = "order_preparing"
    ORDER_READY = "order_ready"
    ORDER_PICKED_UP = "order_picked_up"
    ORDER_CANCELLED = "order_cancelled"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_FAILED = "payment_failed"
    PICKUP_REMINDER = "pickup_reminder"


class NotificationStatus(Enum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


class NotificationPriority(Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {
        NotificationStatus.SENT,
        NotificationStatus.FAILED,
    },
    NotificationStatus.SENT: {
        NotificationStatus.DELIVERED,
    },
    NotificationStatus.FAILED: {
        NotificationStatus.PENDING,  # Via retry
    },
    NotificationStatus.DELIVERED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@notifications.aggregate
class NotificationLog:
    """A single message sent to a customer through one channel."""

    business_id: Identifier(required=True)
    order_id: Identifier()

    recipient: String(required=True, max_length=255)
    channel: String(choices=NotificationChannel, required=True)
    notification_type: String(choices=NotificationType, required=True)

    # Content
    subject: String(max_length=500)
    content: Text(required=True)

    # Status
    status: String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)
    external_id: String(max_length=255)
    error_message: String(max_length=1000)
    stubbed: Boolean(default=False)

    # Retry
    retry_count: Integer(default=0)

    # Timestamps
    sent_at: DateTime()
    delivered_at: DateTime()
    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        business_id,
        recipient,
        channel,
        notification_type,
        content,
        subject=None,
        order_id=None,
    ):
        """Log a new outbound message in PENDING status."""
        now = datetime.now(UTC)

        log = cls(
            business_id=business_id,
            order_id=order_id,
            recipient=recipient,
            channel=channel,
            notification_type=notification_type,
            subject=subject,
            content=content,
            status=NotificationStatus.PENDING.value,
            retry_count=0,
            created_at=now,
            updated_at=now,
        )

        log.raise_(
            NotificationLogged(
                log_id=str(log.id),
                business_id=str(business_id),
                order_id=str(order_id) if order_id else None,
                channel=channel,
                notification_type=notification_type,
                created_at=now,
            )
        )

        return log

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate state machine transition."""
        current = NotificationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self, external_id=None, stubbed=False):
        """Record that the provider accepted the message (or that it was stubbed)."""
        self._assert_can_transition(NotificationStatus.SENT)

        now = datetime.now(UTC)
        self.status = NotificationStatus.SENT.value
        self.external_id = external_id
        self.stubbed = stubbed
        self.error_message = None
        self.sent_at = now
        self.updated_at = now

        self.raise_(
            NotificationSent(
                log_id=str(self.id),
                channel=self.channel,
                external_id=external_id,
                stubbed=stubbed,
                sent_at=now,
            )
        )

    def mark_failed(self, reason):
        """Record a failed attempt. Every failure counts towards the retry budget."""
        self._assert_can_transition(NotificationStatus.FAILED)

        now = datetime.now(UTC)
        self.status = NotificationStatus.FAILED.value
        self.error_message = reason
        self.retry_count = self.retry_count + 1
        self.updated_at = now

        self.raise_(
            NotificationFailed(
                log_id=str(self.id),
                channel=self.channel,
                reason=reason,
                retry_count=self.retry_count,
                failed_at=now,
            )
        )

    def mark_delivered(self, delivered_at=None):
        """Record the provider's delivery confirmation."""
        self._assert_can_transition(NotificationStatus.DELIVERED)

        now = delivered_at or datetime.now(UTC)
        self.status = NotificationStatus.DELIVERED.value
        self.delivered_at = now
        self.updated_at = now

        self.raise_(
            NotificationDelivered(
                log_id=str(self.id),
                channel=self.channel,
                delivered_at=now,
            )
        )

    def retry(self, max_retries):
        """Move a failed entry back to PENDING for another attempt."""
        if NotificationStatus(self.status) != NotificationStatus.FAILED:
            raise ValidationError({"status": ["Only failed notifications can be retried"]})
        if self.retry_count >= max_retries:
            raise ValidationError({"retry_count": ["Maximum retry attempts exceeded"]})

        now = datetime.now(UTC)
        self.status = NotificationStatus.PENDING.value
        self.updated_at = now

        self.raise_(
            NotificationRetried(
                log_id=str(self.id),
                channel=self.channel,
                retry_count=self.retry_count,
                retried_at=now,
            )
        )
