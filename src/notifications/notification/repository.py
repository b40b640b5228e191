"""Repository for the NotificationLog aggregate."""

from notifications.domain import notifications
from notifications.notification.notification import NotificationLog, NotificationStatus


@notifications.repository(part_of=NotificationLog)
class NotificationLogRepository:
    def retryable(self, business_id, max_retries, cutoff) -> list[NotificationLog]:
        """Failed entries still under the retry budget and newer than ``cutoff``, newest first."""
        return (
            self._dao.query.filter(
                business_id=str(business_id),
                status=NotificationStatus.FAILED.value,
                retry_count__lt=max_retries,
                created_at__gt=cutoff,
            )
            .order_by("-created_at")
            .all()
            .items
        )

    def for_order(self, order_id, channel=None) -> list[NotificationLog]:
        """Entries for one order, newest first."""
        query = self._dao.query.filter(order_id=str(order_id))
        if channel:
            query = query.filter(channel=channel)
        return query.order_by("-created_at").all().items
