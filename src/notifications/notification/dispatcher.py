"""Notification dispatcher: sends lifecycle messages and keeps the notification log.

Every send follows the same path: a PENDING log entry is written, the
channel adapter is called in a worker thread under a timeout, and the entry
is marked SENT or FAILED with the outcome. Channels without an adapter are
handled without a network call: SMS and Telegram are recorded as stubbed
sends, email is recorded as a configuration failure.

Send operations report errors on the returned :class:`NotificationResult`;
only :meth:`NotificationDispatcher.mark_as_delivered` raises.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import structlog
from notifications.channel import ChannelSet
from notifications.config import NotificationSettings
from notifications.domain import notifications
from notifications.notification.notification import (
    NotificationChannel,
    NotificationLog,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from notifications.templates import get_template
from protean.exceptions import ObjectNotFoundError, ValidationError

from shared.errors import ConfigurationMissing, NotificationLogNotFound

logger = structlog.get_logger(__name__)

_PRIORITY_ORDER = {
    NotificationPriority.HIGH.value: 0,
    NotificationPriority.NORMAL.value: 1,
    NotificationPriority.LOW.value: 2,
}

_LOG_FIELDS = (
    "recipient",
    "channel",
    "notification_type",
    "subject",
    "content",
    "status",
    "external_id",
    "error_message",
    "stubbed",
    "retry_count",
    "sent_at",
    "delivered_at",
    "created_at",
    "updated_at",
)


def log_row(log: NotificationLog) -> dict:
    row = {
        "id": str(log.id),
        "business_id": str(log.business_id),
        "order_id": str(log.order_id) if log.order_id else None,
    }
    row.update({name: getattr(log, name) for name in _LOG_FIELDS})
    return row


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------
@dataclass
class OrderNotice:
    """What the dispatcher needs to know about an order to message its customer."""

    order_id: str
    business_id: str
    order_number: str
    notification_method: str = NotificationChannel.EMAIL.value
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_telegram_chat_id: str | None = None
    pickup_time: datetime | None = None
    total: float | None = None
    cancellation_reason: str | None = None

    @classmethod
    def from_order(cls, order: dict) -> "OrderNotice":
        return cls(
            order_id=str(order["id"]),
            business_id=str(order["business_id"]),
            order_number=order["order_number"],
            notification_method=order.get("notification_method") or NotificationChannel.EMAIL.value,
            customer_email=order.get("customer_email"),
            customer_phone=order.get("customer_phone"),
            customer_telegram_chat_id=order.get("customer_telegram_chat_id"),
            pickup_time=order.get("pickup_time"),
            total=order.get("total"),
            cancellation_reason=order.get("cancellation_reason"),
        )

    def recipient_for(self, channel: str) -> str | None:
        return {
            NotificationChannel.EMAIL.value: self.customer_email,
            NotificationChannel.SMS.value: self.customer_phone,
            NotificationChannel.TELEGRAM.value: self.customer_telegram_chat_id,
        }.get(channel)

    @property
    def template_context(self) -> dict:
        return {
            "order_number": self.order_number,
            "pickup_time": self.pickup_time,
            "total": self.total,
            "reason": self.cancellation_reason,
        }


@dataclass
class NotificationResult:
    success: bool
    log_id: str | None = None
    channel: str | None = None
    error: str | None = None
    stubbed: bool = False
    skipped: bool = False
    channels_sent: list[str] = field(default_factory=list)
    results: list["NotificationResult"] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "log_id": self.log_id,
            "channel": self.channel,
            "error": self.error,
            "stubbed": self.stubbed,
            "skipped": self.skipped,
            "channels_sent": list(self.channels_sent),
            "results": [result.to_dict() for result in self.results],
        }


@dataclass
class BatchItem:
    business_id: str
    channel: str
    recipient: str | None
    content: str
    notification_type: str = NotificationType.ORDER_READY.value
    subject: str | None = None
    order_id: str | None = None
    priority: str = NotificationPriority.NORMAL.value


@dataclass
class BatchSendResult:
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    results: list[NotificationResult] = field(default_factory=list)


@dataclass
class RetrySummary:
    retried: int = 0
    skipped: int = 0
    errors: int = 0


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------
class NotificationDispatcher:
    def __init__(self, channels: ChannelSet, settings: NotificationSettings | None = None, domain=notifications):
        self.channels = channels
        self.settings = settings or NotificationSettings()
        self._domain = domain

    # -------------------------------------------------------------------
    # Log persistence
    # -------------------------------------------------------------------
    def _log_pending(self, business_id, channel, notification_type, recipient, content, subject, order_id) -> str:
        with self._domain.domain_context():
            log = NotificationLog.create(
                business_id=business_id,
                order_id=order_id,
                recipient=recipient,
                channel=channel,
                notification_type=notification_type,
                content=content,
                subject=subject,
            )
            self._domain.repository_for(NotificationLog).add(log)
            return str(log.id)

    def _update_log(self, log_id: str, mutate) -> NotificationLog:
        with self._domain.domain_context():
            repo = self._domain.repository_for(NotificationLog)
            try:
                log = repo.get(log_id)
            except ObjectNotFoundError as exc:
                raise NotificationLogNotFound(log_id) from exc
            mutate(log)
            repo.add(log)
            return log

    def _record_outcome(self, log_id: str, mutate, channel: str):
        try:
            self._update_log(log_id, mutate)
        except Exception as exc:
            logger.error("notification_log_update_failed", log_id=log_id, channel=channel, error=str(exc))

    # -------------------------------------------------------------------
    # Channel calls
    # -------------------------------------------------------------------
    @staticmethod
    def _call_adapter(adapter, channel: str, recipient: str, subject: str | None, content: str, text_body=None):
        if channel == NotificationChannel.EMAIL.value:
            return adapter.send(to=recipient, subject=subject or "", body=text_body or content, html_body=content)
        if channel == NotificationChannel.SMS.value:
            return adapter.send(to=recipient, body=content)
        return adapter.send(chat_id=recipient, text=content)

    async def _deliver(self, log_id, channel, recipient, subject, content, text_body=None) -> NotificationResult:
        adapter = self.channels.get(channel)

        if adapter is None:
            if channel == NotificationChannel.EMAIL.value:
                error = ConfigurationMissing(channel).message
                logger.error("notification_channel_not_configured", log_id=log_id, channel=channel)
                self._record_outcome(log_id, lambda log: log.mark_failed(error), channel)
                return NotificationResult(success=False, log_id=log_id, channel=channel, error=error)

            logger.info("notification_stubbed", log_id=log_id, channel=channel)
            self._record_outcome(log_id, lambda log: log.mark_sent(stubbed=True), channel)
            return NotificationResult(success=True, log_id=log_id, channel=channel, stubbed=True)

        timeout = self.settings.send_timeout
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(self._call_adapter, adapter, channel, recipient, subject, content, text_body),
                timeout=timeout,
            )
        except TimeoutError:
            error = f"{channel} provider timed out after {timeout}s"
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__
        else:
            if response.get("status") == "sent":
                external_id = response.get("message_id")
                self._record_outcome(log_id, lambda log: log.mark_sent(external_id=external_id), channel)
                logger.info("notification_sent", log_id=log_id, channel=channel, external_id=external_id)
                return NotificationResult(success=True, log_id=log_id, channel=channel)
            error = response.get("error") or "Unknown dispatch error"

        logger.warning("notification_provider_failed", log_id=log_id, channel=channel, error=error)
        self._record_outcome(log_id, lambda log: log.mark_failed(error), channel)
        return NotificationResult(success=False, log_id=log_id, channel=channel, error=error)

    async def _send(
        self,
        channel: str,
        business_id,
        recipient: str,
        content: str,
        notification_type: str,
        subject: str | None = None,
        order_id=None,
        text_body: str | None = None,
    ) -> NotificationResult:
        try:
            log_id = self._log_pending(business_id, channel, notification_type, recipient, content, subject, order_id)
        except Exception as exc:
            logger.error("notification_log_write_failed", channel=channel, order_id=order_id, error=str(exc))
            return NotificationResult(success=False, channel=channel, error=f"Failed to log notification: {exc}")

        return await self._deliver(log_id, channel, recipient, subject, content, text_body)

    # -------------------------------------------------------------------
    # Single-channel sends
    # -------------------------------------------------------------------
    async def send_email(
        self,
        business_id,
        to: str,
        subject: str,
        html_body: str,
        text_body: str | None = None,
        order_id=None,
        notification_type: str = NotificationType.ORDER_READY.value,
    ) -> NotificationResult:
        return await self._send(
            NotificationChannel.EMAIL.value,
            business_id,
            to,
            html_body,
            notification_type,
            subject=subject,
            order_id=order_id,
            text_body=text_body,
        )

    async def send_sms(
        self,
        business_id,
        to: str,
        message: str,
        order_id=None,
        notification_type: str = NotificationType.ORDER_READY.value,
    ) -> NotificationResult:
        return await self._send(NotificationChannel.SMS.value, business_id, to, message, notification_type, order_id=order_id)

    async def send_telegram(
        self,
        business_id,
        chat_id: str,
        message: str,
        order_id=None,
        notification_type: str = NotificationType.ORDER_READY.value,
    ) -> NotificationResult:
        return await self._send(
            NotificationChannel.TELEGRAM.value, business_id, chat_id, message, notification_type, order_id=order_id
        )

    # -------------------------------------------------------------------
    # Order lifecycle messages
    # -------------------------------------------------------------------
    async def _send_rendered(self, notice: OrderNotice, channel: str, notification_type: str, locale: str):
        rendered = get_template(notification_type).render(notice.template_context, channel=channel, locale=locale)
        recipient = notice.recipient_for(channel)

        if channel == NotificationChannel.EMAIL.value:
            return await self.send_email(
                notice.business_id,
                recipient,
                rendered["subject"],
                rendered["html_body"],
                text_body=rendered["body"],
                order_id=notice.order_id,
                notification_type=notification_type,
            )
        return await self._send(
            channel, notice.business_id, recipient, rendered["body"], notification_type, order_id=notice.order_id
        )

    async def _send_to_channels(self, notice: OrderNotice, channels, notification_type: str, locale) -> NotificationResult:
        locale = locale or self.settings.default_locale
        if not channels:
            logger.warning(
                "notification_no_reachable_channel",
                order_id=notice.order_id,
                notification_type=notification_type,
                preferred=notice.notification_method,
            )
            return NotificationResult(success=False, error="No contact information for the requested channels")

        results = []
        for channel in channels:
            results.append(await self._send_rendered(notice, channel, notification_type, locale))

        errors = [f"{result.channel}: {result.error}" for result in results if not result.success]
        return NotificationResult(
            success=not errors,
            error="; ".join(errors) or None,
            channels_sent=list(channels),
            results=results,
        )

    def _preferred_channels(self, notice: OrderNotice) -> list[str]:
        if notice.recipient_for(notice.notification_method):
            return [notice.notification_method]
        return []

    async def send_order_ready_notification(
        self, notice: OrderNotice, send_to_all_channels: bool = False, locale: str | None = None
    ) -> NotificationResult:
        """Tell the customer the order is waiting at the counter.

        Uses the preferred channel, or every channel with contact details when
        ``send_to_all_channels`` is set. Succeeds only if every attempted
        channel succeeded.
        """
        if send_to_all_channels:
            channels = [channel.value for channel in NotificationChannel if notice.recipient_for(channel.value)]
        else:
            channels = self._preferred_channels(notice)
        return await self._send_to_channels(notice, channels, NotificationType.ORDER_READY.value, locale)

    async def send_order_created_notification(self, notice: OrderNotice, locale: str | None = None) -> NotificationResult:
        return await self._send_to_channels(
            notice, self._preferred_channels(notice), NotificationType.ORDER_CREATED.value, locale
        )

    async def send_order_cancelled_notification(
        self, notice: OrderNotice, locale: str | None = None
    ) -> NotificationResult:
        return await self._send_to_channels(
            notice, self._preferred_channels(notice), NotificationType.ORDER_CANCELLED.value, locale
        )

    # -------------------------------------------------------------------
    # Batch
    # -------------------------------------------------------------------
    async def _send_batch_item(self, item: BatchItem) -> NotificationResult:
        if not item.recipient:
            return NotificationResult(
                success=False, channel=item.channel, skipped=True, error="skipped: no recipient"
            )
        if item.channel not in {channel.value for channel in NotificationChannel}:
            return NotificationResult(success=False, channel=item.channel, error=f"Unknown channel: {item.channel}")

        return await self._send(
            item.channel,
            item.business_id,
            item.recipient,
            item.content,
            item.notification_type,
            subject=item.subject or ("Notification" if item.channel == NotificationChannel.EMAIL.value else None),
            order_id=item.order_id,
        )

    async def batch_send(self, items: list[BatchItem], prioritize: bool = False, concurrency: int = 5) -> BatchSendResult:
        """Send many messages, at most ``concurrency`` at a time.

        With ``prioritize`` the items are sent high, normal, low, keeping the
        input order within each priority.
        """
        ordered = list(items)
        if prioritize:
            ordered.sort(key=lambda item: _PRIORITY_ORDER.get(item.priority, _PRIORITY_ORDER["normal"]))

        concurrency = max(1, concurrency)
        summary = BatchSendResult()
        for start in range(0, len(ordered), concurrency):
            chunk = ordered[start : start + concurrency]
            summary.results.extend(await asyncio.gather(*(self._send_batch_item(item) for item in chunk)))

        for result in summary.results:
            if result.success:
                summary.successful += 1
            elif result.skipped:
                summary.skipped += 1
            else:
                summary.failed += 1

        logger.info(
            "notification_batch_sent",
            successful=summary.successful,
            failed=summary.failed,
            skipped=summary.skipped,
        )
        return summary

    # -------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------
    async def retry_failed_notifications(
        self, business_id, max_retries: int | None = None, max_age_hours: float = 24
    ) -> RetrySummary:
        """Re-send recent failed entries that still have retry budget left.

        Each entry is retried in place: failed → pending → sent | failed.
        """
        if max_retries is None:
            max_retries = self.settings.max_retries
        cutoff = datetime.now(UTC) - timedelta(hours=max_age_hours)

        with self._domain.domain_context():
            candidates = [
                log_row(log)
                for log in self._domain.repository_for(NotificationLog).retryable(business_id, max_retries, cutoff)
            ]

        summary = RetrySummary()
        for entry in candidates:
            try:
                self._update_log(entry["id"], lambda log: log.retry(max_retries))
            except (ValidationError, NotificationLogNotFound) as exc:
                logger.info("notification_retry_skipped", log_id=entry["id"], reason=str(exc))
                summary.skipped += 1
                continue

            result = await self._deliver(
                entry["id"], entry["channel"], entry["recipient"], entry["subject"], entry["content"]
            )
            if result.success:
                summary.retried += 1
            else:
                summary.errors += 1

        logger.info(
            "notification_retry_sweep_finished",
            business_id=str(business_id),
            retried=summary.retried,
            skipped=summary.skipped,
            errors=summary.errors,
        )
        return summary

    async def get_notification_history(self, order_id, channel: str | None = None) -> list[dict]:
        """Log entries for an order, newest first."""
        with self._domain.domain_context():
            logs = self._domain.repository_for(NotificationLog).for_order(order_id, channel)
            return [log_row(log) for log in logs]

    async def mark_as_delivered(self, log_id) -> dict:
        """Record the provider's delivery callback.

        Raises:
            NotificationLogNotFound: no entry with that id.
            ValidationError: the entry was never sent.
        """
        with self._domain.domain_context():
            repo = self._domain.repository_for(NotificationLog)
            try:
                log = repo.get(str(log_id))
            except ObjectNotFoundError as exc:
                raise NotificationLogNotFound(str(log_id)) from exc

            if log.status == NotificationStatus.DELIVERED.value:
                return log_row(log)

            log.mark_delivered()
            repo.add(log)
            logger.info("notification_delivered", log_id=str(log_id), channel=log.channel)
            return log_row(log)
