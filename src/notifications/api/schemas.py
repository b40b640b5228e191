"""Pydantic request/response models for the Notifications API.

API schemas are separate from the notification log aggregate.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ChannelValue = Literal["email", "sms", "telegram"]


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------
class RetrySweepRequest(BaseModel):
    business_id: str
    max_retries: int | None = Field(default=None, ge=1)
    max_age_hours: float = Field(default=24, gt=0)


class BatchItemRequest(BaseModel):
    business_id: str
    channel: ChannelValue
    recipient: str | None = None
    content: str
    notification_type: str = "order_ready"
    subject: str | None = None
    order_id: str | None = None
    priority: Literal["high", "normal", "low"] = "normal"


class BatchSendRequest(BaseModel):
    items: list[BatchItemRequest]
    prioritize: bool = False
    concurrency: int = Field(default=5, ge=1, le=50)


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class NotificationLogResponse(BaseModel):
    id: str
    business_id: str
    order_id: str | None = None
    recipient: str
    channel: str
    notification_type: str
    subject: str | None = None
    content: str
    status: str
    external_id: str | None = None
    error_message: str | None = None
    stubbed: bool = False
    retry_count: int = 0
    sent_at: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NotificationHistoryResponse(BaseModel):
    order_id: str
    entries: list[NotificationLogResponse]


class RetrySummaryResponse(BaseModel):
    retried: int
    skipped: int
    errors: int


class SendResultResponse(BaseModel):
    success: bool
    log_id: str | None = None
    channel: str | None = None
    error: str | None = None
    stubbed: bool = False
    skipped: bool = False


class BatchSendResponse(BaseModel):
    successful: int
    failed: int
    skipped: int
    results: list[SendResultResponse]
