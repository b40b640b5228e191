"""Pydantic request/response schemas for the pickup order API.

These are external contracts, kept separate from the store's row dicts.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

OrderStatusValue = Literal["pending", "confirmed", "preparing", "ready", "picked_up", "cancelled"]


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class LineItemSchema(BaseModel):
    product_id: str
    name: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)
    notes: str | None = None


class OrderSchema(BaseModel):
    id: str
    business_id: str
    order_number: str
    status: OrderStatusValue
    items: list[LineItemSchema] = []
    subtotal: float
    tax: float
    tip: float
    total: float
    pickup_time: datetime | None = None
    estimated_prep_time: int | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_telegram_chat_id: str | None = None
    notification_method: str | None = None
    customer_notes: str | None = None
    staff_notes: str | None = None
    cancellation_reason: str | None = None
    notification_sent: bool = False
    reminder_sent: bool = False
    created_at: datetime | None = None
    confirmed_at: datetime | None = None
    started_preparing_at: datetime | None = None
    ready_at: datetime | None = None
    picked_up_at: datetime | None = None
    cancelled_at: datetime | None = None
    updated_at: datetime | None = None


class HistoryEntrySchema(BaseModel):
    id: str
    order_id: str
    old_status: str | None = None
    new_status: str
    changed_by: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    business_id: str
    business_slug: str
    items: list[LineItemSchema] = Field(min_length=1)
    tax_rate: float = Field(ge=0, default=0.0)
    tip: float = Field(ge=0, default=0.0)
    pickup_time: datetime | None = None
    estimated_prep_time: int = Field(ge=0, default=30)
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_telegram_chat_id: str | None = None
    notification_method: Literal["email", "sms", "telegram"] = "email"
    customer_notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "business_id": "biz-001",
                    "business_slug": "tacos-el-gordo",
                    "items": [{"product_id": "prod-001", "name": "Taco al pastor", "quantity": 3, "unit_price": 25.0}],
                    "tax_rate": 0.16,
                    "customer_name": "Ana",
                    "customer_phone": "+525512345678",
                    "notification_method": "sms",
                }
            ]
        }
    }


class UpdateStatusRequest(BaseModel):
    status: OrderStatusValue
    notes: str | None = None
    changed_by: str | None = None
    skip_notification: bool = False
    cancellation_reason: str | None = None


class BulkUpdateStatusRequest(UpdateStatusRequest):
    order_ids: list[str] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusChangeResponse(BaseModel):
    success: bool
    order: OrderSchema | None = None
    history_entry: HistoryEntrySchema | None = None
    error: str | None = None
    history_error: str | None = None
    notification_sent: bool = False
    notification_error: str | None = None


class BulkStatusChangeResponse(BaseModel):
    results: list[StatusChangeResponse]


class AllowedTransitionsResponse(BaseModel):
    status: OrderStatusValue
    allowed: list[str]
    is_terminal: bool
    next_status: str | None = None


class CanCancelResponse(BaseModel):
    order_id: str
    can_cancel: bool


class OrderListResponse(BaseModel):
    orders: list[OrderSchema]
