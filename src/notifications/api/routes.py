"""FastAPI routes for the Notifications domain.

Thin adapters over the notification dispatcher: schema in, dispatcher call,
schema out.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request
from notifications.api.schemas import (
    BatchSendRequest,
    BatchSendResponse,
    ChannelValue,
    NotificationHistoryResponse,
    NotificationLogResponse,
    RetrySummaryResponse,
    RetrySweepRequest,
    SendResultResponse,
)
from notifications.notification.dispatcher import BatchItem, NotificationDispatcher
from protean.exceptions import ValidationError

from shared.errors import NotificationLogNotFound

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.notification_dispatcher


@router.get("/orders/{order_id}", response_model=NotificationHistoryResponse)
async def notification_history(
    order_id: str,
    channel: ChannelValue | None = None,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> NotificationHistoryResponse:
    entries = await dispatcher.get_notification_history(order_id, channel)
    return NotificationHistoryResponse(order_id=order_id, entries=entries)


@router.post("/{log_id}/delivered", response_model=NotificationLogResponse)
async def mark_delivered(
    log_id: str, dispatcher: NotificationDispatcher = Depends(get_dispatcher)
) -> NotificationLogResponse:
    """Delivery callback from a channel provider."""
    try:
        entry = await dispatcher.mark_as_delivered(log_id)
    except NotificationLogNotFound as exc:
        raise HTTPException(status_code=404, detail=exc.to_dict()) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=409, detail=exc.messages) from exc
    return NotificationLogResponse(**entry)


@router.post("/retry", response_model=RetrySummaryResponse)
async def retry_failed(
    body: RetrySweepRequest, dispatcher: NotificationDispatcher = Depends(get_dispatcher)
) -> RetrySummaryResponse:
    summary = await dispatcher.retry_failed_notifications(
        body.business_id,
        max_retries=body.max_retries,
        max_age_hours=body.max_age_hours,
    )
    return RetrySummaryResponse(**asdict(summary))


@router.post("/batch", response_model=BatchSendResponse)
async def batch_send(
    body: BatchSendRequest, dispatcher: NotificationDispatcher = Depends(get_dispatcher)
) -> BatchSendResponse:
    result = await dispatcher.batch_send(
        [BatchItem(**item.model_dump()) for item in body.items],
        prioritize=body.prioritize,
        concurrency=body.concurrency,
    )
    return BatchSendResponse(
        successful=result.successful,
        failed=result.failed,
        skipped=result.skipped,
        results=[
            SendResultResponse(
                success=r.success,
                log_id=r.log_id,
                channel=r.channel,
                error=r.error,
                stubbed=r.stubbed,
                skipped=r.skipped,
            )
            for r in result.results
        ],
    )
