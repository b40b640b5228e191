"""FastAPI routes for pickup order status management."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ordering.api.schemas import (
    AllowedTransitionsResponse,
    BulkStatusChangeResponse,
    BulkUpdateStatusRequest,
    CanCancelResponse,
    CreateOrderRequest,
    HistoryEntrySchema,
    OrderListResponse,
    OrderSchema,
    OrderStatusValue,
    StatusChangeResponse,
    UpdateStatusRequest,
)
from ordering.order.status_engine import StatusChangeResult, StatusTransitionEngine
from shared.errors import InvalidTransition, LifecycleError, NotFound, OrderNotFound, StaleOrderStatus


def get_status_engine(request: Request) -> StatusTransitionEngine:
    return request.app.state.status_engine


def _http_status(error: LifecycleError) -> int:
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, (InvalidTransition, StaleOrderStatus)):
        return 409
    return 502


def _to_response(result: StatusChangeResult) -> StatusChangeResponse:
    return StatusChangeResponse(
        success=result.success,
        order=result.order,
        history_entry=result.history_entry,
        error=result.error_message,
        history_error=result.history_error,
        notification_sent=result.notification_sent,
        notification_error=result.notification_error,
    )


def _raise_for(result: StatusChangeResult):
    if not result.success:
        raise HTTPException(status_code=_http_status(result.error), detail=result.error.to_dict())


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=StatusChangeResponse)
async def create_order(
    body: CreateOrderRequest, engine: StatusTransitionEngine = Depends(get_status_engine)
) -> StatusChangeResponse:
    payload = body.model_dump(exclude={"business_id", "business_slug", "items"})
    result = await engine.create_order(
        body.business_id,
        body.business_slug,
        [item.model_dump() for item in body.items],
        **payload,
    )
    _raise_for(result)
    return _to_response(result)


@order_router.post("/bulk-status", response_model=BulkStatusChangeResponse)
async def bulk_update_status(
    body: BulkUpdateStatusRequest, engine: StatusTransitionEngine = Depends(get_status_engine)
) -> BulkStatusChangeResponse:
    results = await engine.bulk_update_status(
        body.order_ids,
        body.status,
        notes=body.notes,
        changed_by=body.changed_by,
        skip_notification=body.skip_notification,
        cancellation_reason=body.cancellation_reason,
    )
    return BulkStatusChangeResponse(results=[_to_response(result) for result in results])


@order_router.get("/transitions/{status}", response_model=AllowedTransitionsResponse)
async def allowed_transitions(
    status: OrderStatusValue, engine: StatusTransitionEngine = Depends(get_status_engine)
) -> AllowedTransitionsResponse:
    return AllowedTransitionsResponse(
        status=status,
        allowed=sorted(engine.get_allowed_transitions(status)),
        is_terminal=engine.is_terminal_status(status),
        next_status=engine.next_normal_status(status),
    )


@order_router.get("/{order_id}", response_model=OrderSchema)
async def get_order(order_id: str, engine: StatusTransitionEngine = Depends(get_status_engine)) -> OrderSchema:
    order = await engine.store.get_by_id(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=OrderNotFound(order_id).to_dict())
    return OrderSchema(**order)


@order_router.put("/{order_id}/status", response_model=StatusChangeResponse)
async def update_status(
    order_id: str, body: UpdateStatusRequest, engine: StatusTransitionEngine = Depends(get_status_engine)
) -> StatusChangeResponse:
    result = await engine.update_status(
        order_id,
        body.status,
        notes=body.notes,
        changed_by=body.changed_by,
        skip_notification=body.skip_notification,
        cancellation_reason=body.cancellation_reason,
    )
    _raise_for(result)
    return _to_response(result)


@order_router.get("/{order_id}/history", response_model=list[HistoryEntrySchema])
async def status_history(
    order_id: str, engine: StatusTransitionEngine = Depends(get_status_engine)
) -> list[HistoryEntrySchema]:
    return [HistoryEntrySchema(**entry) for entry in await engine.get_status_history(order_id)]


@order_router.get("/{order_id}/can-cancel", response_model=CanCancelResponse)
async def can_cancel(order_id: str, engine: StatusTransitionEngine = Depends(get_status_engine)) -> CanCancelResponse:
    return CanCancelResponse(order_id=order_id, can_cancel=await engine.can_cancel_order(order_id))


# ---------------------------------------------------------------------------
# Business Router
# ---------------------------------------------------------------------------
business_router = APIRouter(prefix="/businesses", tags=["orders"])


@business_router.get("/{business_id}/orders", response_model=OrderListResponse)
async def list_orders(
    business_id: str,
    status: list[OrderStatusValue] | None = Query(default=None),
    engine: StatusTransitionEngine = Depends(get_status_engine),
) -> OrderListResponse:
    orders = await engine.store.query_by_business_and_status(business_id, status)
    return OrderListResponse(orders=orders)


@business_router.get("/{business_id}/order-stats", response_model=dict[str, int])
async def order_stats(business_id: str, engine: StatusTransitionEngine = Depends(get_status_engine)) -> dict[str, int]:
    return await engine.get_order_stats(business_id)


@business_router.get("/{business_id}/overdue-orders", response_model=OrderListResponse)
async def overdue_orders(
    business_id: str, engine: StatusTransitionEngine = Depends(get_status_engine)
) -> OrderListResponse:
    return OrderListResponse(orders=await engine.get_overdue_orders(business_id))
