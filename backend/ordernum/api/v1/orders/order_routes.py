"""Order API endpoints."""

import structlog
from fastapi import APIRouter, HTTPException, Query

from ordernum.api.v1.orders.dependencies import OrderServiceDep
from ordernum.api.v1.orders.schemas import (
    CreateOrderRequest,
    OrderListResponse,
    OrderResponse,
    UpdateOrderStatusRequest,
)
from ordernum.models.enums import OrderChannel, OrderStatus
from ordernum.services.orders.exceptions import OrderNotFound
from ordernum.services.sequence.exceptions import AllocationError, InvalidOrderNumber, UnknownChannelError

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["orders"])


@router.post("/orders", response_model=OrderResponse, status_code=201, operation_id="createOrder")
async def create_order(
    body: CreateOrderRequest,
    service: OrderServiceDep,
) -> OrderResponse:
    """Create an order and assign the next number of its channel."""
    try:
        order = await service.create_order(
            channel=body.channel,
            customer_name=body.customer_name,
            customer_phone=body.customer_phone,
            customer_address=body.customer_address,
            comment=body.comment,
            total_amount=body.total_amount,
            currency=body.currency,
            user_id=body.user_id,
        )
    except UnknownChannelError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AllocationError:
        logger.warning("Order creation failed: number allocation unavailable", channel=body.channel)
        raise HTTPException(status_code=503, detail="Order number allocation unavailable, try again")

    return OrderResponse.from_model(order)


@router.get("/orders", response_model=OrderListResponse, operation_id="listOrders")
async def list_orders(
    service: OrderServiceDep,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    channel: OrderChannel | None = None,
    status: OrderStatus | None = None,
    search: str | None = None,
) -> OrderListResponse:
    """List orders with pagination, newest first."""
    result = await service.list_orders(
        page=page,
        page_size=page_size,
        channel=channel,
        status=status,
        search=search,
    )
    return OrderListResponse.from_page(result)


@router.get("/orders/by-number/{number:path}", response_model=OrderResponse, operation_id="getOrderByNumber")
async def get_order_by_number(
    number: str,
    service: OrderServiceDep,
) -> OrderResponse:
    """Get an order by its display number (e.g. "№00042/AS" or "42/AS")."""
    try:
        order = await service.get_order_by_number(number)
        return OrderResponse.from_model(order)
    except InvalidOrderNumber as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")


@router.get("/orders/{order_id}", response_model=OrderResponse, operation_id="getOrder")
async def get_order(
    order_id: str,
    service: OrderServiceDep,
) -> OrderResponse:
    """Get a single order by id."""
    try:
        order = await service.get_order(order_id)
        return OrderResponse.from_model(order)
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")


@router.patch("/orders/{order_id}/status", response_model=OrderResponse, operation_id="updateOrderStatus")
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    service: OrderServiceDep,
) -> OrderResponse:
    """Change order status. The order number never changes."""
    try:
        order = await service.update_status(order_id, body.status)
        return OrderResponse.from_model(order)
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")
