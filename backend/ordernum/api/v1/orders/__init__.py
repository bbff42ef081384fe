"""Orders API package.

This package contains the order-related API endpoints:
- order_routes: Order creation (with number allocation), lookup and status changes
- counter_routes: Read-only view of the channel counters
"""

from fastapi import APIRouter

from ordernum.api.v1.orders.counter_routes import router as counter_router
from ordernum.api.v1.orders.order_routes import router as order_router

# Create a combined router for all order-related endpoints
router = APIRouter()

router.include_router(order_router)
router.include_router(counter_router)

__all__ = ["router"]
