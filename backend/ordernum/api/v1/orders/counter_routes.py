"""Read-only view of the channel counters."""

from fastapi import APIRouter

from ordernum.api.v1.orders.dependencies import CounterStoreDep
from ordernum.api.v1.orders.schemas import CounterListResponse, CounterResponse

router = APIRouter(tags=["counters"])


@router.get("/counters", response_model=CounterListResponse, operation_id="listCounters")
async def list_counters(counters: CounterStoreDep) -> CounterListResponse:
    """Current value of every channel counter (the last number handed out)."""
    rows = await counters.list_counters()
    return CounterListResponse(counters=[CounterResponse.from_model(row) for row in rows])
