import pytest

from ordernum.services.sequence.allocator import SequenceAllocator
from ordernum.services.sequence.exceptions import AllocationError

pytestmark = [pytest.mark.anyio, pytest.mark.integration]

ORDER = {"customer_name": "Ivan Petrov", "customer_phone": "+79990001122"}


async def post_order(client, **overrides):
    return await client.post("/api/v1/orders", json={**ORDER, **overrides})


async def test_health(client):
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "ok"}


async def test_create_order(client):
    response = await post_order(client, channel="LAB", total_amount="2500.50", comment="Gift wrap")

    assert response.status_code == 201
    data = response.json()
    assert data["number"] == "№00001/LAB"
    assert data["sequence"] == 1
    assert data["channel"] == "LAB"
    assert data["status"] == "NEW"
    assert data["payment_method"] == "MANAGER"
    assert data["comment"] == "Gift wrap"


async def test_create_order_defaults_to_as_channel(client):
    first = await post_order(client)
    second = await post_order(client)

    assert first.json()["number"] == "№00001/AS"
    assert second.json()["number"] == "№00002/AS"


async def test_create_order_rejects_unknown_channel(client):
    response = await post_order(client, channel="RETAIL")

    assert response.status_code == 422


async def test_create_order_validates_body(client):
    response = await client.post("/api/v1/orders", json={"customer_name": ""})

    assert response.status_code == 422


async def test_create_order_allocation_unavailable(client, monkeypatch):
    async def unavailable(self, channel):
        raise AllocationError("database is locked")

    monkeypatch.setattr(SequenceAllocator, "allocate", unavailable)

    response = await post_order(client)

    assert response.status_code == 503
    listing = await client.get("/api/v1/orders")
    assert listing.json()["meta"]["total"] == 0


async def test_get_order(client):
    created = (await post_order(client)).json()

    response = await client.get(f"/api/v1/orders/{created['id']}")

    assert response.status_code == 200
    assert response.json()["number"] == created["number"]


async def test_get_order_not_found(client):
    response = await client.get("/api/v1/orders/01ARZ3NDEKTSV4RRFFQ69G5FAV")

    assert response.status_code == 404


@pytest.mark.parametrize("number", ["№00001/LAB", "1/lab", "00001/LAB"])
async def test_get_order_by_number(client, number):
    created = (await post_order(client, channel="LAB")).json()

    response = await client.get(f"/api/v1/orders/by-number/{number}")

    assert response.status_code == 200
    assert response.json()["id"] == created["id"]


async def test_get_order_by_number_not_found(client):
    response = await client.get("/api/v1/orders/by-number/№00099/AS")

    assert response.status_code == 404


async def test_get_order_by_number_malformed(client):
    response = await client.get("/api/v1/orders/by-number/nonsense")

    assert response.status_code == 400


async def test_list_orders(client):
    for _ in range(3):
        await post_order(client)
    await post_order(client, channel="LAB")

    response = await client.get("/api/v1/orders", params={"channel": "AS", "page_size": 2})

    assert response.status_code == 200
    data = response.json()
    assert data["meta"] == {"page": 1, "page_size": 2, "total": 3, "total_pages": 2}
    assert len(data["items"]) == 2
    assert all(item["channel"] == "AS" for item in data["items"])


async def test_update_status_keeps_number(client):
    created = (await post_order(client)).json()

    response = await client.patch(f"/api/v1/orders/{created['id']}/status", json={"status": "CANCELED"})

    assert response.status_code == 200
    assert response.json()["status"] == "CANCELED"
    assert response.json()["number"] == created["number"]


async def test_update_status_unknown_order(client):
    response = await client.patch("/api/v1/orders/01ARZ3NDEKTSV4RRFFQ69G5FAV/status", json={"status": "DONE"})

    assert response.status_code == 404


async def test_list_counters(client):
    await post_order(client)
    await post_order(client)
    await post_order(client, channel="LAB")

    response = await client.get("/api/v1/counters")

    assert response.status_code == 200
    counters = {c["channel"]: c["value"] for c in response.json()["counters"]}
    assert counters == {"AS": 2, "LAB": 1}
