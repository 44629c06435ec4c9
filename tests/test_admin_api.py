"""
Admin API tests - reconciling captured charges that never became orders.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import delete, select

from app.db.models import CartItem, ChargeRecord, ChargeStatus
from conftest import bearer


@pytest_asyncio.fixture
async def orphan_charge(session, test_user, other_user, make_item, put_in_cart) -> ChargeRecord:
    """A captured charge for a two line cart with no order behind it."""
    lamp = await make_item(other_user, title="Lamp", price_cents=500)
    mug = await make_item(other_user, title="Mug", price_cents=300)
    rows = [await put_in_cart(test_user, lamp, quantity=2), await put_in_cart(test_user, mug)]
    record = ChargeRecord(
        charge_id="ch_orphan",
        user_id=test_user.id,
        amount_cents=1300,
        currency="usd",
        status=ChargeStatus.CAPTURED.value,
        cart_item_ids=[r.id for r in rows],
        line_items=[
            {"title": "Lamp", "description": None, "image": None, "large_image": None, "price_cents": 500, "quantity": 2},
            {"title": "Mug", "description": None, "image": None, "large_image": None, "price_cents": 300, "quantity": 1},
        ],
    )
    session.add(record)
    await session.flush()
    await session.refresh(record)
    return record


@pytest.mark.asyncio
async def test_listing_requires_admin(client: AsyncClient, test_user, orphan_charge):
    anonymous = await client.get("/api/v1/admin/charges/unreconciled")
    assert anonymous.status_code == 401

    response = await client.get("/api/v1/admin/charges/unreconciled", headers=bearer(test_user))
    assert response.status_code == 403
    assert response.json()["error"] == "PERMISSION_DENIED"


@pytest.mark.asyncio
async def test_admin_lists_unreconciled(client: AsyncClient, admin_user, orphan_charge):
    response = await client.get("/api/v1/admin/charges/unreconciled", headers=bearer(admin_user))
    assert response.status_code == 200
    [charge] = response.json()
    assert charge["charge_id"] == "ch_orphan"
    assert charge["amount_cents"] == 1300
    assert charge["status"] == "CAPTURED"
    assert charge["order_id"] is None


@pytest.mark.asyncio
async def test_admin_reconciles_charge(client: AsyncClient, session, admin_user, test_user, orphan_charge):
    user_id = test_user.id
    response = await client.post("/api/v1/admin/charges/ch_orphan/reconcile", headers=bearer(admin_user))
    assert response.status_code == 200
    order = response.json()
    assert order["charge_id"] == "ch_orphan"
    assert order["total_cents"] == 1300
    assert order["user_id"] == user_id
    assert sorted(i["title"] for i in order["items"]) == ["Lamp", "Mug"]

    remaining = await session.scalars(select(CartItem).where(CartItem.user_id == user_id))
    assert remaining.all() == []

    again = await client.post("/api/v1/admin/charges/ch_orphan/reconcile", headers=bearer(admin_user))
    assert again.status_code == 200
    assert again.json()["id"] == order["id"]

    listing = await client.get("/api/v1/admin/charges/unreconciled", headers=bearer(admin_user))
    assert listing.json() == []


@pytest.mark.asyncio
async def test_reconcile_unknown_charge(client: AsyncClient, admin_user):
    response = await client.post("/api/v1/admin/charges/ch_nope/reconcile", headers=bearer(admin_user))
    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_reconcile_uses_recorded_items_after_cart_changed(
    client: AsyncClient, session, admin_user, test_user, orphan_charge
):
    user_id = test_user.id
    await session.execute(delete(CartItem).where(CartItem.user_id == user_id))
    response = await client.post("/api/v1/admin/charges/ch_orphan/reconcile", headers=bearer(admin_user))
    assert response.status_code == 200
    order = response.json()
    assert order["total_cents"] == 1300
    assert sum(i["price_cents"] * i["quantity"] for i in order["items"]) == 1300
    assert sorted((i["title"], i["quantity"]) for i in order["items"]) == [("Lamp", 2), ("Mug", 1)]


@pytest.mark.asyncio
async def test_reconcile_refuses_when_items_do_not_add_up(client: AsyncClient, session, admin_user, orphan_charge):
    orphan_charge.amount_cents = 1299
    await session.flush()

    response = await client.post("/api/v1/admin/charges/ch_orphan/reconcile", headers=bearer(admin_user))
    assert response.status_code == 409
    assert response.json()["error"] == "RECONCILIATION_CONFLICT"

    listing = await client.get("/api/v1/admin/charges/unreconciled", headers=bearer(admin_user))
    assert [c["charge_id"] for c in listing.json()] == ["ch_orphan"]


@pytest.mark.asyncio
async def test_void_closes_charge(client: AsyncClient, admin_user, test_user, orphan_charge):
    denied = await client.post("/api/v1/admin/charges/ch_orphan/void", headers=bearer(test_user))
    assert denied.status_code == 403

    response = await client.post("/api/v1/admin/charges/ch_orphan/void", headers=bearer(admin_user))
    assert response.status_code == 200
    assert response.json()["status"] == "VOIDED"

    listing = await client.get("/api/v1/admin/charges/unreconciled", headers=bearer(admin_user))
    assert listing.json() == []

    reconcile = await client.post("/api/v1/admin/charges/ch_orphan/reconcile", headers=bearer(admin_user))
    assert reconcile.status_code == 409


@pytest.mark.asyncio
async def test_fulfilled_charge_cannot_be_voided(client: AsyncClient, admin_user, orphan_charge):
    await client.post("/api/v1/admin/charges/ch_orphan/reconcile", headers=bearer(admin_user))
    response = await client.post("/api/v1/admin/charges/ch_orphan/void", headers=bearer(admin_user))
    assert response.status_code == 409
    assert response.json()["error"] == "RECONCILIATION_CONFLICT"
