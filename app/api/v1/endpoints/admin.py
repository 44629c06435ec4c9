"""
Admin endpoints - charge reconciliation (ADMIN only).
"""

from fastapi import APIRouter

from app.core.dependencies import Auth
from app.db.session import DbSession
from app.schemas.cart import ChargeRecordResponse, OrderResponse
from app.services.reconciliation_service import ReconciliationService

router = APIRouter()


@router.get("/charges/unreconciled", response_model=list[ChargeRecordResponse])
async def list_unreconciled_charges(session: DbSession, auth: Auth):
    """Charges captured at the gateway that have no order yet."""
    return await ReconciliationService(session).list_unreconciled(auth)


@router.post("/charges/{charge_id}/reconcile", response_model=OrderResponse)
async def reconcile_charge(session: DbSession, charge_id: str, auth: Auth):
    return await ReconciliationService(session).reconcile(auth, charge_id)


@router.post("/charges/{charge_id}/void", response_model=ChargeRecordResponse)
async def void_charge(session: DbSession, charge_id: str, auth: Auth):
    """Close a captured charge that was refunded or settled by hand."""
    return await ReconciliationService(session).void(auth, charge_id)
