"""
ChargeRecord model - ledger of confirmed gateway charges.
Written and committed right after a successful charge and before the order, so a
paid checkout whose order write fails can be found and reconciled by charge id.
"""

import enum
from datetime import datetime

from sqlalchemy import JSON, String, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class ChargeStatus(str, enum.Enum):
    CAPTURED = "CAPTURED"
    FULFILLED = "FULFILLED"
    VOIDED = "VOIDED"


class ChargeRecord(Base):
    __tablename__ = "charge_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    charge_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    amount_cents: Mapped[int] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=ChargeStatus.CAPTURED.value, index=True)
    cart_item_ids: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    # Order line snapshots taken at charge time, same order as cart_item_ids
    line_items: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    order_id: Mapped[int | None] = mapped_column(ForeignKey("orders.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ChargeRecord(charge_id={self.charge_id}, status={self.status})>"
