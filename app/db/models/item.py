"""
Item model - a listing owned by exactly one user.
"""

from datetime import datetime

from sqlalchemy import String, Text, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Item(Base):
    """Item entity. Price is in minor currency units (cents)."""

    __tablename__ = "items"
    __table_args__ = (CheckConstraint("price_cents >= 0", name="ck_items_price_cents_non_negative"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    large_image: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    price_cents: Mapped[int] = mapped_column(nullable=False, default=0)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, title={self.title})>"
