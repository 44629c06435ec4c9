"""
CartItem model - transient (user, item, quantity) rows.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, CheckConstraint, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.models.item import Item


class CartItem(Base):
    """One row per (user, item); repeat adds bump quantity instead of inserting."""

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("user_id", "item_id"),
        CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("items.id", ondelete="CASCADE"), nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    item: Mapped[Item | None] = relationship(Item, lazy="selectin")

    def __repr__(self) -> str:
        return f"<CartItem(id={self.id}, user_id={self.user_id}, item_id={self.item_id}, quantity={self.quantity})>"
