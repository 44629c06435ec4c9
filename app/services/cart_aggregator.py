"""
Cart aggregation - total and order line drafts from a user's cart.
All arithmetic is integer cents.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from app.db.models.cart_item import CartItem


@dataclass(frozen=True)
class OrderItemDraft:
    """Snapshot of an item's display and price fields plus the bought quantity."""

    title: str
    description: str | None
    image: str | None
    large_image: str | None
    price_cents: int
    quantity: int

    @property
    def subtotal_cents(self) -> int:
        return self.price_cents * self.quantity


@dataclass(frozen=True)
class CartTotals:
    total_cents: int = 0
    line_items: list[OrderItemDraft] = field(default_factory=list)
    cart_item_ids: list[int] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.line_items

    @property
    def charged_quantities(self) -> dict[int, int]:
        """Cart item id -> quantity paid for."""
        return {cid: line.quantity for cid, line in zip(self.cart_item_ids, self.line_items)}


def aggregate(cart: Sequence[CartItem]) -> CartTotals:
    """Sum price x quantity and copy each item's fields into a draft.

    Rows whose item has since been deleted are left out: they are neither
    charged nor listed in `cart_item_ids`.
    """
    line_items = []
    cart_item_ids = []
    for cart_item in cart:
        item = cart_item.item
        if item is None:
            continue
        line_items.append(
            OrderItemDraft(
                title=item.title,
                description=item.description,
                image=item.image,
                large_image=item.large_image,
                price_cents=item.price_cents,
                quantity=cart_item.quantity,
            )
        )
        cart_item_ids.append(cart_item.id)
    total = sum(line.subtotal_cents for line in line_items)
    return CartTotals(total_cents=total, line_items=line_items, cart_item_ids=cart_item_ids)
