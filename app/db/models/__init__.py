from app.db.models.user import User
from app.db.models.item import Item
from app.db.models.cart_item import CartItem
from app.db.models.order import Order, OrderItem
from app.db.models.charge import ChargeRecord, ChargeStatus

__all__ = ["User", "Item", "CartItem", "Order", "OrderItem", "ChargeRecord", "ChargeStatus"]
