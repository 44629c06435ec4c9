# Repository pattern: data access behind small per-entity classes

from app.db.repositories.cart_repository import CartRepository
from app.db.repositories.item_repository import ItemRepository
from app.db.repositories.order_repository import ChargeRepository, OrderRepository
from app.db.repositories.user_repository import UserRepository

__all__ = ["UserRepository", "ItemRepository", "CartRepository", "OrderRepository", "ChargeRepository"]
