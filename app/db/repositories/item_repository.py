"""
Item repository - item data access.
"""

from app.db.models.item import Item
from app.db.repositories.base_repository import BaseRepository


class ItemRepository(BaseRepository[Item]):
    """Items are fetched fresh before every ownership check (see BaseRepository.get_by_id)."""

    def __init__(self, session):
        super().__init__(session, Item)
