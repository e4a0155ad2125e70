"""Storage layer for item persistence."""

from src.storage.database import Database
from src.storage.repository import ItemRepository

__all__ = ["Database", "ItemRepository"]
