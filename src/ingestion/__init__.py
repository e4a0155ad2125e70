"""Ingestion primitives - item schemas, identity, text cleanup, HTTP."""

from src.ingestion.identity import canonical_url, content_hash, make_item_id
from src.ingestion.schemas import Item, RawEntry, RegionScope

__all__ = [
    "Item",
    "RawEntry",
    "RegionScope",
    "canonical_url",
    "content_hash",
    "make_item_id",
]
