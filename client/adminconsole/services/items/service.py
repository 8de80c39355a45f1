# comments in English; reST docstrings
from __future__ import annotations

from adminconsole.schemas.item import ItemSchema
from adminconsole.services._shared.base import ResourceService


class ItemService(ResourceService):
    """Inventory items collection (``/items``)."""

    PATH = "/items"
    SCHEMA = ItemSchema
