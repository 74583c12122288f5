from typing import Any, List, Optional, Sequence

from storefront.repositories.document_store import (
    ASC,
    DocumentStore,
    Filter,
    OrderBy,
)
from storefront.schemas.catalog_schema import Category, Item

ITEMS = "items"
CATEGORIES = "categories"


class ItemRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, item_id: str) -> Optional[Item]:
        doc = self.store.get(ITEMS, item_id)
        if doc is None:
            return None
        return Item.model_validate(doc.to_dict())

    def query(
        self,
        filters: Sequence[Filter] = (),
        order_by: Sequence[OrderBy] = (),
        start_after: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Item]:
        docs = self.store.query(
            ITEMS, filters=filters, order_by=order_by, start_after=start_after, limit=limit
        )
        return [Item.model_validate(d.to_dict()) for d in docs]


class CategoryRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, category_id: str) -> Optional[Category]:
        doc = self.store.get(CATEGORIES, category_id)
        if doc is None:
            return None
        return Category.model_validate(doc.to_dict())

    def list_all(self) -> List[Category]:
        docs = self.store.query(CATEGORIES, order_by=[("name", ASC)])
        return [Category.model_validate(d.to_dict()) for d in docs]

    def list_children(self, parent_id: Optional[str]) -> List[Category]:
        """Children of parent_id ordered by name; None selects the top level."""
        docs = self.store.query(
            CATEGORIES,
            filters=[("parent_category_id", "==", parent_id)],
            order_by=[("name", ASC)],
        )
        return [Category.model_validate(d.to_dict()) for d in docs]
