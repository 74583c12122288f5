import logging
from typing import List, Optional

from storefront.config import settings
from storefront.repositories.catalog_repo import CategoryRepository, ItemRepository
from storefront.repositories.document_store import (
    ASC,
    DESC,
    DocumentStore,
    FailedPrecondition,
)
from storefront.schemas.catalog_schema import Category, CategoryOut, Item, ItemPage
from storefront.utils.cursor import CursorPosition, InvalidCursor, decode_cursor, encode_cursor
from storefront.utils.timestamps import parse_timestamp

log = logging.getLogger(__name__)

SORT_ORDERS = {
    "newest": ("createdAt", DESC),
    "price_asc": ("price", ASC),
    "price_desc": ("price", DESC),
}

# upper bound of the prefix search range
MAX_CODEPOINT = "\U0010ffff"


class CatalogValidationError(ValueError):
    pass


class CatalogLimitExceeded(Exception):
    """A category holds more items than the in-memory sort path will load."""
    pass


class CatalogService:
    def __init__(self, store: DocumentStore, max_category_items: Optional[int] = None):
        self.items = ItemRepository(store)
        self.categories = CategoryRepository(store)
        self.max_category_items = max_category_items or settings.CATEGORY_SORT_MAX_ITEMS

    def list_items(
        self,
        category_id: Optional[str] = None,
        sort_by: str = "newest",
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> ItemPage:
        """
        One forward-only page of items, optionally restricted to a category.

        The returned next_cursor resumes after the last item of this page and
        is None once a short page signals the end of the data.
        """
        if page_size is None:
            page_size = settings.DEFAULT_PAGE_SIZE
        if page_size < 1:
            raise CatalogValidationError("page_size must be positive")
        if sort_by not in SORT_ORDERS:
            raise CatalogValidationError(f"Unknown sort order: {sort_by}")
        try:
            position = decode_cursor(cursor) if cursor else None
        except InvalidCursor as e:
            raise CatalogValidationError(str(e))

        key, direction = SORT_ORDERS[sort_by]
        start_after = [position.value, position.id] if position else None

        if not category_id:
            items = self.items.query(
                order_by=[(key, direction)], start_after=start_after, limit=page_size
            )
        else:
            try:
                items = self.items.query(
                    filters=[("category_id", "==", category_id)],
                    order_by=[(key, direction)],
                    start_after=start_after,
                    limit=page_size,
                )
            except FailedPrecondition:
                log.info(
                    "no composite index for category_id/%s, sorting category %s in memory",
                    key,
                    category_id,
                )
                items = self._category_page_in_memory(category_id, sort_by, page_size, position)

        next_cursor = None
        if len(items) == page_size:
            last = items[-1]
            next_cursor = encode_cursor(last.id, getattr(last, key))
        return ItemPage(items=items, next_cursor=next_cursor)

    def _category_page_in_memory(
        self,
        category_id: str,
        sort_by: str,
        page_size: int,
        position: Optional[CursorPosition],
    ) -> List[Item]:
        # one extra document tells us the cap was exceeded
        items = self.items.query(
            filters=[("category_id", "==", category_id)],
            limit=self.max_category_items + 1,
        )
        if len(items) > self.max_category_items:
            raise CatalogLimitExceeded(
                f"Category {category_id} exceeds {self.max_category_items} items"
            )

        ordered = sort_items(items, sort_by)

        start = 0
        if position is not None:
            index = next((i for i, it in enumerate(ordered) if it.id == position.id), -1)
            if index == -1:
                log.warning(
                    "cursor item %s not in category %s, restarting from the first page",
                    position.id,
                    category_id,
                )
            start = index + 1
        return ordered[start : start + page_size]

    def search_items(self, prefix: str, limit: Optional[int] = None) -> List[Item]:
        """Items whose name starts with prefix, ordered by name. No cursor."""
        if limit is None:
            limit = settings.DEFAULT_PAGE_SIZE
        if limit < 1:
            raise CatalogValidationError("limit must be positive")
        return self.items.query(
            filters=[("name", ">=", prefix), ("name", "<", prefix + MAX_CODEPOINT)],
            order_by=[("name", ASC)],
            limit=limit,
        )

    def get_item(self, item_id: str) -> Optional[Item]:
        return self.items.get(item_id)

    def list_categories(self) -> List[Category]:
        return self.categories.list_all()

    def list_parent_categories(self) -> List[Category]:
        return self.categories.list_children(None)

    def list_subcategories(self, parent_id: str) -> List[Category]:
        return self.categories.list_children(parent_id)

    def get_category(self, category_id: str) -> Optional[CategoryOut]:
        category = self.categories.get(category_id)
        if category is None:
            return None
        parent_name = None
        if category.parent_category_id:
            parent = self.categories.get(category.parent_category_id)
            if parent is None:
                log.warning(
                    "category %s references missing parent %s",
                    category_id,
                    category.parent_category_id,
                )
            else:
                parent_name = parent.name
        return CategoryOut(**category.model_dump(), parent_name=parent_name)


def sort_items(items: List[Item], sort_by: str) -> List[Item]:
    """
    Sort items the same way the store orders them: by the sort key, then by
    id ascending among equal keys.
    """
    ordered = sorted(items, key=lambda it: it.id)
    if sort_by == "price_asc":
        ordered.sort(key=lambda it: it.price)
    elif sort_by == "price_desc":
        ordered.sort(key=lambda it: it.price, reverse=True)
    else:
        ordered.sort(key=lambda it: parse_timestamp(it.createdAt), reverse=True)
    return ordered
