from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.deps import get_store
from storefront.repositories.document_store import DocumentStore
from storefront.services.catalog_service import (
    CatalogLimitExceeded,
    CatalogService,
    CatalogValidationError,
)

router = APIRouter(tags=["catalogue"])


@router.get("/items", summary="List items")
def list_items(
    category_id: Optional[str] = Query(None),
    sort_by: str = Query("newest", pattern="^(newest|price_asc|price_desc)$"),
    page_size: Optional[int] = Query(None, ge=1, le=200),
    cursor: Optional[str] = Query(None, description="next_cursor of the previous page"),
    store: DocumentStore = Depends(get_store),
):
    svc = CatalogService(store)
    try:
        page = svc.list_items(category_id, sort_by, page_size, cursor)
    except CatalogValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CatalogLimitExceeded as e:
        raise HTTPException(status_code=503, detail=str(e))
    return page.model_dump()


@router.get("/items/search", summary="Search items by name prefix")
def search_items(
    q: str = Query(..., min_length=1),
    limit: Optional[int] = Query(None, ge=1, le=200),
    store: DocumentStore = Depends(get_store),
):
    items = CatalogService(store).search_items(q, limit)
    return {"items": [it.model_dump() for it in items]}


@router.get("/items/{item_id}", summary="Get item")
def get_item(item_id: str, store: DocumentStore = Depends(get_store)):
    item = CatalogService(store).get_item(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item.model_dump()


@router.get("/categories", summary="List categories")
def list_categories(store: DocumentStore = Depends(get_store)):
    return [c.model_dump() for c in CatalogService(store).list_categories()]


@router.get("/categories/parents", summary="List top-level categories")
def list_parent_categories(store: DocumentStore = Depends(get_store)):
    return [c.model_dump() for c in CatalogService(store).list_parent_categories()]


@router.get("/categories/{category_id}", summary="Get category")
def get_category(category_id: str, store: DocumentStore = Depends(get_store)):
    category = CatalogService(store).get_category(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category.model_dump()


@router.get("/categories/{category_id}/subcategories", summary="List subcategories")
def list_subcategories(category_id: str, store: DocumentStore = Depends(get_store)):
    return [c.model_dump() for c in CatalogService(store).list_subcategories(category_id)]
