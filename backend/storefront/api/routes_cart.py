from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from storefront.api.deps import get_session, get_store
from storefront.repositories.document_store import DocumentStore, NotFound
from storefront.schemas.session_schema import UserSession
from storefront.services.cart_service import CartService, CartValidationError
from storefront.services.order_service import OrderService
from storefront.utils.batch import BatchUpdateError

router = APIRouter(prefix="/api/cart", tags=["cart"])


class AddItemIn(BaseModel):
    item_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class QuantityIn(BaseModel):
    quantity: int = Field(..., ge=1)


def _line_dict(cart_line):
    return {
        "id": cart_line.line.id,
        "item_id": cart_line.line.item_id,
        "quantity": cart_line.line.quantity,
        "last_step": cart_line.line.last_step.value,
        "item": cart_line.item.model_dump(),
        "subtotal": cart_line.subtotal,
    }


@router.get("", summary="Get cart")
def get_cart(
    session: UserSession = Depends(get_session),
    store: DocumentStore = Depends(get_store),
):
    summary = OrderService(store, session).cart_summary()
    return {
        "items": [_line_dict(l) for l in summary.lines],
        "total": summary.total,
    }


@router.post("/items", summary="Add item to cart")
def add_item(
    payload: AddItemIn,
    session: UserSession = Depends(get_session),
    store: DocumentStore = Depends(get_store),
):
    svc = CartService(store, session)
    try:
        line_id = svc.add_to_cart(payload.item_id, payload.quantity)
    except CartValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"line_item_id": line_id}


@router.patch("/items/{line_id}", summary="Change quantity")
def set_quantity(
    line_id: str,
    payload: QuantityIn,
    session: UserSession = Depends(get_session),
    store: DocumentStore = Depends(get_store),
):
    svc = CartService(store, session)
    try:
        svc.set_quantity(line_id, payload.quantity)
    except CartValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True}


@router.delete("/items/{line_id}", summary="Remove item")
def remove_item(
    line_id: str,
    session: UserSession = Depends(get_session),
    store: DocumentStore = Depends(get_store),
):
    svc = CartService(store, session)
    try:
        svc.remove_line_item(line_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True}


@router.post("/checkout", summary="Proceed to checkout")
def proceed_to_checkout(
    session: UserSession = Depends(get_session),
    store: DocumentStore = Depends(get_store),
):
    svc = CartService(store, session)
    try:
        ids = svc.proceed_to_checkout()
    except BatchUpdateError as e:
        raise HTTPException(
            status_code=502,
            detail={
                "message": str(e),
                "succeeded": e.result.succeeded,
                "failed": list(e.result.failed),
            },
        )
    return {"line_item_ids": ids}
