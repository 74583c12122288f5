from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from storefront.api.deps import get_session, get_store
from storefront.repositories.document_store import DocumentStore
from storefront.schemas.session_schema import UserSession
from storefront.services.cart_service import CheckoutIncomplete
from storefront.services.order_service import OrderService, OrderServiceException

router = APIRouter(tags=["orders"])


class PlaceOrderIn(BaseModel):
    payment_method: dict = {}  # for mock, accept free-form dict


class ResumeOrderIn(BaseModel):
    line_item_ids: List[str]


@router.get("/checkout", summary="Lines awaiting payment")
def checkout_summary(
    session: UserSession = Depends(get_session),
    store: DocumentStore = Depends(get_store),
):
    summary = OrderService(store, session).checkout_summary()
    return summary.model_dump()


@router.post("", summary="Pay and complete checkout")
def place_order(
    payload: PlaceOrderIn,
    session: UserSession = Depends(get_session),
    store: DocumentStore = Depends(get_store),
):
    svc = OrderService(store, session)
    try:
        return svc.place_order(payload.payment_method)
    except OrderServiceException as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CheckoutIncomplete as e:
        raise HTTPException(
            status_code=502,
            detail={
                "message": str(e),
                "order_id": e.order_id,
                "succeeded": e.result.succeeded,
                "failed": list(e.result.failed),
            },
        )


@router.post("/{order_id}/complete", summary="Finish a partially completed order without charging again")
def resume_order(
    order_id: str,
    payload: ResumeOrderIn,
    session: UserSession = Depends(get_session),
    store: DocumentStore = Depends(get_store),
):
    svc = OrderService(store, session)
    try:
        return svc.resume_order(order_id, payload.line_item_ids)
    except OrderServiceException as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CheckoutIncomplete as e:
        raise HTTPException(
            status_code=502,
            detail={
                "message": str(e),
                "order_id": e.order_id,
                "succeeded": e.result.succeeded,
                "failed": list(e.result.failed),
            },
        )


@router.get("", summary="Order history")
def order_history(
    tz: Optional[str] = Query(None, description="IANA time zone of the viewer"),
    session: UserSession = Depends(get_session),
    store: DocumentStore = Depends(get_store),
):
    svc = OrderService(store, session)
    try:
        orders = svc.order_history(tz)
    except OrderServiceException as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [o.model_dump() for o in orders]
