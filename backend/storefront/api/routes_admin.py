from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.deps import get_session, get_store
from storefront.repositories.document_store import DocumentStore
from storefront.schemas.session_schema import UserSession
from storefront.services.admin_service import AdminService

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/orders", summary="List cart lines across users")
def list_orders(
    status: str = Query("all", pattern="^(all|completed|pending)$"),
    session: UserSession = Depends(get_session),
    store: DocumentStore = Depends(get_store),
):
    try:
        svc = AdminService(store, session)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return [l.model_dump(mode="json") for l in svc.list_orders(status)]
