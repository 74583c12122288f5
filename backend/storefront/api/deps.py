from typing import Optional

from fastapi import Depends, Header, HTTPException

from storefront.repositories.document_store import DocumentStore
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.session_schema import UserSession

_store = None


def get_store() -> DocumentStore:
    global _store
    if _store is None:
        _store = DocumentStore()
    return _store


def get_session(
    x_user_id: Optional[str] = Header(None),
    store: DocumentStore = Depends(get_store),
) -> UserSession:
    """Caller identity as asserted by the identity service in front of this API."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    roles = UserRepository(store).role_slugs(x_user_id)
    return UserSession(user_id=x_user_id, roles=frozenset(roles))
