from typing import List

from storefront.repositories.checkout_repo import CheckoutRepository
from storefront.repositories.document_store import DocumentStore
from storefront.schemas.checkout_schema import CartLineItem
from storefront.schemas.session_schema import UserSession

ADMIN_ROLE = "admin"

STATUS_FILTERS = {"all": None, "completed": True, "pending": False}


class AdminService:
    def __init__(self, store: DocumentStore, session: UserSession):
        if not session.has_role(ADMIN_ROLE):
            raise PermissionError("Admin role required")
        self.checkouts = CheckoutRepository(store)

    def list_orders(self, status: str = "all") -> List[CartLineItem]:
        if status not in STATUS_FILTERS:
            raise ValueError(f"Unknown status filter: {status}")
        lines = self.checkouts.list(is_done=STATUS_FILTERS[status])
        return sorted(lines, key=lambda l: l.updatedAt, reverse=True)
