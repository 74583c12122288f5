from typing import List, Optional

from storefront.repositories.document_store import DocumentStore
from storefront.schemas.checkout_schema import CartLineItem, CheckoutStep
from storefront.utils.timestamps import utc_now_iso

CHECKOUTS = "checkouts"


class CheckoutRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, line_id: str) -> Optional[CartLineItem]:
        doc = self.store.get(CHECKOUTS, line_id)
        if doc is None:
            return None
        return CartLineItem.model_validate(doc.to_dict())

    def create(self, user_id: str, item_id: str, quantity: int) -> str:
        now = utc_now_iso()
        return self.store.add(
            CHECKOUTS,
            {
                "user_id": user_id,
                "item_id": item_id,
                "quantity": quantity,
                "is_done": False,
                "last_step": CheckoutStep.ADDED_TO_CART.value,
                "reason": "",
                "createdAt": now,
                "updatedAt": now,
            },
        )

    def update(self, line_id: str, **fields) -> None:
        fields["updatedAt"] = utc_now_iso()
        self.store.update(CHECKOUTS, line_id, fields)

    def delete(self, line_id: str) -> None:
        self.store.delete(CHECKOUTS, line_id)

    def list(self, user_id: Optional[str] = None, is_done: Optional[bool] = None) -> List[CartLineItem]:
        filters = []
        if user_id is not None:
            filters.append(("user_id", "==", user_id))
        if is_done is not None:
            filters.append(("is_done", "==", is_done))
        docs = self.store.query(CHECKOUTS, filters=filters)
        lines = [CartLineItem.model_validate(d.to_dict()) for d in docs]
        return sorted(lines, key=lambda l: (l.createdAt, l.id))
