import logging
from typing import List, Optional
from uuid import uuid4

from storefront.config import settings
from storefront.repositories.catalog_repo import ItemRepository
from storefront.repositories.checkout_repo import CheckoutRepository
from storefront.repositories.document_store import DocumentStore, NotFound
from storefront.schemas.checkout_schema import (
    STEP_SEQUENCE,
    CartLineItem,
    CheckoutStep,
)
from storefront.schemas.session_schema import UserSession
from storefront.utils.batch import BatchUpdateError, fan_out

log = logging.getLogger(__name__)


class CartValidationError(ValueError):
    pass


class InvalidTransition(Exception):
    pass


class CheckoutIncomplete(BatchUpdateError):
    def __init__(self, result, order_id: str):
        super().__init__("complete_checkout", result)
        self.order_id = order_id


def _validate_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise CartValidationError("Quantity must be a positive integer")


class CartService:
    """
    Cart line items of one user and their walk through
    added_to_cart -> payment -> completed.

    Every store error propagates unchanged; nothing here retries.
    """

    def __init__(
        self,
        store: DocumentStore,
        session: UserSession,
        merge_duplicates: Optional[bool] = None,
    ):
        self.session = session
        self.checkouts = CheckoutRepository(store)
        self.items = ItemRepository(store)
        if merge_duplicates is None:
            merge_duplicates = settings.CART_MERGE_DUPLICATE_LINES
        self.merge_duplicates = merge_duplicates

    def _owned_line(self, line_id: str) -> CartLineItem:
        line = self.checkouts.get(line_id)
        if line is None or line.user_id != self.session.user_id:
            raise NotFound(f"Cart line not found: {line_id}")
        return line

    # queries

    def active_cart(self) -> List[CartLineItem]:
        return self.checkouts.list(user_id=self.session.user_id, is_done=False)

    def completed_orders(self) -> List[CartLineItem]:
        return self.checkouts.list(user_id=self.session.user_id, is_done=True)

    # commands

    def add_to_cart(self, item_id: str, quantity: int) -> str:
        _validate_quantity(quantity)
        if not item_id:
            raise CartValidationError("item_id is required")
        if self.items.get(item_id) is None:
            raise NotFound(f"Item not found: {item_id}")

        if self.merge_duplicates:
            existing = next(
                (
                    l
                    for l in self.active_cart()
                    if l.item_id == item_id and l.last_step == CheckoutStep.ADDED_TO_CART
                ),
                None,
            )
            if existing:
                self.checkouts.update(existing.id, quantity=existing.quantity + quantity)
                log.info("merged %s x%d into cart line %s", item_id, quantity, existing.id)
                return existing.id

        line_id = self.checkouts.create(self.session.user_id, item_id, quantity)
        log.info("user %s added %s x%d as line %s", self.session.user_id, item_id, quantity, line_id)
        return line_id

    def set_quantity(self, line_id: str, quantity: int) -> None:
        _validate_quantity(quantity)
        self._owned_line(line_id)
        self.checkouts.update(line_id, quantity=quantity)

    def remove_line_item(self, line_id: str) -> None:
        self._owned_line(line_id)
        self.checkouts.delete(line_id)
        log.info("removed cart line %s", line_id)

    def advance_step(self, line_id: str, step: str) -> None:
        try:
            target = CheckoutStep(step)
        except ValueError:
            raise CartValidationError(f"Unknown checkout step: {step}")
        if target == CheckoutStep.COMPLETED:
            raise InvalidTransition("Lines are completed through complete_checkout")

        line = self._owned_line(line_id)
        current = STEP_SEQUENCE.index(line.last_step)
        wanted = STEP_SEQUENCE.index(target)
        if wanted < current:
            raise InvalidTransition(
                f"Cannot move line {line_id} from {line.last_step.value} back to {target.value}"
            )
        if wanted == current:
            return
        self.checkouts.update(line_id, last_step=target.value)
        log.info("line %s moved to %s", line_id, target.value)

    def proceed_to_checkout(self) -> List[str]:
        """Move every active line to the payment step. Safe to re-issue after a partial failure."""
        ids = [l.id for l in self.active_cart()]
        result = fan_out(lambda i: self.advance_step(i, CheckoutStep.PAYMENT.value), ids)
        if result.failed:
            raise BatchUpdateError("proceed_to_checkout", result)
        return ids

    def complete_checkout(self, line_ids: List[str], order_id: Optional[str] = None) -> str:
        """
        Mark the given lines done under one order id and return it.

        Pass the order_id of a failed attempt to retry the remaining lines
        into the same order; lines already done are left untouched.
        """
        order_id = order_id or uuid4().hex
        ids = list(dict.fromkeys(line_ids))

        def _complete(line_id: str):
            line = self._owned_line(line_id)
            if line.is_done:
                return
            self.checkouts.update(
                line_id,
                is_done=True,
                last_step=CheckoutStep.COMPLETED.value,
                order_id=order_id,
            )

        result = fan_out(_complete, ids)
        if result.failed:
            raise CheckoutIncomplete(result, order_id)
        log.info("user %s completed order %s (%d lines)", self.session.user_id, order_id, len(ids))
        return order_id
