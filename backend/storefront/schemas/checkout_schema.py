import enum
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from storefront.schemas.catalog_schema import Item


class CheckoutStep(str, enum.Enum):
    ADDED_TO_CART = "added_to_cart"
    PAYMENT = "payment"
    COMPLETED = "completed"


# last_step only ever moves forward along this sequence
STEP_SEQUENCE = [CheckoutStep.ADDED_TO_CART, CheckoutStep.PAYMENT, CheckoutStep.COMPLETED]


class CartLineItem(BaseModel):
    id: str
    user_id: str
    item_id: str
    quantity: int = Field(..., ge=1)
    is_done: bool = False
    last_step: CheckoutStep = CheckoutStep.ADDED_TO_CART
    reason: str = ""
    createdAt: str
    updatedAt: str
    order_id: Optional[str] = None


class CartLine(BaseModel):
    """A line item joined with the live catalog item it points at."""

    line: CartLineItem
    item: Item

    @property
    def subtotal(self) -> Decimal:
        return Decimal(str(self.item.price)) * self.line.quantity


class CartSummary(BaseModel):
    lines: List[CartLine]
    total: Decimal


class OrderItem(Item):
    quantity: int


class Order(BaseModel):
    id: str
    date: str
    items: List[OrderItem]
    total: Decimal
    status: str = "Completed"
