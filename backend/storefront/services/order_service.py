import logging
from collections import OrderedDict
from datetime import timezone
from decimal import Decimal
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from storefront.adapters.mock_payment import MockPaymentAdapter
from storefront.config import settings
from storefront.repositories.catalog_repo import ItemRepository
from storefront.repositories.document_store import DocumentStore
from storefront.schemas.catalog_schema import Item
from storefront.schemas.checkout_schema import (
    CartLine,
    CartLineItem,
    CartSummary,
    CheckoutStep,
    Order,
    OrderItem,
)
from storefront.schemas.session_schema import UserSession
from storefront.services.cart_service import CartService
from storefront.utils.timestamps import parse_timestamp

log = logging.getLogger(__name__)


class OrderServiceException(Exception):
    pass


def _viewer_timezone(tz_name: Optional[str]):
    tz_name = tz_name or settings.DEFAULT_TIMEZONE
    if tz_name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        # directory names such as "America" surface as OSError
        raise OrderServiceException(f"Unknown time zone: {tz_name}") from e


class OrderService:
    """
    Cart totals, the simulated payment step, and order history built from
    completed cart lines. Items are always re-read from the catalog, so
    totals use current prices.
    """

    def __init__(
        self,
        store: DocumentStore,
        session: UserSession,
        payment_adapter: Optional[MockPaymentAdapter] = None,
    ):
        self.session = session
        self.cart = CartService(store, session)
        self.items = ItemRepository(store)
        self.payment_adapter = payment_adapter or MockPaymentAdapter(
            delay_ms=settings.PAYMENT_MOCK_DELAY_MS
        )

    def _hydrate(self, lines: List[CartLineItem]) -> List[CartLine]:
        # lines whose item has disappeared are dropped, not fatal
        cache: Dict[str, Optional[Item]] = {}
        hydrated = []
        for line in lines:
            if line.item_id not in cache:
                cache[line.item_id] = self.items.get(line.item_id)
            item = cache[line.item_id]
            if item is None:
                log.warning("line %s points at missing item %s, skipping", line.id, line.item_id)
                continue
            hydrated.append(CartLine(line=line, item=item))
        return hydrated

    def _summary(self, lines: List[CartLineItem]) -> CartSummary:
        hydrated = self._hydrate(lines)
        total = sum((l.subtotal for l in hydrated), Decimal("0.00"))
        return CartSummary(lines=hydrated, total=total)

    def cart_summary(self) -> CartSummary:
        return self._summary(self.cart.active_cart())

    def checkout_summary(self) -> CartSummary:
        lines = [l for l in self.cart.active_cart() if l.last_step == CheckoutStep.PAYMENT]
        return self._summary(lines)

    def place_order(self, payment_method: Optional[Dict] = None) -> Dict:
        """
        Take payment for every line waiting at the payment step, then complete
        them as one order.

        If completion fails partway the charge has already been taken: finish
        with resume_order(order_id, failed ids) rather than calling this again.
        """
        summary = self.checkout_summary()
        if not summary.lines:
            raise OrderServiceException("No items awaiting payment")

        payment = self.payment_adapter.charge(summary.total, payment_method or {})
        line_ids = [l.line.id for l in summary.lines]
        order_id = self.cart.complete_checkout(line_ids)
        return {
            "orderId": order_id,
            "lineItemIds": line_ids,
            "total": summary.total,
            "payment": payment,
        }

    def resume_order(self, order_id: str, line_ids: List[str]) -> Dict:
        """Complete lines left over from a partially failed place_order. No new charge."""
        if not order_id or not line_ids:
            raise OrderServiceException("order_id and line ids are required")
        self.cart.complete_checkout(line_ids, order_id=order_id)
        return {"orderId": order_id, "lineItemIds": list(line_ids)}

    def order_history(self, tz_name: Optional[str] = None) -> List[Order]:
        """
        Completed lines grouped into orders, newest first.

        Lines carry the order id minted at completion; older lines without
        one fall back to grouping by the calendar date of updatedAt in the
        viewer's time zone.
        """
        tz = _viewer_timezone(tz_name)
        groups: "OrderedDict[str, List[CartLineItem]]" = OrderedDict()
        for line in self.cart.completed_orders():
            local_date = parse_timestamp(line.updatedAt).astimezone(tz).date().isoformat()
            key = line.order_id or f"date-{local_date}"
            groups.setdefault(key, []).append(line)

        orders = []
        for key, lines in groups.items():
            latest = max(lines, key=lambda l: parse_timestamp(l.updatedAt))
            summary = self._summary(lines)
            orders.append(
                Order(
                    id=key,
                    date=parse_timestamp(latest.updatedAt).astimezone(tz).date().isoformat(),
                    items=[
                        OrderItem(**l.item.model_dump(), quantity=l.line.quantity)
                        for l in summary.lines
                    ],
                    total=summary.total,
                )
            )
        orders.sort(
            key=lambda o: max(parse_timestamp(l.updatedAt) for l in groups[o.id]),
            reverse=True,
        )
        return orders
