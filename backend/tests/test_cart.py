import pytest

from conftest import make_item
from storefront.repositories.document_store import NotFound
from storefront.schemas.checkout_schema import CheckoutStep
from storefront.schemas.session_schema import UserSession
from storefront.services.cart_service import (
    CartService,
    CartValidationError,
    InvalidTransition,
)
from storefront.utils.batch import BatchUpdateError

USER = UserSession(user_id="user-1")
OTHER = UserSession(user_id="user-2")


@pytest.fixture
def cart(store):
    make_item(store, "item-a", "Item A", 10.0)
    make_item(store, "item-b", "Item B", 5.0)
    return CartService(store, USER)


def test_add_to_cart_creates_active_line(cart):
    line_id = cart.add_to_cart("item-a", 2)
    lines = cart.active_cart()
    assert len(lines) == 1
    line = lines[0]
    assert line.id == line_id
    assert line.item_id == "item-a"
    assert line.quantity == 2
    assert line.last_step == CheckoutStep.ADDED_TO_CART
    assert line.is_done is False
    assert line.reason == ""


def test_add_to_cart_validates_before_writing(cart):
    with pytest.raises(CartValidationError):
        cart.add_to_cart("item-a", 0)
    with pytest.raises(CartValidationError):
        cart.add_to_cart("", 1)
    with pytest.raises(NotFound):
        cart.add_to_cart("no-such-item", 1)
    assert cart.active_cart() == []


def test_repeated_adds_create_independent_lines(cart):
    first = cart.add_to_cart("item-a", 1)
    second = cart.add_to_cart("item-a", 3)
    assert first != second
    assert sorted(l.quantity for l in cart.active_cart()) == [1, 3]


def test_merge_duplicates_switch(store, cart):
    merging = CartService(store, USER, merge_duplicates=True)
    first = merging.add_to_cart("item-a", 1)
    assert merging.add_to_cart("item-a", 2) == first
    lines = merging.active_cart()
    assert len(lines) == 1
    assert lines[0].quantity == 3


def test_set_quantity_updates_timestamp(cart):
    line_id = cart.add_to_cart("item-a", 1)
    before = cart.checkouts.get(line_id)
    cart.set_quantity(line_id, 5)
    after = cart.checkouts.get(line_id)
    assert after.quantity == 5
    assert after.updatedAt >= before.updatedAt

    with pytest.raises(CartValidationError):
        cart.set_quantity(line_id, 0)
    assert cart.checkouts.get(line_id).quantity == 5


def test_remove_line_item(cart):
    keep = cart.add_to_cart("item-b", 1)
    gone = cart.add_to_cart("item-a", 1)
    cart.remove_line_item(gone)
    assert [l.id for l in cart.active_cart()] == [keep]


def test_lines_are_private_to_their_owner(store, cart):
    line_id = cart.add_to_cart("item-a", 1)
    intruder = CartService(store, OTHER)
    assert intruder.active_cart() == []
    with pytest.raises(NotFound):
        intruder.set_quantity(line_id, 4)
    with pytest.raises(NotFound):
        intruder.remove_line_item(line_id)
    assert cart.checkouts.get(line_id).quantity == 1


def test_steps_only_move_forward(cart):
    line_id = cart.add_to_cart("item-a", 1)
    cart.advance_step(line_id, "payment")
    assert cart.checkouts.get(line_id).last_step == CheckoutStep.PAYMENT

    # re-issuing the same step is a no-op
    cart.advance_step(line_id, "payment")
    assert cart.checkouts.get(line_id).last_step == CheckoutStep.PAYMENT

    with pytest.raises(InvalidTransition):
        cart.advance_step(line_id, "added_to_cart")
    with pytest.raises(InvalidTransition):
        cart.advance_step(line_id, "completed")
    with pytest.raises(CartValidationError):
        cart.advance_step(line_id, "shipped")


def test_advance_then_complete_moves_line_to_orders(cart):
    line_id = cart.add_to_cart("item-a", 2)
    cart.advance_step(line_id, "payment")
    order_id = cart.complete_checkout([line_id])

    line = cart.checkouts.get(line_id)
    assert line.is_done is True
    assert line.last_step == CheckoutStep.COMPLETED
    assert line.order_id == order_id
    assert [l.id for l in cart.completed_orders()] == [line_id]
    assert cart.active_cart() == []


def test_proceed_to_checkout_is_idempotent(cart):
    a = cart.add_to_cart("item-a", 1)
    b = cart.add_to_cart("item-b", 1)
    cart.advance_step(a, "payment")

    assert sorted(cart.proceed_to_checkout()) == sorted([a, b])
    assert sorted(cart.proceed_to_checkout()) == sorted([a, b])
    assert {l.last_step for l in cart.active_cart()} == {CheckoutStep.PAYMENT}


def test_proceed_to_checkout_reports_line_removed_mid_batch(cart, monkeypatch):
    a = cart.add_to_cart("item-a", 1)
    b = cart.add_to_cart("item-b", 1)
    real_advance = cart.advance_step

    def advance_after_concurrent_delete(line_id, step):
        if line_id == b:
            cart.checkouts.delete(b)
        return real_advance(line_id, step)

    monkeypatch.setattr(cart, "advance_step", advance_after_concurrent_delete)
    with pytest.raises(BatchUpdateError) as excinfo:
        cart.proceed_to_checkout()

    err = excinfo.value
    assert err.operation == "proceed_to_checkout"
    assert err.result.succeeded == [a]
    assert isinstance(err.result.failed[b], NotFound)
    assert cart.checkouts.get(a).last_step == CheckoutStep.PAYMENT
    assert cart.checkouts.get(b) is None


def test_complete_checkout_reports_partial_failure(cart):
    from storefront.services.cart_service import CheckoutIncomplete

    ok = cart.add_to_cart("item-a", 1)
    with pytest.raises(CheckoutIncomplete) as excinfo:
        cart.complete_checkout([ok, "missing-line"])

    err = excinfo.value
    assert err.result.succeeded == [ok]
    assert list(err.result.failed) == ["missing-line"]
    # the applied half is not rolled back
    assert cart.checkouts.get(ok).is_done is True

    # retrying under the same order id leaves finished lines alone
    assert cart.complete_checkout([ok], order_id=err.order_id) == err.order_id
    assert cart.checkouts.get(ok).order_id == err.order_id


def test_cart_endpoints(client, store):
    make_item(store, "item-a", "Item A", 10.0)
    headers = {"X-User-Id": "web-user"}

    assert client.get("/api/cart").status_code == 401

    res = client.post("/api/cart/items", json={"item_id": "item-a", "quantity": 2}, headers=headers)
    assert res.status_code == 200
    line_id = res.json()["line_item_id"]

    assert client.post("/api/cart/items", json={"item_id": "item-a", "quantity": 0}, headers=headers).status_code == 422
    assert client.post("/api/cart/items", json={"item_id": "ghost", "quantity": 1}, headers=headers).status_code == 404

    res = client.patch(f"/api/cart/items/{line_id}", json={"quantity": 3}, headers=headers)
    assert res.status_code == 200

    body = client.get("/api/cart", headers=headers).json()
    assert len(body["items"]) == 1
    assert body["items"][0]["quantity"] == 3
    assert float(body["total"]) == 30.0

    assert client.patch(f"/api/cart/items/{line_id}", json={"quantity": 1}, headers={"X-User-Id": "x"}).status_code == 404

    res = client.post("/api/cart/checkout", headers=headers)
    assert res.status_code == 200
    assert res.json()["line_item_ids"] == [line_id]

    assert client.delete(f"/api/cart/items/{line_id}", headers=headers).status_code == 200
    assert client.get("/api/cart", headers=headers).json()["items"] == []


def test_checkout_endpoint_reports_partial_failure(client, store, monkeypatch):
    make_item(store, "item-a", "Item A", 10.0)
    make_item(store, "item-b", "Item B", 5.0)
    headers = {"X-User-Id": "web-user"}
    kept = client.post("/api/cart/items", json={"item_id": "item-a", "quantity": 1}, headers=headers).json()["line_item_id"]
    gone = client.post("/api/cart/items", json={"item_id": "item-b", "quantity": 1}, headers=headers).json()["line_item_id"]

    real_advance = CartService.advance_step

    def advance_after_concurrent_delete(self, line_id, step):
        if line_id == gone:
            self.checkouts.delete(gone)
        return real_advance(self, line_id, step)

    monkeypatch.setattr(CartService, "advance_step", advance_after_concurrent_delete)
    res = client.post("/api/cart/checkout", headers=headers)
    assert res.status_code == 502
    detail = res.json()["detail"]
    assert detail["succeeded"] == [kept]
    assert detail["failed"] == [gone]
