"""
Order placement and order management tests.

Verifies:
- Checkout debits stock and writes the order with its paired ONLINE sale
- Guest checkout with a password creates the account and a working token
- Any failure leaves stock, orders, sales and accounts untouched
- Lines keep the price paid after catalog edits
- Admin status changes; ownership rules on reads
"""

import pytest

from conftest import checkout_payload
from storefront.errors import (
    DuplicateAccount,
    EmptyInputError,
    Forbidden,
    InsufficientStock,
    NotFound,
    ProductNotFound,
    ValidationError,
)
from storefront.extensions import db
from storefront.models import Order, SaleRecord, User
from storefront.services import inventory_service, order_service, session_service
from storefront.services.auth_service import PasswordValidationError


def _counts():
    return (
        db.session.query(Order).count(),
        db.session.query(SaleRecord).count(),
        db.session.query(User).count(),
    )


class TestPlaceOrder:

    def test_guest_order_debits_stock_and_records_sale(self, make_product):
        mug = make_product(price_cents=1250, stock=5)

        placed = order_service.place_order(checkout_payload((mug.id, 2)))

        order = placed.order
        assert order.status == "PENDING"
        assert order.payment_status == "UNPAID"
        assert order.user_id is None
        assert order.total_amount_cents == 2500
        assert [(l.product_id, l.quantity, l.unit_price_cents) for l in order.lines] == [(mug.id, 2, 1250)]
        assert placed.user is None
        assert placed.token is None
        assert inventory_service.get_stock(mug.id) == 3

        sale = db.session.query(SaleRecord).filter_by(order_id=order.id).one()
        assert sale.source == "ONLINE"
        assert sale.seller_id is None
        assert sale.total_amount_cents == 2500
        assert [(l.product_id, l.quantity) for l in sale.lines] == [(mug.id, 2)]

    def test_order_over_stock_fails_and_changes_nothing(self, make_product):
        mug = make_product(stock=5)

        with pytest.raises(InsufficientStock) as exc:
            order_service.place_order(checkout_payload((mug.id, 6)))

        assert "5 available" in exc.value.message
        assert inventory_service.get_stock(mug.id) == 5
        assert _counts() == (0, 0, 0)

    def test_multi_line_order_with_one_short_line_changes_nothing(self, make_product):
        mug = make_product(name="Mug", stock=5)
        tee = make_product(name="Tee", stock=0)

        with pytest.raises(InsufficientStock):
            order_service.place_order(checkout_payload((mug.id, 1), (tee.id, 1)))

        assert inventory_service.get_stock(mug.id) == 5
        assert _counts() == (0, 0, 0)

    def test_unknown_product_is_reported(self, make_product):
        mug = make_product(stock=5)

        with pytest.raises(ProductNotFound):
            order_service.place_order(checkout_payload((mug.id, 1), (424242, 1)))

        assert inventory_service.get_stock(mug.id) == 5
        assert _counts() == (0, 0, 0)

    def test_empty_cart_rejected(self):
        with pytest.raises(EmptyInputError):
            order_service.place_order(checkout_payload())

    def test_client_prices_are_ignored(self, make_product):
        mug = make_product(price_cents=1000, stock=5)
        payload = checkout_payload(total_amount_cents=1)
        payload["items"] = [{"product_id": mug.id, "quantity": 1, "unit_price_cents": 1}]

        placed = order_service.place_order(payload)

        assert placed.order.total_amount_cents == 1000
        assert placed.order.lines[0].unit_price_cents == 1000

    def test_line_prices_frozen_after_catalog_change(self, make_product):
        mug = make_product(name="Mug", price_cents=1000, stock=5)
        placed = order_service.place_order(checkout_payload((mug.id, 1)))
        order_id = placed.order.id

        mug.price_cents = 1500
        mug.name = "Big Mug"
        db.session.commit()

        order = db.session.get(Order, order_id)
        assert order.lines[0].unit_price_cents == 1000
        assert order.lines[0].product_name == "Mug"
        assert order.total_amount_cents == 1000

    def test_missing_shipping_address_rejected(self, make_product):
        mug = make_product(stock=5)
        payload = checkout_payload((mug.id, 1))
        del payload["shipping_address"]

        with pytest.raises(ValidationError):
            order_service.place_order(payload)

        assert inventory_service.get_stock(mug.id) == 5

    def test_billing_details_kept_only_when_requested(self, make_product):
        mug = make_product(stock=5)

        without = order_service.place_order(
            checkout_payload((mug.id, 1), billing_details={"tax_id": "X1"})
        )
        with_billing = order_service.place_order(
            checkout_payload((mug.id, 1), billing_requested=True, billing_details={"tax_id": "X1"})
        )

        assert without.order.billing_details is None
        assert with_billing.order.billing_requested is True
        assert with_billing.order.billing_details == {"tax_id": "X1"}


class TestGuestAccountCreation:

    def test_guest_with_password_gets_account_and_token(self, make_product):
        mug = make_product(stock=5)
        payload = checkout_payload(
            (mug.id, 1),
            customer_email="New.Buyer@Shop.test",
            password="Secret123",
            billing_requested=True,
            billing_details={"company": "Acme"},
        )

        placed = order_service.place_order(payload)

        assert placed.user is not None
        assert placed.user.role == "customer"
        assert placed.user.email == "new.buyer@shop.test"
        assert placed.order.user_id == placed.user.id
        assert placed.user.default_shipping_address == payload["shipping_address"]
        assert placed.user.default_billing_details == {"company": "Acme"}

        context = session_service.verify(placed.token)
        assert context is not None
        assert context.user_id == placed.user.id

    def test_existing_email_fails_with_duplicate_account(self, make_product, customer):
        mug = make_product(stock=5)
        before = _counts()

        with pytest.raises(DuplicateAccount):
            order_service.place_order(
                checkout_payload((mug.id, 1), customer_email=customer.email, password="Secret123")
            )

        assert inventory_service.get_stock(mug.id) == 5
        assert _counts() == before

    def test_failed_order_does_not_leave_new_account(self, make_product):
        mug = make_product(stock=1)

        with pytest.raises(InsufficientStock):
            order_service.place_order(
                checkout_payload((mug.id, 2), customer_email="late@shop.test", password="Secret123")
            )

        assert db.session.query(User).filter_by(email="late@shop.test").first() is None

    def test_weak_password_rejected_before_any_write(self, make_product):
        mug = make_product(stock=5)

        with pytest.raises(PasswordValidationError):
            order_service.place_order(checkout_payload((mug.id, 1), password="short"))

        assert inventory_service.get_stock(mug.id) == 5
        assert _counts() == (0, 0, 0)


class TestAuthenticatedCheckout:

    def test_order_attached_to_caller_and_defaults_saved(self, make_product, customer):
        mug = make_product(stock=5)
        payload = checkout_payload((mug.id, 1), customer_email=customer.email)

        placed = order_service.place_order(payload, actor_id=customer.id)

        assert placed.order.user_id == customer.id
        assert placed.user is None
        assert placed.token is None
        refreshed = db.session.get(User, customer.id)
        assert refreshed.default_shipping_address == payload["shipping_address"]

    def test_password_ignored_for_logged_in_caller(self, make_product, customer):
        mug = make_product(stock=5)
        before_users = db.session.query(User).count()

        placed = order_service.place_order(
            checkout_payload((mug.id, 1), password="Another123"), actor_id=customer.id
        )

        assert placed.user is None
        assert db.session.query(User).count() == before_users

    def test_body_user_id_must_match_session(self, make_product, customer, seller):
        mug = make_product(stock=5)

        with pytest.raises(Forbidden):
            order_service.place_order(checkout_payload((mug.id, 1), user_id=seller.id), actor_id=customer.id)
        with pytest.raises(Forbidden):
            order_service.place_order(checkout_payload((mug.id, 1), user_id=customer.id))

        assert inventory_service.get_stock(mug.id) == 5


class TestOrderManagement:

    def test_admin_updates_status_and_payment_independently(self, make_product, admin):
        mug = make_product(stock=5)
        order_id = order_service.place_order(checkout_payload((mug.id, 1))).order.id

        order = order_service.update_order(order_id, admin, status="shipped")
        assert order.status == "SHIPPED"
        assert order.payment_status == "UNPAID"

        order = order_service.update_order(order_id, admin, payment_status="Paid")
        assert order.status == "SHIPPED"
        assert order.payment_status == "PAID"

    def test_invalid_status_rejected(self, make_product, admin):
        mug = make_product(stock=5)
        order_id = order_service.place_order(checkout_payload((mug.id, 1))).order.id

        with pytest.raises(ValidationError):
            order_service.update_order(order_id, admin, status="TELEPORTED")
        with pytest.raises(ValidationError):
            order_service.update_order(order_id, admin)

    def test_non_admin_cannot_update(self, make_product, seller, customer):
        mug = make_product(stock=5)
        order_id = order_service.place_order(checkout_payload((mug.id, 1))).order.id

        for actor in (seller, customer):
            with pytest.raises(Forbidden):
                order_service.update_order(order_id, actor, status="SHIPPED")

    def test_cancel_does_not_restock(self, make_product, admin):
        mug = make_product(stock=5)
        order_id = order_service.place_order(checkout_payload((mug.id, 2))).order.id

        order_service.update_order(order_id, admin, status="CANCELLED")

        assert inventory_service.get_stock(mug.id) == 3

    def test_unknown_order(self, admin):
        with pytest.raises(NotFound):
            order_service.update_order(999, admin, status="SHIPPED")

    def test_owner_and_admin_can_read_order(self, make_product, customer, seller, admin):
        mug = make_product(stock=5)
        order_id = order_service.place_order(
            checkout_payload((mug.id, 1), customer_email=customer.email), actor_id=customer.id
        ).order.id

        assert order_service.get_order(order_id, customer).id == order_id
        assert order_service.get_order(order_id, admin).id == order_id
        with pytest.raises(Forbidden):
            order_service.get_order(order_id, seller)

    def test_list_orders_for_user(self, make_product, customer):
        mug = make_product(stock=5)
        order_service.place_order(checkout_payload((mug.id, 1)))
        mine = order_service.place_order(
            checkout_payload((mug.id, 1), customer_email=customer.email), actor_id=customer.id
        ).order.id

        assert [o.id for o in order_service.list_orders_for_user(customer.id)] == [mine]
        assert len(order_service.list_orders()) == 2

    def test_delete_order_keeps_sale_record(self, make_product, admin):
        mug = make_product(stock=5)
        order_id = order_service.place_order(checkout_payload((mug.id, 1))).order.id
        sale_id = db.session.query(SaleRecord.id).filter_by(order_id=order_id).scalar()

        order_service.delete_order(order_id, admin)

        assert db.session.get(Order, order_id) is None
        sale = db.session.get(SaleRecord, sale_id)
        assert sale is not None
        assert sale.order_id is None
        assert inventory_service.get_stock(mug.id) == 4


def test_status_payment_rules_hook(make_product, admin, monkeypatch):
    mug = make_product(stock=5)
    order_id = order_service.place_order(checkout_payload((mug.id, 1))).order.id
    monkeypatch.setitem(order_service.ORDER_STATUS_PAYMENT_RULES, "DELIVERED", frozenset({"PAID"}))

    with pytest.raises(ValidationError):
        order_service.update_order(order_id, admin, status="DELIVERED")

    order = order_service.update_order(order_id, admin, status="DELIVERED", payment_status="PAID")
    assert order.status == "DELIVERED"


def test_selling_out_then_ordering_again(make_product):
    p1 = make_product(name="P1", price_cents=1000, stock=5)

    placed = order_service.place_order(checkout_payload((p1.id, 5)))
    assert placed.order.total_amount_cents == 5000
    assert inventory_service.get_stock(p1.id) == 0

    with pytest.raises(InsufficientStock):
        order_service.place_order(checkout_payload((p1.id, 1)))
    assert inventory_service.get_stock(p1.id) == 0
