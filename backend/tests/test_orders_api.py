"""
Checkout, sales and product request API tests.
"""

import pytest

from conftest import auth_headers, checkout_payload
from storefront.services import inventory_service


class TestCheckout:

    def test_guest_checkout(self, client, make_product):
        mug = make_product(price_cents=1250, stock=5)

        resp = client.post("/api/orders", json=checkout_payload((mug.id, 2)))

        assert resp.status_code == 201
        order = resp.json["order"]
        assert order["total_amount_cents"] == 2500
        assert order["status"] == "PENDING"
        assert order["payment_status"] == "UNPAID"
        assert order["items"][0]["product_name"] == "Mug"
        assert "token" not in resp.json
        assert inventory_service.get_stock(mug.id) == 3

    def test_guest_checkout_with_password_logs_in(self, client, make_product):
        mug = make_product(stock=5)

        resp = client.post("/api/orders", json=checkout_payload(
            (mug.id, 1), customer_email="signup@shop.test", password="Secret123",
        ))

        assert resp.status_code == 201
        token = resp.json["token"]
        assert resp.json["user"]["email"] == "signup@shop.test"

        mine = client.get("/api/orders/my", headers=auth_headers(token))
        assert mine.status_code == 200
        assert [o["id"] for o in mine.json["items"]] == [resp.json["order"]["id"]]

    def test_insufficient_stock_response(self, client, make_product):
        mug = make_product(stock=5)

        resp = client.post("/api/orders", json=checkout_payload((mug.id, 6)))

        assert resp.status_code == 409
        assert resp.json["code"] == "insufficient_stock"
        assert resp.json["error"] == "insufficient stock: 5 available"
        assert resp.json["details"]["items"] == [
            {"product_id": mug.id, "requested_quantity": 6, "available": 5}
        ]
        assert inventory_service.get_stock(mug.id) == 5

    def test_removed_product_response(self, client, make_product):
        resp = client.post("/api/orders", json=checkout_payload((777777, 1)))

        assert resp.status_code == 404
        assert resp.json["code"] == "product_not_found"
        assert resp.json["details"]["product_ids"] == [777777]

    def test_empty_cart(self, client):
        resp = client.post("/api/orders", json=checkout_payload())
        assert resp.status_code == 400
        assert resp.json["code"] == "empty_input"

    def test_duplicate_account_on_checkout(self, client, make_product, customer):
        mug = make_product(stock=5)

        resp = client.post("/api/orders", json=checkout_payload(
            (mug.id, 1), customer_email=customer.email, password="Secret123",
        ))

        assert resp.status_code == 409
        assert resp.json["code"] == "duplicate_account"
        assert inventory_service.get_stock(mug.id) == 5

    def test_logged_in_checkout_attaches_order(self, client, make_product, customer, customer_headers):
        mug = make_product(stock=5)

        resp = client.post(
            "/api/orders",
            json=checkout_payload((mug.id, 1), customer_email=customer.email, user_id=customer.id),
            headers=customer_headers,
        )

        assert resp.status_code == 201
        assert resp.json["order"]["user_id"] == customer.id

    @pytest.mark.parametrize("quantity", ["1_000", 10**20])
    def test_out_of_range_quantity_rejected(self, client, make_product, quantity):
        mug = make_product(stock=5)
        payload = checkout_payload()
        payload["items"] = [{"product_id": mug.id, "quantity": quantity}]

        resp = client.post("/api/orders", json=payload)

        assert resp.status_code == 400
        assert resp.json["code"] == "validation_error"
        assert inventory_service.get_stock(mug.id) == 5

    def test_user_id_without_session_forbidden(self, client, make_product, customer):
        mug = make_product(stock=5)

        resp = client.post("/api/orders", json=checkout_payload((mug.id, 1), user_id=customer.id))

        assert resp.status_code == 403


class TestOrderAdmin:

    def test_admin_lists_and_updates_orders(self, client, make_product, admin_headers):
        mug = make_product(stock=5)
        order_id = client.post("/api/orders", json=checkout_payload((mug.id, 1))).json["order"]["id"]

        listing = client.get("/api/orders", headers=admin_headers)
        assert [o["id"] for o in listing.json["items"]] == [order_id]

        resp = client.put(f"/api/orders/{order_id}", json={"status": "confirmed", "payment_status": "PAID"},
                          headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["status"] == "CONFIRMED"
        assert resp.json["payment_status"] == "PAID"

        resp = client.put(f"/api/orders/{order_id}", json={"status": "LOST"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_customer_cannot_read_someone_elses_order(self, client, make_product, customer_headers, admin_headers):
        mug = make_product(stock=5)
        order_id = client.post("/api/orders", json=checkout_payload((mug.id, 1))).json["order"]["id"]

        assert client.get(f"/api/orders/{order_id}", headers=customer_headers).status_code == 403
        assert client.get(f"/api/orders/{order_id}", headers=admin_headers).status_code == 200
        assert client.get("/api/orders/99999", headers=admin_headers).status_code == 404

    def test_delete_order(self, client, make_product, admin_headers):
        mug = make_product(stock=5)
        order_id = client.post("/api/orders", json=checkout_payload((mug.id, 1))).json["order"]["id"]

        assert client.delete(f"/api/orders/{order_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/orders/{order_id}", headers=admin_headers).status_code == 404

        sales = client.get("/api/sales", headers=admin_headers).json["items"]
        assert len(sales) == 1
        assert sales[0]["order_id"] is None


class TestSalesApi:

    def test_seller_logs_and_lists_sales(self, client, make_product, seller_headers, admin_headers):
        mug = make_product(price_cents=700, stock=4)

        resp = client.post("/api/sales", json={
            "items": [{"product_id": mug.id, "quantity": 3}],
            "notes": "pop-up",
        }, headers=seller_headers)

        assert resp.status_code == 201
        assert resp.json["source"] == "SELLER_DIRECT"
        assert resp.json["total_amount_cents"] == 2100
        assert inventory_service.get_stock(mug.id) == 1

        assert len(client.get("/api/sales/my", headers=seller_headers).json["items"]) == 1
        direct = client.get("/api/sales", query_string={"source": "seller_direct"}, headers=admin_headers)
        assert len(direct.json["items"]) == 1

    def test_sale_over_stock(self, client, make_product, seller_headers):
        mug = make_product(stock=1)

        resp = client.post("/api/sales", json={"items": [{"product_id": mug.id, "quantity": 2}]},
                           headers=seller_headers)

        assert resp.status_code == 409
        assert inventory_service.get_stock(mug.id) == 1

    def test_bad_source_filter(self, client, admin_headers):
        resp = client.get("/api/sales", query_string={"source": "barter"}, headers=admin_headers)
        assert resp.status_code == 400


class TestProductRequestsApi:

    def test_request_lifecycle(self, client, make_product, seller_headers, admin_headers):
        mug = make_product(stock=0)

        created = client.post("/api/product-requests", json={
            "product_id": mug.id, "quantity_requested": 6, "notes": "sold out",
        }, headers=seller_headers)
        assert created.status_code == 201
        request_id = created.json["id"]

        mine = client.get("/api/product-requests/my", headers=seller_headers)
        assert [r["id"] for r in mine.json["items"]] == [request_id]

        resp = client.put(f"/api/product-requests/{request_id}/status",
                          json={"status": "COMPLETED", "admin_notes": "delivered"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["restocked_at"] is not None
        assert inventory_service.get_stock(mug.id) == 6

        again = client.put(f"/api/product-requests/{request_id}/status",
                           json={"status": "COMPLETED"}, headers=admin_headers)
        assert again.status_code == 409
        assert again.json["code"] == "invalid_transition"
        assert inventory_service.get_stock(mug.id) == 6

    def test_request_quantity_too_large(self, client, make_product, seller_headers):
        mug = make_product(stock=0)

        resp = client.post("/api/product-requests", json={"product_id": mug.id, "quantity_requested": 10**20},
                           headers=seller_headers)

        assert resp.status_code == 400
        assert resp.json["code"] == "validation_error"

    def test_request_for_missing_product(self, client, seller_headers):
        resp = client.post("/api/product-requests", json={"product_id": 8080, "quantity_requested": 1},
                           headers=seller_headers)
        assert resp.status_code == 404


class TestReportsApi:

    def test_reports_for_admin(self, client, make_product, admin_headers):
        mug = make_product(stock=3)
        client.post("/api/orders", json=checkout_payload((mug.id, 1)))

        summary = client.get("/api/reports/sales-summary", query_string={"days": 30}, headers=admin_headers)
        assert summary.status_code == 200
        assert summary.json["sales_count"] == 1

        assert client.get("/api/reports/sales", query_string={"group_by": "month"},
                          headers=admin_headers).status_code == 200
        assert client.get("/api/reports/sales", query_string={"group_by": "decade"},
                          headers=admin_headers).status_code == 400
        assert client.get("/api/reports/sellers", headers=admin_headers).status_code == 200

        low = client.get("/api/reports/low-stock", query_string={"threshold": 2}, headers=admin_headers)
        assert [item["product_id"] for item in low.json["items"]] == [mug.id]

    def test_sales_report_rows(self, client, make_product, admin_headers):
        mug = make_product(price_cents=400, stock=10)
        client.post("/api/orders", json=checkout_payload((mug.id, 3)))

        resp = client.get("/api/reports/sales", query_string={"group_by": "day"}, headers=admin_headers)

        assert resp.status_code == 200
        assert len(resp.json["rows"]) == 1
        assert resp.json["rows"][0]["items_sold"] == 3
        assert resp.json["rows"][0]["gross_sales_cents"] == 1200

        old = client.get("/api/reports/sales", query_string={"start": "2000-01-01", "end": "2000-12-31"},
                         headers=admin_headers)
        assert old.status_code == 200
        assert old.json["rows"] == []


def test_health(client, admin):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json["status"] == "healthy"


def test_health_degraded_without_admin(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json["status"] == "degraded"
