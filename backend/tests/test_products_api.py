"""
Catalog API tests.
"""

import pytest

from conftest import checkout_payload


def test_catalog_is_public(client, make_product):
    make_product(name="Tee")
    make_product(name="Mug")

    resp = client.get("/api/products")

    assert resp.status_code == 200
    assert [p["name"] for p in resp.json["items"]] == ["Mug", "Tee"]
    assert resp.json["count"] == 2


def test_catalog_pagination(client, make_product):
    for i in range(5):
        make_product(name=f"Item {i}")

    resp = client.get("/api/products", query_string={"page": 2, "per_page": 2})

    assert [p["name"] for p in resp.json["items"]] == ["Item 2", "Item 3"]
    assert resp.json["pagination"]["total"] == 5
    assert resp.json["pagination"]["total_pages"] == 3
    assert resp.json["pagination"]["has_next"] is True


def test_get_single_product(client, make_product):
    mug = make_product(price_cents=1999, stock=4)

    resp = client.get(f"/api/products/{mug.id}")

    assert resp.status_code == 200
    assert resp.json["price_cents"] == 1999
    assert resp.json["stock"] == 4
    assert client.get("/api/products/987654").status_code == 404


def test_admin_creates_product(client, admin_headers):
    resp = client.post("/api/products", json={
        "name": "  Notebook ",
        "description": "A5 dotted",
        "price_cents": 650,
        "stock": 12,
        "image_url": "",
    }, headers=admin_headers)

    assert resp.status_code == 201
    assert resp.json["name"] == "Notebook"
    assert resp.json["stock"] == 12
    assert resp.json["image_url"] is None


def test_new_product_defaults_to_zero_stock(client, admin_headers):
    resp = client.post("/api/products", json={"name": "Pen", "price_cents": 150}, headers=admin_headers)
    assert resp.status_code == 201
    assert resp.json["stock"] == 0


@pytest.mark.parametrize(
    "body",
    [
        {"name": "Pen"},
        {"price_cents": 100},
        {"name": "Pen", "price_cents": 0},
        {"name": "Pen", "price_cents": -5},
        {"name": "Pen", "price_cents": 12.5},
        {"name": "Pen", "price_cents": 100, "stock": -1},
        {"name": "Pen", "price_cents": 100, "stock": 10**20},
        {"name": "Pen", "price_cents": "1_000"},
        {"name": "Pen", "price_cents": 100, "version_id": 9},
        {"name": "", "price_cents": 100},
    ],
)
def test_create_product_validation(client, admin_headers, body):
    resp = client.post("/api/products", json=body, headers=admin_headers)
    assert resp.status_code == 400


def test_admin_updates_price_and_stock(client, admin_headers, make_product):
    mug = make_product(price_cents=1000, stock=1)

    resp = client.put(f"/api/products/{mug.id}", json={"price_cents": 1100, "stock": 40}, headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json["price_cents"] == 1100
    assert resp.json["stock"] == 40


def test_update_unknown_product(client, admin_headers):
    resp = client.put("/api/products/424242", json={"price_cents": 100}, headers=admin_headers)
    assert resp.status_code == 404


def test_delete_unreferenced_product(client, admin_headers, make_product):
    mug = make_product()

    resp = client.delete(f"/api/products/{mug.id}", headers=admin_headers)

    assert resp.status_code == 200
    assert client.get(f"/api/products/{mug.id}").status_code == 404


def test_delete_referenced_product_conflicts(client, admin_headers, make_product):
    mug = make_product(stock=3)
    mug_id = mug.id
    assert client.post("/api/orders", json=checkout_payload((mug_id, 1))).status_code == 201

    resp = client.delete(f"/api/products/{mug_id}", headers=admin_headers)

    assert resp.status_code == 409
    assert client.get(f"/api/products/{mug_id}").status_code == 200
