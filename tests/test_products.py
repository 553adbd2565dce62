from sqlalchemy import func, select

from app.core.config import settings
from app.models.inventory import InventoryMovement
from app.models.product import Product
from app.services.inventory_service import get_ledger_stock


def _movements_for(session_local, product_id: str) -> list[InventoryMovement]:
    db = session_local()
    try:
        return db.execute(
            select(InventoryMovement)
            .where(InventoryMovement.product_id == product_id)
            .order_by(InventoryMovement.created_at.asc())
        ).scalars().all()
    finally:
        db.close()


def test_create_product_records_initial_stock(test_context, admin_headers):
    client, session_local = test_context

    res = client.post(
        "/products",
        json={
            "name": "Men's cotton shirt",
            "category": "Men's shirts",
            "sku": "SH-001",
            "price": 120.0,
            "cost": 80.0,
            "stock": 156,
            "min_stock": 50,
            "max_stock": 200,
        },
        headers=admin_headers,
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["success"] is True
    assert body["message"] == "Product created successfully"
    product = body["data"]
    assert product["stock"] == 156
    assert product["unit"] == settings.default_product_unit
    assert product["status"] == "active"

    movements = _movements_for(session_local, product["id"])
    assert len(movements) == 1
    assert movements[0].movement_type == "in"
    assert movements[0].quantity == 156
    assert movements[0].reference == "INITIAL_STOCK"


def test_create_product_without_stock_has_no_movement(test_context, make_product):
    _, session_local = test_context
    product = make_product(stock=0)
    assert product["stock"] == 0
    assert _movements_for(session_local, product["id"]) == []


def test_duplicate_sku_is_rejected_without_insert(test_context, admin_headers, make_product):
    client, session_local = test_context
    make_product(sku="DR-002")

    db = session_local()
    try:
        before = db.execute(select(func.count(Product.id))).scalar_one()
    finally:
        db.close()

    res = client.post(
        "/products",
        json={"name": "Summer dress", "category": "Dresses", "sku": "DR-002", "price": 200, "cost": 130},
        headers=admin_headers,
    )
    assert res.status_code == 400
    assert res.json()["message"] == "SKU already exists"

    db = session_local()
    try:
        after = db.execute(select(func.count(Product.id))).scalar_one()
    finally:
        db.close()
    assert after == before


def test_create_product_validation(test_context, admin_headers):
    client, _ = test_context

    missing_res = client.post(
        "/products",
        json={"name": "No price", "category": "Shirts", "sku": "NP-1"},
        headers=admin_headers,
    )
    assert missing_res.status_code == 400
    fields = {detail["field"] for detail in missing_res.json()["details"]}
    assert {"price", "cost"} <= fields

    bounds_res = client.post(
        "/products",
        json={
            "name": "Bad bounds",
            "category": "Shirts",
            "sku": "BB-1",
            "price": 10,
            "cost": 5,
            "min_stock": 20,
            "max_stock": 10,
        },
        headers=admin_headers,
    )
    assert bounds_res.status_code == 400


def test_update_product_stock_writes_adjustment_movement(test_context, admin_headers, make_product):
    client, session_local = test_context
    product = make_product(stock=100)

    down_res = client.put(
        f"/products/{product['id']}",
        json={"stock": 80, "price": 55.5},
        headers=admin_headers,
    )
    assert down_res.status_code == 200, down_res.text
    assert down_res.json()["data"]["stock"] == 80
    assert down_res.json()["data"]["price"] == 55.5

    up_res = client.put(
        f"/products/{product['id']}",
        json={"stock": 95},
        headers=admin_headers,
    )
    assert up_res.status_code == 200, up_res.text

    movements = _movements_for(session_local, product["id"])
    adjustments = [(m.movement_type, m.quantity) for m in movements if m.reference == "STOCK_ADJUSTMENT"]
    assert sorted(adjustments) == [("in", 15), ("out", 20)]

    db = session_local()
    try:
        assert get_ledger_stock(db, product["id"]) == 95
    finally:
        db.close()


def test_update_product_without_stock_change_adds_no_movement(test_context, admin_headers, make_product):
    client, session_local = test_context
    product = make_product(stock=10)

    res = client.put(
        f"/products/{product['id']}",
        json={"name": "Renamed shirt", "stock": 10},
        headers=admin_headers,
    )
    assert res.status_code == 200, res.text
    assert res.json()["data"]["name"] == "Renamed shirt"
    assert len(_movements_for(session_local, product["id"])) == 1


def test_update_product_sku_conflict_and_empty_payload(test_context, admin_headers, make_product):
    client, _ = test_context
    first = make_product(sku="SKU-A")
    make_product(sku="SKU-B")

    conflict_res = client.put(
        f"/products/{first['id']}",
        json={"sku": "SKU-B"},
        headers=admin_headers,
    )
    assert conflict_res.status_code == 400
    assert conflict_res.json()["message"] == "SKU already exists"

    same_sku_res = client.put(
        f"/products/{first['id']}",
        json={"sku": "SKU-A"},
        headers=admin_headers,
    )
    assert same_sku_res.status_code == 200

    empty_res = client.put(f"/products/{first['id']}", json={}, headers=admin_headers)
    assert empty_res.status_code == 400

    missing_res = client.put("/products/missing", json={"name": "x"}, headers=admin_headers)
    assert missing_res.status_code == 404


def test_list_products_filters_and_categories(test_context, admin_headers, make_product):
    client, _ = test_context
    make_product(name="Linen shirt", category="Shirts", sku="LS-1", description="Breathable linen")
    make_product(name="Evening dress", category="Dresses", sku="ED-1")
    make_product(name="Old dress", category="Dresses", sku="OD-1", status="inactive")

    all_res = client.get("/products", headers=admin_headers)
    assert all_res.status_code == 200
    assert len(all_res.json()["data"]) == 3

    dresses = client.get("/products", params={"category": "Dresses"}, headers=admin_headers).json()["data"]
    assert {p["sku"] for p in dresses} == {"ED-1", "OD-1"}

    active_dresses = client.get(
        "/products",
        params={"category": "Dresses", "status": "active"},
        headers=admin_headers,
    ).json()["data"]
    assert [p["sku"] for p in active_dresses] == ["ED-1"]

    by_description = client.get("/products", params={"search": "LINEN"}, headers=admin_headers).json()["data"]
    assert [p["sku"] for p in by_description] == ["LS-1"]

    by_sku = client.get("/products", params={"search": "ed-1"}, headers=admin_headers).json()["data"]
    assert [p["sku"] for p in by_sku] == ["ED-1"]

    categories = client.get("/products/categories/list", headers=admin_headers).json()["data"]
    assert categories == ["Dresses", "Shirts"]


def test_get_product_not_found(test_context, admin_headers):
    client, _ = test_context
    res = client.get("/products/does-not-exist", headers=admin_headers)
    assert res.status_code == 404
    body = res.json()
    assert body == {
        "success": False,
        "message": "Product not found",
        "request_id": res.headers["X-Request-ID"],
        "details": None,
    }


def test_delete_product_removes_movements(test_context, admin_headers, make_product):
    client, session_local = test_context
    product = make_product(stock=25)

    res = client.delete(f"/products/{product['id']}", headers=admin_headers)
    assert res.status_code == 200, res.text
    assert res.json()["message"] == "Product deleted successfully"
    assert _movements_for(session_local, product["id"]) == []
    assert client.get(f"/products/{product['id']}", headers=admin_headers).status_code == 404


def test_delete_product_on_order_is_rejected(test_context, admin_headers, make_product, make_customer):
    client, session_local = test_context
    product = make_product(stock=25)
    customer = make_customer()
    order_res = client.post(
        "/sales-orders",
        json={
            "customer_id": customer["id"],
            "order_date": "2026-10-19",
            "delivery_date": "2026-10-20",
            "items": [{"product_id": product["id"], "quantity": 1}],
        },
        headers=admin_headers,
    )
    assert order_res.status_code == 201, order_res.text

    res = client.delete(f"/products/{product['id']}", headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Cannot delete product with existing sales orders"
    assert len(_movements_for(session_local, product["id"])) == 2


def test_out_of_range_price_and_stock_are_rejected(test_context, admin_headers, make_product):
    client, session_local = test_context
    base = {"name": "Wool coat", "category": "Coats", "price": 300, "cost": 180}

    for overrides in [{"price": 1e30}, {"cost": 10**10}, {"price": 12.345}, {"stock": 10**19}, {"min_stock": 2**31}]:
        res = client.post("/products", json={**base, "sku": "WC-1", **overrides}, headers=admin_headers)
        assert res.status_code == 400, res.text
        assert res.json()["message"] == "Validation failed"

    product = make_product(stock=10)
    for overrides in [{"price": 1e30}, {"stock": 10**19}]:
        res = client.put(f"/products/{product['id']}", json=overrides, headers=admin_headers)
        assert res.status_code == 400, res.text

    edge_res = client.put(f"/products/{product['id']}", json={"price": 9999999999.99}, headers=admin_headers)
    assert edge_res.status_code == 200, edge_res.text

    assert len(_movements_for(session_local, product["id"])) == 1
    assert client.get(f"/products/{product['id']}", headers=admin_headers).json()["data"]["stock"] == 10
