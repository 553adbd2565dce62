def test_create_and_get_customer_defaults(test_context, admin_headers):
    client, _ = test_context

    res = client.post(
        "/customers",
        json={
            "name": "Al Noor Boutique",
            "contact": "Fatima Al Noor",
            "phone": "+966 50 555 0101",
            "email": "Orders@AlNoor.example.com",
            "address": "King Fahd Road, Riyadh",
        },
        headers=admin_headers,
    )
    assert res.status_code == 201, res.text
    customer = res.json()["data"]
    assert customer["email"] == "orders@alnoor.example.com"
    assert customer["payment_terms"] == 30
    assert customer["customer_type"] == "retail"
    assert customer["status"] == "active"
    assert customer["total_orders"] == 0
    assert customer["total_spent"] == 0
    assert customer["credit_limit"] == 0

    get_res = client.get(f"/customers/{customer['id']}", headers=admin_headers)
    assert get_res.status_code == 200
    assert get_res.json()["data"]["name"] == "Al Noor Boutique"


def test_create_customer_requires_fields(test_context, admin_headers):
    client, _ = test_context
    res = client.post("/customers", json={"name": "Only name"}, headers=admin_headers)
    assert res.status_code == 400
    fields = {detail["field"] for detail in res.json()["details"]}
    assert {"contact", "phone", "address"} <= fields

    bad_email_res = client.post(
        "/customers",
        json={"name": "A", "contact": "B", "phone": "1", "address": "C", "email": "not-an-email"},
        headers=admin_headers,
    )
    assert bad_email_res.status_code == 400


def test_list_customers_filters(test_context, admin_headers, make_customer):
    client, _ = test_context
    make_customer(name="Riyadh Retail", phone="111", customer_type="retail")
    make_customer(name="Jeddah Wholesale", contact="Omar", phone="222", customer_type="wholesale")
    make_customer(name="Closed Shop", phone="333", status="inactive")

    wholesale = client.get(
        "/customers",
        params={"customer_type": "wholesale"},
        headers=admin_headers,
    ).json()["data"]
    assert [c["name"] for c in wholesale] == ["Jeddah Wholesale"]

    by_contact = client.get("/customers", params={"search": "omar"}, headers=admin_headers).json()["data"]
    assert [c["name"] for c in by_contact] == ["Jeddah Wholesale"]

    by_phone = client.get("/customers", params={"search": "333"}, headers=admin_headers).json()["data"]
    assert [c["name"] for c in by_phone] == ["Closed Shop"]

    inactive = client.get("/customers", params={"status": "inactive"}, headers=admin_headers).json()["data"]
    assert [c["name"] for c in inactive] == ["Closed Shop"]


def test_update_customer_partial(test_context, admin_headers, make_customer):
    client, _ = test_context
    customer = make_customer()

    res = client.put(
        f"/customers/{customer['id']}",
        json={"credit_limit": 7500, "payment_terms": 45, "customer_type": "Wholesale"},
        headers=admin_headers,
    )
    assert res.status_code == 200, res.text
    updated = res.json()["data"]
    assert updated["credit_limit"] == 7500
    assert updated["payment_terms"] == 45
    assert updated["customer_type"] == "wholesale"
    assert updated["name"] == customer["name"]

    assert client.put(f"/customers/{customer['id']}", json={}, headers=admin_headers).status_code == 400
    assert client.put("/customers/missing", json={"name": "x"}, headers=admin_headers).status_code == 404


def test_delete_customer_with_orders_is_rejected(test_context, admin_headers, make_customer, make_product):
    client, _ = test_context
    customer = make_customer()
    product = make_product(stock=5)

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

    res = client.delete(f"/customers/{customer['id']}", headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Cannot delete customer with existing orders"

    client.delete(f"/sales-orders/{order_res.json()['data']['id']}", headers=admin_headers)
    ok_res = client.delete(f"/customers/{customer['id']}", headers=admin_headers)
    assert ok_res.status_code == 200, ok_res.text
    assert client.get(f"/customers/{customer['id']}", headers=admin_headers).status_code == 404


def test_credit_limit_outside_money_range_is_rejected(test_context, admin_headers, make_customer):
    client, _ = test_context
    payload = {"name": "Big Buyer", "contact": "Omar", "phone": "444", "address": "Dammam"}

    res = client.post("/customers", json={**payload, "credit_limit": 1e12}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["details"][0]["field"] == "credit_limit"

    customer = make_customer()
    update_res = client.put(f"/customers/{customer['id']}", json={"credit_limit": 0.005}, headers=admin_headers)
    assert update_res.status_code == 400
