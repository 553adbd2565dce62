from conftest import auth_headers, create_user_row, login


def test_admin_upserts_and_reads_settings(test_context, admin_headers):
    client, _ = test_context

    assert client.get("/settings", headers=admin_headers).json()["data"] == []

    create_res = client.put(
        "/settings/tax.rate",
        json={"value": "15", "description": "VAT percentage"},
        headers=admin_headers,
    )
    assert create_res.status_code == 200, create_res.text
    assert create_res.json()["data"]["key"] == "tax.rate"
    assert create_res.json()["data"]["value"] == "15"

    update_res = client.put("/settings/tax.rate", json={"value": "5"}, headers=admin_headers)
    assert update_res.status_code == 200, update_res.text
    assert update_res.json()["data"]["value"] == "5"
    assert update_res.json()["data"]["description"] == "VAT percentage"

    client.put("/settings/company_name", json={"value": "Sabah Al Khair"}, headers=admin_headers)

    listed = client.get("/settings", headers=admin_headers).json()["data"]
    assert [row["key"] for row in listed] == ["company_name", "tax.rate"]

    get_res = client.get("/settings/company_name", headers=admin_headers)
    assert get_res.status_code == 200
    assert get_res.json()["data"]["value"] == "Sabah Al Khair"


def test_setting_errors(test_context, admin_headers):
    client, session_local = test_context

    missing_res = client.get("/settings/unknown", headers=admin_headers)
    assert missing_res.status_code == 404
    assert missing_res.json()["message"] == "Setting not found"

    assert client.put("/settings/bad key!", json={"value": "x"}, headers=admin_headers).status_code == 400
    assert client.put("/settings/currency", json={}, headers=admin_headers).status_code == 400

    create_user_row(session_local, email="sales@example.com", password="password123", role="sales")
    headers = auth_headers(login(client, "sales@example.com", "password123"))
    assert client.put("/settings/currency", json={"value": "SAR"}, headers=headers).status_code == 403
    assert client.get("/settings", headers=headers).status_code == 200


def test_health_endpoints_and_request_id(test_context):
    client, _ = test_context

    root = client.get("/")
    assert root.status_code == 200
    assert root.json()["health"] == "/health"

    health = client.get("/health")
    assert health.json() == {"ok": True}
    assert health.headers["X-Request-ID"]

    echoed = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert echoed.headers["X-Request-ID"] == "req-123"

    assert client.get("/ready").json() == {"ok": True}

    missing = client.get("/no-such-route")
    assert missing.status_code == 404
    assert missing.json()["success"] is False
    assert missing.json()["request_id"] == missing.headers["X-Request-ID"]
