"""
HTTP surface: authentication, JSON shapes and the status codes each
error class renders with.
"""

from smartseller.services import settings_service


# =============================================================================
# AUTH
# =============================================================================

def test_health_is_public(client, db_session):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["checks"]["database"]["status"] == "healthy"


def test_api_requires_token(client, db_session):
    assert client.get("/api/products").status_code == 401
    response = client.get("/api/orders", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.get_json() == {"error": "Invalid or expired token"}


def test_login_logout(app, client, db_session):
    bad = client.post("/api/auth/login", json={"password": "wrong"})
    assert bad.status_code == 401

    missing = client.post("/api/auth/login", json={})
    assert missing.status_code == 400

    ok = client.post("/api/auth/login", json={"password": app.config["VENDOR_PASSWORD"]})
    assert ok.status_code == 200
    body = ok.get_json()
    assert len(body["token"]) == 64
    assert body["expiresIn"] == "12h"

    headers = {"Authorization": f"Bearer {body['token']}"}
    assert client.get("/api/products", headers=headers).status_code == 200
    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.get("/api/products", headers=headers).status_code == 401


# =============================================================================
# PRODUCTS
# =============================================================================

def test_product_crud(client, auth_headers):
    created = client.post(
        "/api/products",
        json={"name": "Burger", "price": 1500, "cost_price": "900.50", "stock": 10},
        headers=auth_headers,
    )
    assert created.status_code == 201
    product = created.get_json()
    assert product["price"] == 1500.0
    assert product["cost_price"] == 900.5
    assert product["low_stock_threshold"] == 5

    updated = client.put(f"/api/products/{product['id']}", json={"stock": 25}, headers=auth_headers)
    assert updated.status_code == 200
    assert updated.get_json()["stock"] == 25
    assert updated.get_json()["name"] == "Burger"

    assert client.get(f"/api/products/{product['id']}", headers=auth_headers).status_code == 200
    assert client.delete(f"/api/products/{product['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/products/{product['id']}", headers=auth_headers).status_code == 404


def test_product_validation(client, auth_headers):
    cases = [
        {"name": "No price", "stock": 1},
        {"name": "Negative", "price": -1, "stock": 1},
        {"name": "Fraction", "price": 1, "stock": 1.5},
        {"name": "Extra", "price": 1, "stock": 1, "sku": "X"},
        {"name": "  ", "price": 1, "stock": 1},
    ]
    for payload in cases:
        response = client.post("/api/products", json=payload, headers=auth_headers)
        assert response.status_code == 400, payload


# =============================================================================
# COMBOS + ORDERS
# =============================================================================

def _product(client, headers, name, price, stock, cost=0):
    response = client.post(
        "/api/products",
        json={"name": name, "price": price, "cost_price": cost, "stock": stock},
        headers=headers,
    )
    return response.get_json()


def test_combo_endpoints(client, auth_headers):
    bun = _product(client, auth_headers, "Bun", 100, 10)
    patty = _product(client, auth_headers, "Patty", 300, 3)

    created = client.post(
        "/api/combos",
        json={"name": "Burger", "items": [{"product_id": bun["id"], "quantity": 2}, {"product_id": patty["id"], "quantity": 1}]},
        headers=auth_headers,
    )
    assert created.status_code == 201
    combo = created.get_json()
    assert combo["available_units"] == 3
    assert combo["unit_price"] == 500.0

    duplicate = client.post(
        "/api/combos",
        json={"name": "Dup", "items": [{"product_id": bun["id"], "quantity": 1}, {"product_id": bun["id"], "quantity": 1}]},
        headers=auth_headers,
    )
    assert duplicate.status_code == 400
    assert duplicate.get_json()["error"] == "Duplicate ingredient in combo"

    empty = client.post("/api/combos", json={"name": "Empty", "items": []}, headers=auth_headers)
    assert empty.status_code == 400

    short = client.post(
        "/api/combos",
        json={"name": "Huge", "items": [{"product_id": patty["id"], "quantity": 4}]},
        headers=auth_headers,
    )
    assert short.status_code == 409
    assert short.get_json()["details"]["insufficient"][0]["in_stock"] == 3

    renamed = client.put(f"/api/combos/{combo['id']}", json={"name": "Burger Deluxe"}, headers=auth_headers)
    assert renamed.status_code == 200
    assert len(renamed.get_json()["items"]) == 2

    assert client.put("/api/combos/999", json={"name": "x"}, headers=auth_headers).status_code == 404

    listing = client.get("/api/combos", headers=auth_headers).get_json()
    assert [c["name"] for c in listing] == ["Burger Deluxe"]

    assert client.delete(f"/api/combos/{combo['id']}", headers=auth_headers).status_code == 200
    assert client.delete(f"/api/combos/{combo['id']}", headers=auth_headers).status_code == 404


def test_order_flow_over_http(client, auth_headers):
    burger = _product(client, auth_headers, "Burger", 1500, 10, cost=900)

    created = client.post(
        "/api/orders",
        json={
            "customer_name": "Ada",
            "payment_type": "cash",
            "items": [{"item_type": "product", "product_id": burger["id"], "quantity": 2}],
            "discount": 100,
        },
        headers=auth_headers,
    )
    assert created.status_code == 201
    order = created.get_json()
    assert order["status"] == "pending"
    assert order["total_amount"] == 2900.0
    assert order["items"][0]["price_at_time"] == 1500.0

    delivered = client.patch(f"/api/orders/{order['id']}/status", json={"status": "delivered"}, headers=auth_headers)
    assert delivered.status_code == 200
    assert delivered.get_json()["delivered_at"] is not None

    stock = client.get(f"/api/products/{burger['id']}", headers=auth_headers).get_json()["stock"]
    assert stock == 8

    listed = client.get("/api/orders?status=delivered", headers=auth_headers).get_json()
    assert [o["id"] for o in listed] == [order["id"]]

    assert client.delete(f"/api/orders/{order['id']}", headers=auth_headers).status_code == 200
    stock = client.get(f"/api/products/{burger['id']}", headers=auth_headers).get_json()["stock"]
    assert stock == 10
    assert client.get(f"/api/orders/{order['id']}", headers=auth_headers).status_code == 404


def test_delivered_order_back_to_pending_over_http(client, auth_headers):
    burger = _product(client, auth_headers, "Burger", 1500, 10)
    order = client.post(
        "/api/orders",
        json={"payment_type": "cash", "status": "delivered", "items": [{"item_type": "product", "product_id": burger["id"], "quantity": 2}]},
        headers=auth_headers,
    ).get_json()

    back = client.patch(f"/api/orders/{order['id']}/status", json={"status": "pending"}, headers=auth_headers)
    assert back.status_code == 200
    assert back.get_json()["status"] == "pending"
    assert back.get_json()["delivered_at"] == order["delivered_at"]

    stock = client.get(f"/api/products/{burger['id']}", headers=auth_headers).get_json()["stock"]
    assert stock == 8


def test_order_errors_over_http(client, auth_headers):
    burger = _product(client, auth_headers, "Burger", 1500, 1)
    line = {"item_type": "product", "product_id": burger["id"], "quantity": 1}

    credit_debt = client.post(
        "/api/orders",
        json={"payment_type": "credit", "items": [line], "debt_amount": 10},
        headers=auth_headers,
    )
    assert credit_debt.status_code == 400
    assert credit_debt.get_json()["error"] == "Debt amount not allowed for credit orders"

    too_much = client.post(
        "/api/orders",
        json={"payment_type": "cash", "items": [dict(line, quantity=2)]},
        headers=auth_headers,
    )
    assert too_much.status_code == 409
    assert too_much.get_json()["details"]["insufficient"][0]["required"] == 2

    discount = client.post(
        "/api/orders",
        json={"payment_type": "cash", "items": [line], "discount": 800},
        headers=auth_headers,
    )
    assert discount.status_code == 400
    assert discount.get_json()["details"]["max_discount"] == 750.0

    bad_items = [
        [],
        [{"item_type": "bundle", "product_id": burger["id"], "quantity": 1}],
        [{"item_type": "product", "product_id": burger["id"], "quantity": 0}],
        [{"item_type": "combo", "quantity": 1}],
    ]
    for items in bad_items:
        response = client.post("/api/orders", json={"payment_type": "cash", "items": items}, headers=auth_headers)
        assert response.status_code == 400, items

    missing_items = client.post("/api/orders", json={"payment_type": "cash"}, headers=auth_headers)
    assert missing_items.status_code == 400
    assert missing_items.get_json()["error"] == "Order must include at least 1 item"

    fractional = client.post(
        "/api/orders",
        json={"payment_type": "cash", "items": [line], "discount": "750.004"},
        headers=auth_headers,
    )
    assert fractional.status_code == 400
    assert fractional.get_json()["details"]["max_discount"] == 750.0

    bad_payment = client.post("/api/orders", json={"payment_type": "card", "items": [line]}, headers=auth_headers)
    assert bad_payment.status_code == 400

    pending = client.post("/api/orders", json={"payment_type": "cash", "items": [line]}, headers=auth_headers).get_json()
    assert client.post(f"/api/orders/{pending['id']}/credit/paid", headers=auth_headers).status_code == 409
    assert client.post(f"/api/orders/{pending['id']}/debt/paid", headers=auth_headers).status_code == 409
    assert client.delete(f"/api/orders/{pending['id']}", headers=auth_headers).status_code == 409
    assert client.post("/api/orders/9999/credit/paid", headers=auth_headers).status_code == 404


def test_credit_settlement_over_http(client, auth_headers):
    burger = _product(client, auth_headers, "Burger", 1500, 5)
    order = client.post(
        "/api/orders",
        json={"payment_type": "credit", "items": [{"item_type": "product", "product_id": burger["id"], "quantity": 1}]},
        headers=auth_headers,
    ).get_json()
    assert order["amount_paid"] == 0.0

    paid = client.post(f"/api/orders/{order['id']}/credit/paid", headers=auth_headers)
    assert paid.status_code == 200
    assert paid.get_json()["status"] == "delivered"
    assert paid.get_json()["amount_paid"] == 1500.0


# =============================================================================
# MARKET, SETTINGS, REPORTS
# =============================================================================

def test_market_endpoints(client, auth_headers):
    created = client.post("/api/market", json={"item": "Oil", "quantity": "2 L"}, headers=auth_headers)
    assert created.status_code == 201
    item_id = created.get_json()["id"]

    assert client.post("/api/market", json={"item": "Oil", "priority": "asap"}, headers=auth_headers).status_code == 400

    updated = client.put(f"/api/market/{item_id}", json={"status": "done"}, headers=auth_headers)
    assert updated.get_json()["status"] == "done"

    assert len(client.get("/api/market", headers=auth_headers).get_json()) == 1
    assert client.delete(f"/api/market/{item_id}", headers=auth_headers).status_code == 200
    assert client.delete(f"/api/market/{item_id}", headers=auth_headers).status_code == 404


def test_settings_endpoints(client, auth_headers):
    settings = client.get("/api/settings", headers=auth_headers).get_json()
    assert settings["deliveryFee"] == 100.0

    saved = client.post("/api/settings", json={"deliveryFee": 300, "logoUrl": "https://example.test/logo.png"}, headers=auth_headers)
    assert saved.status_code == 200
    assert saved.get_json()["deliveryFee"] == 300.0

    assert client.post("/api/settings", json={"deliveryFee": -1}, headers=auth_headers).status_code == 400
    assert client.post("/api/settings", json=[1, 2], headers=auth_headers).status_code == 400


def test_settings_read_failure_is_a_generic_500(client, auth_headers, monkeypatch):
    def _broken():
        raise RuntimeError("settings table unreadable")

    monkeypatch.setattr(settings_service, "get_settings", _broken)

    response = client.get("/api/settings", headers=auth_headers)
    assert response.status_code == 500
    assert response.get_json() == {"error": "Internal server error"}


def test_system_reset_requires_vendor_password(client, auth_headers):
    _product(client, auth_headers, "Burger", 1500, 5)

    missing = client.post("/api/settings/reset", json={}, headers=auth_headers)
    assert missing.status_code == 400

    wrong = client.post("/api/settings/reset", json={"password": "guess"}, headers=auth_headers)
    assert wrong.status_code == 401
    assert wrong.get_json() == {"error": "Invalid password"}
    assert len(client.get("/api/products", headers=auth_headers).get_json()) == 1


def test_system_reset_wipes_data_and_seeds_settings(app, client, auth_headers):
    _product(client, auth_headers, "Burger", 1500, 5)
    client.post("/api/market", json={"item": "Oil"}, headers=auth_headers)
    client.post("/api/settings", json={"deliveryFee": 300, "promoBanner": "hi"}, headers=auth_headers)

    reset = client.post(
        "/api/settings/reset",
        json={"password": app.config["VENDOR_PASSWORD"]},
        headers=auth_headers,
    )
    assert reset.status_code == 200
    assert reset.get_json() == {"message": "System reset successfully"}

    # Vendor sessions are wiped along with everything else
    assert client.get("/api/products", headers=auth_headers).status_code == 401

    token = client.post("/api/auth/login", json={"password": app.config["VENDOR_PASSWORD"]}).get_json()["token"]
    headers = {"Authorization": f"Bearer {token}"}
    assert client.get("/api/products", headers=headers).get_json() == []
    assert client.get("/api/market", headers=headers).get_json() == []

    settings = client.get("/api/settings", headers=headers).get_json()
    assert settings["deliveryFee"] == 100.0
    assert "promoBanner" not in settings


def test_report_endpoints(client, auth_headers):
    assert client.get("/api/reports/session", headers=auth_headers).get_json() is None
    assert client.post("/api/reports/session/stop", headers=auth_headers).status_code == 404
    assert client.get("/api/reports/daily", headers=auth_headers).status_code == 404

    started = client.post("/api/reports/session/start", headers=auth_headers)
    assert started.status_code == 200
    session_id = started.get_json()["id"]

    daily = client.get("/api/reports/daily?session=current", headers=auth_headers).get_json()
    assert daily["session"]["id"] == session_id
    assert daily["days"] == []

    assert client.get("/api/reports/daily?session=abc", headers=auth_headers).status_code == 400
    assert client.get("/api/reports/sales?from=nonsense", headers=auth_headers).status_code == 400
    assert client.get("/api/reports/dashboard", headers=auth_headers).status_code == 200

    stopped = client.post("/api/reports/session/stop", headers=auth_headers)
    assert stopped.get_json()["is_active"] is False
