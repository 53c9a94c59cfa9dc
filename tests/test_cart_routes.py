from app.version import API_PREFIX
from models.cart import Cart

CART = f"{API_PREFIX}/cart"


def test_new_guest_gets_session_cookie(client, app):
    app.config["SESSION_ID_FACTORY"] = lambda: "guest-token"
    resp = client.get(CART)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "success"
    assert body["data"]["session_id"] == "guest-token"
    assert body["data"]["items"] == []
    assert "cart_session_id=guest-token" in resp.headers.get("Set-Cookie", "")


def test_guest_cart_flow_over_http(client, make_product):
    make_product(price="5.00", product_id=10)
    headers = {"X-Cart-Session": "s1"}

    resp = client.post(f"{CART}/items", json={"product_id": 10, "quantity": 2}, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["total_amount"] == 10.0
    assert "Set-Cookie" not in resp.headers

    resp = client.post(f"{CART}/items", json={"product_id": 10, "quantity": 1}, headers=headers)
    data = resp.get_json()["data"]
    assert data["items"][0]["quantity"] == 3
    assert data["total_amount"] == 15.0
    item_id = data["items"][0]["id"]

    resp = client.post(f"{CART}/items/{item_id}/save-for-later", headers=headers)
    assert resp.get_json()["data"]["total_amount"] == 0.0
    resp = client.post(f"{CART}/items/{item_id}/save-for-later", headers=headers)
    assert resp.get_json()["data"]["total_amount"] == 15.0

    resp = client.put(f"{CART}/items/{item_id}", json={"quantity": 1}, headers=headers)
    assert resp.get_json()["data"]["total_amount"] == 5.0

    resp = client.delete(f"{CART}/items/{item_id}", headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["items"] == []


def test_cookie_identifies_guest(client, make_product):
    make_product(product_id=1)
    client.set_cookie("cart_session_id", "cookie-guest")
    client.post(f"{CART}/items", json={"product_id": 1, "quantity": 1})
    assert Cart.query.filter_by(session_id="cookie-guest").count() == 1


def test_add_item_validation_and_domain_errors(client, make_product):
    make_product(product_id=1, is_active=False)
    headers = {"X-Cart-Session": "s1"}

    resp = client.post(f"{CART}/items", json={"product_id": 1, "quantity": 0}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "VALIDATION_ERROR"

    resp = client.post(f"{CART}/items", json={"product_id": 1, "quantity": 1}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "PRODUCT_UNAVAILABLE"

    resp = client.post(f"{CART}/items", json={"product_id": 42, "quantity": 1}, headers=headers)
    assert resp.status_code == 404
    assert resp.get_json()["code"] == "NOT_FOUND"


def test_foreign_item_is_forbidden(client, make_product):
    make_product(product_id=1)
    resp = client.post(f"{CART}/items", json={"product_id": 1, "quantity": 1}, headers={"X-Cart-Session": "a"})
    item_id = resp.get_json()["data"]["items"][0]["id"]
    resp = client.delete(f"{CART}/items/{item_id}", headers={"X-Cart-Session": "b"})
    assert resp.status_code == 403
    assert resp.get_json()["code"] == "OWNERSHIP_MISMATCH"


def test_bad_user_header(client):
    resp = client.get(CART, headers={"X-User-ID": "abc"})
    assert resp.status_code == 400


def test_clear_cart(client, make_product):
    make_product(product_id=1)
    headers = {"X-Cart-Session": "s1"}
    client.post(f"{CART}/items", json={"product_id": 1, "quantity": 4}, headers=headers)
    resp = client.delete(CART, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["total_amount"] == 0.0


def test_merge_after_login(client, make_product, make_user):
    make_product(price="2.00", product_id=1)
    user = make_user()
    client.post(f"{CART}/items", json={"product_id": 1, "quantity": 2}, headers={"X-Cart-Session": "guest"})
    client.post(f"{CART}/items", json={"product_id": 1, "quantity": 1}, headers={"X-User-ID": str(user.id)})

    resp = client.post(f"{CART}/merge", json={"session_id": "guest"})
    assert resp.status_code == 401

    resp = client.post(f"{CART}/merge", json={"session_id": "guest"}, headers={"X-User-ID": str(user.id)})
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["user_id"] == user.id
    assert data["items"][0]["quantity"] == 3
    assert data["total_amount"] == 6.0

    guest = client.get(CART, headers={"X-Cart-Session": "guest"}).get_json()["data"]
    assert guest["items"] == []

    resp = client.post(f"{CART}/merge", json={"session_id": "missing"}, headers={"X-User-ID": str(user.id)})
    assert resp.status_code == 404


def test_checkout(client, make_product):
    make_product(price="4.00", product_id=1)
    headers = {"X-Cart-Session": "s1"}
    client.post(f"{CART}/items", json={"product_id": 1, "quantity": 2}, headers=headers)

    resp = client.post(f"{CART}/checkout", json={"delivery_method": "PICKUP", "tax_amount": 0.8}, headers=headers)
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["order"]["status"] == "PENDING"
    assert data["order"]["delivery_method"] == "PICKUP"
    assert data["order"]["customer_id"] is None
    assert data["order"]["total_amount"] == 8.8
    assert data["warnings"] == []

    cart = client.get(CART, headers=headers).get_json()["data"]
    assert cart["items"] == []

    resp = client.post(f"{CART}/checkout", json={}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "INVALID_QUANTITY"
