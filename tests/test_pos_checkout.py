from app.shopdesk.db.models import AuditEvent, Customer, Product, Sale
from tests.helpers import (
    checkout,
    create_product,
    create_tenant,
    delete_password,
    idempotency,
    tenant_headers,
)


def _stock(db_session, product):
    db_session.expire_all()
    return db_session.get(Product, product.id).stock


def test_checkout_commits_bill_and_decrements_stock(client, db_session):
    tenant, user = create_tenant(db_session, tax_rate=5)
    product = create_product(db_session, tenant, price=100, stock=10)
    headers = tenant_headers(client, user)

    response = checkout(client, headers, product, quantity=2, discount=10, customer_name="Asha", staff_member="Ravi")

    assert response.status_code == 201
    payload = response.json()
    assert payload["bill_no"] == "FS-001"
    assert payload["subtotal"] == 200
    assert payload["discount_amount"] == 20
    assert payload["tax"] == 9
    assert payload["total"] == 189
    assert payload["customer_name"] == "Asha"
    assert payload["items"][0]["quantity"] == 2
    assert _stock(db_session, product) == 8

    second = checkout(client, headers, product)
    assert second.json()["bill_no"] == "FS-002"

    events = db_session.query(AuditEvent).filter_by(action="pos_sale.create").all()
    assert len(events) == 2


def test_checkout_defaults_to_walk_in_customer(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant)
    headers = tenant_headers(client, user)

    response = checkout(client, headers, product, customer_name="   ")

    assert response.status_code == 201
    assert response.json()["customer_name"] == "Walk-in Customer"
    assert db_session.query(Customer).filter_by(tenant_id=tenant.id).count() == 0


def test_checkout_records_customer_visit(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant, price=250)
    headers = tenant_headers(client, user)

    checkout(client, headers, product, customer_name="Asha", customer_phone="9876543210")
    checkout(client, headers, product, customer_name="Asha", customer_phone="9876543210")

    db_session.expire_all()
    customer = db_session.query(Customer).filter_by(tenant_id=tenant.id).one()
    assert customer.order_count == 2
    assert customer.total_spent == 500
    assert customer.last_order_date is not None


def test_checkout_insufficient_stock_changes_nothing(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant, stock=1)
    headers = tenant_headers(client, user)

    response = checkout(client, headers, product, quantity=3)

    assert response.status_code == 409
    payload = response.json()
    assert payload["code"] == "INSUFFICIENT_STOCK"
    assert payload["details"]["available"] == 1
    assert _stock(db_session, product) == 1
    assert db_session.query(Sale).filter_by(tenant_id=tenant.id).count() == 0


def test_checkout_rejects_empty_cart_and_unknown_payment(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant)
    headers = tenant_headers(client, user)

    empty = client.post("/api/pos/sales", headers={**headers, **idempotency()}, json={"items": []})
    assert empty.status_code == 400
    assert empty.json()["code"] == "CART_EMPTY"

    bad_method = checkout(client, headers, product, payment_method="barter")
    assert bad_method.status_code == 422
    assert bad_method.json()["code"] == "VALIDATION_ERROR"
    assert _stock(db_session, product) == 10


def test_checkout_cannot_sell_another_tenants_product(client, db_session):
    other_tenant, _ = create_tenant(db_session, name="Other Store")
    foreign = create_product(db_session, other_tenant)
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)

    response = checkout(client, headers, foreign)

    assert response.status_code == 404
    assert _stock(db_session, foreign) == 10


def test_checkout_requires_idempotency_key(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant)
    headers = tenant_headers(client, user)

    response = client.post(
        "/api/pos/sales",
        headers=headers,
        json={"items": [{"product_id": str(product.id), "quantity": 1}]},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "IDEMPOTENCY_KEY_REQUIRED"


def test_checkout_replay_returns_same_bill_once(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant, stock=5)
    headers = tenant_headers(client, user)

    first = checkout(client, headers, product, key="bill-1")
    replay = checkout(client, headers, product, key="bill-1")

    assert first.status_code == 201
    assert replay.status_code == 201
    assert replay.headers["X-Idempotency-Result"] == "IDEMPOTENCY_REPLAY"
    assert replay.json()["id"] == first.json()["id"]
    assert _stock(db_session, product) == 4

    conflict = checkout(client, headers, product, quantity=2, key="bill-1")
    assert conflict.status_code == 409
    assert conflict.json()["code"] == "IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD"


def test_list_and_get_sales(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant)
    headers = tenant_headers(client, user)
    sale_id = checkout(client, headers, product, customer_name="Meena").json()["id"]
    checkout(client, headers, product, customer_name="Asha")

    listing = client.get("/api/pos/sales", params={"search": "meena"}, headers=headers)
    assert listing.status_code == 200
    assert [sale["id"] for sale in listing.json()["sales"]] == [sale_id]

    detail = client.get(f"/api/pos/sales/{sale_id}", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["customer_name"] == "Meena"


def test_delete_sale_needs_password_and_keeps_stock(client, db_session):
    tenant, user = create_tenant(db_session, delete_password="secret-delete")
    product = create_product(db_session, tenant)
    headers = tenant_headers(client, user)
    sale_id = checkout(client, headers, product).json()["id"]

    denied = client.delete(f"/api/pos/sales/{sale_id}", headers=headers)
    assert denied.status_code == 403
    assert db_session.query(Sale).filter_by(tenant_id=tenant.id).count() == 1

    deleted = client.delete(f"/api/pos/sales/{sale_id}", headers={**headers, **delete_password("secret-delete")})
    assert deleted.status_code == 200
    db_session.expire_all()
    assert db_session.query(Sale).filter_by(tenant_id=tenant.id).count() == 0
    assert _stock(db_session, product) == 9


def test_search_prefers_exact_barcode(client, db_session):
    tenant, user = create_tenant(db_session)
    scanned = create_product(db_session, tenant, name="Silk Saree", barcode="8901234567890")
    create_product(db_session, tenant, name="Silk Dupatta")
    headers = tenant_headers(client, user)

    exact = client.get("/api/pos/search", params={"q": "8901234567890"}, headers=headers)
    assert [item["id"] for item in exact.json()["products"]] == [str(scanned.id)]

    by_name = client.get("/api/pos/search", params={"q": "silk"}, headers=headers)
    assert {item["name"] for item in by_name.json()["products"]} == {"Silk Saree", "Silk Dupatta"}


def test_scan_endpoint_resolves_fast_keystrokes(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant, barcode="FS1234")
    headers = tenant_headers(client, user)
    keys = [{"key": char, "at_ms": 1000 + index * 10} for index, char in enumerate("FS1234")]
    keys.append({"key": "Enter", "at_ms": 1065})

    response = client.post("/api/pos/scan", headers=headers, json={"keys": keys})

    assert response.status_code == 200
    assert response.json()["barcode"] == "FS1234"
    assert response.json()["product"]["id"] == str(product.id)

    typed = [{"key": char, "at_ms": 1000 + index * 300} for index, char in enumerate("FS1234")]
    typed.append({"key": "Enter", "at_ms": 3000})
    manual = client.post("/api/pos/scan", headers=headers, json={"keys": typed})
    assert manual.json()["barcode"] is None
    assert manual.json()["product"] is None


def test_whatsapp_link_for_sale(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant)
    headers = tenant_headers(client, user)
    sale = checkout(client, headers, product, customer_phone="9876543210").json()

    response = client.get(f"/api/pos/sales/{sale['id']}/whatsapp-link", headers=headers)

    assert response.status_code == 200
    payload = response.json()
    assert payload["phone"] == "9876543210"
    assert payload["link"].startswith("https://wa.me/")
    assert sale["bill_no"] in payload["message"]
    assert payload["receipt_url"].endswith(sale["id"])
