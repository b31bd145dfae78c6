from datetime import datetime

from app.shopdesk.db.models import Product, Purchase
from app.shopdesk.services.purchases import format_po_number, normalize_items, purchase_totals
from tests.helpers import create_product, create_tenant, delete_password, tenant_headers


def test_purchase_math():
    items = normalize_items(
        [
            {"name": " Cotton Fabric ", "quantity": 3, "unit_price": "120.50"},
            {"name": "Buttons", "sku": "", "quantity": 10, "unit_price": 2},
        ]
    )

    assert items[0] == {"name": "Cotton Fabric", "sku": None, "quantity": 3, "unit_price": 120.5, "total": 361.5}
    assert purchase_totals(items, 5) == {"subtotal": 381.5, "tax": 19.08, "total": 400.58}


def test_po_number_format():
    assert format_po_number(42, datetime(2024, 3, 9)) == "PO-202403-0042"


def _order(sku, **fields):
    return {
        "supplier_name": "Surat Textiles",
        "items": [
            {"name": "Cotton Kurti", "sku": sku, "quantity": 5, "unit_price": 300},
            {"name": "Linen Dupatta", "quantity": 3, "unit_price": 150},
        ],
        **fields,
    }


def test_completing_purchase_restocks_once(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant, stock=2)
    headers = tenant_headers(client, user)

    created = client.post("/api/purchases", headers=headers, json=_order(product.sku))
    assert created.status_code == 201
    purchase = created.json()
    assert purchase["status"] == "pending"
    assert purchase["po_number"].startswith("PO-")
    assert purchase["total"] == 1950

    db_session.expire_all()
    assert db_session.get(Product, product.id).stock == 2

    for _ in range(2):
        completed = client.put(f"/api/purchases/{purchase['id']}", headers=headers, json={"status": "completed"})
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"

    db_session.expire_all()
    assert db_session.get(Product, product.id).stock == 7
    dupatta = db_session.query(Product).filter_by(tenant_id=tenant.id, name="Linen Dupatta").one()
    assert dupatta.stock == 3
    assert dupatta.price == 150


def test_purchase_created_completed_restocks(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant, stock=0)
    headers = tenant_headers(client, user)

    response = client.post("/api/purchases", headers=headers, json=_order(product.sku, status="completed"))

    assert response.status_code == 201
    assert response.json()["status"] == "completed"
    db_session.expire_all()
    assert db_session.get(Product, product.id).stock == 5


def test_list_filter_and_delete(client, db_session):
    tenant, user = create_tenant(db_session)
    headers = tenant_headers(client, user)
    pending = client.post("/api/purchases", headers=headers, json=_order(None)).json()
    client.post("/api/purchases", headers=headers, json=_order(None, status="cancelled"))

    listing = client.get("/api/purchases", params={"status": "pending"}, headers=headers)
    assert [row["id"] for row in listing.json()["purchases"]] == [pending["id"]]

    deleted = client.delete(f"/api/purchases/{pending['id']}", headers=headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/purchases/{pending['id']}", headers=headers).status_code == 404


def test_reopened_purchase_is_not_received_twice(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant, stock=2)
    headers = tenant_headers(client, user)
    purchase = client.post("/api/purchases", headers=headers, json=_order(product.sku)).json()

    for status in ("completed", "pending", "completed"):
        response = client.put(f"/api/purchases/{purchase['id']}", headers=headers, json={"status": status})
        assert response.status_code == 200
        assert response.json()["status"] == status
        assert response.json()["received_at"] is not None

    db_session.expire_all()
    assert db_session.get(Product, product.id).stock == 7


def test_po_numbers_stay_unique_after_delete(client, db_session):
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)
    first = client.post("/api/purchases", headers=headers, json=_order(None)).json()
    second = client.post("/api/purchases", headers=headers, json=_order(None)).json()
    assert first["po_number"].endswith("-0001")
    assert second["po_number"].endswith("-0002")

    assert client.delete(f"/api/purchases/{first['id']}", headers=headers).status_code == 200
    third = client.post("/api/purchases", headers=headers, json=_order(None)).json()

    assert third["po_number"].endswith("-0003")
    assert third["po_number"] != second["po_number"]


def test_explicit_po_number_must_be_unique(client, db_session):
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)
    assert client.post("/api/purchases", headers=headers, json=_order(None, po_number="PO-MANUAL-1")).status_code == 201

    response = client.post("/api/purchases", headers=headers, json=_order(None, po_number="PO-MANUAL-1"))

    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_RESOURCE"


def test_purchases_export_import_and_clear(client, db_session):
    tenant, user = create_tenant(db_session, delete_password="open-sesame")
    product = create_product(db_session, tenant, stock=2)
    headers = tenant_headers(client, user)
    created = client.post("/api/purchases", headers=headers, json=_order(product.sku, po_number="PO-A")).json()

    export = client.get("/api/purchases/export", headers=headers)
    assert export.status_code == 200
    assert export.text.splitlines()[0] == (
        "PO Number,Supplier Name,Supplier Contact,Order Date,Items,Subtotal,Tax,Total,Status,Notes"
    )
    assert f"Cotton Kurti [{product.sku}] (Qty: 5, Unit Price: 300.00); Linen Dupatta (Qty: 3, Unit Price: 150.00)" in export.text

    body = (
        "PO Number,Supplier Name,Supplier Contact,Order Date,Items,Subtotal,Tax,Total,Status,Notes\n"
        "PO-A,Dup Supplier,,,,0,0,0,pending,\n"
        f"PO-B,Jaipur Prints,,2024-02-01T10:00:00,Block Print Saree [{product.sku}] (Qty: 4; Unit Price: 1),,,,pending,\n"
        f"PO-C,Jaipur Prints,,2024-02-01T10:00:00,\"Block Print Saree [{product.sku}] (Qty: 4, Unit Price: 500.00)\",2000,0,2000,completed,old order\n"
        "PO-D,Jaipur Prints,,,,0,0,0,shipped,\n"
    )
    response = client.post("/api/purchases/import", headers={**headers, "Content-Type": "text/csv"}, content=body)

    assert response.status_code == 200
    payload = response.json()
    assert payload["imported"] == 1
    assert payload["skipped"] == 3
    db_session.expire_all()
    imported = db_session.query(Purchase).filter_by(tenant_id=tenant.id, po_number="PO-C").one()
    assert imported.status == "completed"
    assert imported.received_at is not None
    assert imported.items[0] == {"name": "Block Print Saree", "sku": product.sku, "quantity": 4, "unit_price": 500.0, "total": 2000.0}
    assert db_session.get(Product, product.id).stock == 2

    reopened = client.put(f"/api/purchases/{imported.id}", headers=headers, json={"status": "completed"})
    assert reopened.status_code == 200
    db_session.expire_all()
    assert db_session.get(Product, product.id).stock == 2

    cleared = client.delete("/api/purchases/clear", headers={**headers, **delete_password("open-sesame")})
    assert cleared.status_code == 200
    assert cleared.json()["count"] == 2
    assert client.get(f"/api/purchases/{created['id']}", headers=headers).status_code == 404
