from app.shopdesk.db.models import Product, TenantFieldConfig
from app.shopdesk.services.inventory import build_attributes, field_key, generate_barcode
from tests.helpers import create_product, create_tenant, tenant_headers


def test_generate_barcode_shape():
    barcode = generate_barcode(now_ms=1700000123456)

    assert barcode.startswith("FS123456")
    assert len(barcode) == 11


def test_build_attributes_keeps_enabled_custom_fields():
    fields = [
        {"name": "Sizes", "type": "text", "enabled": True},
        {"name": "Heel Height", "type": "number", "enabled": True},
        {"name": "Price", "type": "number", "enabled": True},
        {"name": "Season", "type": "select", "enabled": False},
    ]
    submitted = {"sizes": "S, M ,L", "heel_height": "2.5", "price": 10, "season": "Winter"}

    assert field_key("Heel Height") == "heel_height"
    assert build_attributes(fields, submitted) == {"sizes": ["S", "M", "L"], "heel_height": 2.5}


def test_create_product_fills_defaults(client, db_session):
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)

    response = client.post("/api/inventory", headers=headers, json={"name": "Linen Shirt", "price": 899, "stock": 4})

    assert response.status_code == 201
    payload = response.json()
    assert payload["barcode"].startswith("FS")
    assert payload["sku"].startswith("SKU-")
    assert payload["category"] == "General"
    assert payload["original_price"] == 899


def test_create_product_with_tenant_fields(client, db_session):
    tenant, user = create_tenant(db_session)
    db_session.add(
        TenantFieldConfig(
            tenant_id=tenant.id,
            business_type="Fashion Retail Store",
            fields=[{"name": "Material", "type": "select", "enabled": True}],
        )
    )
    db_session.commit()
    headers = tenant_headers(client, user)

    response = client.post(
        "/api/inventory",
        headers=headers,
        json={"name": "Silk Saree", "attributes": {"material": "Silk", "unknown": "x"}},
    )

    assert response.status_code == 201
    assert response.json()["attributes"] == {"material": "Silk"}


def test_duplicate_barcode_is_rejected(client, db_session):
    tenant, user = create_tenant(db_session)
    create_product(db_session, tenant, barcode="FS000111222")
    headers = tenant_headers(client, user)

    response = client.post("/api/inventory", headers=headers, json={"name": "Copy", "barcode": "FS000111222"})

    assert response.status_code == 409
    assert response.json()["code"] == "BARCODE_EXISTS"


def test_update_and_delete_product(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant)
    headers = tenant_headers(client, user)

    updated = client.put(f"/api/inventory/{product.id}", headers=headers, json={"price": 149.5, "stock": 3})
    assert updated.status_code == 200
    assert updated.json()["price"] == 149.5
    assert updated.json()["stock"] == 3

    product_id = product.id
    deleted = client.delete(f"/api/inventory/{product_id}", headers=headers)
    assert deleted.status_code == 200
    db_session.expire_all()
    assert db_session.get(Product, product_id) is None


def test_products_are_tenant_scoped(client, db_session):
    other, _ = create_tenant(db_session, name="Other Store")
    foreign = create_product(db_session, other)
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)

    assert client.get("/api/inventory", headers=headers).json()["products"] == []
    assert client.get(f"/api/inventory/{foreign.id}", headers=headers).status_code == 404


def test_inventory_export_and_import(client, db_session):
    tenant, user = create_tenant(db_session)
    create_product(db_session, tenant, name="Cotton Kurti", price=499, stock=7)
    headers = tenant_headers(client, user)

    export = client.get("/api/inventory/export", headers=headers)
    assert export.status_code == 200
    lines = export.text.splitlines()
    assert lines[0] == "Name,SKU,Barcode,Category,Price,Cost Price,Stock,Min Stock"
    assert lines[1].startswith("Cotton Kurti,")

    body = "Name,SKU,Barcode,Category,Price,Cost Price,Stock,Min Stock\nPalazzo,,,Bottoms,650,300,5,1\n,,,,1,1,1,1\n"
    response = client.post(
        "/api/inventory/import",
        headers={**headers, "Content-Type": "text/csv"},
        content=body.encode(),
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["imported"] == 1
    assert payload["skipped"] == 1
    assert payload["errors"][0]["line"] == 3
    db_session.expire_all()
    palazzo = db_session.query(Product).filter_by(tenant_id=tenant.id, name="Palazzo").one()
    assert palazzo.stock == 5
    assert palazzo.category == "Bottoms"


def test_empty_csv_upload_is_rejected(client, db_session):
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)

    response = client.post("/api/inventory/import", headers={**headers, "Content-Type": "text/csv"}, content=b"  ")

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_CSV"
