from app.shopdesk.db.models import Customer
from tests.helpers import create_tenant, delete_password, tenant_headers


def test_upsert_by_phone(client, db_session):
    tenant, user = create_tenant(db_session)
    headers = tenant_headers(client, user)

    first = client.post("/api/customers", headers=headers, json={"name": "Asha", "phone": "9876543210"})
    second = client.post(
        "/api/customers",
        headers=headers,
        json={"name": "Asha Rao", "phone": "9876543210", "email": "asha@example.com"},
    )

    assert first.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["name"] == "Asha Rao"
    assert second.json()["email"] == "asha@example.com"
    assert db_session.query(Customer).filter_by(tenant_id=tenant.id).count() == 1


def test_customer_without_phone_is_always_new(client, db_session):
    tenant, user = create_tenant(db_session)
    headers = tenant_headers(client, user)

    client.post("/api/customers", headers=headers, json={"name": "Walk-in Regular"})
    client.post("/api/customers", headers=headers, json={"name": "Walk-in Regular"})

    assert db_session.query(Customer).filter_by(tenant_id=tenant.id).count() == 2


def test_search_update_and_guarded_delete(client, db_session):
    _, user = create_tenant(db_session, delete_password="open-sesame")
    headers = tenant_headers(client, user)
    customer_id = client.post("/api/customers", headers=headers, json={"name": "Meena", "phone": "9000000001"}).json()["id"]
    client.post("/api/customers", headers=headers, json={"name": "Ravi", "phone": "9000000002"})

    found = client.get("/api/customers", params={"search": "meen"}, headers=headers)
    assert [item["id"] for item in found.json()["customers"]] == [customer_id]

    updated = client.put(f"/api/customers/{customer_id}", headers=headers, json={"address": "MG Road"})
    assert updated.json()["address"] == "MG Road"
    assert updated.json()["name"] == "Meena"

    denied = client.delete(f"/api/customers/{customer_id}", headers=headers)
    assert denied.status_code == 403

    deleted = client.delete(f"/api/customers/{customer_id}", headers={**headers, **delete_password("open-sesame")})
    assert deleted.status_code == 200
    assert client.get(f"/api/customers/{customer_id}", headers=headers).status_code == 404


def test_customers_export_and_import(client, db_session):
    tenant, user = create_tenant(db_session)
    headers = tenant_headers(client, user)
    client.post("/api/customers", headers=headers, json={"name": "Asha, Jr.", "phone": "9876543210"})

    export = client.get("/api/customers/export", headers=headers)
    assert export.status_code == 200
    assert 'attachment; filename="customers.csv"' == export.headers["content-disposition"]
    assert '"Asha, Jr.",9876543210' in export.text

    body = "\ufeffName,Phone,Email\nAsha Duplicate,9876543210,\nKiran,9123456780,kiran@example.com\n"
    response = client.post(
        "/api/customers/import",
        headers={**headers, "Content-Type": "text/csv"},
        content=body.encode("utf-8"),
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["imported"] == 1
    assert payload["skipped"] == 1
    assert payload["errors"][0]["row"] == 1
    db_session.expire_all()
    kiran = db_session.query(Customer).filter_by(tenant_id=tenant.id, phone="9123456780").one()
    assert kiran.email == "kiran@example.com"
    assert kiran.order_count == 0
