from app.shopdesk.db.models import AuditEvent
from tests.helpers import checkout, create_product, create_tenant, delete_password, tenant_headers


def test_get_settings_hides_delete_password(client, db_session):
    _, user = create_tenant(db_session, name="Asha Boutique", delete_password="open-sesame")
    headers = tenant_headers(client, user)

    response = client.get("/api/settings", headers=headers)

    assert response.status_code == 200
    payload = response.json()
    assert payload["store_name"] == "Asha Boutique"
    assert payload["delete_password_configured"] is True
    assert "delete_password" not in payload
    assert "delete_password_hash" not in payload


def test_update_settings_drives_bill_numbers_and_tax(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant, price=100)
    headers = tenant_headers(client, user)

    response = client.put(
        "/api/settings",
        headers=headers,
        json={"bill_prefix": "INV", "bill_counter": 7, "tax_rate": 12, "gst": "29ABCDE1234F1Z5"},
    )
    assert response.status_code == 200
    assert response.json()["tax_rate"] == 12

    sale = checkout(client, headers, product).json()
    assert sale["bill_no"] == "INV-007"
    assert sale["tax"] == 12
    assert sale["total"] == 112

    events = db_session.query(AuditEvent).filter_by(action="settings.update").all()
    assert len(events) == 1


def test_delete_password_set_and_rotate(client, db_session):
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)

    first = client.put("/api/settings", headers=headers, json={"delete_password": "first-pass"})
    assert first.json()["delete_password_configured"] is True

    without_current = client.put("/api/settings", headers=headers, json={"delete_password": "second-pass"})
    assert without_current.status_code == 403
    assert without_current.json()["code"] == "DELETE_PASSWORD_INVALID"

    rotated = client.put(
        "/api/settings",
        headers=headers,
        json={"delete_password": "second-pass", "current_delete_password": "first-pass"},
    )
    assert rotated.status_code == 200

    old = client.delete("/api/customers/clear", headers={**headers, **delete_password("first-pass")})
    assert old.status_code == 403
    new = client.delete("/api/customers/clear", headers={**headers, **delete_password("second-pass")})
    assert new.status_code == 200


def test_settings_update_needs_feature(client, db_session):
    _, user = create_tenant(db_session, features=["pos"])
    headers = tenant_headers(client, user)

    assert client.get("/api/settings", headers=headers).status_code == 200
    response = client.put("/api/settings", headers=headers, json={"tax_rate": 5})
    assert response.status_code == 403
    assert response.json()["code"] == "FEATURE_NOT_AVAILABLE"


def test_dropdown_data_dedupes_and_keeps_untouched_lists(client, db_session):
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)
    client.put("/api/dropdown-data", headers=headers, json={"sizes": ["S", "M"]})

    response = client.put(
        "/api/dropdown-data",
        headers=headers,
        json={"categories": [" Kurtis ", "Sarees", "Kurtis", ""]},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["categories"] == ["Kurtis", "Sarees"]
    assert payload["sizes"] == ["S", "M"]
    assert client.get("/api/dropdown-data", headers=headers).json() == payload


def test_tenant_fields_roundtrip(client, db_session):
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)

    empty = client.get("/api/tenant-fields", headers=headers)
    assert empty.json()["fields"] == []

    saved = client.post(
        "/api/tenant-fields",
        headers=headers,
        json={"business_type": "Shoe Store", "fields": [{"name": "Shoe Size", "type": "select", "options": ["7", "8"]}]},
    )
    assert saved.status_code == 200
    fetched = client.get("/api/tenant-fields", headers=headers).json()
    assert fetched["business_type"] == "Shoe Store"
    assert fetched["fields"][0]["options"] == ["7", "8"]

    duplicate = client.post(
        "/api/tenant-fields",
        headers=headers,
        json={"fields": [{"name": "Color"}, {"name": "Color"}]},
    )
    assert duplicate.status_code == 422
