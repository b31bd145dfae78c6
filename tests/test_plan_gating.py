import pytest

from app.shopdesk.services.plan_gating import normalize_features, require_feature
from tests.helpers import create_product, create_tenant, superadmin_headers, tenant_headers


def test_normalize_features_keeps_catalog_order_and_dashboard():
    assert normalize_features(["whatsapp", "pos", "bogus"]) == ["dashboard", "pos", "whatsapp"]
    assert normalize_features(None) == ["dashboard"]


def test_unknown_feature_is_a_programming_error():
    with pytest.raises(ValueError):
        require_feature("teleport")


def test_feature_outside_plan_is_forbidden(client, db_session):
    _, user = create_tenant(db_session, features=["pos", "inventory"])
    headers = tenant_headers(client, user)

    response = client.get("/api/employees", headers=headers)

    assert response.status_code == 403
    payload = response.json()
    assert payload["code"] == "FEATURE_NOT_AVAILABLE"
    assert payload["details"] == {"feature": "hr"}
    assert payload["trace_id"]
    assert client.get("/api/inventory", headers=headers).status_code == 200


def test_superadmin_token_cannot_use_tenant_routes(client, db_session):
    headers = superadmin_headers(client, db_session)

    response = client.get("/api/inventory", headers=headers)

    assert response.status_code == 403
    assert response.json()["code"] == "TENANT_SCOPE_REQUIRED"


def test_product_limit_blocks_creation(client, db_session):
    tenant, user = create_tenant(db_session, max_products=2)
    create_product(db_session, tenant)
    headers = tenant_headers(client, user)

    created = client.post("/api/inventory", headers=headers, json={"name": "Linen Shirt", "price": 899})
    assert created.status_code == 201

    blocked = client.post("/api/inventory", headers=headers, json={"name": "Denim Jacket", "price": 1999})
    assert blocked.status_code == 403
    payload = blocked.json()
    assert payload["code"] == "PRODUCT_LIMIT_EXCEEDED"
    assert payload["details"]["max_products"] == 2
    assert payload["details"]["current_products"] == 2


def test_plan_limits_and_features_endpoints(client, db_session):
    tenant, user = create_tenant(db_session, features=["pos"], max_products=50)
    create_product(db_session, tenant)
    headers = tenant_headers(client, user)

    limits = client.get("/api/plan-limits", headers=headers)
    assert limits.status_code == 200
    assert limits.json()["max_products"] == 50
    assert limits.json()["current_products"] == 1
    assert limits.json()["current_users"] == 1

    features = client.get("/api/tenant-features", headers=headers)
    assert features.status_code == 200
    assert features.json()["features"] == ["dashboard", "pos"]
