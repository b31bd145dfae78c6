from app.shopdesk.db.models import Product, Referral, Tenant, TenantFieldConfig, User
from app.shopdesk.db.seed import run_seed
from tests.helpers import (
    auth_headers,
    create_plan,
    create_product,
    create_tenant,
    login,
    superadmin_headers,
    tenant_headers,
)


def _tenant_payload(**fields):
    return {
        "name": "Trendy Threads",
        "email": "owner@trendythreads.in",
        "password": "Owner1234",
        **fields,
    }


def test_tenant_routes_require_superadmin(client, db_session):
    _, user = create_tenant(db_session)

    response = client.get("/api/tenants", headers=tenant_headers(client, user))

    assert response.status_code == 403
    assert response.json()["code"] == "PERMISSION_DENIED"


def test_create_tenant_provisions_owner_settings_and_fields(client, db_session):
    run_seed(db_session)
    headers = superadmin_headers(client, db_session)

    response = client.post(
        "/api/tenants",
        headers=headers,
        json=_tenant_payload(plan="Pro", business_type="Shoe Store"),
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["plan_name"] == "Pro"
    assert payload["referral_code"].startswith("TRE")
    assert [user["role"] for user in payload["users"]] == ["ADMIN"]

    owner_token = login(client, "owner@trendythreads.in", "Owner1234")
    settings = client.get("/api/settings", headers=auth_headers(owner_token)).json()
    assert settings["store_name"] == "Trendy Threads"
    config = db_session.query(TenantFieldConfig).filter_by(tenant_id=payload["id"]).one()
    assert config.business_type == "Shoe Store"


def test_create_tenant_duplicate_email(client, db_session):
    headers = superadmin_headers(client, db_session)
    client.post("/api/tenants", headers=headers, json=_tenant_payload())

    response = client.post("/api/tenants", headers=headers, json=_tenant_payload(name="Copycat"))

    assert response.status_code == 409


def test_referral_code_at_signup_records_completed_referral(client, db_session):
    run_seed(db_session)
    headers = superadmin_headers(client, db_session)
    referrer = client.post("/api/tenants", headers=headers, json=_tenant_payload()).json()

    valid = client.get("/api/referral-codes", params={"code": referrer["referral_code"]})
    assert valid.json() == {
        "valid": True,
        "referrer": "Trendy Threads",
        "message": "Valid referral code from Trendy Threads",
    }
    assert client.get("/api/referral-codes", params={"code": "NOPE123"}).json()["valid"] is False

    referred = client.post(
        "/api/tenants",
        headers=headers,
        json=_tenant_payload(
            name="Saree Palace",
            email="hello@sareepalace.in",
            plan="Enterprise",
            referral_code=referrer["referral_code"].lower(),
        ),
    )
    assert referred.json()["used_referral_code"] == referrer["referral_code"]

    referral = db_session.query(Referral).one()
    assert referral.referrer_shop == "Trendy Threads"
    assert referral.referred_shop == "Saree Palace"
    assert referral.status == "Completed"
    assert referral.reward == 499


def test_unknown_referral_code_is_ignored(client, db_session):
    headers = superadmin_headers(client, db_session)

    response = client.post("/api/tenants", headers=headers, json=_tenant_payload(referral_code="GHOST99"))

    assert response.status_code == 201
    assert response.json()["used_referral_code"] is None
    assert db_session.query(Referral).count() == 0


def test_list_search_and_status(client, db_session):
    headers = superadmin_headers(client, db_session)
    create_tenant(db_session, name="Asha Boutique")
    tenant, user = create_tenant(db_session, name="Ravi Menswear")

    listing = client.get("/api/tenants", params={"search": "ravi"}, headers=headers)
    assert listing.json()["total"] == 1
    assert listing.json()["tenants"][0]["id"] == str(tenant.id)

    suspended = client.patch(f"/api/tenants/{tenant.id}/status", headers=headers, json={"status": "suspended"})
    assert suspended.json()["status"] == "suspended"
    blocked = client.post("/api/auth/login", json={"username_or_email": user.email, "password": "Owner1234"})
    assert blocked.status_code == 403

    filtered = client.get("/api/tenants", params={"status": "suspended"}, headers=headers)
    assert [item["id"] for item in filtered.json()["tenants"]] == [str(tenant.id)]


def test_update_tenant_plan_and_password(client, db_session):
    headers = superadmin_headers(client, db_session)
    tenant, user = create_tenant(db_session)
    plan = create_plan(db_session, name="Festive")

    response = client.put(
        f"/api/tenants/{tenant.id}",
        headers=headers,
        json={"plan": "Festive", "password": "BrandNew123", "phone": "080-5555"},
    )

    assert response.status_code == 200
    assert response.json()["plan_id"] == str(plan.id)
    assert response.json()["phone"] == "080-5555"
    assert login(client, user.email, "BrandNew123")


def test_delete_tenant_removes_owned_rows(client, db_session):
    headers = superadmin_headers(client, db_session)
    tenant, _ = create_tenant(db_session)
    create_product(db_session, tenant)
    tenant_id = tenant.id

    response = client.delete(f"/api/tenants/{tenant_id}", headers=headers)

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.get(Tenant, tenant_id) is None
    assert db_session.query(Product).filter_by(tenant_id=tenant_id).count() == 0
    assert db_session.query(User).filter_by(tenant_id=tenant_id).count() == 0
    assert client.get(f"/api/tenants/{tenant_id}", headers=headers).status_code == 404
