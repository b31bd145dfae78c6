from app.shopdesk.db.models import AuditEvent
from tests.helpers import OWNER_PASSWORD, auth_headers, create_tenant, login


def test_login_success_by_email_and_username(client, db_session):
    tenant, user = create_tenant(db_session, username="asha")

    by_email = client.post("/api/auth/login", json={"username_or_email": user.email, "password": OWNER_PASSWORD})
    by_username = client.post("/api/auth/login", json={"username_or_email": "asha", "password": OWNER_PASSWORD})

    assert by_email.status_code == 200
    assert by_username.status_code == 200
    payload = by_email.json()
    assert payload["access_token"]
    assert payload["role"] == "ADMIN"
    assert payload["tenant_id"] == str(tenant.id)


def test_login_invalid_password_is_audited(client, db_session):
    _, user = create_tenant(db_session)

    response = client.post("/api/auth/login", json={"username_or_email": user.email, "password": "wrong-pass"})

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"
    db_session.expire_all()
    events = db_session.query(AuditEvent).filter_by(action="auth.login.failed").all()
    assert len(events) == 1
    assert events[0].result == "failure"


def test_login_unknown_user(client):
    response = client.post("/api/auth/login", json={"username_or_email": "ghost@nowhere.example", "password": "x"})

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_login_blocked_inactive_user(client, db_session):
    _, user = create_tenant(db_session)
    user.is_active = False
    db_session.commit()

    response = client.post("/api/auth/login", json={"username_or_email": user.email, "password": OWNER_PASSWORD})

    assert response.status_code == 403
    assert response.json()["code"] == "USER_INACTIVE"


def test_login_blocked_suspended_tenant(client, db_session):
    _, user = create_tenant(db_session, status="suspended")

    response = client.post("/api/auth/login", json={"username_or_email": user.email, "password": OWNER_PASSWORD})

    assert response.status_code == 403
    assert response.json()["code"] == "TENANT_INACTIVE"


def test_me_returns_tenant_and_features(client, db_session):
    tenant, user = create_tenant(db_session, name="Asha Boutique", features=["pos", "inventory"])
    token = login(client, user.email)

    response = client.get("/api/auth/me", headers=auth_headers(token))

    assert response.status_code == 200
    payload = response.json()
    assert payload["tenant_id"] == str(tenant.id)
    assert payload["tenant_name"] == "Asha Boutique"
    assert payload["features"] == ["dashboard", "inventory", "pos"]


def test_me_requires_token(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
