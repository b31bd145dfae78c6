import uuid

from app.shopdesk.core.security import get_password_hash
from app.shopdesk.db.models import Plan, Product, Tenant, TenantSettings, User
from app.shopdesk.services.delete_guard import DELETE_PASSWORD_HEADER, hash_delete_password
from app.shopdesk.services.idempotency import IDEMPOTENCY_HEADER
from app.shopdesk.services.plan_gating import AVAILABLE_FEATURES

OWNER_PASSWORD = "Owner1234"
SUPERADMIN_PASSWORD = "Admin12345"


def create_plan(db_session, *, name=None, features=None, max_products=100, max_users=5, status="active"):
    plan = Plan(
        id=uuid.uuid4(),
        name=name or f"Plan {uuid.uuid4().hex[:6]}",
        price=999,
        features=["Everything"],
        allowed_features=list(AVAILABLE_FEATURES) if features is None else features,
        max_products=max_products,
        max_users=max_users,
        status=status,
    )
    db_session.add(plan)
    db_session.commit()
    return plan


def create_tenant(
    db_session,
    *,
    name="Fashion Store",
    email=None,
    username=None,
    plan=None,
    features=None,
    max_products=100,
    tax_rate=0,
    delete_password=None,
    status="active",
):
    plan = plan or create_plan(db_session, features=features, max_products=max_products)
    email = email or f"{uuid.uuid4().hex[:8]}@store.example"
    tenant = Tenant(
        id=uuid.uuid4(),
        name=name,
        email=email,
        plan_id=plan.id,
        status=status,
        referral_code=f"FAS{uuid.uuid4().hex[:4].upper()}",
    )
    user = User(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        username=username or email,
        email=email,
        hashed_password=get_password_hash(OWNER_PASSWORD),
        role="ADMIN",
        status="active",
        is_active=True,
    )
    settings_row = TenantSettings(
        tenant_id=tenant.id,
        store_name=name,
        tax_rate=tax_rate,
        bill_prefix="FS",
        bill_counter=1,
        discount_mode=False,
        bill_format="professional",
        delete_password_hash=hash_delete_password(delete_password) if delete_password else None,
    )
    db_session.add(tenant)
    db_session.add(user)
    db_session.add(settings_row)
    db_session.commit()
    return tenant, user


def create_superadmin(db_session, *, username="root"):
    user = User(
        id=uuid.uuid4(),
        tenant_id=None,
        username=username,
        email=f"{username}@platform.example",
        hashed_password=get_password_hash(SUPERADMIN_PASSWORD),
        role="SUPERADMIN",
        status="active",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


def create_product(db_session, tenant, *, name="Cotton Kurti", price=100, stock=10, barcode=None):
    product = Product(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        name=name,
        sku=f"SKU-{uuid.uuid4().hex[:6].upper()}",
        barcode=barcode or f"FS{uuid.uuid4().int % 10**12}",
        category="Kurtis",
        price=price,
        original_price=price,
        cost_price=0,
        stock=stock,
        min_stock=1,
        status="active",
        attributes={},
    )
    db_session.add(product)
    db_session.commit()
    return product


def login(client, identifier, password=OWNER_PASSWORD):
    response = client.post("/api/auth/login", json={"username_or_email": identifier, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def auth_headers(token, **extra):
    headers = {"Authorization": f"Bearer {token}"}
    headers.update(extra)
    return headers


def tenant_headers(client, user, **extra):
    return auth_headers(login(client, user.email), **extra)


def superadmin_headers(client, db_session):
    user = create_superadmin(db_session)
    return auth_headers(login(client, user.username, SUPERADMIN_PASSWORD))


def idempotency(key=None):
    return {IDEMPOTENCY_HEADER: key or f"idem-{uuid.uuid4()}"}


def delete_password(value):
    return {DELETE_PASSWORD_HEADER: value}


def checkout(client, headers, product, *, quantity=1, key=None, **fields):
    payload = {"items": [{"product_id": str(product.id), "quantity": quantity}], **fields}
    return client.post("/api/pos/sales", headers={**headers, **idempotency(key)}, json=payload)
