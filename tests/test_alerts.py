from urllib.parse import unquote

from app.shopdesk.db.models import AuditEvent, TenantSettings
from app.shopdesk.services.alerts import build_low_stock_message
from tests.helpers import create_product, create_tenant, tenant_headers


def _stocked_store(db_session):
    tenant, user = create_tenant(db_session, name="Asha Boutique")
    create_product(db_session, tenant, name="Silk Saree", stock=1)
    create_product(db_session, tenant, name="Cotton Kurti", stock=10)
    dupatta = create_product(db_session, tenant, name="Linen Dupatta", stock=3)
    dupatta.min_stock = 5
    oversold = create_product(db_session, tenant, name="Oversold Scarf", stock=0)
    oversold.stock = -2
    db_session.commit()
    return tenant, user


def test_low_stock_message_lists_each_product():
    class Item:
        def __init__(self, name, stock, min_stock):
            self.name, self.stock, self.min_stock = name, stock, min_stock

    message = build_low_stock_message("Asha Boutique", [Item("Silk Saree", 1, 1), Item("Belt", 2, None)])

    assert message.startswith("🚨 LOW STOCK ALERT - Asha Boutique")
    assert "• Silk Saree: 1 left (Min: 1)" in message
    assert "• Belt: 2 left (Min: 10)" in message
    assert "Total items: 2" in message


def test_low_stock_report_uses_min_stock(client, db_session):
    tenant, user = _stocked_store(db_session)
    headers = tenant_headers(client, user)

    response = client.get("/api/alerts/low-stock", headers=headers)

    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Low stock alert generated"
    assert [(row["name"], row["stock"], row["min_stock"]) for row in payload["products"]] == [
        ("Silk Saree", 1, 1),
        ("Linen Dupatta", 3, 5),
    ]
    assert "Linen Dupatta: 3 left (Min: 5)" in payload["alert_message"]
    assert payload["whatsapp_url"] is None
    db_session.expire_all()
    assert db_session.query(AuditEvent).filter_by(tenant_id=str(tenant.id), action="alert.low_stock").count() == 1


def test_low_stock_whatsapp_link_needs_store_phone(client, db_session):
    tenant, user = _stocked_store(db_session)
    headers = tenant_headers(client, user)

    missing = client.post("/api/alerts/low-stock", headers=headers)
    assert missing.status_code == 422
    assert missing.json()["details"] == {"field": "phone"}

    settings_row = db_session.query(TenantSettings).filter_by(tenant_id=tenant.id).one()
    settings_row.phone = "+91 98765-43210"
    db_session.commit()

    response = client.post("/api/alerts/low-stock", headers=headers)

    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Low stock alert ready to send"
    assert payload["whatsapp_url"].startswith("https://wa.me/919876543210?text=")
    assert "Silk Saree: 1 left" in unquote(payload["whatsapp_url"])


def test_no_low_stock_items(client, db_session):
    tenant, user = create_tenant(db_session)
    create_product(db_session, tenant, stock=50)
    headers = tenant_headers(client, user)

    response = client.get("/api/alerts/low-stock", headers=headers)

    assert response.status_code == 200
    assert response.json()["message"] == "No low stock items found"
    assert response.json()["products"] == []
