from app.shopdesk.db.models import Sale
from app.shopdesk.services.cart import to_decimal
from app.shopdesk.services.checkout import implied_tax_rate
from tests.helpers import create_tenant, tenant_headers

HEADER = "Bill No,Customer Name,Customer Phone,Items,Subtotal,Discount,Discount Amount,Tax,Total,Payment Method,Staff,Date\n"


def test_implied_tax_rate():
    assert implied_tax_rate(to_decimal(1000), to_decimal(100), to_decimal(45)) == 5.0
    assert implied_tax_rate(to_decimal(300), to_decimal(0), to_decimal(37.5)) == 12.5
    assert implied_tax_rate(to_decimal(100), to_decimal(100), to_decimal(0)) == 0.0


def test_imported_bill_receipt_shows_its_tax_rate(client, db_session):
    tenant, user = create_tenant(db_session)
    headers = tenant_headers(client, user)
    body = HEADER + (
        'IMP-7,Asha,9876543210,"Silk Saree (Qty: 2, Price: 500.00, Total: 1000.00)",'
        "1000,10,100,45,945,upi,,2024-01-15T11:30:00\n"
    )

    imported = client.post("/api/pos/sales/import", headers={**headers, "Content-Type": "text/csv"}, content=body)
    assert imported.status_code == 200
    assert imported.json()["imported"] == 1

    db_session.expire_all()
    sale = db_session.query(Sale).filter_by(tenant_id=tenant.id, bill_no="IMP-7").one()
    assert sale.tax_rate == 5.0
    receipt = client.get(f"/api/receipt/{sale.id}", headers=headers)
    assert receipt.status_code == 200
    assert "Tax (5%)" in receipt.text


def test_bill_csv_needs_the_bills_feature(client, db_session):
    _, user = create_tenant(db_session, features=["pos"])
    headers = tenant_headers(client, user)

    export = client.get("/api/pos/sales/export", headers=headers)
    assert export.status_code == 403
    assert export.json()["details"] == {"feature": "bills"}
    imported = client.post("/api/pos/sales/import", headers={**headers, "Content-Type": "text/csv"}, content=HEADER)
    assert imported.status_code == 403
    assert client.get("/api/pos/sales", headers=headers).status_code == 200
