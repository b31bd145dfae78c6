from datetime import datetime, timedelta

from app.shopdesk.services.analytics import growth_pct
from app.shopdesk.services.cart import to_decimal
from tests.helpers import checkout, create_product, create_tenant, tenant_headers


def test_growth_needs_a_positive_baseline():
    assert growth_pct(to_decimal(300), to_decimal(200)) == 50.0
    assert growth_pct(to_decimal(70), to_decimal(200)) == -65.0
    assert growth_pct(to_decimal(300), to_decimal(0)) == 0.0
    assert growth_pct(to_decimal(300), to_decimal(-20)) == 0.0


def test_expenses_crud(client, db_session):
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)

    rent = client.post("/api/expenses", headers=headers, json={"title": "Shop rent", "amount": "12000", "category": "Rent"})
    assert rent.status_code == 201
    untitled = client.post("/api/expenses", headers=headers, json={"amount": "250.555"})
    assert untitled.status_code == 201
    assert untitled.json()["title"] == "Untitled Expense"
    assert untitled.json()["category"] == "General"
    assert untitled.json()["amount"] == 250.56

    listing = client.get("/api/expenses", headers=headers).json()
    assert len(listing["expenses"]) == 2
    assert listing["total"] == 12250.56
    rent_only = client.get("/api/expenses", params={"category": "rent"}, headers=headers).json()
    assert [row["title"] for row in rent_only["expenses"]] == ["Shop rent"]

    assert client.delete(f"/api/expenses/{rent.json()['id']}", headers=headers).status_code == 200
    assert client.delete(f"/api/expenses/{rent.json()['id']}", headers=headers).status_code == 404
    assert client.post("/api/expenses", headers=headers, json={"amount": -1}).status_code == 422


def test_expenses_are_tenant_scoped(client, db_session):
    _, first = create_tenant(db_session)
    _, second = create_tenant(db_session, name="Other Store")
    expense = client.post("/api/expenses", headers=tenant_headers(client, first), json={"amount": 10}).json()

    other = tenant_headers(client, second)
    assert client.get("/api/expenses", headers=other).json()["expenses"] == []
    assert client.delete(f"/api/expenses/{expense['id']}", headers=other).status_code == 404


def test_sales_summary_compares_with_previous_period(client, db_session):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant, price=100, stock=10)
    product.cost_price = 60
    db_session.commit()
    headers = tenant_headers(client, user)

    assert checkout(client, headers, product, quantity=3).status_code == 201
    client.post("/api/expenses", headers=headers, json={"title": "Tea", "amount": 50})
    old_date = (datetime.utcnow() - timedelta(days=45)).replace(microsecond=0).isoformat()
    body = (
        "Bill No,Customer Name,Customer Phone,Items,Subtotal,Discount,Discount Amount,Tax,Total,Payment Method,Staff,Date\n"
        f"OLD-1,Asha,,\"Old Stock (Qty: 2, Price: 100.00, Total: 200.00)\",200,0,0,0,200,cash,,{old_date}\n"
    )
    imported = client.post("/api/pos/sales/import", headers={**headers, "Content-Type": "text/csv"}, content=body)
    assert imported.json()["imported"] == 1

    response = client.get("/api/analytics/summary", params={"days": 30}, headers=headers)

    assert response.status_code == 200
    summary = response.json()
    assert summary["days"] == 30
    assert summary["total_revenue"] == 300
    assert summary["total_expenses"] == 50
    assert summary["total_profit"] == 70
    assert summary["total_transactions"] == 1
    assert summary["profit_margin"] == 23.33
    assert summary["sales_growth"] == 50.0
    assert summary["profit_growth"] == -65.0
    assert summary["top_products"] == [{"name": "Cotton Kurti", "quantity": 3, "revenue": 300.0, "profit": 120.0}]
    assert summary["trace_id"]


def test_sales_summary_rejects_bad_period_and_needs_reports(client, db_session):
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)
    assert client.get("/api/analytics/summary", params={"days": 0}, headers=headers).status_code == 422

    _, basic = create_tenant(db_session, name="Basic Store", features=["pos", "expenses"])
    response = client.get("/api/analytics/summary", headers=tenant_headers(client, basic))
    assert response.status_code == 403
    assert response.json()["details"] == {"feature": "reports"}
