from tests.helpers import checkout, create_product, create_tenant, tenant_headers


def _sale(client, db_session, **fields):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant, name="Cotton <b>Kurti</b>", price=499)
    headers = tenant_headers(client, user)
    sale = checkout(client, headers, product, **fields).json()
    return headers, sale


def test_receipt_html_escapes_customer_values(client, db_session):
    headers, sale = _sale(client, db_session, customer_name="<script>alert(1)</script>")

    response = client.get(f"/api/receipt/{sale['id']}", headers=headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    body = response.text
    assert "<script>alert(1)</script>" not in body
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in body
    assert "Cotton &lt;b&gt;Kurti&lt;/b&gt;" in body
    assert sale["bill_no"] in body
    assert "window.print()" in body


def test_receipt_simple_format_and_unknown_format(client, db_session):
    headers, sale = _sale(client, db_session)

    simple = client.get(f"/api/receipt/{sale['id']}", params={"bill_format": "simple", "auto_print": "false"}, headers=headers)
    assert simple.status_code == 200
    assert "window.print()" not in simple.text

    unknown = client.get(f"/api/receipt/{sale['id']}", params={"bill_format": "fancy"}, headers=headers)
    assert unknown.status_code == 422


def test_public_receipt_needs_no_login(client, db_session):
    _, sale = _sale(client, db_session)

    response = client.get(f"/api/public-receipt/{sale['id']}")

    assert response.status_code == 200
    assert sale["bill_no"] in response.text
    assert "window.print()" not in response.text


def test_public_receipt_unknown_sale(client):
    response = client.get("/api/public-receipt/00000000-0000-0000-0000-000000000000")

    assert response.status_code == 404


def test_bill_pdf(client, db_session):
    headers, sale = _sale(client, db_session)

    response = client.get(f"/api/bill-pdf/{sale['id']}", headers=headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert f"Bill-{sale['bill_no']}.pdf" in response.headers["content-disposition"]


def test_receipt_is_tenant_scoped(client, db_session):
    _, sale = _sale(client, db_session)
    _, other_user = create_tenant(db_session, name="Other Store")

    response = client.get(f"/api/receipt/{sale['id']}", headers=tenant_headers(client, other_user))

    assert response.status_code == 404
