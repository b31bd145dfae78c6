from datetime import datetime

from app.shopdesk.services.csv_codec import (
    BILLS_SCHEMA,
    CUSTOMERS_SCHEMA,
    format_bill_items,
    parse,
    parse_bill_items,
    serialize,
)


def _bill(**overrides):
    bill = {
        "bill_no": "FS-001",
        "customer_name": 'Asha "Boutique", Pune',
        "customer_phone": "9876543210",
        "items": [
            {"name": "Kurti", "quantity": 2, "price": 100.0, "total": 200.0},
            {"name": "Scarf", "quantity": 1, "price": 49.5, "total": 49.5},
        ],
        "subtotal": 249.5,
        "discount": 10.0,
        "discount_amount": 24.95,
        "tax": 11.23,
        "total": 235.78,
        "payment_method": "upi",
        "staff_member": "Ravi",
        "created_at": datetime(2024, 3, 5, 14, 30, 0),
    }
    bill.update(overrides)
    return bill


def test_bills_round_trip_preserves_values():
    bills = [_bill(), _bill(bill_no="FS-002", customer_phone=None, staff_member=None)]

    result = parse(BILLS_SCHEMA, serialize(BILLS_SCHEMA, bills))

    assert result.errors == []
    assert result.rows == bills


def test_header_row_is_first():
    text = serialize(BILLS_SCHEMA, [])

    assert text.splitlines() == [",".join(BILLS_SCHEMA.headers)]


def test_quotes_and_commas_are_escaped():
    text = serialize(CUSTOMERS_SCHEMA, [{"name": 'He said "hi", then left'}])

    assert '"He said ""hi"", then left"' in text
    assert parse(CUSTOMERS_SCHEMA, text).rows[0]["name"] == 'He said "hi", then left'


def test_item_list_format():
    items = [{"name": "Kurti", "quantity": 2, "price": 100, "total": 200}]

    assert format_bill_items(items) == "Kurti (Qty: 2, Price: 100.00, Total: 200.00)"
    assert parse_bill_items(format_bill_items(items)) == [
        {"name": "Kurti", "quantity": 2, "price": 100.0, "total": 200.0}
    ]


def test_bad_rows_are_reported_not_raised():
    header = ",".join(BILLS_SCHEMA.headers)
    text = "\n".join(
        [
            header,
            'FS-010,Walk-in,,"Kurti (Qty: 1, Price: 10.00, Total: 10.00)",10,0,0,0,10,cash,,',
            "FS-011,Walk-in,,garbage,10,0,0,0,10,cash,,",
            ',Walk-in,,"Kurti (Qty: 1, Price: 10.00, Total: 10.00)",10,0,0,0,10,cash,,',
            "",
        ]
    )

    result = parse(BILLS_SCHEMA, text)

    assert [row["bill_no"] for row in result.rows] == ["FS-010"]
    assert [error["line"] for error in result.errors] == [3, 4]
    assert result.skipped == 2


def test_byte_order_mark_and_blank_lines_are_ignored():
    text = "\ufeffName,Phone\n\nAsha,98765\n\n"

    result = parse(CUSTOMERS_SCHEMA, text)

    assert result.rows[0]["name"] == "Asha"
    assert result.rows[0]["phone"] == "98765"
    assert result.rows[0]["email"] is None
