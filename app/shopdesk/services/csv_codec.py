"""One CSV reader/writer shared by every import and export endpoint.

Each entity declares a ``CsvSchema``: the ordered header names, the dict key
each column maps to, and how a cell is parsed and formatted. Files use
comma separators, ``""`` to escape quotes inside quoted fields and one record
per line. The first row is always the header.
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable

from app.shopdesk.services.cart import money


def _text(value: str) -> str:
    return value.strip()


def _optional_text(value: str) -> str | None:
    value = value.strip()
    return value or None


def _number(value: str) -> float:
    value = value.strip()
    if not value:
        return 0.0
    return money(value.replace(",", ""))


def _integer(value: str) -> int:
    value = value.strip()
    if not value:
        return 0
    return int(float(value))


def _timestamp(value: str) -> datetime | None:
    value = value.strip()
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)


def _format_default(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.replace(microsecond=0).isoformat()
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


@dataclass(frozen=True)
class CsvColumn:
    header: str
    key: str
    parse: Callable[[str], object] = _text
    format: Callable[[object], str] = _format_default
    required: bool = False


@dataclass(frozen=True)
class CsvSchema:
    entity: str
    columns: tuple[CsvColumn, ...]

    @property
    def headers(self) -> list[str]:
        return [column.header for column in self.columns]


@dataclass
class CsvParseResult:
    rows: list[dict] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.errors)


ITEM_PATTERN = re.compile(
    r"(?P<name>.+?) \(Qty: (?P<quantity>\d+), Price: (?P<price>-?[\d.]+), Total: (?P<total>-?[\d.]+)\)(?:; |$)"
)


def format_bill_items(items: Iterable[dict]) -> str:
    return "; ".join(
        f"{item['name']} (Qty: {int(item['quantity'])}, Price: {money(item['price']):.2f}, "
        f"Total: {money(item['total']):.2f})"
        for item in items
    )


def _parse_item_list(pattern: re.Pattern, value: str, build: Callable[[re.Match], dict]) -> list[dict]:
    value = value.strip()
    if not value:
        return []
    items = []
    position = 0
    for match in pattern.finditer(value):
        if match.start() != position:
            raise ValueError(f"Unreadable item list near: {value[position:match.start()]!r}")
        items.append(build(match))
        position = match.end()
    if position != len(value):
        raise ValueError(f"Unreadable item list near: {value[position:]!r}")
    return items


def parse_bill_items(value: str) -> list[dict]:
    return _parse_item_list(
        ITEM_PATTERN,
        value,
        lambda match: {
            "name": match.group("name").strip(),
            "quantity": int(match.group("quantity")),
            "price": money(match.group("price")),
            "total": money(match.group("total")),
        },
    )


PURCHASE_ITEM_PATTERN = re.compile(
    r"(?P<name>.+?)(?: \[(?P<sku>[^\]]+)\])? \(Qty: (?P<quantity>\d+), Unit Price: (?P<unit_price>[\d.]+)\)(?:; |$)"
)


def format_purchase_items(items: Iterable[dict]) -> str:
    return "; ".join(
        f"{item['name']}{' [' + item['sku'] + ']' if item.get('sku') else ''} "
        f"(Qty: {int(item['quantity'])}, Unit Price: {money(item['unit_price']):.2f})"
        for item in items
    )


def parse_purchase_items(value: str) -> list[dict]:
    return _parse_item_list(
        PURCHASE_ITEM_PATTERN,
        value,
        lambda match: {
            "name": match.group("name").strip(),
            "sku": match.group("sku"),
            "quantity": int(match.group("quantity")),
            "unit_price": money(match.group("unit_price")),
        },
    )


BILLS_SCHEMA = CsvSchema(
    entity="bills",
    columns=(
        CsvColumn("Bill No", "bill_no", required=True),
        CsvColumn("Customer Name", "customer_name"),
        CsvColumn("Customer Phone", "customer_phone", _optional_text),
        CsvColumn("Items", "items", parse_bill_items, format_bill_items, required=True),
        CsvColumn("Subtotal", "subtotal", _number),
        CsvColumn("Discount", "discount", _number),
        CsvColumn("Discount Amount", "discount_amount", _number),
        CsvColumn("Tax", "tax", _number),
        CsvColumn("Total", "total", _number, required=True),
        CsvColumn("Payment Method", "payment_method"),
        CsvColumn("Staff", "staff_member", _optional_text),
        CsvColumn("Date", "created_at", _timestamp),
    ),
)

CUSTOMERS_SCHEMA = CsvSchema(
    entity="customers",
    columns=(
        CsvColumn("Name", "name", required=True),
        CsvColumn("Phone", "phone", _optional_text),
        CsvColumn("Email", "email", _optional_text),
        CsvColumn("Address", "address", _optional_text),
        CsvColumn("Order Count", "order_count", _integer),
        CsvColumn("Total Spent", "total_spent", _number),
        CsvColumn("Last Order Date", "last_order_date", _timestamp),
        CsvColumn("Created At", "created_at", _timestamp),
    ),
)

COMMISSIONS_SCHEMA = CsvSchema(
    entity="commissions",
    columns=(
        CsvColumn("Employee ID", "employee_id", required=True),
        CsvColumn("Employee Name", "employee_name"),
        CsvColumn("Commission Type", "commission_type", lambda value: value.strip().lower() or "none"),
        CsvColumn("Commission Rate", "commission_rate", _number),
        CsvColumn("Sales Count", "sales_count", _integer),
        CsvColumn("Total Sales", "total_sales", _number),
        CsvColumn("Target Achieved %", "target_achieved", _integer),
        CsvColumn("Commission Earned", "commission_earned", _number),
        CsvColumn("Month", "month"),
    ),
)

EMPLOYEES_SCHEMA = CsvSchema(
    entity="employees",
    columns=(
        CsvColumn("Employee ID", "employee_code", required=True),
        CsvColumn("Name", "name", required=True),
        CsvColumn("Phone", "phone", _optional_text),
        CsvColumn("Email", "email", _optional_text),
        CsvColumn("Department", "department", _optional_text),
        CsvColumn("Position", "position", _optional_text),
        CsvColumn("Salary", "salary", _number),
        CsvColumn("Commission Type", "commission_type", lambda value: value.strip().lower() or "none"),
        CsvColumn("Commission Rate", "commission_rate", _number),
        CsvColumn("Sales Target", "sales_target", _number),
        CsvColumn("Status", "status", lambda value: value.strip().lower() or "active"),
    ),
)

PURCHASES_SCHEMA = CsvSchema(
    entity="purchases",
    columns=(
        CsvColumn("PO Number", "po_number", required=True),
        CsvColumn("Supplier Name", "supplier_name", required=True),
        CsvColumn("Supplier Contact", "supplier_contact", _optional_text),
        CsvColumn("Order Date", "order_date", _timestamp),
        CsvColumn("Items", "items", parse_purchase_items, format_purchase_items),
        CsvColumn("Subtotal", "subtotal", _number),
        CsvColumn("Tax", "tax", _number),
        CsvColumn("Total", "total", _number),
        CsvColumn("Status", "status", lambda value: value.strip().lower() or "pending"),
        CsvColumn("Notes", "notes", _optional_text),
    ),
)

INVENTORY_SCHEMA = CsvSchema(
    entity="inventory",
    columns=(
        CsvColumn("Name", "name", required=True),
        CsvColumn("SKU", "sku", _optional_text),
        CsvColumn("Barcode", "barcode", _optional_text),
        CsvColumn("Category", "category", _optional_text),
        CsvColumn("Price", "price", _number),
        CsvColumn("Cost Price", "cost_price", _number),
        CsvColumn("Stock", "stock", _integer),
        CsvColumn("Min Stock", "min_stock", _integer),
    ),
)


def serialize(schema: CsvSchema, rows: Iterable[dict]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(schema.headers)
    for row in rows:
        writer.writerow([column.format(row.get(column.key)) for column in schema.columns])
    return buffer.getvalue()


def parse(schema: CsvSchema, text: str) -> CsvParseResult:
    """Parse ``text`` against ``schema``; bad rows are reported, not raised."""
    result = CsvParseResult()
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    header_seen = False
    for values in reader:
        if not any(value.strip() for value in values):
            continue
        if not header_seen:
            header_seen = True
            continue
        line = reader.line_num
        if len(values) < len(schema.columns):
            missing = [column for column in schema.columns[len(values):] if column.required]
            if missing:
                result.errors.append({"line": line, "message": f"Missing column '{missing[0].header}'"})
                continue
            values = values + [""] * (len(schema.columns) - len(values))
        row = {}
        try:
            for column, raw in zip(schema.columns, values):
                if column.required and not raw.strip():
                    raise ValueError(f"Column '{column.header}' is required")
                row[column.key] = column.parse(raw)
        except (ValueError, ArithmeticError) as exc:
            result.errors.append({"line": line, "message": str(exc)})
            continue
        result.rows.append(row)
    return result
