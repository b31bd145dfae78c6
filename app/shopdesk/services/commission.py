from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.repos.employees import EmployeeRepository
from app.shopdesk.repos.sales import SaleRepository
from app.shopdesk.services.cart import HUNDRED, money, round2, to_decimal

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")
COMMISSION_TYPES = {"none", "percentage"}


def round_whole(value) -> int:
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def current_month(now: datetime | None = None) -> str:
    return (now or datetime.utcnow()).strftime("%Y-%m")


def month_bounds(month: str) -> tuple[datetime, datetime]:
    match = MONTH_PATTERN.match(month or "")
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"month": month}, message="Month must be YYYY-MM")
    year, month_number = int(match.group(1)), int(match.group(2))
    start = datetime(year, month_number, 1)
    end = datetime(year + 1, 1, 1) if month_number == 12 else datetime(year, month_number + 1, 1)
    return start, end


@dataclass(frozen=True)
class CommissionRow:
    employee_id: str
    employee_name: str
    commission_type: str
    commission_rate: float
    total_sales: float
    sales_count: int
    target_achieved: int
    commission_earned: int
    month: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CommissionSummary:
    total_commissions: float
    total_sales: float
    avg_commission: float
    employees: int


def _matches(staff_member: str | None, employee) -> bool:
    staff = (staff_member or "").strip().lower()
    if not staff:
        return False
    return staff in {(employee.name or "").strip().lower(), (employee.employee_code or "").strip().lower()}


def calculate_commissions(employees: Iterable, sales: Iterable, month: str) -> list[CommissionRow]:
    """Attribute each sale to the employee whose name or code matches its staff member."""
    sales = list(sales)
    rows = []
    for employee in employees:
        if not employee.commission_type or employee.commission_type == "none":
            continue
        own_sales = [sale for sale in sales if _matches(sale.staff_member, employee)]
        total_sales = sum((to_decimal(sale.total) for sale in own_sales), Decimal("0"))
        target = to_decimal(employee.sales_target)
        target_achieved = round_whole(total_sales / target * HUNDRED) if target > 0 else 0
        earned = 0
        if employee.commission_type == "percentage":
            earned = round_whole(total_sales * to_decimal(employee.commission_rate) / HUNDRED)
        rows.append(
            CommissionRow(
                employee_id=employee.employee_code,
                employee_name=employee.name,
                commission_type=employee.commission_type,
                commission_rate=money(employee.commission_rate),
                total_sales=money(total_sales),
                sales_count=len(own_sales),
                target_achieved=target_achieved,
                commission_earned=earned,
                month=month,
            )
        )
    return rows


def summarize(rows: list[CommissionRow]) -> CommissionSummary:
    total_commissions = sum((Decimal(row.commission_earned) for row in rows), Decimal("0"))
    total_sales = sum((to_decimal(row.total_sales) for row in rows), Decimal("0"))
    avg = round2(total_commissions / len(rows)) if rows else Decimal("0")
    return CommissionSummary(
        total_commissions=money(total_commissions),
        total_sales=money(total_sales),
        avg_commission=money(avg),
        employees=len(rows),
    )


class CommissionService:
    def __init__(self, db):
        self.db = db
        self.employees = EmployeeRepository(db)
        self.sales = SaleRepository(db)

    def calculate(self, tenant_id, month: str) -> list[CommissionRow]:
        start, end = month_bounds(month)
        employees = self.employees.list_by_tenant(tenant_id, with_commission_only=True)
        sales = self.sales.list_between(tenant_id, start, end)
        return calculate_commissions(employees, sales, month)

    def import_rows(self, tenant_id, rows: list[dict]) -> tuple[int, list[dict]]:
        updated = 0
        errors = []
        for index, row in enumerate(rows, start=1):
            employee = self.employees.get_by_code(row["employee_id"], tenant_id)
            if employee is None:
                errors.append({"row": index, "message": f"Employee {row['employee_id']} not found"})
                continue
            commission_type = row.get("commission_type") or "none"
            if commission_type not in COMMISSION_TYPES:
                errors.append({"row": index, "message": f"Unsupported commission type '{commission_type}'"})
                continue
            employee.commission_type = commission_type
            employee.commission_rate = row.get("commission_rate") or 0
            employee.updated_at = datetime.utcnow()
            self.employees.update(employee)
            updated += 1
        return updated, errors

    def reset(self, tenant_id, employee_codes: Iterable[str] | None = None) -> int:
        """Switch commission off for the given employees (all when None).

        Each employee is saved on its own; the count reflects what actually
        changed when a later record fails.
        """
        if employee_codes is None:
            targets = self.employees.list_by_tenant(tenant_id, with_commission_only=True)
        else:
            targets = []
            for code in dict.fromkeys(employee_codes):
                employee = self.employees.get_by_code(code, tenant_id)
                if employee is not None:
                    targets.append(employee)
        reset_count = 0
        for employee in targets:
            employee.commission_type = "none"
            employee.commission_rate = 0
            employee.updated_at = datetime.utcnow()
            try:
                self.employees.update(employee)
            except Exception:
                self.db.rollback()
                logger.exception("Failed to reset commission", extra={"employee_id": str(employee.id)})
                continue
            reset_count += 1
        return reset_count
