from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.exc import IntegrityError

from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.db.models import Employee
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.employees import EmployeeRepository
from app.shopdesk.routers.csv_io import csv_download, import_result, read_csv_upload
from app.shopdesk.schemas.common import ActionResponse, ImportResultResponse
from app.shopdesk.schemas.employees import (
    EmployeeCreateRequest,
    EmployeeItem,
    EmployeeListResponse,
    EmployeeUpdateRequest,
)
from app.shopdesk.services.audit import AuditEventPayload, AuditService
from app.shopdesk.services.cart import money
from app.shopdesk.services.csv_codec import EMPLOYEES_SCHEMA
from app.shopdesk.services.delete_guard import DELETE_PASSWORD_HEADER, verify_delete_password
from app.shopdesk.services.plan_gating import require_feature

router = APIRouter()

MONEY_FIELDS = ("salary", "commission_rate", "sales_target")
COMMISSION_TYPES = ("none", "percentage")


def _employee_item(employee: Employee) -> EmployeeItem:
    return EmployeeItem(
        id=str(employee.id),
        employee_code=employee.employee_code,
        name=employee.name,
        phone=employee.phone,
        email=employee.email,
        department=employee.department,
        position=employee.position,
        salary=employee.salary,
        commission_type=employee.commission_type,
        commission_rate=employee.commission_rate,
        sales_target=employee.sales_target,
        status=employee.status,
        created_at=employee.created_at,
    )


def _get_employee(db, employee_id: UUID, tenant_id: str) -> Employee:
    employee = EmployeeRepository(db).get_in_tenant(employee_id, tenant_id)
    if employee is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"employee_id": str(employee_id)}, message="Employee not found")
    return employee


@router.get("/api/employees", response_model=EmployeeListResponse)
def list_employees(
    context: RequestContext = Depends(require_feature("hr")),
    db=Depends(get_db),
):
    rows = EmployeeRepository(db).list_by_tenant(context.tenant_id)
    return EmployeeListResponse(employees=[_employee_item(row) for row in rows], trace_id=context.trace_id)


@router.post("/api/employees", response_model=EmployeeItem, status_code=201)
def create_employee(
    payload: EmployeeCreateRequest,
    context: RequestContext = Depends(require_feature("hr")),
    db=Depends(get_db),
):
    repo = EmployeeRepository(db)
    if repo.get_by_code(payload.employee_code, context.tenant_id) is not None:
        raise AppError(
            ErrorCatalog.DUPLICATE_RESOURCE,
            details={"employee_code": payload.employee_code},
            message="Employee ID already exists",
        )
    data = payload.model_dump()
    for key in MONEY_FIELDS:
        data[key] = money(data[key])
    data["employee_code"] = data["employee_code"].strip()
    try:
        employee = repo.create(Employee(tenant_id=context.tenant_id, **data))
    except IntegrityError as exc:
        db.rollback()
        raise AppError(ErrorCatalog.DUPLICATE_RESOURCE, message="Employee ID already exists") from exc
    return _employee_item(employee)


@router.get("/api/employees/export")
def export_employees(
    context: RequestContext = Depends(require_feature("hr")),
    db=Depends(get_db),
):
    rows = EmployeeRepository(db).list_by_tenant(context.tenant_id)
    return csv_download(
        EMPLOYEES_SCHEMA,
        (
            {
                "employee_code": row.employee_code,
                "name": row.name,
                "phone": row.phone,
                "email": row.email,
                "department": row.department,
                "position": row.position,
                "salary": row.salary,
                "commission_type": row.commission_type,
                "commission_rate": row.commission_rate,
                "sales_target": row.sales_target,
                "status": row.status,
            }
            for row in rows
        ),
        "employees.csv",
    )


@router.post("/api/employees/import", response_model=ImportResultResponse)
async def import_employees(
    request: Request,
    context: RequestContext = Depends(require_feature("hr")),
    db=Depends(get_db),
):
    parsed = await read_csv_upload(request, EMPLOYEES_SCHEMA)
    repo = EmployeeRepository(db)
    imported = 0
    errors = []
    seen: set[str] = set()
    for index, row in enumerate(parsed.rows, start=1):
        code = row["employee_code"]
        if code in seen or repo.get_by_code(code, context.tenant_id) is not None:
            errors.append({"row": index, "message": f"Employee ID {code} already exists"})
            continue
        if row["commission_type"] not in COMMISSION_TYPES:
            errors.append({"row": index, "message": f"Unknown commission type '{row['commission_type']}'"})
            continue
        seen.add(code)
        repo.add(Employee(tenant_id=context.tenant_id, **row))
        imported += 1
    db.commit()
    return import_result(parsed, imported, errors, context.trace_id)


@router.delete("/api/employees/clear", response_model=ActionResponse)
def clear_employees(
    delete_password: str | None = Header(default=None, alias=DELETE_PASSWORD_HEADER),
    context: RequestContext = Depends(require_feature("hr")),
    db=Depends(get_db),
):
    verify_delete_password(db, context.tenant_id, delete_password)
    count = EmployeeRepository(db).clear_tenant(context.tenant_id)
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action="employee.clear",
            entity_type="employee",
            metadata={"deleted": count},
        )
    )
    return ActionResponse(message=f"Deleted {count} employees", count=count, trace_id=context.trace_id)


@router.get("/api/employees/{employee_id}", response_model=EmployeeItem)
def get_employee(
    employee_id: UUID,
    context: RequestContext = Depends(require_feature("hr")),
    db=Depends(get_db),
):
    return _employee_item(_get_employee(db, employee_id, context.tenant_id))


@router.put("/api/employees/{employee_id}", response_model=EmployeeItem)
def update_employee(
    employee_id: UUID,
    payload: EmployeeUpdateRequest,
    context: RequestContext = Depends(require_feature("hr")),
    db=Depends(get_db),
):
    employee = _get_employee(db, employee_id, context.tenant_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(employee, key, money(value) if key in MONEY_FIELDS else value)
    employee.updated_at = datetime.utcnow()
    return _employee_item(EmployeeRepository(db).update(employee))


@router.delete("/api/employees/{employee_id}", response_model=ActionResponse)
def delete_employee(
    employee_id: UUID,
    context: RequestContext = Depends(require_feature("hr")),
    db=Depends(get_db),
):
    EmployeeRepository(db).delete(_get_employee(db, employee_id, context.tenant_id))
    return ActionResponse(message="Employee deleted", count=1, trace_id=context.trace_id)
