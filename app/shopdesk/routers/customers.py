from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, Request

from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.db.models import Customer
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.customers import CustomerRepository
from app.shopdesk.routers.csv_io import csv_download, import_result, read_csv_upload
from app.shopdesk.schemas.common import ActionResponse, ImportResultResponse
from app.shopdesk.schemas.customers import (
    CustomerCreateRequest,
    CustomerItem,
    CustomerListResponse,
    CustomerUpdateRequest,
)
from app.shopdesk.services.audit import AuditEventPayload, AuditService
from app.shopdesk.services.csv_codec import CUSTOMERS_SCHEMA
from app.shopdesk.services.delete_guard import DELETE_PASSWORD_HEADER, verify_delete_password
from app.shopdesk.services.plan_gating import require_feature

router = APIRouter()


def _customer_item(customer: Customer) -> CustomerItem:
    return CustomerItem(
        id=str(customer.id),
        name=customer.name,
        phone=customer.phone,
        email=customer.email,
        address=customer.address,
        order_count=customer.order_count,
        total_spent=customer.total_spent,
        last_order_date=customer.last_order_date,
        created_at=customer.created_at,
    )


def _get_customer(db, customer_id: UUID, tenant_id: str) -> Customer:
    customer = CustomerRepository(db).get_in_tenant(customer_id, tenant_id)
    if customer is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"customer_id": str(customer_id)}, message="Customer not found")
    return customer


def _apply(customer: Customer, changes: dict) -> None:
    if changes.get("name"):
        customer.name = changes["name"].strip()
    for key in ("phone", "email", "address"):
        value = changes.get(key)
        if value is not None:
            setattr(customer, key, value.strip() or None)
    customer.updated_at = datetime.utcnow()


def _audit(db, context: RequestContext, action: str, count: int) -> None:
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action=action,
            entity_type="customer",
            metadata={"deleted": count},
        )
    )


@router.get("/api/customers", response_model=CustomerListResponse)
def list_customers(
    search: str | None = Query(default=None),
    context: RequestContext = Depends(require_feature("customers")),
    db=Depends(get_db),
):
    rows = CustomerRepository(db).list_by_tenant(context.tenant_id, search=search)
    return CustomerListResponse(customers=[_customer_item(row) for row in rows], trace_id=context.trace_id)


@router.post("/api/customers", response_model=CustomerItem)
def upsert_customer(
    payload: CustomerCreateRequest,
    context: RequestContext = Depends(require_feature("customers")),
    db=Depends(get_db),
):
    """Create a customer, or update the one already registered with this phone."""
    repo = CustomerRepository(db)
    customer = repo.get_by_phone(payload.phone, context.tenant_id) if payload.phone else None
    if customer is None:
        customer = Customer(tenant_id=context.tenant_id, name=payload.name.strip(), order_count=0, total_spent=0)
    _apply(customer, payload.model_dump())
    return _customer_item(repo.update(customer))


@router.get("/api/customers/export")
def export_customers(
    context: RequestContext = Depends(require_feature("customers")),
    db=Depends(get_db),
):
    rows = CustomerRepository(db).list_by_tenant(context.tenant_id)
    return csv_download(
        CUSTOMERS_SCHEMA,
        (
            {
                "name": row.name,
                "phone": row.phone,
                "email": row.email,
                "address": row.address,
                "order_count": row.order_count,
                "total_spent": row.total_spent,
                "last_order_date": row.last_order_date,
                "created_at": row.created_at,
            }
            for row in rows
        ),
        "customers.csv",
    )


@router.post("/api/customers/import", response_model=ImportResultResponse)
async def import_customers(
    request: Request,
    context: RequestContext = Depends(require_feature("customers")),
    db=Depends(get_db),
):
    parsed = await read_csv_upload(request, CUSTOMERS_SCHEMA)
    repo = CustomerRepository(db)
    imported = 0
    errors = []
    for index, row in enumerate(parsed.rows, start=1):
        if row.get("phone") and repo.get_by_phone(row["phone"], context.tenant_id) is not None:
            errors.append({"row": index, "message": f"Customer with phone {row['phone']} already exists"})
            continue
        repo.add(
            Customer(
                tenant_id=context.tenant_id,
                name=row["name"],
                phone=row.get("phone"),
                email=row.get("email"),
                address=row.get("address"),
                order_count=row.get("order_count") or 0,
                total_spent=row.get("total_spent") or 0,
                last_order_date=row.get("last_order_date"),
                created_at=row.get("created_at") or datetime.utcnow(),
            )
        )
        db.flush()
        imported += 1
    db.commit()
    return import_result(parsed, imported, errors, context.trace_id)


@router.delete("/api/customers/clear", response_model=ActionResponse)
def clear_customers(
    delete_password: str | None = Header(default=None, alias=DELETE_PASSWORD_HEADER),
    context: RequestContext = Depends(require_feature("customers")),
    db=Depends(get_db),
):
    verify_delete_password(db, context.tenant_id, delete_password)
    count = CustomerRepository(db).clear_tenant(context.tenant_id)
    _audit(db, context, "customer.clear", count)
    return ActionResponse(message=f"Deleted {count} customers", count=count, trace_id=context.trace_id)


@router.get("/api/customers/{customer_id}", response_model=CustomerItem)
def get_customer(
    customer_id: UUID,
    context: RequestContext = Depends(require_feature("customers")),
    db=Depends(get_db),
):
    return _customer_item(_get_customer(db, customer_id, context.tenant_id))


@router.put("/api/customers/{customer_id}", response_model=CustomerItem)
def update_customer(
    customer_id: UUID,
    payload: CustomerUpdateRequest,
    context: RequestContext = Depends(require_feature("customers")),
    db=Depends(get_db),
):
    customer = _get_customer(db, customer_id, context.tenant_id)
    _apply(customer, payload.model_dump(exclude_unset=True))
    return _customer_item(CustomerRepository(db).update(customer))


@router.delete("/api/customers/{customer_id}", response_model=ActionResponse)
def delete_customer(
    customer_id: UUID,
    delete_password: str | None = Header(default=None, alias=DELETE_PASSWORD_HEADER),
    context: RequestContext = Depends(require_feature("customers")),
    db=Depends(get_db),
):
    customer = _get_customer(db, customer_id, context.tenant_id)
    verify_delete_password(db, context.tenant_id, delete_password)
    CustomerRepository(db).delete(customer)
    _audit(db, context, "customer.delete", 1)
    return ActionResponse(message="Customer deleted", count=1, trace_id=context.trace_id)
