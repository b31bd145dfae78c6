from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, Request

from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.products import ProductRepository
from app.shopdesk.routers.csv_io import csv_download, import_result, read_csv_upload
from app.shopdesk.schemas.common import ActionResponse, ImportResultResponse
from app.shopdesk.schemas.inventory import (
    ProductCreateRequest,
    ProductItem,
    ProductListResponse,
    ProductUpdateRequest,
)
from app.shopdesk.services.audit import AuditEventPayload, AuditService
from app.shopdesk.services.csv_codec import INVENTORY_SCHEMA
from app.shopdesk.services.delete_guard import DELETE_PASSWORD_HEADER, verify_delete_password
from app.shopdesk.services.inventory import InventoryService
from app.shopdesk.services.plan_gating import require_feature

router = APIRouter()


def product_item(product) -> ProductItem:
    return ProductItem(
        id=str(product.id),
        name=product.name,
        sku=product.sku,
        barcode=product.barcode,
        category=product.category,
        price=product.price,
        original_price=product.original_price,
        cost_price=product.cost_price,
        stock=product.stock,
        min_stock=product.min_stock,
        status=product.status,
        attributes=product.attributes or {},
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def _get_product(db, product_id: UUID, tenant_id: str):
    product = ProductRepository(db).get_in_tenant(product_id, tenant_id)
    if product is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"product_id": str(product_id)}, message="Product not found")
    return product


@router.get("/api/inventory", response_model=ProductListResponse)
def list_products(
    search: str | None = Query(default=None),
    category: str | None = Query(default=None),
    context: RequestContext = Depends(require_feature("inventory")),
    db=Depends(get_db),
):
    rows = ProductRepository(db).list_by_tenant(context.tenant_id, search=search, category=category)
    return ProductListResponse(products=[product_item(row) for row in rows], trace_id=context.trace_id)


@router.post("/api/inventory", response_model=ProductItem, status_code=201)
def create_product(
    payload: ProductCreateRequest,
    context: RequestContext = Depends(require_feature("inventory")),
    db=Depends(get_db),
):
    product = InventoryService(db).create(context.tenant_id, payload.model_dump())
    return product_item(product)


@router.get("/api/inventory/export")
def export_products(
    context: RequestContext = Depends(require_feature("inventory")),
    db=Depends(get_db),
):
    rows = ProductRepository(db).list_by_tenant(context.tenant_id)
    return csv_download(
        INVENTORY_SCHEMA,
        (
            {
                "name": row.name,
                "sku": row.sku,
                "barcode": row.barcode,
                "category": row.category,
                "price": row.price,
                "cost_price": row.cost_price,
                "stock": row.stock,
                "min_stock": row.min_stock,
            }
            for row in rows
        ),
        "inventory.csv",
    )


@router.post("/api/inventory/import", response_model=ImportResultResponse)
async def import_products(
    request: Request,
    context: RequestContext = Depends(require_feature("inventory")),
    db=Depends(get_db),
):
    parsed = await read_csv_upload(request, INVENTORY_SCHEMA)
    imported, errors = InventoryService(db).import_rows(context.tenant_id, parsed.rows)
    return import_result(parsed, imported, errors, context.trace_id)


@router.delete("/api/inventory/clear", response_model=ActionResponse)
def clear_products(
    delete_password: str | None = Header(default=None, alias=DELETE_PASSWORD_HEADER),
    context: RequestContext = Depends(require_feature("inventory")),
    db=Depends(get_db),
):
    verify_delete_password(db, context.tenant_id, delete_password)
    count = ProductRepository(db).clear_tenant(context.tenant_id)
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
            actor=context.username or "unknown",
            action="inventory.clear",
            entity_type="product",
            metadata={"deleted": count},
        )
    )
    return ActionResponse(message=f"Deleted {count} products", count=count, trace_id=context.trace_id)


@router.get("/api/inventory/{product_id}", response_model=ProductItem)
def get_product(
    product_id: UUID,
    context: RequestContext = Depends(require_feature("inventory")),
    db=Depends(get_db),
):
    return product_item(_get_product(db, product_id, context.tenant_id))


@router.put("/api/inventory/{product_id}", response_model=ProductItem)
def update_product(
    product_id: UUID,
    payload: ProductUpdateRequest,
    context: RequestContext = Depends(require_feature("inventory")),
    db=Depends(get_db),
):
    product = _get_product(db, product_id, context.tenant_id)
    product = InventoryService(db).update(product, payload.model_dump(exclude_unset=True))
    return product_item(product)


@router.delete("/api/inventory/{product_id}", response_model=ActionResponse)
def delete_product(
    product_id: UUID,
    context: RequestContext = Depends(require_feature("inventory")),
    db=Depends(get_db),
):
    product = _get_product(db, product_id, context.tenant_id)
    ProductRepository(db).delete(product)
    return ActionResponse(message="Product deleted", trace_id=context.trace_id)
