from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.shopdesk.core.context import RequestContext
from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.db.models import Expense
from app.shopdesk.db.session import get_db
from app.shopdesk.repos.expenses import ExpenseRepository
from app.shopdesk.schemas.common import ActionResponse
from app.shopdesk.schemas.expenses import ExpenseCreateRequest, ExpenseItem, ExpenseListResponse
from app.shopdesk.services.cart import money
from app.shopdesk.services.plan_gating import require_feature

router = APIRouter()

DEFAULT_TITLE = "Untitled Expense"
DEFAULT_CATEGORY = "General"


def _expense_item(expense: Expense) -> ExpenseItem:
    return ExpenseItem(
        id=str(expense.id),
        title=expense.title,
        amount=expense.amount,
        category=expense.category,
        description=expense.description,
        spent_on=expense.spent_on,
        created_by=expense.created_by,
        created_at=expense.created_at,
    )


@router.get("/api/expenses", response_model=ExpenseListResponse)
def list_expenses(
    category: str | None = Query(default=None),
    context: RequestContext = Depends(require_feature("expenses")),
    db=Depends(get_db),
):
    rows = ExpenseRepository(db).list_by_tenant(context.tenant_id, category=category)
    return ExpenseListResponse(
        expenses=[_expense_item(row) for row in rows],
        total=money(sum(row.amount for row in rows)),
        trace_id=context.trace_id,
    )


@router.post("/api/expenses", response_model=ExpenseItem, status_code=201)
def create_expense(
    payload: ExpenseCreateRequest,
    context: RequestContext = Depends(require_feature("expenses")),
    db=Depends(get_db),
):
    now = datetime.utcnow()
    expense = Expense(
        tenant_id=context.tenant_id,
        title=(payload.title or "").strip() or DEFAULT_TITLE,
        amount=money(payload.amount),
        category=(payload.category or "").strip() or DEFAULT_CATEGORY,
        description=payload.description,
        spent_on=payload.spent_on or now,
        created_by=context.username,
        created_at=now,
        updated_at=now,
    )
    return _expense_item(ExpenseRepository(db).create(expense))


@router.delete("/api/expenses/{expense_id}", response_model=ActionResponse)
def delete_expense(
    expense_id: UUID,
    context: RequestContext = Depends(require_feature("expenses")),
    db=Depends(get_db),
):
    repo = ExpenseRepository(db)
    expense = repo.get_in_tenant(expense_id, context.tenant_id)
    if expense is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"expense_id": str(expense_id)}, message="Expense not found")
    repo.delete(expense)
    return ActionResponse(message="Expense deleted", count=1, trace_id=context.trace_id)
