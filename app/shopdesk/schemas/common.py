from pydantic import BaseModel


class ActionResponse(BaseModel):
    ok: bool = True
    message: str
    count: int | None = None
    trace_id: str


class ImportErrorItem(BaseModel):
    line: int | None = None
    row: int | None = None
    message: str


class ImportResultResponse(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "imported": 12,
                "skipped": 1,
                "errors": [{"line": 4, "message": "Column 'Total' is required"}],
                "trace_id": "trace-123",
            }
        }
    }

    imported: int
    skipped: int
    errors: list[ImportErrorItem]
    trace_id: str


class ListPaginationMeta(BaseModel):
    total: int
    count: int
    page: int
    page_size: int
