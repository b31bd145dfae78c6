from fastapi import Request, Response

from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.schemas.common import ImportErrorItem, ImportResultResponse
from app.shopdesk.services.csv_codec import CsvParseResult, CsvSchema, parse, serialize

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def csv_download(schema: CsvSchema, rows, filename: str) -> Response:
    return Response(
        content=serialize(schema, rows),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def read_csv_upload(request: Request, schema: CsvSchema) -> CsvParseResult:
    """Parse a raw ``text/csv`` request body against ``schema``."""
    body = await request.body()
    try:
        text = body.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise AppError(ErrorCatalog.INVALID_CSV, details={"reason": "File must be UTF-8 encoded"}) from exc
    if not text.strip():
        raise AppError(ErrorCatalog.INVALID_CSV, details={"reason": "File is empty"})
    result = parse(schema, text)
    if not result.rows and not result.errors:
        raise AppError(ErrorCatalog.INVALID_CSV, details={"reason": "No data rows found"})
    return result


def import_result(parsed: CsvParseResult, imported: int, row_errors: list[dict], trace_id: str) -> ImportResultResponse:
    errors = [ImportErrorItem(**error) for error in parsed.errors + row_errors]
    return ImportResultResponse(
        imported=imported,
        skipped=len(errors),
        errors=errors,
        trace_id=trace_id,
    )
