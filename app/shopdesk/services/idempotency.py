import hashlib
import json
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.db.models import IdempotencyRecord
from app.shopdesk.repos.idempotency import IdempotencyRepository


IDEMPOTENCY_HEADER = "Idempotency-Key"
REPLAY_HEADER = "X-Idempotency-Result"
PLATFORM_SCOPE = "platform"


@dataclass
class IdempotencyReplay:
    status_code: int
    response_body: dict


class IdempotencyContext:
    def __init__(self, record: IdempotencyRecord, repo: IdempotencyRepository):
        self._record = record
        self._repo = repo

    def record_success(self, *, status_code: int, response_body: dict) -> None:
        self._record.status_code = status_code
        self._record.response_body = json.dumps(response_body, default=str)
        self._record.state = "succeeded"
        self._repo.update(self._record)

    def record_failure(self, *, status_code: int, response_body: dict) -> None:
        # Discard whatever the failed request left pending before persisting the outcome.
        self._repo.db.rollback()
        self._record.status_code = status_code
        self._record.response_body = json.dumps(response_body, default=str)
        self._record.state = "failed"
        self._repo.update(self._record)


class IdempotencyService:
    """Replay-safe command execution keyed by the Idempotency-Key header.

    A succeeded key replays the stored response; a failed key may be retried
    with the same payload, so a client that kept its cart after an error can
    resubmit without minting a new key.
    """

    def __init__(self, db):
        self.repo = IdempotencyRepository(db)

    @staticmethod
    def fingerprint(payload: object) -> str:
        payload_bytes = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
        return hashlib.sha256(payload_bytes).hexdigest()

    def start(
        self,
        *,
        tenant_id: str | None,
        endpoint: str,
        method: str,
        idempotency_key: str,
        request_hash: str,
    ) -> tuple[IdempotencyContext | None, IdempotencyReplay | None]:
        scope = str(tenant_id) if tenant_id else PLATFORM_SCOPE
        existing = self.repo.get_by_key(
            tenant_id=scope,
            endpoint=endpoint,
            method=method,
            idempotency_key=idempotency_key,
        )
        if existing:
            return self._handle_existing(existing, request_hash)

        record = IdempotencyRecord(
            tenant_id=scope,
            endpoint=endpoint,
            method=method,
            idempotency_key=idempotency_key,
            request_hash=request_hash,
            state="in_progress",
            status_code=None,
            response_body=None,
        )
        try:
            record = self.repo.create(record)
        except IntegrityError:
            self.repo.db.rollback()
            return self._handle_existing(
                self.repo.get_by_key(
                    tenant_id=scope,
                    endpoint=endpoint,
                    method=method,
                    idempotency_key=idempotency_key,
                ),
                request_hash,
            )

        return IdempotencyContext(record, self.repo), None

    def _handle_existing(
        self, existing: IdempotencyRecord | None, request_hash: str
    ) -> tuple[IdempotencyContext | None, IdempotencyReplay | None]:
        if existing is None:
            raise AppError(ErrorCatalog.IDEMPOTENCY_REQUEST_IN_PROGRESS)
        if existing.request_hash != request_hash:
            raise AppError(ErrorCatalog.IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD)
        if existing.state == "failed":
            existing.state = "in_progress"
            existing.status_code = None
            existing.response_body = None
            return IdempotencyContext(self.repo.update(existing), self.repo), None
        if existing.state == "in_progress" or existing.response_body is None or existing.status_code is None:
            raise AppError(ErrorCatalog.IDEMPOTENCY_REQUEST_IN_PROGRESS)
        return None, IdempotencyReplay(status_code=existing.status_code, response_body=json.loads(existing.response_body))


def extract_idempotency_key(headers, *, required: bool) -> str | None:
    key = headers.get(IDEMPOTENCY_HEADER)
    if not key and required:
        raise AppError(ErrorCatalog.IDEMPOTENCY_KEY_REQUIRED)
    return key
