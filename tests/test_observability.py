from types import SimpleNamespace

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from starlette.requests import Request
from starlette.responses import Response

from app.shopdesk.core.errors import setup_exception_handlers
from app.shopdesk.core.metrics import metrics
from app.shopdesk.middleware.observability import build_request_log_payload
from tests.helpers import checkout, create_product, create_tenant, tenant_headers


def test_build_request_log_payload():
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/pos/sales",
        "headers": [],
        "route": SimpleNamespace(path="/api/pos/sales"),
    }
    request = Request(scope)
    request.state.trace_id = "trace-1"
    request.state.tenant_id = "tenant-1"
    request.state.user_id = "user-1"
    request.state.error_code = None
    response = Response(status_code=201)

    payload = build_request_log_payload(
        request=request,
        response=response,
        latency_ms=12.3456,
        db_time_ms=4.5678,
    )

    assert payload["trace_id"] == "trace-1"
    assert payload["tenant_id"] == "tenant-1"
    assert payload["route"] == "/api/pos/sales"
    assert payload["status_code"] == 201
    assert payload["latency_ms"] == 12.35
    assert payload["db_time_ms"] == 4.57


def test_lock_timeout_maps_to_conflict():
    metrics.reset()
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/lock-timeout")
    def lock_timeout():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/lock-timeout")

    assert response.status_code == 409
    assert response.json()["code"] == "LOCK_TIMEOUT"
    content = metrics.render().content.decode("utf-8")
    if metrics.enabled:
        assert "lock_wait_timeout_total" in content
    else:
        assert "metrics_disabled" in content


def test_sales_counter_by_payment_method(client, db_session):
    metrics.reset()
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant)
    headers = tenant_headers(client, user)

    response = checkout(client, headers, product, payment_method="UPI")
    assert response.status_code == 201, response.text

    content = client.get("/metrics").text
    if not metrics.enabled:
        assert "metrics_disabled" in content
        return
    assert 'sales_created_total{payment_method="upi"} 1.0' in content
