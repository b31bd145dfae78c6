import json
from datetime import datetime
from types import SimpleNamespace

import httpx
import pytest

from app.shopdesk.core.error_catalog import AppError
from app.shopdesk.routers.whatsapp import get_whatsapp_client
from app.shopdesk.services.whatsapp import (
    BridgeStatusPoller,
    WhatsAppBridgeClient,
    build_bill_message,
    build_wa_link,
)
from tests.helpers import checkout, create_product, create_tenant, tenant_headers


class FakeBridge:
    """Records calls and answers like the bridge sidecar."""

    def __init__(self, *, ready=True, send_status=200, fail_status=0, unreachable=False):
        self.ready = ready
        self.send_status = send_status
        self.fail_status = fail_status
        self.unreachable = unreachable
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, request.url.path, body))
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if self.fail_status:
            status, self.fail_status = self.fail_status, 0
            return httpx.Response(status, json={"error": "boom"})
        if request.url.path == "/status":
            return httpx.Response(200, json={"ready": self.ready, "hasQR": not self.ready, "queueLength": 0})
        if request.url.path == "/qr":
            if self.ready:
                return httpx.Response(400, json={"error": "already linked"})
            return httpx.Response(200, json={"qr": "data:image/png;base64,AAAA"})
        if request.url.path == "/send-message":
            if self.send_status != 200:
                return httpx.Response(self.send_status, json={"error": "not ready"})
            return httpx.Response(200, json={"success": True})
        if request.url.path == "/logout":
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404)

    def client(self, **kwargs) -> WhatsAppBridgeClient:
        transport = httpx.MockTransport(self)
        return WhatsAppBridgeClient(
            "http://bridge.test",
            retry_backoff_ms=0,
            client=httpx.Client(base_url="http://bridge.test", transport=transport),
            **kwargs,
        )


def _sale():
    return SimpleNamespace(
        bill_no="FS-001",
        customer_name="Asha",
        created_at=datetime(2024, 3, 9, 15, 30),
        items=[SimpleNamespace(name="Cotton Kurti", quantity=2, total=998)],
        subtotal=998,
        discount_amount=0,
        tax=49.9,
        total=1047.9,
        payment_method="upi",
        store_name="Asha Boutique",
        store_address="MG Road",
        store_phone="080-1234",
    )


def test_bill_message_lists_items_and_receipt_link():
    message = build_bill_message(_sale(), None, receipt_url="http://shop.test/api/public-receipt/abc")

    assert message.startswith("*ASHA BOUTIQUE*")
    assert "*Bill No:* FS-001" in message
    assert "• Cotton Kurti x2 = Rs998.00" in message
    assert "*TOTAL AMOUNT: Rs1047.90*" in message
    assert "http://shop.test/api/public-receipt/abc" in message
    assert message.endswith("Contact: 080-1234")


def test_wa_link_encodes_message_and_requires_phone():
    link = build_wa_link("+91 98765-43210", "Hi *there*\nTotal: Rs10")

    assert link == "https://wa.me/919876543210?text=Hi%20%2Athere%2A%0ATotal%3A%20Rs10"
    with pytest.raises(AppError):
        build_wa_link("", "hello")


def test_status_retries_server_errors():
    bridge = FakeBridge(fail_status=502)

    status = bridge.client().status()

    assert status.ready is True
    assert [call[1] for call in bridge.calls] == ["/status", "/status"]


def test_send_is_never_retried():
    bridge = FakeBridge(fail_status=500)

    with pytest.raises(AppError) as excinfo:
        bridge.client().send_message("98765 43210", "hello")

    assert excinfo.value.error.code == "WHATSAPP_BRIDGE_UNAVAILABLE"
    assert len(bridge.calls) == 1


def test_send_when_not_linked():
    bridge = FakeBridge(send_status=503)

    with pytest.raises(AppError) as excinfo:
        bridge.client().send_message("9876543210", "hello")

    assert excinfo.value.error.code == "WHATSAPP_NOT_READY"
    assert excinfo.value.error.status_code == 503


def test_send_posts_digits_only():
    bridge = FakeBridge()

    bridge.client().send_message("+91 98765-43210", "hello")

    assert bridge.calls == [("POST", "/send-message", {"phone": "919876543210", "message": "hello"})]


def test_api_key_header_is_sent():
    seen = []

    def handler(request):
        seen.append(request.headers.get("x-api-key"))
        return httpx.Response(200, json={"ready": True})

    client = WhatsAppBridgeClient(
        "http://bridge.test",
        api_key="k-123",
        client=httpx.Client(base_url="http://bridge.test", transport=httpx.MockTransport(handler)),
    )
    client.status()

    assert seen == ["k-123"]


def test_poller_caches_latest_status():
    bridge = FakeBridge(unreachable=True)
    poller = BridgeStatusPoller(bridge.client(), interval_seconds=0.01)

    status = poller.poll_once()
    assert status.ready is False
    assert status.error == "WhatsApp service is not reachable"

    bridge.unreachable = False
    with poller:
        assert poller.running
        poller.poll_once()
        assert poller.latest.ready is True
    assert not poller.running
    assert poller.polls >= 2


@pytest.fixture()
def bridge(client):
    fake = FakeBridge()
    bridge_client = fake.client()
    client.app.dependency_overrides[get_whatsapp_client] = lambda: bridge_client
    yield fake
    client.app.dependency_overrides.pop(get_whatsapp_client, None)


def test_status_endpoint(client, db_session, bridge):
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)

    response = client.get("/api/whatsapp/status", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"ready": True, "hasQR": False, "queueLength": 0, "error": None}

    bridge.unreachable = True
    down = client.get("/api/whatsapp/status", headers=headers)
    assert down.status_code == 200
    assert down.json()["ready"] is False
    assert down.json()["error"] == "WhatsApp service not running"


def test_qr_endpoint(client, db_session, bridge):
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)

    linked = client.post("/api/whatsapp/status", headers=headers)
    assert linked.json()["qr"] is None

    bridge.ready = False
    pending = client.post("/api/whatsapp/status", headers=headers)
    assert pending.json()["qr"].startswith("data:image/png")


def test_send_bill_for_sale(client, db_session, bridge):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant)
    headers = tenant_headers(client, user)
    sale = checkout(client, headers, product, customer_phone="98765 43210").json()

    response = client.post("/api/send-bill", headers=headers, json={"sale_id": sale["id"]})

    assert response.status_code == 200
    assert response.json()["success"] is True
    method, path, body = bridge.calls[-1]
    assert (method, path) == ("POST", "/send-message")
    assert body["phone"] == "9876543210"
    assert sale["bill_no"] in body["message"]
    assert f"/api/public-receipt/{sale['id']}" in body["message"]


def test_send_bill_without_phone(client, db_session, bridge):
    tenant, user = create_tenant(db_session)
    product = create_product(db_session, tenant)
    headers = tenant_headers(client, user)
    sale = checkout(client, headers, product).json()

    response = client.post("/api/send-bill", headers=headers, json={"sale_id": sale["id"]})

    assert response.status_code == 422
    assert bridge.calls == []


def test_send_bill_bridge_not_ready(client, db_session, bridge):
    _, user = create_tenant(db_session)
    headers = tenant_headers(client, user)
    bridge.send_status = 503

    response = client.post("/api/send-bill", headers=headers, json={"phone": "9876543210", "message": "hi"})

    assert response.status_code == 503
    assert response.json()["code"] == "WHATSAPP_NOT_READY"


def test_whatsapp_routes_need_feature(client, db_session, bridge):
    _, user = create_tenant(db_session, features=["pos"])

    response = client.get("/api/whatsapp/status", headers=tenant_headers(client, user))

    assert response.status_code == 403
