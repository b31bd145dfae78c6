from __future__ import annotations

import logging
import re
import threading
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from app.shopdesk.core.error_catalog import AppError, ErrorCatalog
from app.shopdesk.core.logging import log_json
from app.shopdesk.core.metrics import metrics

logger = logging.getLogger(__name__)

WA_ME_URL = "https://wa.me"
DEFAULT_STORE_PHONE = ""


def _amount(value) -> str:
    return f"{float(value or 0):.2f}"


def phone_digits(phone: str | None) -> str:
    return re.sub(r"\D", "", phone or "")


def build_bill_message(sale, settings_row=None, *, receipt_url: str) -> str:
    """Plain-text bill summary in WhatsApp markup (``*bold*`` lines)."""
    store_name = getattr(settings_row, "store_name", None) or sale.store_name or "Store"
    store_address = getattr(settings_row, "address", None) or sale.store_address or ""
    store_phone = getattr(settings_row, "phone", None) or sale.store_phone or DEFAULT_STORE_PHONE
    note = getattr(settings_row, "whatsapp_message", None)

    lines = [
        f"*{store_name.upper()}*",
        "",
        f"*Bill No:* {sale.bill_no}",
        f"*Customer:* {sale.customer_name}",
        f"*Date:* {sale.created_at.strftime('%d/%m/%Y')}",
        f"*Time:* {sale.created_at.strftime('%I:%M %p')}",
        "",
        "*ITEMS PURCHASED:*",
    ]
    lines.extend(f"• {item.name} x{item.quantity} = Rs{_amount(item.total)}" for item in sale.items)
    lines.extend(
        [
            "",
            f"*Subtotal:* Rs{_amount(sale.subtotal)}",
            f"*Discount:* Rs{_amount(sale.discount_amount)}",
            f"*Tax:* Rs{_amount(sale.tax)}",
            f"*TOTAL AMOUNT: Rs{_amount(sale.total)}*",
            f"*Payment Method:* {sale.payment_method}",
            "",
            "*View Your Receipt:*",
            receipt_url,
        ]
    )
    if note:
        lines.extend(["", note])
    lines.extend(["", "Thank you for shopping with us!"])
    if store_address:
        lines.extend(["", store_address])
    if store_phone:
        lines.append(f"Contact: {store_phone}")
    return "\n".join(lines)


def build_wa_link(phone: str | None, message: str) -> str:
    digits = phone_digits(phone)
    if not digits:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"field": "customer_phone"},
            message="Customer phone number required",
        )
    return f"{WA_ME_URL}/{digits}?text={quote(message, safe='')}"


@dataclass(frozen=True)
class BridgeStatus:
    ready: bool
    has_qr: bool = False
    queue_length: int = 0
    error: str | None = None

    def to_dict(self) -> dict:
        payload = {"ready": self.ready, "hasQR": self.has_qr, "queueLength": self.queue_length}
        if self.error:
            payload["error"] = self.error
        return payload


class WhatsAppBridgeClient:
    """HTTP client for the WhatsApp bridge sidecar.

    Only GET calls are retried; a send is never repeated automatically so a
    customer cannot receive the same bill twice.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        timeout_seconds: float = 10.0,
        retry_max_attempts: int = 2,
        retry_backoff_ms: int = 200,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout_seconds)
        self._retry_max_attempts = max(1, retry_max_attempts)
        self._retry_backoff_ms = max(0, retry_backoff_ms)

    @classmethod
    def from_settings(cls, config, client: httpx.Client | None = None) -> "WhatsAppBridgeClient":
        return cls(
            config.WHATSAPP_BRIDGE_URL,
            api_key=config.WHATSAPP_API_KEY,
            timeout_seconds=config.WHATSAPP_TIMEOUT_SECONDS,
            client=client,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, json_body: dict[str, Any] | None = None) -> httpx.Response:
        headers = {"x-api-key": self.api_key} if self.api_key else {}
        allow_retry = method.upper() == "GET"
        for attempt in range(1, self._retry_max_attempts + 1):
            try:
                response = self._client.request(method, path, json=json_body, headers=headers)
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if not allow_retry or attempt >= self._retry_max_attempts:
                    raise AppError(ErrorCatalog.WHATSAPP_BRIDGE_UNAVAILABLE, details=str(exc)) from exc
                self._backoff(attempt)
                continue
            if allow_retry and response.status_code >= 500 and attempt < self._retry_max_attempts:
                self._backoff(attempt)
                continue
            return response
        raise AppError(ErrorCatalog.WHATSAPP_BRIDGE_UNAVAILABLE, details="retry exhausted")

    def _backoff(self, attempt: int) -> None:
        time.sleep((self._retry_backoff_ms * attempt) / 1000)

    @staticmethod
    def _safe_json(response: httpx.Response) -> dict:
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    def status(self) -> BridgeStatus:
        response = self._request("GET", "/status")
        if response.status_code >= 400:
            raise AppError(ErrorCatalog.WHATSAPP_BRIDGE_UNAVAILABLE, details={"status_code": response.status_code})
        payload = self._safe_json(response)
        return BridgeStatus(
            ready=bool(payload.get("ready")),
            has_qr=bool(payload.get("hasQR")),
            queue_length=int(payload.get("queueLength") or 0),
        )

    def qr(self) -> str | None:
        response = self._request("GET", "/qr")
        if response.status_code == 400:
            return None
        if response.status_code >= 400:
            raise AppError(ErrorCatalog.WHATSAPP_BRIDGE_UNAVAILABLE, details={"status_code": response.status_code})
        return self._safe_json(response).get("qr")

    def send_message(self, phone: str, message: str) -> dict:
        digits = phone_digits(phone)
        if not digits or not message:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, message="Phone and message are required")
        try:
            response = self._request("POST", "/send-message", {"phone": digits, "message": message})
        except AppError:
            metrics.increment_whatsapp_message("unavailable")
            raise
        if response.status_code == 503:
            metrics.increment_whatsapp_message("not_ready")
            raise AppError(ErrorCatalog.WHATSAPP_NOT_READY)
        if response.status_code >= 400:
            metrics.increment_whatsapp_message("failed")
            payload = self._safe_json(response)
            raise AppError(
                ErrorCatalog.WHATSAPP_BRIDGE_UNAVAILABLE,
                details={"status_code": response.status_code, "error": payload.get("error")},
            )
        metrics.increment_whatsapp_message("sent")
        log_json(logger, {"event": "whatsapp_message_sent", "phone_suffix": digits[-4:]})
        return self._safe_json(response)

    def logout(self) -> dict:
        response = self._request("POST", "/logout")
        if response.status_code >= 400:
            raise AppError(ErrorCatalog.WHATSAPP_BRIDGE_UNAVAILABLE, details={"status_code": response.status_code})
        return self._safe_json(response)


class BridgeStatusPoller:
    """Background thread that keeps the latest bridge status cached.

    ``stop()`` wakes the thread immediately; the app lifespan owns start and
    stop so no poll outlives the process shutdown.
    """

    def __init__(self, client: WhatsAppBridgeClient, *, interval_seconds: float = 5.0) -> None:
        self.client = client
        self.interval_seconds = max(0.01, interval_seconds)
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._latest = BridgeStatus(ready=False, error="Service not polled yet")
        self.polls = 0

    @property
    def latest(self) -> BridgeStatus:
        with self._lock:
            return self._latest

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> BridgeStatus:
        try:
            status = self.client.status()
        except AppError as exc:
            status = BridgeStatus(ready=False, error=exc.message)
        with self._lock:
            self._latest = status
            self.polls += 1
        return status

    def _run(self) -> None:
        while not self._stop.is_set():
            self.poll_once()
            if self.latest.ready:
                log_json(logger, {"event": "whatsapp_bridge_ready"}, level=logging.DEBUG)
            self._stop.wait(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="whatsapp-status-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def __enter__(self) -> "BridgeStatusPoller":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
