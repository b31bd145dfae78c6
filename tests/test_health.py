def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["whatsapp_poller"] == "stopped"
    assert payload["trace_id"]


def test_trace_id_header_is_echoed(client):
    response = client.get("/health", headers={"X-Trace-ID": "trace-from-client"})
    assert response.status_code == 200
    assert response.json()["trace_id"] == "trace-from-client"


def test_unsafe_trace_id_is_replaced(client):
    response = client.get("/health", headers={"X-Trace-ID": "bad id with spaces" + "x" * 80})

    trace_id = response.json()["trace_id"]
    assert trace_id != "bad id with spaces" + "x" * 80
    assert len(trace_id) == 32
    assert response.headers["X-Trace-ID"] == trace_id


def test_metrics_exposes_request_counters(client):
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text
