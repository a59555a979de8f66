import httpx

from conftest import STK_PUSH_ACCEPTED, STK_PUSH_PATH, TOKEN_PATH


def test_pay_returns_gateway_response_unchanged(api_client, gateway):
    response = api_client.post("/api/pay", json={"phone": 254708374149, "amount": 10})

    assert response.status_code == 200
    assert response.json() == STK_PUSH_ACCEPTED
    assert gateway.paths() == [TOKEN_PATH, STK_PUSH_PATH]


def test_pay_accepts_phone_as_string(api_client, gateway):
    response = api_client.post("/api/pay", json={"phone": "+254708374149", "amount": 1})

    assert response.status_code == 200
    assert gateway.stk_payloads()[0]["PartyA"] == 254708374149


def test_pay_token_failure_returns_500_without_push(api_client, gateway):
    gateway.token_status = 401
    gateway.token_body = {"errorMessage": "Invalid credentials"}

    response = api_client.post("/api/pay", json={"phone": 254708374149, "amount": 10})

    assert response.status_code == 500
    body = response.json()
    assert body["error"]
    assert body["code"] == "EXT_5002"
    assert body["details"]["status_code"] == 401
    assert STK_PUSH_PATH not in gateway.paths()


def test_pay_transport_failure_returns_500(api_client, gateway):
    gateway.error = httpx.ConnectTimeout("timed out")

    response = api_client.post("/api/pay", json={"phone": 254708374149, "amount": 10})

    assert response.status_code == 500
    assert response.json()["code"] == "EXT_5001"


def test_pay_rejects_invalid_input_before_calling_gateway(api_client, gateway):
    response = api_client.post("/api/pay", json={"phone": "07-not-a-number", "amount": -5})

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "VAL_2001"
    assert set(body["details"]["fields"]) == {"phone", "amount"}
    assert gateway.requests == []


def test_pay_missing_fields(api_client, gateway):
    response = api_client.post("/api/pay", json={})

    assert response.status_code == 422
    assert "phone" in response.json()["error"]
    assert gateway.requests == []


def test_pay_rejects_infinite_amount(api_client, gateway):
    response = api_client.post(
        "/api/pay",
        content='{"phone": 254708374149, "amount": Infinity}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "VAL_2001"
    assert body["details"]["fields"] == ["amount"]
    assert gateway.requests == []


def test_pay_rejects_booleans(api_client, gateway):
    response = api_client.post("/api/pay", json={"phone": True, "amount": True})

    assert response.status_code == 422
    assert set(response.json()["details"]["fields"]) == {"phone", "amount"}
    assert gateway.requests == []


def test_pay_without_body_names_the_body(api_client, gateway):
    response = api_client.post("/api/pay")

    assert response.status_code == 422
    body = response.json()
    assert body["details"]["fields"] == ["body"]
    assert body["error"].startswith("body: ")
    assert gateway.requests == []


def test_responses_carry_trace_headers(api_client):
    trace_id = "123e4567-e89b-12d3-a456-426614174000"
    response = api_client.get("/health", headers={"X-Request-ID": trace_id})

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Request-ID"] == trace_id
    assert "X-Process-Time" in response.headers


def test_error_body_trace_id_matches_header(api_client, gateway):
    gateway.token_status = 401

    response = api_client.post("/api/pay", json={"phone": 254708374149, "amount": 10})

    assert response.json()["trace_id"] == response.headers["X-Request-ID"]


def test_metrics_exposes_request_counters(api_client):
    api_client.get("/health")
    response = api_client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text
