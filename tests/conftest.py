"""Pytest fixtures for the gateway client and the relay API."""

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.services.mpesa import MpesaClient
from main import create_app

BASE_URL = "https://sandbox.safaricom.co.ke"
TOKEN_PATH = "/oauth/v1/generate"
STK_PUSH_PATH = "/mpesa/stkpush/v1/processrequest"

STK_PUSH_ACCEPTED = {
    "MerchantRequestID": "29115-34620561-1",
    "CheckoutRequestID": "ws_CO_191220191020363925",
    "ResponseCode": "0",
    "ResponseDescription": "Success. Request accepted for processing",
    "CustomerMessage": "Success. Request accepted for processing",
}


class FakeGateway:
    """Stands in for Daraja behind an httpx.MockTransport.

    Each endpoint answers with the configured status/body; ``error`` makes the
    transport raise instead of answering.
    """

    def __init__(self):
        self.token_status = 200
        self.token_body: Any = {"access_token": "daraja_tok_abc", "expires_in": "3599"}
        self.stk_status = 200
        self.stk_body: Any = dict(STK_PUSH_ACCEPTED)
        self.error: Optional[Exception] = None
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if request.url.path == TOKEN_PATH:
            return self._respond(self.token_status, self.token_body)
        if request.url.path == STK_PUSH_PATH:
            return self._respond(self.stk_status, self.stk_body)
        return httpx.Response(404, json={"errorMessage": "not found"})

    @staticmethod
    def _respond(status_code: int, body: Any) -> httpx.Response:
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]

    def stk_payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.url.path == STK_PUSH_PATH]


@pytest.fixture
def settings():
    return Settings(
        BASE_URL=BASE_URL,
        CONSUMER_KEY="test_consumer_key",
        CONSUMER_SECRET="test_consumer_secret",
        SHORT_CODE="174379",
        PASSKEY="test_passkey",
        CALLBACK_URL="https://example.com/mpesa/callback",
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def mpesa_client(settings, gateway):
    return MpesaClient(settings, transport=gateway.transport)


@pytest.fixture
def api_client(settings, gateway):
    with TestClient(create_app(settings, transport=gateway.transport)) as client:
        yield client
