import base64
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

import httpx
from pydantic import ValidationError

from app.core.config import Settings
from app.core.exceptions import GatewayRejectedException, GatewayTransportException
from app.schemas.payment import StkPushPayload, TokenResponse

logger = logging.getLogger(__name__)


def _b64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def build_basic_auth(consumer_key: str, consumer_secret: str) -> str:
    """Authorization header value for the OAuth token endpoint."""
    return f"Basic {_b64(f'{consumer_key}:{consumer_secret}')}"


def build_timestamp(now: Optional[datetime] = None) -> str:
    """UTC time as YYYYMMDDHHmmss."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y%m%d%H%M%S")


def build_password(shortcode: str, passkey: str, timestamp: str) -> str:
    return _b64(f"{shortcode}{passkey}{timestamp}")


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class MpesaClient:
    """Client for the Daraja OAuth and STK push endpoints.

    A fresh token is requested for every payment; nothing is cached between
    calls, so one instance can be shared by concurrent requests.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.GATEWAY_TIMEOUT, transport=self._transport)

    def _check_response(self, response: httpx.Response, action: str) -> Any:
        if response.is_success:
            return _json_or_text(response)

        body = _json_or_text(response)
        logger.error("M-Pesa %s rejected with status %s", action, response.status_code)
        raise GatewayRejectedException(
            f"M-Pesa {action} rejected with status {response.status_code}",
            upstream_status=response.status_code,
            details={"status_code": response.status_code, "upstream": body},
        )

    async def get_access_token(self) -> str:
        """Exchange the consumer key/secret for a bearer token"""

        headers = {
            "Authorization": build_basic_auth(self.settings.CONSUMER_KEY, self.settings.CONSUMER_SECRET),
        }

        try:
            async with self._client() as client:
                response = await client.get(
                    self.settings.oauth_url,
                    params={"grant_type": "client_credentials"},
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error("HTTP error during token request: %s", str(e))
            raise GatewayTransportException(f"M-Pesa token request failed: {e}") from e

        data = self._check_response(response, "token request")

        try:
            token = TokenResponse.model_validate(data)
        except ValidationError as e:
            logger.error("Token response is missing access_token")
            raise GatewayRejectedException(
                "M-Pesa token response did not contain an access_token",
                upstream_status=response.status_code,
                details={"status_code": response.status_code},
            ) from e

        return token.access_token

    def build_stk_push_payload(
        self, phone: int, amount: Union[int, float], timestamp: str
    ) -> StkPushPayload:
        shortcode = self.settings.SHORT_CODE

        return StkPushPayload(
            BusinessShortCode=shortcode,
            Password=build_password(shortcode, self.settings.PASSKEY, timestamp),
            Timestamp=timestamp,
            TransactionType=self.settings.TRANSACTION_TYPE,
            Amount=amount,
            PartyA=phone,
            PartyB=shortcode,
            PhoneNumber=phone,
            CallBackURL=self.settings.CALLBACK_URL,
            AccountReference=self.settings.ACCOUNT_REFERENCE,
            TransactionDesc=self.settings.TRANSACTION_DESC,
        )

    async def initiate_payment(self, phone: int, amount: Union[int, float]) -> Dict[str, Any]:
        """Send an STK push prompt to ``phone`` and return the gateway's response"""

        access_token = await self.get_access_token()
        payload = self.build_stk_push_payload(phone, amount, build_timestamp())

        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

        try:
            async with self._client() as client:
                response = await client.post(
                    self.settings.stk_push_url,
                    json=payload.model_dump(),
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error("HTTP error during STK push: %s", str(e))
            raise GatewayTransportException(f"M-Pesa STK push failed: {e}") from e

        data = self._check_response(response, "STK push")
        if not isinstance(data, dict):
            raise GatewayRejectedException(
                "M-Pesa STK push returned a non-JSON body",
                upstream_status=response.status_code,
                details={"status_code": response.status_code, "upstream": data},
            )

        logger.info(
            "STK push accepted: MerchantRequestID=%s CheckoutRequestID=%s",
            data.get("MerchantRequestID"),
            data.get("CheckoutRequestID"),
        )
        return data
