"""External payment gateway clients.

`SimulatedGatewayClient` decides in-process; `HttpGatewayClient` asks a real
authorization service. Both share the `GatewayClient` contract so the
pipeline does not know which one it is talking to.
"""

import uuid
from typing import NamedTuple

import httpx

from cardpay.common.errors import EnvironmentConfigError, GatewayError
from cardpay.common.logging import logger
from cardpay.services.payment_api.models import TransactionStatus
from cardpay.services.payment_api.schemas import PaymentRequest


DECLINE_PREFIX = "4000"
APPROVED_MESSAGE = "Payment successfully processed by external gateway."
DECLINED_MESSAGE = "Card declined: insufficient funds (simulation)."


class GatewayDecision(NamedTuple):
    outcome: TransactionStatus
    message: str


class GatewayClient:
    """Authorizes one payment attempt.

    Returns a `GatewayDecision` for approvals and declines alike. Raises
    `EnvironmentConfigError` when no credential is configured; transport
    problems are left as `httpx.HTTPError` for the caller to map.
    """

    async def authorize(
        self, api_key: str, request: PaymentRequest, transaction_id: uuid.UUID
    ) -> GatewayDecision:
        self._require_api_key(api_key)
        return await self._authorize(api_key, request, transaction_id)

    async def _authorize(
        self, api_key: str, request: PaymentRequest, transaction_id: uuid.UUID
    ) -> GatewayDecision:
        raise NotImplementedError

    @staticmethod
    def _require_api_key(api_key: str) -> None:
        if not api_key:
            raise EnvironmentConfigError("API key is missing.")


class SimulatedGatewayClient(GatewayClient):
    """Deterministic stand-in: cards starting with `4000` are declined."""

    async def _authorize(
        self, api_key: str, request: PaymentRequest, transaction_id: uuid.UUID
    ) -> GatewayDecision:
        if request.card_number.startswith(DECLINE_PREFIX):
            return GatewayDecision(TransactionStatus.FAILED, DECLINED_MESSAGE)
        logger.info("external gateway call successful transaction_id=%s", transaction_id)
        return GatewayDecision(TransactionStatus.SUCCESS, APPROVED_MESSAGE)


class HttpGatewayClient(GatewayClient):
    """Calls `POST {base_url}/authorize` on a shared async HTTP client.

    The client's timeout bounds the call; there are no retries.
    """

    def __init__(self, http_client: httpx.AsyncClient, base_url: str) -> None:
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")

    async def _authorize(
        self, api_key: str, request: PaymentRequest, transaction_id: uuid.UUID
    ) -> GatewayDecision:
        payload = {"transaction_id": str(transaction_id), **request.model_dump()}
        resp = await self.http_client.post(
            f"{self.base_url}/authorize",
            json=payload,
            headers={"Authorization": f"Bearer {api_key}"},
        )
        resp.raise_for_status()
        return self._parse_decision(resp)

    @staticmethod
    def _parse_decision(resp: httpx.Response) -> GatewayDecision:
        try:
            body = resp.json()
            outcome = TransactionStatus(body["status"])
            message = str(body["message"])
        except (ValueError, KeyError, TypeError) as exc:
            raise GatewayError(f"Malformed gateway response: {exc}") from exc
        return GatewayDecision(outcome, message)
