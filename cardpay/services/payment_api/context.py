"""Immutable per-process dependencies handed to the pipeline on every call."""

from dataclasses import dataclass

import httpx
from sqlalchemy import Engine

from cardpay.common.config import Settings
from cardpay.common.db import check_connection, make_engine, make_session_factory
from cardpay.common.logging import logger
from cardpay.services.gateway.client import GatewayClient, HttpGatewayClient, SimulatedGatewayClient
from cardpay.services.payment_api.store import TransactionStore


@dataclass(frozen=True)
class PaymentContext:
    api_key: str
    gateway: GatewayClient
    store: TransactionStore
    http_client: httpx.AsyncClient | None = None
    engine: Engine | None = None
    service_name: str = "cardpay-api"

    async def aclose(self) -> None:
        """Release the HTTP client and the connection pool."""

        if self.http_client is not None:
            await self.http_client.aclose()
        if self.engine is not None:
            self.engine.dispose()


def build_context(settings: Settings) -> PaymentContext:
    """Construct pool, HTTP client and gateway once at startup.

    Raises on an unreachable database so the process does not start serving.
    """

    engine = make_engine(settings.database_url, settings.db_max_connections)
    check_connection(engine)
    logger.info("connected to the database max_connections=%s", settings.db_max_connections)

    http_client = httpx.AsyncClient(timeout=settings.gateway_timeout_seconds)
    if settings.payment_gateway_url:
        gateway: GatewayClient = HttpGatewayClient(http_client, settings.payment_gateway_url)
    else:
        gateway = SimulatedGatewayClient()
    logger.info("gateway client ready type=%s", type(gateway).__name__)

    return PaymentContext(
        api_key=settings.payment_gateway_api_key,
        gateway=gateway,
        store=TransactionStore(make_session_factory(engine)),
        http_client=http_client,
        engine=engine,
        service_name=settings.service_name,
    )
