"""Shared fixtures: in-memory SQLite store and context builders."""

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from cardpay.common.db import Base, make_session_factory
from cardpay.services.gateway.client import SimulatedGatewayClient
from cardpay.services.payment_api.context import PaymentContext
from cardpay.services.payment_api.models import Transaction
from cardpay.services.payment_api.store import TransactionStore


class RecordingGateway(SimulatedGatewayClient):
    """Simulated gateway that remembers every authorize call."""

    def __init__(self) -> None:
        self.calls = []

    async def authorize(self, api_key, request, transaction_id):
        self.calls.append((api_key, request, transaction_id))
        return await super().authorize(api_key, request, transaction_id)


class FailingStore:
    """Store whose writes always hit a driver error."""

    def __init__(self) -> None:
        self.attempts = 0

    def record(self, *args, **kwargs):
        self.attempts += 1
        raise OperationalError("INSERT INTO transactions", {}, Exception("connection reset by peer"))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return TransactionStore(session_factory)


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def make_context(store, gateway):
    def _make(api_key: str = "sk_test_1234567890", **overrides) -> PaymentContext:
        fields = {"api_key": api_key, "gateway": gateway, "store": store}
        fields.update(overrides)
        return PaymentContext(**fields)

    return _make


@pytest.fixture
def stored_rows(session_factory):
    def _rows() -> list[Transaction]:
        with session_factory() as db:
            return list(db.execute(select(Transaction).order_by(Transaction.id)).scalars())

    return _rows


@pytest.fixture
def payment_payload():
    return {
        "amount": 1000,
        "currency": "USD",
        "card_number": "4111111111111111",
        "expiry_month": 12,
        "expiry_year": 2030,
        "cvv": "123",
    }
