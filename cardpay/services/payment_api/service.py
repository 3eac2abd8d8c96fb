"""Payment pipeline.

Validate -> mask -> gateway -> persist -> respond, strictly in that order.
A gateway or configuration failure stops the request before anything is
written. A persistence failure after the gateway decided loses that decision:
there is no reversal call, retry or outbox.
"""

import uuid

import httpx
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from cardpay.common.errors import BadRequestError, from_database_error, from_transport_error
from cardpay.common.logging import logger, transaction_id_ctx
from cardpay.common.metrics import payment_failure_total, payment_success_total
from cardpay.common.state_machine import PipelineState, validate_transition
from cardpay.services.payment_api.context import PaymentContext
from cardpay.services.payment_api.models import TransactionStatus
from cardpay.services.payment_api.schemas import INT32_MAX, PaymentRequest, PaymentResponse


MIN_CARD_LENGTH = 12
MAX_CARD_LENGTH = 19
MASK_PREFIX = "XXXX-XXXX-XXXX-"


def validate_payment_request(req: PaymentRequest) -> None:
    """Raise `BadRequestError` for the first rule the request breaks."""

    if req.amount <= 0:
        raise BadRequestError("Payment amount must be greater than zero.")
    if req.amount > INT32_MAX:
        raise BadRequestError("Payment amount is too large.")
    if not MIN_CARD_LENGTH <= len(req.card_number) <= MAX_CARD_LENGTH:
        raise BadRequestError("Invalid card number.")


def mask_card_number(card_number: str) -> str:
    # Never emit a partial mask, even for unvalidated input.
    if len(card_number) < 4:
        raise BadRequestError("Invalid card number.")
    return f"{MASK_PREFIX}{card_number[-4:]}"


class _Progress:
    """Tracks one request through `PipelineState`."""

    def __init__(self) -> None:
        self.state = PipelineState.RECEIVED

    def advance(self, new: PipelineState) -> None:
        validate_transition(self.state, new)
        self.state = new


async def process_payment(context: PaymentContext, req: PaymentRequest) -> PaymentResponse:
    """Run one payment attempt end to end.

    Returns a response for approvals and declines. Raises an `AppError`
    subclass for anything else.
    """

    progress = _Progress()
    try:
        validate_payment_request(req)
    except BadRequestError:
        progress.advance(PipelineState.REJECTED)
        raise
    progress.advance(PipelineState.VALIDATED)

    masked_card = mask_card_number(req.card_number)
    transaction_id = uuid.uuid4()
    transaction_id_ctx.set(str(transaction_id))

    try:
        decision = await context.gateway.authorize(context.api_key, req, transaction_id)
    except httpx.HTTPError as exc:
        progress.advance(PipelineState.ERRORED)
        raise from_transport_error(exc) from exc
    except Exception:
        progress.advance(PipelineState.ERRORED)
        raise
    progress.advance(PipelineState.GATEWAY_DECIDED)

    try:
        await run_in_threadpool(
            context.store.record,
            transaction_id,
            req.amount,
            req.currency,
            decision.outcome,
            masked_card,
        )
    except SQLAlchemyError as exc:
        progress.advance(PipelineState.ERRORED)
        raise from_database_error(exc) from exc
    progress.advance(PipelineState.PERSISTED)

    success = decision.outcome is TransactionStatus.SUCCESS
    if success:
        payment_success_total.labels(service=context.service_name).inc()
        logger.info("successful payment: %s (%s %s)", masked_card, req.amount, req.currency)
    else:
        payment_failure_total.labels(service=context.service_name).inc()
        logger.warning("failed payment: %s (%s %s)", masked_card, req.amount, req.currency)

    progress.advance(PipelineState.RESPONDED)
    return PaymentResponse(success=success, transaction_id=str(transaction_id), message=decision.message)
