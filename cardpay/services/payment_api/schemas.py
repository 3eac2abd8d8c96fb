"""API request/response schemas for the payment endpoint."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


# Integer columns and the upstream gateway contract are 32-bit.
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


def utcnow_naive() -> datetime:
    """Current UTC time without tzinfo, matching the wire and DB timestamp format."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


class PaymentRequest(BaseModel):
    """Payload accepted by `POST /api/payment`.

    Only types are checked here; business rules (amount, card length) are
    applied by the pipeline so they surface as 400 with a specific message.
    Expiry fields are only range-checked to fit 32 bits.
    """

    amount: int
    currency: str
    card_number: str
    expiry_month: int = Field(ge=INT32_MIN, le=INT32_MAX)
    expiry_year: int = Field(ge=INT32_MIN, le=INT32_MAX)
    cvv: str


class PaymentResponse(BaseModel):
    """Outcome returned for both approved and declined payments."""

    success: bool
    transaction_id: str
    message: str
    timestamp: datetime = Field(default_factory=utcnow_naive)


class ErrorResponse(BaseModel):
    error: str
