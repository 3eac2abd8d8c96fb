"""Payment API database models.

The `transactions` table is the authoritative record of every payment attempt
that reached persistence. Rows are append-only.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cardpay.common.db import Base
from cardpay.services.payment_api.schemas import utcnow_naive


class TransactionStatus(str, enum.Enum):
    """Gateway outcome. A decline is `FAILED`, not an error."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class Transaction(Base):
    """One persisted payment attempt."""

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transaction_uuid: Mapped[uuid.UUID] = mapped_column(Uuid, unique=True, index=True)
    amount: Mapped[int] = mapped_column(Integer)
    currency: Mapped[str] = mapped_column(String)
    status: Mapped[TransactionStatus] = mapped_column(
        Enum(TransactionStatus, native_enum=False, length=16)
    )
    masked_card_number: Mapped[str] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=utcnow_naive)
