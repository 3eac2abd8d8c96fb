"""Append-only persistence of payment attempts."""

import uuid

from sqlalchemy.orm import sessionmaker

from cardpay.common.logging import logger
from cardpay.services.payment_api.models import Transaction, TransactionStatus


class TransactionStore:
    """Writes one `transactions` row per attempt. No read/update/delete paths."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def record(
        self,
        transaction_id: uuid.UUID,
        amount: int,
        currency: str,
        status: TransactionStatus,
        masked_card: str,
    ) -> Transaction:
        """Insert and commit one row; SQLAlchemy errors propagate unchanged."""

        with self.session_factory() as db:
            row = Transaction(
                transaction_uuid=transaction_id,
                amount=amount,
                currency=currency,
                status=status,
                masked_card_number=masked_card,
            )
            db.add(row)
            db.commit()
            logger.debug("transaction persisted id=%s status=%s", row.id, status.value)
            return row
