import logging
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Notification, Transaction, TransactionStatus, TransactionType
from app.services.errors import InvalidState
from app.services.wallet import as_money

logger = logging.getLogger(__name__)


def append_transaction(
    db: Session,
    *,
    user_id: int,
    tx_type: TransactionType,
    amount: Decimal,
    status: TransactionStatus = TransactionStatus.COMPLETED,
    reference_id=None,
    external_reference: str | None = None,
    description: str | None = None,
) -> Transaction:
    row = Transaction(
        user_id=user_id,
        tx_type=tx_type,
        amount=as_money(amount),
        status=status,
        reference_id=str(reference_id) if reference_id is not None else None,
        external_reference=external_reference,
        description=description,
    )
    db.add(row)
    db.flush()
    return row


def settle_transaction(db: Session, row: Transaction, status: TransactionStatus) -> Transaction:
    if row.status != TransactionStatus.PENDING:
        raise InvalidState("Transaction has already been settled")
    if status == TransactionStatus.PENDING:
        raise InvalidState("Transaction can only move to completed or failed")
    row.status = status
    db.flush()
    return row


def list_user_transactions(db: Session, user_id: int, limit: int = 50) -> list[Transaction]:
    return (
        db.query(Transaction)
        .filter(Transaction.user_id == user_id)
        .order_by(Transaction.id.desc())
        .limit(limit)
        .all()
    )


def notify(db: Session, user_id: int, title: str, message: str) -> bool:
    """Best-effort notification written in its own commit.

    Callers invoke this only after their fund movement has committed; a failure
    here is logged for reconciliation and never propagated.
    """
    try:
        db.add(Notification(user_id=user_id, title=title, message=message, is_read=False))
        db.commit()
        return True
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Notification write failed user_id=%s title=%r error=%s", user_id, title, exc)
        return False
