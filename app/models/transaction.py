import enum
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Index
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.base import TimestampMixin, value_enum


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class TransactionType(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INVESTMENT = "investment"
    REPAYMENT = "repayment"


class Transaction(Base, TimestampMixin):
    """
    Append-only wallet ledger row.

    ``amount`` is signed: positive is an inflow to the user's wallet, negative an
    outflow. Rows are never edited after insert apart from the pending ->
    completed/failed status transition.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    tx_type = Column(value_enum(TransactionType, "transactiontype"), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    status = Column(value_enum(TransactionStatus, "transactionstatus"), nullable=False, default=TransactionStatus.PENDING)
    reference_id = Column(String(128), nullable=True, index=True)  # deal id or payment session id
    external_reference = Column(String(128), nullable=True, unique=True)
    description = Column(String(255), nullable=True)

    user = relationship("User", back_populates="transactions")


Index("ix_transactions_user_status", Transaction.user_id, Transaction.status)
Index("ix_transactions_type_status", Transaction.tx_type, Transaction.status)
