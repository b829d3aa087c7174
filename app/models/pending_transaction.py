import enum
from sqlalchemy import Column, DateTime, Integer, ForeignKey, Numeric, Index
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.base import TimestampMixin, value_enum


class PendingType(str, enum.Enum):
    INVESTMENT = "investment"
    REPAYMENT = "repayment"


class PendingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PendingTransaction(Base, TimestampMixin):
    __tablename__ = "pending_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    deal_id = Column(Integer, ForeignKey("deals.id"), nullable=True)
    tx_type = Column(value_enum(PendingType, "pendingtype"), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    status = Column(value_enum(PendingStatus, "pendingstatus"), nullable=False, default=PendingStatus.PENDING)
    decided_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", foreign_keys=[user_id])
    deal = relationship("Deal")


Index("ix_pending_transactions_type_status", PendingTransaction.tx_type, PendingTransaction.status)
Index("ix_pending_transactions_deal", PendingTransaction.deal_id)
