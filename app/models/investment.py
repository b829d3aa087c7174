import enum
from sqlalchemy import Column, Integer, ForeignKey, Numeric, Index
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.base import TimestampMixin, value_enum


class InvestmentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class Investment(Base, TimestampMixin):
    __tablename__ = "investments"

    id = Column(Integer, primary_key=True, index=True)
    investor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    deal_id = Column(Integer, ForeignKey("deals.id"), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    status = Column(value_enum(InvestmentStatus, "investmentstatus"), nullable=False, default=InvestmentStatus.COMPLETED)

    investor = relationship("User")
    deal = relationship("Deal", back_populates="investments")


Index("ix_investments_deal_status", Investment.deal_id, Investment.status)
Index("ix_investments_investor", Investment.investor_id)
