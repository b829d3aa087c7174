import enum
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Text, Index
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.base import TimestampMixin, value_enum


class DealStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    FUNDED = "funded"
    ACTIVE = "active"
    REPAID = "repaid"


class Deal(Base, TimestampMixin):
    __tablename__ = "deals"

    id = Column(Integer, primary_key=True, index=True)
    lender_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    loan_amount = Column(Numeric(14, 2), nullable=False)
    interest_rate = Column(Numeric(5, 2), nullable=False)  # percent per year
    term_months = Column(Integer, nullable=False)
    ltv = Column(Numeric(5, 2), nullable=False)  # percent
    property_type = Column(String(64), nullable=True)
    property_location = Column(String(255), nullable=True)
    status = Column(value_enum(DealStatus, "dealstatus"), nullable=False, default=DealStatus.SUBMITTED)

    lender = relationship("User", back_populates="deals")
    investments = relationship("Investment", back_populates="deal")


Index("ix_deals_status", Deal.status)
