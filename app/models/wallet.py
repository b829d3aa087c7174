from sqlalchemy import Column, Integer, ForeignKey, Numeric, Boolean, CheckConstraint
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.base import TimestampMixin


class Wallet(Base, TimestampMixin):
    __tablename__ = "wallets"
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)
    balance = Column(Numeric(14, 2), default=0, nullable=False)
    is_locked = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="wallet")
