import enum
from sqlalchemy import Column, Integer, String, Boolean, Index
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.base import TimestampMixin, value_enum


class UserRole(str, enum.Enum):
    INVESTOR = "investor"
    LENDER = "lender"
    ADMIN = "admin"


class VerificationStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(value_enum(UserRole, "userrole"), nullable=False, default=UserRole.INVESTOR)
    verification_status = Column(
        value_enum(VerificationStatus, "verificationstatus"),
        nullable=False,
        default=VerificationStatus.PENDING,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    onboarding_completed = Column(Boolean, default=False, nullable=False)
    company_name = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)

    wallet = relationship("Wallet", back_populates="user", uselist=False)
    transactions = relationship("Transaction", back_populates="user")
    deals = relationship("Deal", back_populates="lender")


Index("ix_users_role_active", User.role, User.is_active)
