from pydantic import BaseModel, Field
from decimal import Decimal
from datetime import datetime
from typing import Literal, Optional

from app.models.user import UserRole, VerificationStatus
from app.schemas.transaction import PendingTransactionOut, TransactionOut
from app.services.decisions import Decision


class DecisionRequest(BaseModel):
    decision: Decision


class VerificationRequest(BaseModel):
    status: Literal["verified", "rejected"]


class FundUserWalletRequest(BaseModel):
    user_id: int
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    description: str = "Admin funding"


class AdminPendingTransactionOut(PendingTransactionOut):
    user_email: Optional[str] = None


class AdminPendingTransactionsResponse(BaseModel):
    items: list[AdminPendingTransactionOut]
    total: int
    page: int
    page_size: int


class AdminWalletTransactionOut(TransactionOut):
    user_email: Optional[str] = None


class AdminWalletTransactionsResponse(BaseModel):
    items: list[AdminWalletTransactionOut]
    total: int
    page: int
    page_size: int


class AdminUserOut(BaseModel):
    id: int
    created_at: datetime
    email: str
    full_name: str
    role: UserRole
    verification_status: VerificationStatus
    is_active: bool
    balance: Decimal = Decimal("0")


class AdminUsersResponse(BaseModel):
    items: list[AdminUserOut]
    total: int
    page: int
    page_size: int
