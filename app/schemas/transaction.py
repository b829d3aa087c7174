from pydantic import BaseModel, ConfigDict
from decimal import Decimal
from datetime import datetime
from typing import Optional
from app.models.transaction import TransactionStatus, TransactionType
from app.models.pending_transaction import PendingStatus, PendingType


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    user_id: int
    tx_type: TransactionType
    amount: Decimal
    status: TransactionStatus
    reference_id: Optional[str] = None
    external_reference: Optional[str] = None
    description: Optional[str] = None


class PendingTransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    user_id: int
    deal_id: Optional[int] = None
    tx_type: PendingType
    amount: Decimal
    status: PendingStatus
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
