from pydantic import BaseModel, ConfigDict, Field
from decimal import Decimal
from datetime import datetime
from typing import Optional
from app.models.deal import DealStatus
from app.models.investment import InvestmentStatus


class DealCreate(BaseModel):
    title: str = Field(..., min_length=5, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    loan_amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    interest_rate: Decimal = Field(..., ge=1, le=100)
    term_months: int = Field(..., ge=1, le=600)
    ltv: Decimal = Field(..., ge=1, le=100)
    property_type: str = Field(default="residential", min_length=1, max_length=64)
    property_location: str = Field(..., min_length=5, max_length=255)


class DealOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    lender_id: int
    title: str
    description: Optional[str] = None
    loan_amount: Decimal
    interest_rate: Decimal
    term_months: int
    ltv: Decimal
    property_type: Optional[str] = None
    property_location: Optional[str] = None
    status: DealStatus
    funded_amount: Decimal = Decimal("0")


class PayoffOut(BaseModel):
    deal_id: int
    principal: Decimal
    interest: Decimal
    total_due: Decimal


class InvestRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)


class InvestmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    investor_id: int
    deal_id: int
    amount: Decimal
    status: InvestmentStatus
