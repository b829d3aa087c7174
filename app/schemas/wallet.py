from pydantic import BaseModel, ConfigDict, Field
from decimal import Decimal


class WalletOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    balance: Decimal
    is_locked: bool


class AmountRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)


class DepositRequest(AmountRequest):
    reference: str | None = Field(default=None, max_length=128)


class CheckoutRequest(AmountRequest):
    callback_url: str | None = None


class CheckoutResponse(BaseModel):
    redirect_url: str
