from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.dependencies import get_current_user
from app.models import User
from app.schemas.transaction import TransactionOut
from app.schemas.wallet import WalletOut, AmountRequest, DepositRequest, CheckoutRequest, CheckoutResponse
from app.services.ledger import list_user_transactions
from app.services.payment_bridge import create_deposit_checkout
from app.services.requests import submit_deposit_request, submit_withdrawal_request
from app.services.wallet import ensure_wallet
from app.middlewares.rate_limit import limiter

router = APIRouter()


@router.get("/me", response_model=WalletOut)
def get_wallet(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    wallet = ensure_wallet(db, user.id)
    db.commit()
    return wallet


@router.get("/transactions", response_model=list[TransactionOut])
def get_transactions(limit: int = 50, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return list_user_transactions(db, user.id, limit=max(1, min(limit, 200)))


@router.post("/deposit", response_model=TransactionOut)
@limiter.limit("5/minute")
def request_deposit(request: Request, payload: DepositRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return submit_deposit_request(db, user, payload.amount, reference=payload.reference)


@router.post("/deposit/checkout", response_model=CheckoutResponse)
@limiter.limit("5/minute")
def deposit_via_gateway(request: Request, payload: CheckoutRequest, user: User = Depends(get_current_user)):
    callback_url = payload.callback_url or request.headers.get("origin")
    return {"redirect_url": create_deposit_checkout(user, payload.amount, callback_url)}


@router.post("/withdraw", response_model=TransactionOut)
@limiter.limit("5/minute")
def request_withdrawal(request: Request, payload: AmountRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return submit_withdrawal_request(db, user, payload.amount)
