from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.dependencies import require_admin
from app.models import (
    PendingStatus,
    PendingTransaction,
    PendingType,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
    UserRole,
    VerificationStatus,
    Wallet,
)
from app.schemas.admin import (
    AdminPendingTransactionsResponse,
    AdminUsersResponse,
    AdminWalletTransactionsResponse,
    DecisionRequest,
    FundUserWalletRequest,
    VerificationRequest,
)
from app.schemas.deal import DealOut
from app.schemas.transaction import PendingTransactionOut, TransactionOut
from app.schemas.user import UserOut
from app.services.decisions import (
    admin_fund_wallet,
    decide_deal,
    decide_pending_transaction,
    decide_wallet_transaction,
    set_verification_status,
)
from app.services.wallet import as_money

router = APIRouter()

WALLET_REQUEST_TYPES = (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


def _coerce(enum_cls, value: Optional[str], label: str):
    if value is None:
        return None
    raw = value.strip()
    if not raw:
        return None
    for member in enum_cls:
        if raw.lower() == member.value.lower() or raw.upper() == member.name:
            return member
    raise HTTPException(status_code=400, detail=f"Invalid {label}")


def _check_paging(page: int, page_size: int) -> None:
    if page < 1:
        raise HTTPException(status_code=400, detail="page must be >= 1")
    if page_size < 1 or page_size > 200:
        raise HTTPException(status_code=400, detail="page_size must be between 1 and 200")


@router.get("/pending-transactions", response_model=AdminPendingTransactionsResponse)
def list_pending_transactions(
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
    status: Optional[str] = "pending",
    tx_type: Optional[str] = None,
    page: int = 1,
    page_size: int = 50,
):
    _check_paging(page, page_size)
    status_enum = _coerce(PendingStatus, status, "status")
    type_enum = _coerce(PendingType, tx_type, "tx_type")

    query = db.query(PendingTransaction, User.email.label("user_email")).join(User, PendingTransaction.user_id == User.id)
    if status_enum is not None:
        query = query.filter(PendingTransaction.status == status_enum)
    if type_enum is not None:
        query = query.filter(PendingTransaction.tx_type == type_enum)

    total = query.count()
    rows = query.order_by(PendingTransaction.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    items = []
    for pending, user_email in rows:
        item = PendingTransactionOut.model_validate(pending).model_dump()
        item["user_email"] = user_email
        items.append(item)
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.post("/pending-transactions/{pending_id}/decision", response_model=PendingTransactionOut)
def decide_pending(pending_id: int, payload: DecisionRequest, admin=Depends(require_admin), db: Session = Depends(get_db)):
    return decide_pending_transaction(db, pending_id, payload.decision, admin)


@router.get("/wallet-transactions", response_model=AdminWalletTransactionsResponse)
def list_wallet_transactions(
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
    status: Optional[str] = "pending",
    tx_type: Optional[str] = None,
    page: int = 1,
    page_size: int = 50,
):
    _check_paging(page, page_size)
    status_enum = _coerce(TransactionStatus, status, "status")
    type_enum = _coerce(TransactionType, tx_type, "tx_type")
    if type_enum is not None and type_enum not in WALLET_REQUEST_TYPES:
        raise HTTPException(status_code=400, detail="tx_type must be deposit or withdrawal")

    query = (
        db.query(Transaction, User.email.label("user_email"))
        .join(User, Transaction.user_id == User.id)
        .filter(Transaction.tx_type.in_(WALLET_REQUEST_TYPES))
    )
    if status_enum is not None:
        query = query.filter(Transaction.status == status_enum)
    if type_enum is not None:
        query = query.filter(Transaction.tx_type == type_enum)

    total = query.count()
    rows = query.order_by(Transaction.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    items = []
    for tx, user_email in rows:
        item = TransactionOut.model_validate(tx).model_dump()
        item["user_email"] = user_email
        items.append(item)
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.post("/wallet-transactions/{transaction_id}/decision", response_model=TransactionOut)
def decide_wallet_tx(transaction_id: int, payload: DecisionRequest, admin=Depends(require_admin), db: Session = Depends(get_db)):
    return decide_wallet_transaction(db, transaction_id, payload.decision, admin)


@router.post("/deals/{deal_id}/decision", response_model=DealOut)
def decide_deal_listing(deal_id: int, payload: DecisionRequest, admin=Depends(require_admin), db: Session = Depends(get_db)):
    return decide_deal(db, deal_id, payload.decision, admin)


@router.get("/users", response_model=AdminUsersResponse)
def list_users(
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
    q: Optional[str] = None,
    role: Optional[str] = None,
    verification_status: Optional[str] = None,
    page: int = 1,
    page_size: int = 50,
):
    _check_paging(page, page_size)
    role_enum = _coerce(UserRole, role, "role")
    verification_enum = _coerce(VerificationStatus, verification_status, "verification_status")

    query = db.query(User, Wallet.balance.label("balance")).outerjoin(Wallet, Wallet.user_id == User.id)
    if q:
        needle = f"%{q.strip()}%"
        query = query.filter(User.email.ilike(needle) | User.full_name.ilike(needle))
    if role_enum is not None:
        query = query.filter(User.role == role_enum)
    if verification_enum is not None:
        query = query.filter(User.verification_status == verification_enum)

    total = query.count()
    rows = query.order_by(User.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    items = [
        {
            "id": user.id,
            "created_at": user.created_at,
            "email": user.email,
            "full_name": user.full_name,
            "role": user.role,
            "verification_status": user.verification_status,
            "is_active": user.is_active,
            "balance": as_money(balance),
        }
        for user, balance in rows
    ]
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.post("/users/{user_id}/verification", response_model=UserOut)
def verify_user(user_id: int, payload: VerificationRequest, admin=Depends(require_admin), db: Session = Depends(get_db)):
    return set_verification_status(db, user_id, VerificationStatus(payload.status), admin)


@router.post("/fund-wallet", response_model=TransactionOut)
def fund_user_wallet(payload: FundUserWalletRequest, admin=Depends(require_admin), db: Session = Depends(get_db)):
    return admin_fund_wallet(db, payload.user_id, payload.amount, admin, description=payload.description)
