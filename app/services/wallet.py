import logging
from decimal import Decimal
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Wallet
from app.services.errors import InsufficientBalance, InvalidAmount, StorageError, WalletLocked

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def as_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS)


def _positive(amount) -> Decimal:
    amount = as_money(amount)
    if amount <= 0:
        raise InvalidAmount()
    return amount


def get_wallet(db: Session, user_id: int, *, for_update: bool = False) -> Wallet | None:
    query = db.query(Wallet).filter(Wallet.user_id == user_id)
    if for_update:
        query = query.with_for_update()
    return query.first()


def get_balance(db: Session, user_id: int) -> Decimal:
    wallet = get_wallet(db, user_id)
    if not wallet:
        return Decimal("0.00")
    return as_money(wallet.balance)


def ensure_wallet(db: Session, user_id: int, *, for_update: bool = False) -> Wallet:
    """Return the user's wallet, creating a zero-balance one when absent.

    The new row is flushed, not committed; it becomes durable with the caller's
    unit of work.
    """
    wallet = get_wallet(db, user_id, for_update=for_update)
    if wallet:
        return wallet
    wallet = Wallet(user_id=user_id, balance=Decimal("0.00"), is_locked=False)
    try:
        db.add(wallet)
        db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Wallet creation failed user_id=%s", user_id)
        raise StorageError("Wallet could not be created") from exc
    logger.info("Created wallet user_id=%s", user_id)
    return wallet


def lock_wallets(db: Session, user_ids: Iterable[int]) -> dict[int, Wallet]:
    # Fixed ascending order so two movements touching the same pair cannot deadlock.
    wallets: dict[int, Wallet] = {}
    for user_id in sorted(set(user_ids)):
        wallets[user_id] = ensure_wallet(db, user_id, for_update=True)
    return wallets


def set_balance(db: Session, wallet: Wallet, new_balance) -> Wallet:
    new_balance = as_money(new_balance)
    if new_balance < 0:
        raise InsufficientBalance()
    if wallet.is_locked:
        raise WalletLocked()
    wallet.balance = new_balance
    db.flush()
    return wallet


def credit_wallet(db: Session, wallet: Wallet, amount) -> Decimal:
    amount = _positive(amount)
    if wallet.is_locked:
        raise WalletLocked()
    db.refresh(wallet)
    wallet.balance = as_money(wallet.balance) + amount
    db.flush()
    return as_money(wallet.balance)


def debit_wallet(db: Session, wallet: Wallet, amount) -> Decimal:
    amount = _positive(amount)
    if wallet.is_locked:
        raise WalletLocked()
    db.refresh(wallet)
    current = as_money(wallet.balance)
    if current < amount:
        raise InsufficientBalance(f"Insufficient balance: need {amount}, have {current}")
    wallet.balance = current - amount
    db.flush()
    return as_money(wallet.balance)
