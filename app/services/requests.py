"""Pending Request Queue: requests that wait for an admin decision.

Investments and repayments are queued as ``PendingTransaction`` rows. Deposits
and withdrawals submitted by users are queued directly in the ledger as
``Transaction`` rows with status ``pending``. Nothing here moves money; funds are
validated at submission but never held.
"""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models import (
    Deal,
    DealStatus,
    PendingStatus,
    PendingTransaction,
    PendingType,
    Transaction,
    TransactionStatus,
    TransactionType,
    UserRole,
)
from app.services.access import ensure_role
from app.services.errors import Forbidden, InsufficientBalance, InvalidAmount, InvalidState, NotFound
from app.services.ledger import append_transaction
from app.services.wallet import CENTS, as_money, get_balance

logger = logging.getLogger(__name__)

INVESTABLE_STATUSES = {DealStatus.APPROVED, DealStatus.FUNDED}
REPAYABLE_STATUSES = {DealStatus.FUNDED, DealStatus.ACTIVE}


def payoff_amount(deal: Deal) -> Decimal:
    """Principal plus simple interest over the full term, to the cent."""
    principal = as_money(deal.loan_amount)
    rate = Decimal(str(deal.interest_rate))
    interest = principal * rate / Decimal("100") * Decimal(int(deal.term_months)) / Decimal("12")
    return (principal + interest).quantize(CENTS)


def _validated_amount(amount) -> Decimal:
    if amount is None:
        raise InvalidAmount()
    amount = as_money(amount)
    if amount <= 0:
        raise InvalidAmount()
    return amount


def get_deal(db: Session, deal_id: int) -> Deal:
    deal = db.query(Deal).filter(Deal.id == deal_id).first()
    if not deal:
        raise NotFound("Deal not found")
    return deal


def submit_request(db: Session, user, deal_id: int | None, tx_type: PendingType, amount) -> PendingTransaction:
    amount = _validated_amount(amount)
    tx_type = PendingType(tx_type)
    if deal_id is None:
        raise NotFound("Deal not found")
    deal = get_deal(db, deal_id)

    if tx_type == PendingType.INVESTMENT:
        ensure_role(user, UserRole.INVESTOR, message="Only investors can invest")
        if deal.status not in INVESTABLE_STATUSES:
            raise InvalidState(f"Deal is {deal.status.value} and not open for investment")
        # Balance is checked when the admin approves; nothing is held now.
    else:
        ensure_role(user, UserRole.LENDER, message="Only lenders can repay")
        if deal.lender_id != user.id:
            raise Forbidden("Only the deal's lender can repay it")
        if deal.status not in REPAYABLE_STATUSES:
            raise InvalidState(f"Deal is {deal.status.value} and cannot be repaid")
        balance = get_balance(db, user.id)
        if balance < amount:
            raise InsufficientBalance(f"Insufficient wallet balance. You need {amount} but only have {balance}.")

    pending = PendingTransaction(
        user_id=user.id,
        deal_id=deal.id,
        tx_type=tx_type,
        amount=amount,
        status=PendingStatus.PENDING,
    )
    db.add(pending)
    db.commit()
    db.refresh(pending)
    logger.info(
        "Queued %s request id=%s user_id=%s deal_id=%s amount=%s",
        tx_type.value,
        pending.id,
        user.id,
        deal.id,
        amount,
    )
    return pending


def submit_investment_request(db: Session, user, deal_id: int, amount) -> PendingTransaction:
    return submit_request(db, user, deal_id, PendingType.INVESTMENT, amount)


def submit_repayment_request(db: Session, user, deal_id: int) -> PendingTransaction:
    deal = get_deal(db, deal_id)
    return submit_request(db, user, deal.id, PendingType.REPAYMENT, payoff_amount(deal))


def submit_withdrawal_request(db: Session, user, amount) -> Transaction:
    amount = _validated_amount(amount)
    balance = get_balance(db, user.id)
    if balance < amount:
        raise InsufficientBalance(f"Insufficient wallet balance. You need {amount} but only have {balance}.")
    row = append_transaction(
        db,
        user_id=user.id,
        tx_type=TransactionType.WITHDRAWAL,
        amount=-amount,
        status=TransactionStatus.PENDING,
        description="Withdrawal request",
    )
    db.commit()
    db.refresh(row)
    logger.info("Queued withdrawal id=%s user_id=%s amount=%s", row.id, user.id, amount)
    return row


def submit_deposit_request(db: Session, user, amount, reference: str | None = None) -> Transaction:
    amount = _validated_amount(amount)
    row = append_transaction(
        db,
        user_id=user.id,
        tx_type=TransactionType.DEPOSIT,
        amount=amount,
        status=TransactionStatus.PENDING,
        reference_id=reference,
        description="Manual deposit request",
    )
    db.commit()
    db.refresh(row)
    logger.info("Queued deposit id=%s user_id=%s amount=%s", row.id, user.id, amount)
    return row
