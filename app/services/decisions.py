"""Admin Decision Engine.

Each approval runs as a single fund movement: the pending row, the deal and
every affected wallet are row-locked (wallets in ascending user id order), all
balance and ledger writes are flushed into one database transaction, and the
request is marked decided last. Any failure rolls the whole movement back, so a
request never ends ``approved`` unless its funds actually moved.
"""
import enum
import logging
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import (
    Deal,
    DealStatus,
    Investment,
    InvestmentStatus,
    PendingStatus,
    PendingTransaction,
    PendingType,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
    VerificationStatus,
)
from app.services.access import ensure_admin
from app.services.distribution import compute_distribution
from app.services.errors import (
    InsufficientBalance,
    InvalidState,
    LedgerError,
    NoInvestments,
    NotFound,
    StorageError,
)
from app.services.ledger import append_transaction, notify, settle_transaction
from app.services.requests import INVESTABLE_STATUSES, REPAYABLE_STATUSES
from app.services.wallet import as_money, credit_wallet, debit_wallet, lock_wallets

logger = logging.getLogger(__name__)

SETTLED_DEAL_STATUSES = {DealStatus.FUNDED, DealStatus.ACTIVE, DealStatus.REPAID}


class Decision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _coerce_decision(value) -> Decision:
    try:
        return Decision(getattr(value, "value", value))
    except ValueError:
        raise LedgerError("Decision must be 'approve' or 'reject'")


def _describe(context: dict) -> str:
    return " ".join(f"{key}={value}" for key, value in context.items())


@contextmanager
def fund_movement(db: Session, operation: str, **context):
    """Commit everything done inside the block, or roll all of it back."""
    try:
        yield
        db.commit()
    except LedgerError as exc:
        db.rollback()
        logger.warning("%s refused %s reason=%s", operation, _describe(context), exc.message)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s failed and was rolled back %s", operation, _describe(context))
        raise StorageError() from exc
    except Exception:
        db.rollback()
        logger.exception("%s crashed and was rolled back %s", operation, _describe(context))
        raise
    logger.info("%s committed %s", operation, _describe(context))


def _lock_pending(db: Session, pending_id: int) -> PendingTransaction:
    pending = (
        db.query(PendingTransaction)
        .filter(PendingTransaction.id == pending_id)
        .with_for_update()
        .first()
    )
    if not pending:
        raise NotFound("Pending transaction not found")
    if pending.status != PendingStatus.PENDING:
        raise InvalidState(f"Pending transaction is already {pending.status.value}")
    return pending


def _lock_deal(db: Session, deal_id: int | None) -> Deal:
    deal = None
    if deal_id is not None:
        deal = db.query(Deal).filter(Deal.id == deal_id).with_for_update().first()
    if not deal:
        raise NotFound("Deal not found")
    return deal


def _mark_decided(db: Session, pending: PendingTransaction, status: PendingStatus, admin) -> None:
    pending.status = status
    pending.decided_by = admin.id
    pending.decided_at = _utcnow()
    db.flush()


def _record_investment(db: Session, investor_id: int, deal_id: int, amount) -> Investment:
    investment = Investment(
        investor_id=investor_id,
        deal_id=deal_id,
        amount=amount,
        status=InvestmentStatus.COMPLETED,
    )
    db.add(investment)
    db.flush()
    return investment


def funded_total(db: Session, deal_id: int):
    total = (
        db.query(func.coalesce(func.sum(Investment.amount), 0))
        .filter(Investment.deal_id == deal_id, Investment.status == InvestmentStatus.COMPLETED)
        .scalar()
    )
    return as_money(total)


def _refresh_funding_status(db: Session, deal: Deal) -> None:
    # Over-subscription is accepted as-is: the crossing investment is never clamped.
    if funded_total(db, deal.id) >= as_money(deal.loan_amount) and deal.status not in SETTLED_DEAL_STATUSES:
        deal.status = DealStatus.FUNDED
        db.flush()
        logger.info("Deal %s reached its loan amount and is now funded", deal.id)


def _approve_investment(db: Session, pending: PendingTransaction, admin) -> None:
    deal = _lock_deal(db, pending.deal_id)
    if deal.status not in INVESTABLE_STATUSES:
        raise InvalidState(f"Deal is {deal.status.value} and no longer open for investment")
    amount = as_money(pending.amount)
    investor_id = pending.user_id
    wallets = lock_wallets(db, [investor_id, deal.lender_id])
    investor_wallet = wallets[investor_id]
    lender_wallet = wallets[deal.lender_id]

    if as_money(investor_wallet.balance) < amount:
        raise InsufficientBalance("Investor has insufficient balance for this investment")

    debit_wallet(db, investor_wallet, amount)
    _record_investment(db, investor_id, deal.id, amount)
    append_transaction(
        db,
        user_id=investor_id,
        tx_type=TransactionType.INVESTMENT,
        amount=-amount,
        reference_id=deal.id,
        description=f"Investment in deal {deal.id}",
    )
    credit_wallet(db, lender_wallet, amount)
    append_transaction(
        db,
        user_id=deal.lender_id,
        tx_type=TransactionType.INVESTMENT,
        amount=amount,
        reference_id=deal.id,
        description=f"Investment received for deal {deal.id}",
    )
    _refresh_funding_status(db, deal)
    _mark_decided(db, pending, PendingStatus.APPROVED, admin)


def _approve_repayment(db: Session, pending: PendingTransaction, admin) -> None:
    deal = _lock_deal(db, pending.deal_id)
    if deal.status not in REPAYABLE_STATUSES:
        raise InvalidState(f"Deal is {deal.status.value} and cannot be repaid")
    amount = as_money(pending.amount)
    lender_id = pending.user_id
    investments = (
        db.query(Investment)
        .filter(Investment.deal_id == deal.id, Investment.status == InvestmentStatus.COMPLETED)
        .order_by(Investment.id.asc())
        .all()
    )
    wallets = lock_wallets(db, [lender_id] + [inv.investor_id for inv in investments])
    lender_wallet = wallets[lender_id]

    if as_money(lender_wallet.balance) < amount:
        raise InsufficientBalance("Lender has insufficient balance for this repayment")
    if not investments:
        raise NoInvestments()

    debit_wallet(db, lender_wallet, amount)
    append_transaction(
        db,
        user_id=lender_id,
        tx_type=TransactionType.REPAYMENT,
        amount=-amount,
        reference_id=deal.id,
        description=f"Repayment of deal {deal.id}",
    )

    shares = compute_distribution([(inv.investor_id, inv.amount) for inv in investments], amount)
    for investor_id, share in shares.items():
        if share <= 0:
            continue
        credit_wallet(db, wallets[investor_id], share)
        append_transaction(
            db,
            user_id=investor_id,
            tx_type=TransactionType.REPAYMENT,
            amount=share,
            reference_id=deal.id,
            description=f"Repayment distribution for deal {deal.id}",
        )

    deal.status = DealStatus.REPAID
    _mark_decided(db, pending, PendingStatus.APPROVED, admin)


def decide_pending_transaction(db: Session, pending_id: int, decision, admin) -> PendingTransaction:
    ensure_admin(admin)
    decision = _coerce_decision(decision)

    with fund_movement(db, f"{decision.value}_pending", pending_id=pending_id, admin_id=admin.id):
        pending = _lock_pending(db, pending_id)
        if decision == Decision.REJECT:
            _mark_decided(db, pending, PendingStatus.REJECTED, admin)
        elif pending.tx_type == PendingType.INVESTMENT:
            _approve_investment(db, pending, admin)
        else:
            _approve_repayment(db, pending, admin)

    kind = pending.tx_type.value
    verb = "approved" if decision == Decision.APPROVE else "rejected"
    notify(
        db,
        pending.user_id,
        f"{kind.capitalize()} {verb}",
        f"Your {kind} request of {as_money(pending.amount)} for deal {pending.deal_id} was {verb}.",
    )
    return pending


decide = decide_pending_transaction


def decide_wallet_transaction(db: Session, transaction_id: int, decision, admin) -> Transaction:
    ensure_admin(admin)
    decision = _coerce_decision(decision)

    with fund_movement(db, f"{decision.value}_wallet_transaction", transaction_id=transaction_id, admin_id=admin.id):
        row = db.query(Transaction).filter(Transaction.id == transaction_id).with_for_update().first()
        if not row:
            raise NotFound("Transaction not found")
        if row.tx_type not in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL):
            raise InvalidState("Only deposit and withdrawal requests can be decided")
        if row.status != TransactionStatus.PENDING:
            raise InvalidState(f"Transaction is already {row.status.value}")

        if decision == Decision.REJECT:
            settle_transaction(db, row, TransactionStatus.FAILED)
        else:
            wallet = lock_wallets(db, [row.user_id])[row.user_id]
            amount = abs(as_money(row.amount))
            if row.tx_type == TransactionType.WITHDRAWAL:
                if as_money(wallet.balance) < amount:
                    raise InsufficientBalance("User has insufficient balance for this withdrawal")
                debit_wallet(db, wallet, amount)
            else:
                credit_wallet(db, wallet, amount)
            settle_transaction(db, row, TransactionStatus.COMPLETED)

    kind = row.tx_type.value
    verb = "approved" if decision == Decision.APPROVE else "rejected"
    notify(db, row.user_id, f"{kind.capitalize()} {verb}", f"Your {kind} of {abs(as_money(row.amount))} was {verb}.")
    return row


def admin_fund_wallet(db: Session, user_id: int, amount, admin, description: str = "Admin funding") -> Transaction:
    ensure_admin(admin)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")

    with fund_movement(db, "admin_fund_wallet", user_id=user_id, admin_id=admin.id):
        wallet = lock_wallets(db, [user.id])[user.id]
        credit_wallet(db, wallet, amount)
        row = append_transaction(
            db,
            user_id=user.id,
            tx_type=TransactionType.DEPOSIT,
            amount=as_money(amount),
            reference_id=f"ADMIN_{admin.id}",
            description=description,
        )
    return row


def decide_deal(db: Session, deal_id: int, decision, admin) -> Deal:
    ensure_admin(admin)
    decision = _coerce_decision(decision)
    deal = db.query(Deal).filter(Deal.id == deal_id).first()
    if not deal:
        raise NotFound("Deal not found")
    if deal.status != DealStatus.SUBMITTED:
        raise InvalidState(f"Deal is already {deal.status.value}")

    deal.status = DealStatus.APPROVED if decision == Decision.APPROVE else DealStatus.REJECTED
    db.commit()
    db.refresh(deal)
    logger.info("Deal %s %s by admin %s", deal.id, deal.status.value, admin.id)
    notify(db, deal.lender_id, f"Deal {deal.status.value}", f"Your deal '{deal.title}' was {deal.status.value}.")
    return deal


def set_verification_status(db: Session, user_id: int, status: VerificationStatus, admin) -> User:
    ensure_admin(admin)
    status = VerificationStatus(status)
    if status == VerificationStatus.PENDING:
        raise InvalidState("Verification can only be set to verified or rejected")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")

    user.verification_status = status
    db.commit()
    db.refresh(user)
    logger.info("User %s verification set to %s by admin %s", user.id, status.value, admin.id)
    return user
