from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app.models import (
    Deal,
    DealStatus,
    PendingStatus,
    PendingTransaction,
    PendingType,
    Transaction,
    TransactionType,
    UserRole,
    Wallet,
)
from app.services import decisions
from app.services.decisions import decide
from app.services.errors import InsufficientBalance, InvalidState, NoInvestments, StorageError
from app.services.requests import submit_investment_request, submit_repayment_request
from conftest import balance_of


def _queue_repayment(db_session, lender, deal, amount) -> PendingTransaction:
    pending = PendingTransaction(
        user_id=lender.id,
        deal_id=deal.id,
        tx_type=PendingType.REPAYMENT,
        amount=Decimal(amount),
        status=PendingStatus.PENDING,
    )
    db_session.add(pending)
    db_session.commit()
    return pending


def _invest(db_session, admin, investor, deal, amount):
    pending = submit_investment_request(db_session, investor, deal.id, amount)
    decide(db_session, pending.id, "approve", admin)


def test_repayment_is_split_pro_rata(db_session, make_user, make_deal):
    admin = make_user(UserRole.ADMIN)
    investor_a = make_user(UserRole.INVESTOR, balance="3000")
    investor_b = make_user(UserRole.INVESTOR, balance="7000")
    lender = make_user(UserRole.LENDER, balance="0")
    deal = make_deal(lender, loan_amount="10000")
    _invest(db_session, admin, investor_a, deal, "3000")
    _invest(db_session, admin, investor_b, deal, "7000")
    assert balance_of(db_session, lender) == Decimal("10000.00")

    pending = _queue_repayment(db_session, lender, deal, "10000")
    decided = decide(db_session, pending.id, "approve", admin)

    assert decided.status == PendingStatus.APPROVED
    assert balance_of(db_session, investor_a) == Decimal("3000.00")
    assert balance_of(db_session, investor_b) == Decimal("7000.00")
    assert balance_of(db_session, lender) == Decimal("0.00")
    assert db_session.get(Deal, deal.id).status == DealStatus.REPAID

    rows = db_session.query(Transaction).filter(Transaction.tx_type == TransactionType.REPAYMENT).all()
    by_user = {row.user_id: row.amount for row in rows}
    assert by_user == {
        lender.id: Decimal("-10000.00"),
        investor_a.id: Decimal("3000.00"),
        investor_b.id: Decimal("7000.00"),
    }


def test_lender_without_funds_cannot_be_approved(db_session, make_user, make_deal):
    admin = make_user(UserRole.ADMIN)
    investor = make_user(UserRole.INVESTOR, balance="1000")
    lender = make_user(UserRole.LENDER, balance="0")
    deal = make_deal(lender, loan_amount="1000")
    _invest(db_session, admin, investor, deal, "1000")

    # The lender spends the capital before repaying.
    db_session.query(Wallet).filter(Wallet.user_id == lender.id).update({"balance": Decimal("0")})
    db_session.commit()
    pending = _queue_repayment(db_session, lender, deal, "1000")

    with pytest.raises(InsufficientBalance):
        decide(db_session, pending.id, "approve", admin)

    assert balance_of(db_session, lender) == Decimal("0.00")
    assert balance_of(db_session, investor) == Decimal("0.00")
    assert db_session.get(PendingTransaction, pending.id).status == PendingStatus.PENDING
    assert db_session.get(Deal, deal.id).status == DealStatus.FUNDED


def test_repayment_without_investments_fails(db_session, make_user, make_deal):
    admin = make_user(UserRole.ADMIN)
    lender = make_user(UserRole.LENDER, balance="5000")
    deal = make_deal(lender, loan_amount="1000", status=DealStatus.FUNDED)
    pending = _queue_repayment(db_session, lender, deal, "1000")

    with pytest.raises(NoInvestments):
        decide(db_session, pending.id, "approve", admin)

    assert balance_of(db_session, lender) == Decimal("5000.00")
    assert db_session.get(PendingTransaction, pending.id).status == PendingStatus.PENDING


def test_uneven_repayment_conserves_every_cent(db_session, make_user, make_deal):
    admin = make_user(UserRole.ADMIN)
    investors = [make_user(UserRole.INVESTOR, balance="100") for _ in range(3)]
    lender = make_user(UserRole.LENDER, balance="0")
    deal = make_deal(lender, loan_amount="300")
    for investor in investors:
        _invest(db_session, admin, investor, deal, "100")

    db_session.query(Wallet).filter(Wallet.user_id == lender.id).update({"balance": Decimal("1000")})
    db_session.commit()
    pending = _queue_repayment(db_session, lender, deal, "1000")
    decide(db_session, pending.id, "approve", admin)

    shares = [balance_of(db_session, investor) for investor in investors]
    assert sum(shares) == Decimal("1000.00")
    assert sorted(shares) == [Decimal("333.33"), Decimal("333.33"), Decimal("333.34")]
    assert balance_of(db_session, lender) == Decimal("0.00")


def test_submitted_repayment_round_trip(db_session, make_user, make_deal):
    admin = make_user(UserRole.ADMIN)
    investor = make_user(UserRole.INVESTOR, balance="10000")
    lender = make_user(UserRole.LENDER, balance="1200")
    deal = make_deal(lender, loan_amount="10000", interest_rate="12", term_months=12)
    _invest(db_session, admin, investor, deal, "10000")

    pending = submit_repayment_request(db_session, lender, deal.id)
    assert pending.amount == Decimal("11200.00")
    decide(db_session, pending.id, "approve", admin)

    assert balance_of(db_session, investor) == Decimal("11200.00")
    assert balance_of(db_session, lender) == Decimal("0.00")


def test_second_repayment_of_a_repaid_deal_is_refused(db_session, make_user, make_deal):
    admin = make_user(UserRole.ADMIN)
    investor = make_user(UserRole.INVESTOR, balance="1000")
    lender = make_user(UserRole.LENDER, balance="0")
    deal = make_deal(lender, loan_amount="1000", interest_rate="12", term_months=12)
    _invest(db_session, admin, investor, deal, "1000")

    db_session.query(Wallet).filter(Wallet.user_id == lender.id).update({"balance": Decimal("2240")})
    db_session.commit()
    first = submit_repayment_request(db_session, lender, deal.id)
    second = submit_repayment_request(db_session, lender, deal.id)

    decide(db_session, first.id, "approve", admin)
    assert balance_of(db_session, investor) == Decimal("1120.00")
    assert balance_of(db_session, lender) == Decimal("1120.00")

    with pytest.raises(InvalidState):
        decide(db_session, second.id, "approve", admin)

    assert balance_of(db_session, investor) == Decimal("1120.00")
    assert balance_of(db_session, lender) == Decimal("1120.00")
    assert db_session.get(PendingTransaction, second.id).status == PendingStatus.PENDING
    assert db_session.get(Deal, deal.id).status == DealStatus.REPAID
    assert db_session.query(Transaction).filter(Transaction.tx_type == TransactionType.REPAYMENT).count() == 2


def test_failed_distribution_rolls_back_lender_debit(db_session, make_user, make_deal, monkeypatch):
    admin = make_user(UserRole.ADMIN)
    investor_a = make_user(UserRole.INVESTOR, balance="400")
    investor_b = make_user(UserRole.INVESTOR, balance="600")
    lender = make_user(UserRole.LENDER, balance="0")
    deal = make_deal(lender, loan_amount="1000")
    _invest(db_session, admin, investor_a, deal, "400")
    _invest(db_session, admin, investor_b, deal, "600")
    pending = _queue_repayment(db_session, lender, deal, "1000")

    def _broken_credit(*args, **kwargs):
        raise OperationalError("UPDATE wallets", {}, Exception("disk I/O error"))

    monkeypatch.setattr(decisions, "credit_wallet", _broken_credit)

    with pytest.raises(StorageError):
        decide(db_session, pending.id, "approve", admin)

    assert balance_of(db_session, lender) == Decimal("1000.00")
    assert balance_of(db_session, investor_a) == Decimal("0.00")
    assert balance_of(db_session, investor_b) == Decimal("0.00")
    assert db_session.get(PendingTransaction, pending.id).status == PendingStatus.PENDING
    assert db_session.get(Deal, deal.id).status == DealStatus.FUNDED
    assert db_session.query(Transaction).filter(Transaction.tx_type == TransactionType.REPAYMENT).count() == 0
