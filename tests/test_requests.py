from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.models import DealStatus, PendingStatus, PendingTransaction, PendingType, TransactionStatus, TransactionType, UserRole
from app.services.decisions import decide_pending_transaction
from app.services.errors import Forbidden, InsufficientBalance, InvalidAmount, InvalidState, NotFound
from app.services.requests import (
    payoff_amount,
    submit_deposit_request,
    submit_investment_request,
    submit_repayment_request,
    submit_withdrawal_request,
)
from conftest import balance_of


@pytest.mark.parametrize(
    "loan, rate, term, expected",
    [
        ("100000", "12", 12, Decimal("112000.00")),
        ("50000", "10", 6, Decimal("52500.00")),
        ("1000", "7.5", 1, Decimal("1006.25")),
    ],
)
def test_payoff_amount(loan, rate, term, expected):
    deal = SimpleNamespace(loan_amount=Decimal(loan), interest_rate=Decimal(rate), term_months=term)
    assert payoff_amount(deal) == expected


def test_investment_beyond_balance_is_queued_and_refused_at_approval(db_session, make_user, make_deal):
    admin = make_user(UserRole.ADMIN)
    investor = make_user(UserRole.INVESTOR, balance="5000")
    lender = make_user(UserRole.LENDER)
    deal = make_deal(lender, loan_amount="100000")

    pending = submit_investment_request(db_session, investor, deal.id, "6000")
    assert pending.status == PendingStatus.PENDING
    assert pending.tx_type == PendingType.INVESTMENT
    assert pending.amount == Decimal("6000.00")

    with pytest.raises(InsufficientBalance):
        decide_pending_transaction(db_session, pending.id, "approve", admin)

    db_session.expire_all()
    assert db_session.get(PendingTransaction, pending.id).status == PendingStatus.PENDING
    assert balance_of(db_session, investor) == Decimal("5000.00")
    assert balance_of(db_session, lender) == Decimal("0.00")


def test_investment_requires_open_deal(db_session, make_user, make_deal):
    investor = make_user(UserRole.INVESTOR, balance="5000")
    deal = make_deal(make_user(UserRole.LENDER), status=DealStatus.SUBMITTED)
    with pytest.raises(InvalidState):
        submit_investment_request(db_session, investor, deal.id, "1000")


def test_only_investors_can_invest(db_session, make_user, make_deal):
    lender = make_user(UserRole.LENDER, balance="5000")
    deal = make_deal(lender)
    with pytest.raises(Forbidden):
        submit_investment_request(db_session, lender, deal.id, "1000")


@pytest.mark.parametrize("amount", [None, "0", "-10"])
def test_investment_amount_must_be_positive(db_session, make_user, make_deal, amount):
    investor = make_user(UserRole.INVESTOR, balance="5000")
    deal = make_deal(make_user(UserRole.LENDER))
    with pytest.raises(InvalidAmount):
        submit_investment_request(db_session, investor, deal.id, amount)
    assert db_session.query(PendingTransaction).count() == 0


def test_investment_on_unknown_deal(db_session, make_user):
    investor = make_user(UserRole.INVESTOR, balance="5000")
    with pytest.raises(NotFound):
        submit_investment_request(db_session, investor, 404, "100")


def test_repayment_request_uses_payoff_amount(db_session, make_user, make_deal):
    lender = make_user(UserRole.LENDER, balance="200000")
    deal = make_deal(lender, loan_amount="100000", status=DealStatus.FUNDED)

    pending = submit_repayment_request(db_session, lender, deal.id)
    assert pending.tx_type == PendingType.REPAYMENT
    assert pending.amount == Decimal("112000.00")
    assert pending.deal_id == deal.id


def test_repayment_request_checks_lender_balance(db_session, make_user, make_deal):
    lender = make_user(UserRole.LENDER, balance="1000")
    deal = make_deal(lender, loan_amount="100000", status=DealStatus.FUNDED)
    with pytest.raises(InsufficientBalance):
        submit_repayment_request(db_session, lender, deal.id)
    assert db_session.query(PendingTransaction).count() == 0


def test_only_the_deals_lender_can_repay(db_session, make_user, make_deal):
    owner = make_user(UserRole.LENDER, balance="200000")
    other = make_user(UserRole.LENDER, balance="200000")
    deal = make_deal(owner, status=DealStatus.FUNDED)
    with pytest.raises(Forbidden):
        submit_repayment_request(db_session, other, deal.id)


def test_repayment_requires_funded_deal(db_session, make_user, make_deal):
    lender = make_user(UserRole.LENDER, balance="200000")
    deal = make_deal(lender, status=DealStatus.APPROVED)
    with pytest.raises(InvalidState):
        submit_repayment_request(db_session, lender, deal.id)


def test_withdrawal_request_is_pending_and_negative(db_session, make_user):
    investor = make_user(UserRole.INVESTOR, balance="500")
    row = submit_withdrawal_request(db_session, investor, "200")
    assert row.tx_type == TransactionType.WITHDRAWAL
    assert row.status == TransactionStatus.PENDING
    assert row.amount == Decimal("-200.00")
    assert balance_of(db_session, investor) == Decimal("500.00")


def test_withdrawal_request_over_balance_is_refused(db_session, make_user):
    investor = make_user(UserRole.INVESTOR, balance="100")
    with pytest.raises(InsufficientBalance):
        submit_withdrawal_request(db_session, investor, "100.01")


def test_deposit_request_is_pending(db_session, make_user):
    investor = make_user(UserRole.INVESTOR)
    row = submit_deposit_request(db_session, investor, "750", reference="BANK-REF-1")
    assert row.tx_type == TransactionType.DEPOSIT
    assert row.status == TransactionStatus.PENDING
    assert row.amount == Decimal("750.00")
    assert row.reference_id == "BANK-REF-1"
    assert balance_of(db_session, investor) == Decimal("0.00")
