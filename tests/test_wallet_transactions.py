from decimal import Decimal

import pytest

from app.models import Deal, DealStatus, Transaction, TransactionStatus, TransactionType, User, UserRole, VerificationStatus
from app.services.decisions import (
    admin_fund_wallet,
    decide_deal,
    decide_wallet_transaction,
    set_verification_status,
)
from app.services.errors import InsufficientBalance, InvalidState, NotFound
from app.services.ledger import append_transaction
from app.services.requests import submit_deposit_request, submit_withdrawal_request
from conftest import balance_of


def test_approved_withdrawal_debits_wallet(db_session, make_user):
    admin = make_user(UserRole.ADMIN)
    investor = make_user(UserRole.INVESTOR, balance="500")
    row = submit_withdrawal_request(db_session, investor, "200")

    decided = decide_wallet_transaction(db_session, row.id, "approve", admin)

    assert decided.status == TransactionStatus.COMPLETED
    assert decided.amount == Decimal("-200.00")
    assert balance_of(db_session, investor) == Decimal("300.00")


def test_rejected_withdrawal_keeps_balance(db_session, make_user):
    admin = make_user(UserRole.ADMIN)
    investor = make_user(UserRole.INVESTOR, balance="500")
    row = submit_withdrawal_request(db_session, investor, "200")

    decided = decide_wallet_transaction(db_session, row.id, "reject", admin)

    assert decided.status == TransactionStatus.FAILED
    assert balance_of(db_session, investor) == Decimal("500.00")


def test_withdrawal_refused_when_balance_dropped(db_session, make_user):
    admin = make_user(UserRole.ADMIN)
    investor = make_user(UserRole.INVESTOR, balance="500")
    first = submit_withdrawal_request(db_session, investor, "400")
    second = submit_withdrawal_request(db_session, investor, "400")
    decide_wallet_transaction(db_session, first.id, "approve", admin)

    with pytest.raises(InsufficientBalance):
        decide_wallet_transaction(db_session, second.id, "approve", admin)

    assert balance_of(db_session, investor) == Decimal("100.00")
    assert db_session.get(Transaction, second.id).status == TransactionStatus.PENDING


def test_approved_deposit_credits_wallet(db_session, make_user):
    admin = make_user(UserRole.ADMIN)
    investor = make_user(UserRole.INVESTOR)
    row = submit_deposit_request(db_session, investor, "750")

    decide_wallet_transaction(db_session, row.id, "approve", admin)
    assert balance_of(db_session, investor) == Decimal("750.00")

    with pytest.raises(InvalidState):
        decide_wallet_transaction(db_session, row.id, "approve", admin)
    assert balance_of(db_session, investor) == Decimal("750.00")


def test_only_wallet_requests_can_be_decided(db_session, make_user):
    admin = make_user(UserRole.ADMIN)
    investor = make_user(UserRole.INVESTOR)
    row = append_transaction(
        db_session,
        user_id=investor.id,
        tx_type=TransactionType.INVESTMENT,
        amount=Decimal("-10"),
        status=TransactionStatus.PENDING,
    )
    db_session.commit()
    with pytest.raises(InvalidState):
        decide_wallet_transaction(db_session, row.id, "approve", admin)


def test_unknown_wallet_request(db_session, make_user):
    with pytest.raises(NotFound):
        decide_wallet_transaction(db_session, 999, "approve", make_user(UserRole.ADMIN))


def test_admin_fund_wallet_records_deposit(db_session, make_user):
    admin = make_user(UserRole.ADMIN)
    lender = make_user(UserRole.LENDER)

    row = admin_fund_wallet(db_session, lender.id, "2500", admin, description="Opening balance")

    assert row.tx_type == TransactionType.DEPOSIT
    assert row.status == TransactionStatus.COMPLETED
    assert row.reference_id == f"ADMIN_{admin.id}"
    assert balance_of(db_session, lender) == Decimal("2500.00")


def test_deal_listing_decision(db_session, make_user, make_deal):
    admin = make_user(UserRole.ADMIN)
    lender = make_user(UserRole.LENDER)
    deal = make_deal(lender, status=DealStatus.SUBMITTED)

    decided = decide_deal(db_session, deal.id, "approve", admin)
    assert decided.status == DealStatus.APPROVED

    with pytest.raises(InvalidState):
        decide_deal(db_session, deal.id, "reject", admin)
    db_session.expire_all()
    assert db_session.get(Deal, deal.id).status == DealStatus.APPROVED


def test_verification_status(db_session, make_user):
    admin = make_user(UserRole.ADMIN)
    investor = make_user(UserRole.INVESTOR, verification_status=VerificationStatus.PENDING)

    set_verification_status(db_session, investor.id, VerificationStatus.VERIFIED, admin)
    db_session.expire_all()
    assert db_session.get(User, investor.id).verification_status == VerificationStatus.VERIFIED

    with pytest.raises(InvalidState):
        set_verification_status(db_session, investor.id, VerificationStatus.PENDING, admin)
