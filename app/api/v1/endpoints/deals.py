import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.dependencies import get_current_user, require_investor, require_lender
from app.middlewares.rate_limit import limiter
from app.models import Deal, DealStatus, Investment, User, UserRole
from app.schemas.deal import DealCreate, DealOut, InvestRequest, InvestmentOut, PayoffOut
from app.schemas.transaction import PendingTransactionOut
from app.services.access import role_of
from app.services.decisions import funded_total
from app.services.errors import NotFound
from app.services.requests import payoff_amount, submit_investment_request, submit_repayment_request
from app.services.wallet import as_money

router = APIRouter()
logger = logging.getLogger(__name__)

INVESTOR_VISIBLE = {DealStatus.APPROVED, DealStatus.FUNDED, DealStatus.ACTIVE, DealStatus.REPAID}


def _to_out(db: Session, deal: Deal) -> dict:
    out = DealOut.model_validate(deal).model_dump()
    out["funded_amount"] = funded_total(db, deal.id)
    return out


def _visible_deal(db: Session, deal_id: int, user: User) -> Deal:
    deal = db.query(Deal).filter(Deal.id == deal_id).first()
    if not deal:
        raise NotFound("Deal not found")
    role = role_of(user)
    if role == UserRole.LENDER and deal.lender_id != user.id:
        raise NotFound("Deal not found")
    if role == UserRole.INVESTOR and deal.status not in INVESTOR_VISIBLE:
        raise NotFound("Deal not found")
    return deal


@router.post("", response_model=DealOut)
def create_deal(payload: DealCreate, user: User = Depends(require_lender), db: Session = Depends(get_db)):
    deal = Deal(
        lender_id=user.id,
        title=payload.title.strip(),
        description=(payload.description or "").strip() or None,
        loan_amount=payload.loan_amount,
        interest_rate=payload.interest_rate,
        term_months=payload.term_months,
        ltv=payload.ltv,
        property_type=payload.property_type.strip(),
        property_location=payload.property_location.strip(),
        status=DealStatus.SUBMITTED,
    )
    db.add(deal)
    db.commit()
    db.refresh(deal)
    logger.info("Lender %s submitted deal %s for %s", user.id, deal.id, deal.loan_amount)
    return _to_out(db, deal)


@router.get("", response_model=list[DealOut])
def list_deals(status: DealStatus | None = None, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    query = db.query(Deal)
    role = role_of(user)
    if role == UserRole.LENDER:
        query = query.filter(Deal.lender_id == user.id)
    elif role == UserRole.INVESTOR:
        query = query.filter(Deal.status.in_(INVESTOR_VISIBLE))
    if status is not None:
        query = query.filter(Deal.status == status)
    return [_to_out(db, deal) for deal in query.order_by(Deal.id.desc()).all()]


@router.get("/investments/me", response_model=list[InvestmentOut])
def my_investments(user: User = Depends(require_investor), db: Session = Depends(get_db)):
    return (
        db.query(Investment)
        .filter(Investment.investor_id == user.id)
        .order_by(Investment.id.desc())
        .all()
    )


@router.get("/{deal_id}", response_model=DealOut)
def get_deal(deal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _to_out(db, _visible_deal(db, deal_id, user))


@router.get("/{deal_id}/payoff", response_model=PayoffOut)
def get_payoff(deal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    deal = _visible_deal(db, deal_id, user)
    principal = as_money(deal.loan_amount)
    total_due = payoff_amount(deal)
    return {
        "deal_id": deal.id,
        "principal": principal,
        "interest": total_due - principal,
        "total_due": total_due,
    }


@router.post("/{deal_id}/invest", response_model=PendingTransactionOut)
@limiter.limit("10/minute")
def invest(request: Request, deal_id: int, payload: InvestRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return submit_investment_request(db, user, deal_id, payload.amount)


@router.post("/{deal_id}/repay", response_model=PendingTransactionOut)
@limiter.limit("10/minute")
def repay(request: Request, deal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return submit_repayment_request(db, user, deal_id)
