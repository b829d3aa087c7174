from decimal import ROUND_DOWN, Decimal
from typing import Hashable, Iterable

from app.services.errors import NoInvestments
from app.services.wallet import CENTS, as_money


def compute_distribution(
    investments: Iterable[tuple[Hashable, Decimal]],
    repayment_amount,
) -> dict[Hashable, Decimal]:
    """Split ``repayment_amount`` across investors pro rata to what each invested.

    Each share is rounded down to the cent and the leftover cents go to the last
    entry, so the shares always sum to exactly ``repayment_amount``. An investor
    appearing more than once receives the sum of their entries' shares.
    """
    entries = [(investor_id, as_money(amount)) for investor_id, amount in investments]
    entries = [(investor_id, amount) for investor_id, amount in entries if amount > 0]
    total_invested = sum((amount for _, amount in entries), Decimal("0"))
    if not entries or total_invested <= 0:
        raise NoInvestments()

    repayment_amount = as_money(repayment_amount)
    shares: dict[Hashable, Decimal] = {}
    distributed = Decimal("0")
    for investor_id, amount in entries[:-1]:
        share = (repayment_amount * amount / total_invested).quantize(CENTS, rounding=ROUND_DOWN)
        shares[investor_id] = shares.get(investor_id, Decimal("0")) + share
        distributed += share

    last_investor, _ = entries[-1]
    shares[last_investor] = shares.get(last_investor, Decimal("0")) + (repayment_amount - distributed)
    return shares
