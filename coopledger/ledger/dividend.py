"""Dividend eligibility and per-share computation.

A member counts towards the per-share denominator for a year only when:

* an eligibility record for (year, current cycle) marks them eligible, and
* they made a qualifying payment: at least one contribution covering their full
  expected amount, dated on or before the cycle's due instant.

Members without an eligibility record are excluded just like members marked
ineligible.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Sequence
from coopledger.ledger.entities import (
    ZERO, CycleEligibility, DividendEstimate, MemberShares, Payment, PayoutLine,
)
from coopledger.ledger.schedule import current_cycle, round_whole

PER_SHARE_QUANTUM = Decimal('0.0001')

def has_qualifying_payment(payments: Iterable[Payment], expected_amount, due_at: datetime) -> bool:
    """True when one payment alone covers ``expected_amount`` by ``due_at``"""
    expected = Decimal(str(expected_amount))
    return any(p.paid_at <= due_at and Decimal(p.amount) >= expected for p in payments)

def eligible_member_ids(eligibilities: Iterable[CycleEligibility], year, cycle):
    return {
        e.member_id for e in eligibilities
        if e.year == year and e.cycle == cycle and e.is_eligible
    }

def qualifying_members(members: Sequence[MemberShares],
                       eligibilities: Iterable[CycleEligibility],
                       payments_by_member: Mapping[object, Sequence[Payment]],
                       share_unit_value, year, cycle, due_at) -> List[MemberShares]:
    eligible = eligible_member_ids(eligibilities, year, cycle)
    unit_value = Decimal(str(share_unit_value or 0))

    qualifying = []
    for member in members:
        if member.member_id not in eligible:
            continue
        expected = Decimal(member.share_count or 0) * unit_value
        if has_qualifying_payment(payments_by_member.get(member.member_id, ()), expected, due_at):
            qualifying.append(member)
    return qualifying

def per_share_amount(profit_pool, total_shares):
    """Profit pool divided by shares; zero when there are no shares"""
    if not total_shares:
        return ZERO
    value = Decimal(str(profit_pool or 0)) / Decimal(total_shares)
    return value.quantize(PER_SHARE_QUANTUM)

def compute_per_share(year, profit_pool, members: Sequence[MemberShares],
                      eligibilities: Iterable[CycleEligibility],
                      payments_by_member: Mapping[object, Sequence[Payment]],
                      share_unit_value, now: datetime) -> DividendEstimate:
    """Compute the per-share dividend estimate for ``year`` as seen at ``now``.

    The current cycle and its due instant are derived from ``now``.
    """
    cycle, due_at = current_cycle(now)
    qualifying = qualifying_members(
        members, eligibilities, payments_by_member, share_unit_value, year, cycle, due_at,
    )
    total_shares = sum(m.share_count or 0 for m in qualifying)
    pool = Decimal(str(profit_pool or 0))

    return DividendEstimate(
        year=year,
        cycle=cycle,
        due_at=due_at,
        profit_pool=pool,
        total_eligible_shares=total_shares,
        per_share=per_share_amount(pool, total_shares),
        qualifying=tuple(qualifying),
    )

def payout_amount(per_share, share_count):
    return round_whole(Decimal(str(per_share)) * Decimal(share_count or 0))

def plan_payouts(estimate: DividendEstimate) -> List[PayoutLine]:
    """One payout line per qualifying member, all priced at the same per-share value"""
    return [
        PayoutLine(
            member_id=member.member_id,
            share_count=member.share_count,
            per_share=estimate.per_share,
            amount=payout_amount(estimate.per_share, member.share_count),
        )
        for member in estimate.qualifying
    ]

def group_payments(rows: Iterable[tuple]) -> Dict[object, List[Payment]]:
    """Group ``(member_id, Payment)`` pairs by member"""
    grouped: Dict[object, List[Payment]] = {}
    for member_id, payment in rows:
        grouped.setdefault(member_id, []).append(payment)
    return grouped
