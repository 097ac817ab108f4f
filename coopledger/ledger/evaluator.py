"""Per-period status evaluation over an allocated schedule"""
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence
from coopledger.ledger.allocator import allocate_payments
from coopledger.ledger.entities import (
    ZERO, AllocationResult, ObligationPeriod, Payment, PeriodResult, PeriodStatus,
    Reconciliation, ScheduleSummary,
)

def period_status(total_paid, expected_amount):
    if total_paid >= expected_amount:
        return PeriodStatus.PAID
    if total_paid > ZERO:
        return PeriodStatus.PARTIAL
    return PeriodStatus.NO_PAYMENT

def evaluate_period(period: ObligationPeriod, total_paid: Decimal, now: datetime) -> PeriodResult:
    status = period_status(total_paid, period.expected_amount)
    is_past = period.due_at < now
    return PeriodResult(
        period=period,
        total_paid=total_paid,
        remaining=max(period.expected_amount - total_paid, ZERO),
        status=status,
        is_past=is_past,
        is_late=is_past and status != PeriodStatus.PAID,
    )

def evaluate_schedule(schedule: Sequence[ObligationPeriod], allocation: AllocationResult, now: datetime):
    """Return one ``PeriodResult`` per period, in schedule order.

    ``now`` is the evaluation clock; it is never read from the system here.
    """
    totals = allocation.totals_by_period()
    return tuple(
        evaluate_period(period, totals.get(period.sequence_index, ZERO), now)
        for period in schedule
    )

def period_for(results: Iterable[PeriodResult], now: datetime) -> Optional[PeriodResult]:
    """The first period still open at ``now`` (due at or after it)"""
    for result in results:
        if result.period.due_at >= now:
            return result
    return None

def summarize(results: Sequence[PeriodResult], allocation: AllocationResult, now: datetime) -> ScheduleSummary:
    return ScheduleSummary(
        total_expected=sum((r.period.expected_amount for r in results), ZERO),
        total_paid=sum((r.total_paid for r in results), ZERO),
        total_remaining=sum((r.remaining for r in results), ZERO),
        late_count=sum(1 for r in results if r.is_late),
        unallocated=allocation.total_unallocated,
        next_due=next((r for r in results if r.period.due_at >= now and r.status != PeriodStatus.PAID), None),
    )

def reconcile(payments: Iterable[Payment], schedule: Sequence[ObligationPeriod], now: datetime) -> Reconciliation:
    """Allocate ``payments`` onto ``schedule`` and evaluate every period"""
    schedule = list(schedule)
    allocation = allocate_payments(payments, schedule)
    results = evaluate_schedule(schedule, allocation, now)
    return Reconciliation(
        periods=results,
        allocation=allocation,
        summary=summarize(results, allocation, now),
    )
