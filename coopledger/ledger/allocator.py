"""Greedy forward allocation of payments onto an obligation schedule.

Every view of a member's dues or a loan's amortization maps payments onto
periods through ``allocate_payments``; nothing else in the code base decides
which period a payment belongs to.
"""
from bisect import bisect_left
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence
from coopledger.ledger.entities import ZERO, Allocation, AllocationResult, ObligationPeriod, Payment
from coopledger.ledger.errors import InvalidPaymentAmount

def validate_payments(payments: Iterable[Payment]):
    """Raise ``InvalidPaymentAmount`` for the first payment with amount <= 0"""
    for payment in payments:
        if payment.amount is None or Decimal(payment.amount) <= ZERO:
            raise InvalidPaymentAmount(payment.id, payment.amount)

def order_payments(payments: Iterable[Payment]) -> List[Payment]:
    """Sort by ``paid_at``; payments sharing an instant keep their input order"""
    return sorted(payments, key=lambda p: p.paid_at)

def allocate_payments(payments: Iterable[Payment], schedule: Sequence[ObligationPeriod]) -> AllocationResult:
    """Map payments onto periods, carrying any excess forward.

    For each payment, in chronological order:

    1. the starting period is the first one whose ``due_at`` is at or after
       ``paid_at``; a payment dated after the whole schedule is unallocated;
    2. walking forward from there, each period with remaining capacity
       (``expected_amount`` minus what earlier payments already put there)
       takes as much of the payment as fits. Periods that are already full are
       skipped. Any allocation past the starting period is a carryover;
    3. the walk stops when the payment is used up or the schedule ends. What
       is left is reported in ``AllocationResult.unallocated``.

    Amounts are validated up front, so a bad amount raises before anything is
    allocated. ``schedule`` must be sorted ascending by ``due_at``.
    """
    payments = list(payments)
    validate_payments(payments)

    periods = list(schedule)
    if not periods:
        return AllocationResult(
            allocations=(),
            unallocated={p.id: Decimal(p.amount) for p in payments},
            schedule_empty=True,
        )

    due_times = [period.due_at for period in periods]
    filled = [ZERO] * len(periods)
    allocations: List[Allocation] = []
    unallocated: Dict[object, Decimal] = {}

    for payment in order_payments(payments):
        left = Decimal(payment.amount)
        start = bisect_left(due_times, payment.paid_at)
        index = start

        while left > ZERO and index < len(periods):
            period = periods[index]
            capacity = max(period.expected_amount - filled[index], ZERO)
            if capacity > ZERO:
                applied = min(left, capacity)
                allocations.append(Allocation(
                    payment_id=payment.id,
                    period_index=period.sequence_index,
                    applied_amount=applied,
                    is_carryover=index != start,
                ))
                filled[index] += applied
                left -= applied
            index += 1

        if left > ZERO:
            unallocated[payment.id] = unallocated.get(payment.id, ZERO) + left

    return AllocationResult(allocations=tuple(allocations), unallocated=unallocated)
