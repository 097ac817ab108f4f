"""Value types shared by the reconciliation engine.

Everything here is derived from persisted payments and loan/member parameters
and is recomputed on every query, so the types are frozen dataclasses. Money is
always ``Decimal``.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple

ZERO = Decimal('0')

class PeriodStatus(str, Enum):
    PAID = 'PAID'
    PARTIAL = 'PARTIAL'
    NO_PAYMENT = 'NO_PAYMENT'

@dataclass(frozen=True)
class ObligationPeriod:
    """One expected-payment window, due at 23:59:59.999 local on its due day"""
    sequence_index: int
    due_at: datetime
    expected_amount: Decimal

@dataclass(frozen=True)
class Payment:
    id: object
    amount: Decimal
    paid_at: datetime
    method: Optional[str] = None
    reference: Optional[str] = None

@dataclass(frozen=True)
class Allocation:
    payment_id: object
    period_index: int
    applied_amount: Decimal
    is_carryover: bool

@dataclass(frozen=True)
class AllocationResult:
    """Output of the allocator.

    ``unallocated`` maps a payment id to the part of that payment that did not
    fit anywhere in the schedule (prepayment beyond the known horizon, or a
    payment dated after the last due instant).
    """

    allocations: Tuple[Allocation, ...]
    unallocated: Dict[object, Decimal] = field(default_factory=dict)
    schedule_empty: bool = False

    def for_payment(self, payment_id):
        return [a for a in self.allocations if a.payment_id == payment_id]

    def applied_to(self, period_index):
        return sum((a.applied_amount for a in self.allocations if a.period_index == period_index), ZERO)

    def totals_by_period(self):
        totals: Dict[int, Decimal] = {}
        for allocation in self.allocations:
            totals[allocation.period_index] = totals.get(allocation.period_index, ZERO) + allocation.applied_amount
        return totals

    @property
    def total_unallocated(self):
        return sum(self.unallocated.values(), ZERO)

@dataclass(frozen=True)
class PeriodResult:
    period: ObligationPeriod
    total_paid: Decimal
    remaining: Decimal
    status: PeriodStatus
    is_past: bool
    is_late: bool

@dataclass(frozen=True)
class ScheduleSummary:
    total_expected: Decimal
    total_paid: Decimal
    total_remaining: Decimal
    late_count: int
    unallocated: Decimal
    next_due: Optional[PeriodResult]

@dataclass(frozen=True)
class Reconciliation:
    periods: Tuple[PeriodResult, ...]
    allocation: AllocationResult
    summary: ScheduleSummary

@dataclass(frozen=True)
class CycleEligibility:
    member_id: object
    year: int
    cycle: int
    is_eligible: bool
    reason: str = ''

@dataclass(frozen=True)
class MemberShares:
    member_id: object
    share_count: int

@dataclass(frozen=True)
class PayoutLine:
    member_id: object
    share_count: int
    per_share: Decimal
    amount: Decimal

@dataclass(frozen=True)
class DividendEstimate:
    """Per-share figure for one year, as seen from one evaluation instant"""

    year: int
    cycle: int
    due_at: datetime
    profit_pool: Decimal
    total_eligible_shares: int
    per_share: Decimal
    qualifying: Tuple[MemberShares, ...] = ()
