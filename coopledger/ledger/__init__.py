"""Contribution allocation and loan amortization reconciliation engine.

Pure functions over value types: no Flask, no database, no system clock.
"""
from coopledger.ledger.allocator import allocate_payments
from coopledger.ledger.dividend import compute_per_share, has_qualifying_payment, payout_amount, plan_payouts
from coopledger.ledger.entities import (
    Allocation, AllocationResult, CycleEligibility, DividendEstimate, MemberShares, ObligationPeriod,
    Payment, PayoutLine, PeriodResult, PeriodStatus, Reconciliation, ScheduleSummary,
)
from coopledger.ledger.errors import InvalidPaymentAmount, LedgerError
from coopledger.ledger.evaluator import evaluate_schedule, period_for, reconcile
from coopledger.ledger.schedule import (
    bimonthly_share_schedule, current_cycle, flat_amortization, flat_interest, loan_amortization_schedule,
)

__all__ = [
    'Allocation', 'AllocationResult', 'CycleEligibility', 'DividendEstimate', 'InvalidPaymentAmount',
    'LedgerError', 'MemberShares', 'ObligationPeriod', 'Payment', 'PayoutLine', 'PeriodResult',
    'PeriodStatus', 'Reconciliation', 'ScheduleSummary', 'allocate_payments', 'bimonthly_share_schedule',
    'compute_per_share', 'current_cycle', 'evaluate_schedule', 'flat_amortization', 'flat_interest',
    'has_qualifying_payment', 'loan_amortization_schedule', 'payout_amount', 'period_for', 'plan_payouts',
    'reconcile',
]
