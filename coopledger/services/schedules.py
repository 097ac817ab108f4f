"""Schedule views built on the reconciliation engine.

The member self-service view, the admin member detail and the loan detail all
call ``reconcile`` and only differ in how they format the result.
"""
from datetime import datetime
from coopledger.ledger import PeriodStatus, period_for, reconcile
from coopledger.models import SystemSettings

def share_schedule_years(now):
    """Current and next calendar year, so December payments can roll forward"""
    return [now.year, now.year + 1]

def reconcile_member(user, now=None, settings=None):
    """Reconcile a member's contributions against their share-dues schedule"""
    now = now or datetime.now()
    settings = settings or SystemSettings.get_settings()
    schedule = user.share_schedule(share_schedule_years(now), settings)
    return reconcile(user.contribution_payments(), schedule, now)

def reconcile_loan(loan, now=None):
    """Reconcile a loan's payments against its amortization schedule"""
    now = now or datetime.now()
    return reconcile(loan.payment_records(), loan.obligation_schedule(), now)

def period_to_dict(result):
    due_at = result.period.due_at
    return {
        'sequence_index': result.period.sequence_index,
        'due_at': due_at,
        'year': due_at.year,
        'month': due_at.month,
        'day': due_at.day,
        'expected_amount': result.period.expected_amount,
        'total_paid': result.total_paid,
        'remaining_amount': result.remaining,
        'status': result.status.value,
        'is_past': result.is_past,
        'is_late': result.is_late,
    }

def summary_to_dict(summary):
    return {
        'total_expected': summary.total_expected,
        'total_paid': summary.total_paid,
        'total_remaining': summary.total_remaining,
        'late_count': summary.late_count,
        'unallocated': summary.unallocated,
        'next_due': period_to_dict(summary.next_due) if summary.next_due else None,
    }

def member_due_schedule(user, now=None):
    """Member self-service view: every period with its status"""
    now = now or datetime.now()
    result = reconcile_member(user, now)
    return {
        'as_of': now,
        'expected_per_period': result.periods[0].period.expected_amount if result.periods else None,
        'periods': [period_to_dict(p) for p in result.periods],
        'summary': summary_to_dict(result.summary),
    }

def payment_due_status(user, now=None):
    """Admin member detail view: periods plus the number of contributions landing in each"""
    now = now or datetime.now()
    result = reconcile_member(user, now)
    counts = {}
    for allocation in result.allocation.allocations:
        counts[allocation.period_index] = counts.get(allocation.period_index, 0) + 1

    rows = []
    for period in result.periods:
        row = period_to_dict(period)
        row['contribution_count'] = counts.get(period.period.sequence_index, 0)
        rows.append(row)
    return rows

def current_contribution_status(user, now=None, settings=None):
    """Status for the admin member list.

    ON_TIME when the open period is paid, LATE when any earlier period is
    overdue, otherwise the open period's own status.
    """
    now = now or datetime.now()
    result = reconcile_member(user, now, settings)
    if result.summary.late_count:
        return 'LATE'
    current = period_for(result.periods, now)
    if current is None:
        return 'NO_PAYMENT'
    if current.status == PeriodStatus.PAID:
        return 'ON_TIME'
    return current.status.value

def loan_amortization(loan, now=None):
    """Loan detail view: amortization periods, totals and balance"""
    now = now or datetime.now()
    result = reconcile_loan(loan, now)
    return {
        'as_of': now,
        'total_due': loan.total_due,
        'total_paid': loan.get_total_paid(),
        'balance': loan.balance,
        'schedule_empty': result.allocation.schedule_empty,
        'amortization': [
            dict(period_to_dict(p), month=p.period.sequence_index + 1)
            for p in result.periods
        ],
        'summary': summary_to_dict(result.summary),
    }

def loan_payment_status(loans, now=None):
    """Aggregate status over a member's open loans: NO_LOAN, ON_TIME, PARTIAL or LATE"""
    now = now or datetime.now()
    open_loans = [loan for loan in loans if loan.status == 'released']
    if not open_loans:
        return 'NO_LOAN'

    has_partial = False
    for loan in open_loans:
        result = reconcile_loan(loan, now)
        if result.summary.late_count:
            return 'LATE'
        if any(p.status == PeriodStatus.PARTIAL for p in result.periods):
            has_partial = True
    return 'PARTIAL' if has_partial else 'ON_TIME'
