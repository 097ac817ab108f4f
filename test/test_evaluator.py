"""Period status evaluation"""
from datetime import datetime
from decimal import Decimal
from coopledger.ledger import Payment, PeriodStatus, bimonthly_share_schedule, period_for, reconcile

SCHEDULE = bimonthly_share_schedule(2026, 10, 250)

def pay(id, amount, paid_at):
    return Payment(id=id, amount=Decimal(amount), paid_at=paid_at)

def test_on_time_payment_is_paid_and_not_late():
    result = reconcile([pay(1, '2500', datetime(2026, 1, 10))], SCHEDULE, datetime(2026, 1, 20))
    first = result.periods[0]

    assert first.status == PeriodStatus.PAID
    assert first.total_paid == Decimal('2500')
    assert first.remaining == Decimal('0')
    assert first.is_past
    assert not first.is_late

def test_partial_payment_then_top_up():
    payments = [pay(1, '1000', datetime(2026, 1, 5))]
    partial = reconcile(payments, SCHEDULE, datetime(2026, 1, 10))
    assert partial.periods[0].status == PeriodStatus.PARTIAL
    assert partial.periods[0].remaining == Decimal('1500')
    assert not partial.periods[0].is_late

    payments.append(pay(2, '1500', datetime(2026, 1, 14)))
    topped_up = reconcile(payments, SCHEDULE, datetime(2026, 1, 10))
    assert topped_up.periods[0].status == PeriodStatus.PAID

def test_unpaid_period_becomes_late_once_due_instant_passes():
    due_at = SCHEDULE[0].due_at

    at_due = reconcile([], SCHEDULE, due_at)
    assert at_due.periods[0].status == PeriodStatus.NO_PAYMENT
    assert not at_due.periods[0].is_past
    assert not at_due.periods[0].is_late

    after = reconcile([], SCHEDULE, datetime(2026, 1, 16))
    assert after.periods[0].is_late
    assert after.summary.late_count == 1

def test_partial_past_period_is_late():
    result = reconcile([pay(1, '2000', datetime(2026, 1, 10))], SCHEDULE, datetime(2026, 2, 1))

    assert result.periods[0].status == PeriodStatus.PARTIAL
    assert result.periods[0].is_late
    assert result.periods[1].status == PeriodStatus.NO_PAYMENT
    assert result.periods[1].is_late
    assert result.summary.late_count == 2

def test_overpayment_marks_following_periods_paid():
    result = reconcile([pay(1, '6000', datetime(2026, 1, 10))], SCHEDULE, datetime(2026, 2, 20))
    statuses = [p.status for p in result.periods[:4]]

    assert statuses == [PeriodStatus.PAID, PeriodStatus.PAID, PeriodStatus.PARTIAL, PeriodStatus.NO_PAYMENT]
    assert result.periods[2].is_late
    assert not result.periods[3].is_late

def test_summary_totals_and_next_due():
    result = reconcile([pay(1, '6000', datetime(2026, 1, 10))], SCHEDULE, datetime(2026, 1, 20))
    summary = result.summary

    assert summary.total_expected == Decimal('60000')
    assert summary.total_paid == Decimal('6000')
    assert summary.total_remaining == Decimal('54000')
    assert summary.unallocated == Decimal('0')
    # period 1 (Jan 31) is already covered, so the next due is Feb 15
    assert summary.next_due.period.sequence_index == 2

def test_period_for_returns_open_period():
    result = reconcile([], SCHEDULE, datetime(2026, 1, 20))

    assert period_for(result.periods, datetime(2026, 1, 20)).period.sequence_index == 1
    assert period_for(result.periods, datetime(2027, 1, 1)) is None

def test_reconcile_is_idempotent():
    payments = [pay(1, '3000', datetime(2026, 1, 3)), pay(2, '700', datetime(2026, 2, 14))]
    now = datetime(2026, 3, 1)
    assert reconcile(payments, SCHEDULE, now) == reconcile(payments, SCHEDULE, now)

def test_empty_schedule_has_no_periods():
    result = reconcile([pay(1, '100', datetime(2026, 1, 1))], [], datetime(2026, 1, 2))

    assert result.periods == ()
    assert result.allocation.schedule_empty
    assert result.summary.unallocated == Decimal('100')
    assert result.summary.next_due is None
