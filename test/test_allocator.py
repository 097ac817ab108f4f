"""Payment allocation onto obligation schedules"""
from datetime import datetime
from decimal import Decimal
import pytest
from coopledger.ledger import InvalidPaymentAmount, ObligationPeriod, Payment, allocate_payments, bimonthly_share_schedule

@pytest.fixture
def schedule():
    # 10 shares at 250: 2500 per period, 24 periods in 2026
    return bimonthly_share_schedule(2026, 10, 250)

def pay(id, amount, paid_at):
    return Payment(id=id, amount=Decimal(amount), paid_at=paid_at)

def summary(result):
    return [(a.payment_id, a.period_index, a.applied_amount, a.is_carryover) for a in result.allocations]

def test_overpayment_rolls_into_following_periods(schedule):
    result = allocate_payments([pay(1, '6000', datetime(2026, 1, 10))], schedule)

    assert summary(result) == [
        (1, 0, Decimal('2500'), False),
        (1, 1, Decimal('2500'), True),
        (1, 2, Decimal('1000'), True),
    ]
    assert result.unallocated == {}
    assert not result.schedule_empty

def test_partial_then_top_up_fill_the_same_period(schedule):
    result = allocate_payments([
        pay(1, '1000', datetime(2026, 1, 10)),
        pay(2, '1500', datetime(2026, 1, 12)),
    ], schedule)

    assert summary(result) == [
        (1, 0, Decimal('1000'), False),
        (2, 0, Decimal('1500'), False),
    ]
    assert result.applied_to(0) == Decimal('2500')

def test_payment_skipping_a_full_period_is_carryover(schedule):
    result = allocate_payments([
        pay(1, '2500', datetime(2026, 1, 10)),
        pay(2, '2500', datetime(2026, 1, 11)),
    ], schedule)

    assert summary(result) == [
        (1, 0, Decimal('2500'), False),
        (2, 1, Decimal('2500'), True),
    ]

def test_late_payment_starts_at_next_open_due_date(schedule):
    result = allocate_payments([pay(1, '2500', datetime(2026, 1, 20))], schedule)

    assert summary(result) == [(1, 1, Decimal('2500'), False)]
    assert result.applied_to(0) == Decimal('0')

def test_payment_at_due_instant_belongs_to_that_period(schedule):
    result = allocate_payments([pay(1, '2500', schedule[0].due_at)], schedule)
    assert summary(result) == [(1, 0, Decimal('2500'), False)]

def test_payments_are_applied_in_chronological_order(schedule):
    result = allocate_payments([
        pay('late', '2500', datetime(2026, 1, 12)),
        pay('early', '2500', datetime(2026, 1, 5)),
    ], schedule)

    assert result.for_payment('early')[0].period_index == 0
    assert result.for_payment('late')[0].period_index == 1

def test_payments_at_same_instant_keep_input_order(schedule):
    paid_at = datetime(2026, 1, 5, 9, 0)
    result = allocate_payments([pay('a', '2000', paid_at), pay('b', '2000', paid_at)], schedule)

    assert summary(result) == [
        ('a', 0, Decimal('2000'), False),
        ('b', 0, Decimal('500'), False),
        ('b', 1, Decimal('1500'), True),
    ]

def test_payment_after_schedule_end_is_unallocated(schedule):
    result = allocate_payments([pay(1, '2500', datetime(2027, 1, 1))], schedule)

    assert result.allocations == ()
    assert result.unallocated == {1: Decimal('2500')}

def test_prepayment_beyond_horizon_is_reported(schedule):
    result = allocate_payments([pay(1, '70000', datetime(2026, 1, 1))], schedule)

    assert len(result.allocations) == 24
    assert result.unallocated == {1: Decimal('10000')}
    assert result.total_unallocated == Decimal('10000')

def test_amounts_are_conserved_and_no_period_overfilled(schedule):
    payments = [
        pay(1, '1200', datetime(2026, 1, 3)),
        pay(2, '4100.50', datetime(2026, 1, 14)),
        pay(3, '300', datetime(2026, 2, 1)),
        pay(4, '9999.50', datetime(2026, 3, 31, 23, 0)),
        pay(5, '2500', datetime(2026, 12, 31, 12, 0)),
    ]
    result = allocate_payments(payments, schedule)

    applied = sum(a.applied_amount for a in result.allocations)
    assert applied + result.total_unallocated == sum(p.amount for p in payments)

    totals = result.totals_by_period()
    expected = {p.sequence_index: p.expected_amount for p in schedule}
    assert all(total <= expected[index] for index, total in totals.items())

def test_allocation_is_deterministic(schedule):
    payments = [pay(1, '3000', datetime(2026, 1, 3)), pay(2, '700', datetime(2026, 1, 14))]
    assert allocate_payments(payments, schedule) == allocate_payments(payments, schedule)

@pytest.mark.parametrize('amount', ['0', '-100'])
def test_non_positive_amount_is_rejected(schedule, amount):
    with pytest.raises(InvalidPaymentAmount) as excinfo:
        allocate_payments([pay(1, '2500', datetime(2026, 1, 1)), pay(2, amount, datetime(2026, 1, 2))], schedule)
    assert excinfo.value.payment_id == 2

def test_invalid_amount_is_rejected_even_without_schedule():
    with pytest.raises(InvalidPaymentAmount):
        allocate_payments([pay(1, '0', datetime(2026, 1, 1))], [])

def test_empty_schedule_leaves_everything_unallocated():
    result = allocate_payments([pay(1, '500', datetime(2026, 1, 1)), pay(2, '250', datetime(2026, 1, 2))], [])

    assert result.schedule_empty
    assert result.allocations == ()
    assert result.unallocated == {1: Decimal('500'), 2: Decimal('250')}

def test_uneven_loan_periods():
    periods = [
        ObligationPeriod(0, datetime(2026, 2, 28, 23, 59, 59), Decimal('2167')),
        ObligationPeriod(1, datetime(2026, 3, 31, 23, 59, 59), Decimal('2167')),
        ObligationPeriod(2, datetime(2026, 4, 30, 23, 59, 59), Decimal('2166')),
    ]
    result = allocate_payments([pay(1, '6500', datetime(2026, 2, 1))], periods)

    assert result.totals_by_period() == {0: Decimal('2167'), 1: Decimal('2167'), 2: Decimal('2166')}
    assert result.unallocated == {}
