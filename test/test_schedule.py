"""Schedule generation"""
from datetime import date, datetime
from decimal import Decimal
from coopledger.ledger import (
    bimonthly_share_schedule, current_cycle, flat_amortization, flat_interest, loan_amortization_schedule,
)
from coopledger.ledger.schedule import due_instant, month_end

def test_due_instant_is_end_of_day():
    assert due_instant(date(2026, 1, 15)) == datetime(2026, 1, 15, 23, 59, 59, 999000)
    assert due_instant(datetime(2026, 1, 15, 8, 30)) == datetime(2026, 1, 15, 23, 59, 59, 999000)

def test_month_end_handles_leap_years():
    assert month_end(2024, 2) == date(2024, 2, 29)
    assert month_end(2026, 2) == date(2026, 2, 28)
    assert month_end(2026, 4) == date(2026, 4, 30)

def test_share_schedule_has_two_periods_per_month():
    schedule = bimonthly_share_schedule(2026, 10, 250)

    assert len(schedule) == 24
    assert [p.sequence_index for p in schedule] == list(range(24))
    assert all(p.expected_amount == Decimal('2500') for p in schedule)
    assert schedule[0].due_at.date() == date(2026, 1, 15)
    assert schedule[1].due_at.date() == date(2026, 1, 31)
    assert schedule[3].due_at.date() == date(2026, 2, 28)
    assert schedule[-1].due_at.date() == date(2026, 12, 31)

def test_share_schedule_uses_last_day_of_february_in_leap_year():
    schedule = bimonthly_share_schedule(2024, 1, 250)
    assert schedule[3].due_at.date() == date(2024, 2, 29)

def test_share_schedule_spans_years_with_continuous_indexes():
    schedule = bimonthly_share_schedule([2027, 2026], 2, 250)

    assert len(schedule) == 48
    assert schedule[24].sequence_index == 24
    assert schedule[24].due_at.date() == date(2027, 1, 15)
    assert [p.due_at for p in schedule] == sorted(p.due_at for p in schedule)

def test_share_schedule_starts_on_enrollment_day():
    schedule = bimonthly_share_schedule([2026, 2027], 10, 250, start=datetime(2026, 10, 18, 14, 5))

    assert schedule[0].sequence_index == 0
    assert schedule[0].due_at.date() == date(2026, 10, 31)
    # Oct 31, two in Nov, two in Dec, then all of 2027
    assert len(schedule) == 5 + 24

def test_share_schedule_keeps_period_due_on_enrollment_day():
    schedule = bimonthly_share_schedule(2026, 10, 250, start=date(2026, 3, 15))
    assert schedule[0].due_at.date() == date(2026, 3, 15)
    assert len(schedule) == 20

def test_loan_schedule_falls_on_month_ends_after_anchor():
    schedule = loan_amortization_schedule(datetime(2026, 1, 31, 14, 0), 3, Decimal('2167'))

    assert [p.due_at.date() for p in schedule] == [date(2026, 2, 28), date(2026, 3, 31), date(2026, 4, 30)]
    assert all(p.expected_amount == Decimal('2167') for p in schedule)
    assert schedule[-1].due_at.time() == datetime.max.time().replace(microsecond=999000)

def test_loan_schedule_stops_at_maturity():
    schedule = loan_amortization_schedule(
        date(2026, 1, 10), 12, Decimal('1000'), due_date=datetime(2026, 6, 30, 9, 0)
    )

    assert len(schedule) == 5
    assert schedule[-1].due_at.date() == date(2026, 6, 30)

def test_loan_schedule_includes_period_due_on_maturity_day():
    schedule = loan_amortization_schedule(
        date(2026, 1, 10), 6, Decimal('1000'), due_date=due_instant(date(2026, 7, 31))
    )
    assert len(schedule) == 6

def test_loan_without_term_collapses_to_single_period_at_maturity():
    schedule = loan_amortization_schedule(
        date(2026, 1, 10), 0, Decimal('0'),
        principal=Decimal('1000'), interest=Decimal('50'), due_date=date(2026, 5, 1)
    )

    assert len(schedule) == 1
    assert schedule[0].expected_amount == Decimal('1050')
    assert schedule[0].due_at == due_instant(date(2026, 5, 1))

def test_loan_without_term_or_maturity_has_empty_schedule():
    assert loan_amortization_schedule(date(2026, 1, 10), 0, Decimal('0'), principal=Decimal('1000')) == []

def test_current_cycle():
    assert current_cycle(datetime(2026, 3, 1)) == (1, due_instant(date(2026, 3, 15)))
    assert current_cycle(datetime(2026, 3, 15, 23, 0)) == (1, due_instant(date(2026, 3, 15)))
    assert current_cycle(datetime(2026, 3, 16)) == (2, due_instant(date(2026, 3, 30)))
    assert current_cycle(datetime(2026, 2, 20)) == (2, due_instant(date(2026, 2, 28)))

def test_current_cycle_due_day_capped_at_thirtieth():
    cycle, due_at = current_cycle(datetime(2026, 1, 31, 10, 0))
    assert cycle == 2
    assert due_at.date() == date(2026, 1, 30)

def test_flat_loan_terms():
    assert flat_interest(Decimal('10000'), 500, 6) == Decimal('3000')
    assert flat_interest(Decimal('5000'), 1000, 3) == Decimal('1500')
    assert flat_amortization(Decimal('10000'), Decimal('3000'), 6) == Decimal('2167')
    assert flat_amortization(Decimal('1000'), Decimal('0'), 0) == Decimal('0')

def test_flat_interest_rounds_half_up():
    # 1250 x 0.05 x 1 = 62.5
    assert flat_interest(Decimal('1250'), 500, 1) == Decimal('63')
