"""Obligation schedule generation.

Two recurrence rules are supported:

* bi-monthly share dues: every month of a calendar year has one period due on
  the 15th and one due on the last calendar day;
* monthly loan amortization: ``term_months`` month-end periods following the
  anchor month, optionally capped at an explicit maturity date.

Due instants are naive local datetimes at 23:59:59.999 on the due day.
"""
import calendar
from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Tuple, Union
from dateutil.relativedelta import relativedelta
from coopledger.ledger.entities import ObligationPeriod

DUE_TIME = time(23, 59, 59, 999000)
MID_MONTH_DUE_DAY = 15
# Cycle-2 dividend cut-off never falls on the 31st.
CYCLE_TWO_DUE_DAY_CAP = 30
WHOLE_UNIT = Decimal('1')

def month_end(year, month):
    """Last calendar day of ``year``/``month``"""
    return date(year, month, calendar.monthrange(year, month)[1])

def due_instant(day):
    """Due instant (23:59:59.999 local) of a day; datetimes count as their calendar day"""
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, DUE_TIME)

def share_due_dates(year) -> List[date]:
    """The 24 share-due days of ``year``: the 15th and month end of each month"""
    days = []
    for month in range(1, 13):
        days.append(date(year, month, MID_MONTH_DUE_DAY))
        days.append(month_end(year, month))
    return days

def bimonthly_share_schedule(years: Union[int, Iterable[int]], share_count, share_unit_value,
                             start: Optional[Union[date, datetime]] = None) -> List[ObligationPeriod]:
    """Build the twice-monthly share-dues schedule for one or more years.

    Years are generated in ascending order and concatenated, with sequence
    indexes running continuously across them, so a payment made at the end of
    December can roll into January of the following year. Days before
    ``start`` (the member's enrollment) are left out and indexes begin at 0 on
    the first day kept.
    """
    if isinstance(years, int):
        years = [years]
    if isinstance(start, datetime):
        start = start.date()
    expected = Decimal(share_count or 0) * Decimal(str(share_unit_value or 0))

    periods = []
    for year in sorted(set(years)):
        for day in share_due_dates(year):
            if start is not None and day < start:
                continue
            periods.append(ObligationPeriod(
                sequence_index=len(periods),
                due_at=due_instant(day),
                expected_amount=expected,
            ))
    return periods

def loan_amortization_schedule(anchor, term_months, monthly_amortization,
                               principal=None, interest=None,
                               due_date: Optional[Union[date, datetime]] = None) -> List[ObligationPeriod]:
    """Build the month-end amortization schedule of a loan.

    ``anchor`` is the release date, or the application date of a loan not yet
    released. Period ``i`` is due on the last day of the month ``i + 1`` months
    after the anchor month, and nothing is generated past ``due_date``.
    Without a usable term or installment the loan collapses to one period at
    ``due_date`` for ``principal + interest``; with no ``due_date`` either the
    schedule is empty.
    """
    maturity = due_instant(due_date) if due_date is not None else None

    if not term_months or not monthly_amortization:
        if maturity is None:
            return []
        total = Decimal(str(principal or 0)) + Decimal(str(interest or 0))
        return [ObligationPeriod(sequence_index=0, due_at=maturity, expected_amount=total)]

    if isinstance(anchor, datetime):
        anchor = anchor.date()
    installment = Decimal(str(monthly_amortization))

    periods = []
    for i in range(term_months):
        billing_month = anchor + relativedelta(months=i + 1)
        due_at = due_instant(month_end(billing_month.year, billing_month.month))
        if maturity is not None and due_at > maturity:
            break
        periods.append(ObligationPeriod(sequence_index=i, due_at=due_at, expected_amount=installment))
    return periods

def current_cycle(now: datetime) -> Tuple[int, datetime]:
    """Return ``(cycle, due_at)`` of the contribution cycle containing ``now``.

    Cycle 1 covers days 1-15 and is due on the 15th. Cycle 2 covers the rest of
    the month and is due on the 30th, or the last day of shorter months.
    """
    last_day = calendar.monthrange(now.year, now.month)[1]
    if now.day <= MID_MONTH_DUE_DAY:
        cycle, due_day = 1, MID_MONTH_DUE_DAY
    else:
        cycle, due_day = 2, min(CYCLE_TWO_DUE_DAY_CAP, last_day)
    return cycle, due_instant(date(now.year, now.month, due_day))

def round_whole(amount):
    return Decimal(amount).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)

def flat_interest(principal, monthly_rate_bps, term_months):
    """Total flat interest: principal x monthly rate x term, rounded to whole units"""
    rate = Decimal(monthly_rate_bps) / Decimal('10000')
    return round_whole(Decimal(str(principal)) * rate * Decimal(term_months))

def flat_amortization(principal, interest, term_months):
    """Flat monthly installment: (principal + interest) / term, rounded to whole units"""
    if not term_months:
        return Decimal('0')
    total = Decimal(str(principal)) + Decimal(str(interest))
    return round_whole(total / Decimal(term_months))
