"""
Profit and cash-flow figures for booked events.

Works on anything shaped like an Event (``date``, ``agreed_price``,
``expenses``) whose expenses carry a ``total``. Stored totals are taken as
they are; they are only recomputed when quantity or unit price is set.
"""
from collections import OrderedDict
from datetime import date, timedelta
from decimal import ROUND_FLOOR, Decimal

from .utils import iso_day

REMINDER_LEAD_DAYS = 14

ZERO = Decimal("0")


def _amount(value) -> Decimal:
    if value is None or value == "":
        return ZERO
    return Decimal(str(value))


def expense_total(quantity, unit_price) -> Decimal:
    return _amount(quantity) * _amount(unit_price)


def event_expenses_total(event) -> Decimal:
    return sum((_amount(e.total) for e in (event.expenses or [])), ZERO)


def event_profit(event) -> Decimal:
    return _amount(event.agreed_price) - event_expenses_total(event)


def total_income(events) -> Decimal:
    return sum((_amount(e.agreed_price) for e in events), ZERO)


def total_expenses(events) -> Decimal:
    return sum((event_expenses_total(e) for e in events), ZERO)


def total_cash_flow(events) -> Decimal:
    return sum((event_profit(e) for e in events), ZERO)


def cash_flow_by_month(events) -> "OrderedDict[str, Decimal]":
    """{'YYYY-MM': profit of that month's events}, oldest month first."""
    months: dict[str, Decimal] = {}
    for e in events:
        key = iso_day(e.date)[:7]
        months[key] = months.get(key, ZERO) + event_profit(e)
    return OrderedDict(sorted(months.items()))


def margin_percent(events) -> int:
    events = list(events)
    if not events:
        return 0
    # a zero price counts as 1 so the ratio is always defined
    denominator = sum((_amount(e.agreed_price) or Decimal(1) for e in events), ZERO)
    ratio = total_cash_flow(events) / denominator * 100
    # halves round up, towards positive infinity: 2.5 -> 3, -2.5 -> -2
    return int((ratio + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def events_on(events, day) -> list:
    target = iso_day(day)
    return [e for e in events if iso_day(e.date) == target]


def upcoming_reminders(events, today: date | None = None, lead_days: int = REMINDER_LEAD_DAYS) -> list:
    """Events dated exactly `lead_days` after today. One day either side does not count."""
    today = today or date.today()
    return events_on(events, today + timedelta(days=lead_days))
