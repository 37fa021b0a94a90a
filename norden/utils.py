import calendar
import re
from datetime import date, datetime
from decimal import Decimal

MONTH_NAMES = [
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
]
WEEKDAY_LABELS = ["Dom", "Lun", "Mar", "Mié", "Jue", "Vie", "Sáb"]


# -------------------- months --------------------

def shift_month(year: int, month: int, offset: int = 0) -> tuple[int, int]:
    """
    Move a (year, zero-based month) pair by `offset` months.
    Out-of-range months roll over like calendar dates:
      (2025, 12) -> (2026, 0), (2025, -1) -> (2024, 11)
    """
    y, m = divmod(year * 12 + month + offset, 12)
    return y, m


def days_in_month(year: int, month: int) -> int:
    # "day 0 of next month" is the last day of this one
    y, m = shift_month(year, month)
    return calendar.monthrange(y, m + 1)[1]


def first_weekday(year: int, month: int) -> int:
    """Weekday of day 1, 0=Sunday .. 6=Saturday."""
    y, m = shift_month(year, month)
    # calendar.weekday counts from Monday
    return (calendar.weekday(y, m + 1, 1) + 1) % 7


def month_grid(year: int, month: int) -> tuple[int, int]:
    return days_in_month(year, month), first_weekday(year, month)


def calendar_cells(year: int, month: int) -> list[int | None]:
    """Leading blanks then the day numbers, ready for a 7-column grid."""
    days, offset = month_grid(year, month)
    return [None] * offset + list(range(1, days + 1))


def current_month_str(today: date | None = None) -> str:
    today = today or date.today()
    return f"{today.year:04d}-{today.month:02d}"


def month_str(year: int, month: int) -> str:
    y, m = shift_month(year, month)
    return f"{y:04d}-{m + 1:02d}"


def normalize_month(m: str | None) -> str | None:
    """
    Normalize many representations into 'YYYY-MM':
      - 'YYYY-M'
      - 'YYYY-MM'
      - 'YYYY-MM-DD' (or anything starting with YYYY-MM)
    Returns None if blank/None.
    """
    if m is None:
        return None
    m = str(m).strip()
    if not m:
        return None

    if re.match(r"^\d{4}-\d{2}", m):
        return m[:7]

    parts = m.split("-")
    if len(parts) >= 2 and parts[0].isdigit() and parts[1].isdigit():
        return f"{int(parts[0]):04d}-{int(parts[1]):02d}"
    return m


def parse_month(m: str | None) -> tuple[int, int] | None:
    """'YYYY-MM' (1-based month) -> (year, zero-based month), or None."""
    norm = normalize_month(m)
    if not norm or not re.match(r"^\d{4}-\d{2}$", norm):
        return None
    year, month = shift_month(int(norm[:4]), int(norm[5:7]) - 1)
    # the calendar builds datetime.date values for the month
    if not date.min.year <= year <= date.max.year:
        return None
    return year, month


# -------------------- days --------------------

def iso_day(value) -> str:
    """Format a date (or a date-like string) as 'YYYY-MM-DD'."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.isoformat()
    return str(value or "")[:10]


def parse_day(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


# -------------------- money --------------------

def plain_amount(value) -> str:
    """50000.00 -> '50000', 12.50 -> '12.5'."""
    amount = Decimal(str(value or 0))
    if amount == amount.to_integral_value():
        return str(amount.quantize(Decimal(1)))
    return format(amount.normalize(), "f")


def format_money(value) -> str:
    amount = Decimal(str(value or 0))
    if amount == amount.to_integral_value():
        return f"${amount:,.0f}"
    return f"${amount:,.2f}"
