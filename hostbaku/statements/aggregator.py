"""
Period aggregation for owner statements.

Computes revenue and expense totals for one property over one calendar
month, and re-fetches the line items behind those totals for rendering.
Rows are converted into typed values right here, so callers never touch
raw query results.

Revenue uses checkout-date attribution: a reservation counts toward the
month that contains its check_out date, whole, with no night-by-night split.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_, select

from hostbaku.models import Expense, PropertyUnit, Reservation

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
ZERO = Decimal('0.00')


def to_money(value) -> Decimal:
    """Coerce a DB value (Decimal, float, int, None) to a 2-place Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def month_window(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of a month, both inclusive."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


@dataclass(frozen=True)
class PeriodTotals:
    total_revenue: Decimal = ZERO
    total_expenses: Decimal = ZERO


@dataclass(frozen=True)
class ReservationLine:
    guest_name: str
    unit_name: Optional[str]
    platform: Optional[str]
    check_in: date
    check_out: date
    amount: Decimal


@dataclass(frozen=True)
class ExpenseLine:
    expense_date: date
    category: str
    description: str
    amount: Decimal


def _property_reservations(property_id):
    """
    Reservations belonging to a property.

    A reservation with a unit belongs to the unit's property, whatever its
    own property_id says. Only unit-less reservations use property_id.
    """
    unit_ids = select(PropertyUnit.id).where(PropertyUnit.property_id == property_id)
    return or_(
        and_(Reservation.unit_id.is_(None), Reservation.property_id == property_id),
        Reservation.unit_id.in_(unit_ids),
    )


def aggregate(session, property_id, year, month) -> PeriodTotals:
    """
    Sum reservation revenue and expenses for a property and month.

    Args:
        session: SQLAlchemy session
        property_id: Property primary key
        year: Calendar year
        month: Calendar month (1-12)

    Returns:
        PeriodTotals with both values defaulting to 0.00
    """
    first_day, last_day = month_window(year, month)

    revenue = session.query(
        func.coalesce(func.sum(Reservation.total_amount), 0)
    ).filter(
        _property_reservations(property_id),
        Reservation.check_out >= first_day,
        Reservation.check_out <= last_day,
    ).scalar()

    expenses = session.query(
        func.coalesce(func.sum(Expense.amount), 0)
    ).filter(
        Expense.property_id == property_id,
        Expense.expense_date >= first_day,
        Expense.expense_date <= last_day,
    ).scalar()

    totals = PeriodTotals(total_revenue=to_money(revenue), total_expenses=to_money(expenses))
    logger.debug(
        f"Aggregated property {property_id} for {year}-{month:02d}: "
        f"revenue={totals.total_revenue} expenses={totals.total_expenses}"
    )
    return totals


def fetch_reservation_lines(session, property_id, year, month) -> List[ReservationLine]:
    """Reservations attributed to the month, ordered by check-in."""
    first_day, last_day = month_window(year, month)
    rows = session.query(
        Reservation.guest_name,
        PropertyUnit.unit_number,
        Reservation.platform,
        Reservation.check_in,
        Reservation.check_out,
        Reservation.total_amount,
    ).outerjoin(
        PropertyUnit, Reservation.unit_id == PropertyUnit.id
    ).filter(
        _property_reservations(property_id),
        Reservation.check_out >= first_day,
        Reservation.check_out <= last_day,
    ).order_by(Reservation.check_in, Reservation.id).all()

    return [
        ReservationLine(
            guest_name=row.guest_name or 'Guest',
            unit_name=row.unit_number,
            platform=row.platform,
            check_in=row.check_in,
            check_out=row.check_out,
            amount=to_money(row.total_amount),
        )
        for row in rows
    ]


def fetch_expense_lines(session, property_id, year, month) -> List[ExpenseLine]:
    """Expenses dated inside the month, ordered by date."""
    first_day, last_day = month_window(year, month)
    rows = session.query(
        Expense.expense_date,
        Expense.category,
        Expense.description,
        Expense.amount,
    ).filter(
        Expense.property_id == property_id,
        Expense.expense_date >= first_day,
        Expense.expense_date <= last_day,
    ).order_by(Expense.expense_date, Expense.id).all()

    return [
        ExpenseLine(
            expense_date=row.expense_date,
            category=row.category or '-',
            description=row.description or '',
            amount=to_money(row.amount),
        )
        for row in rows
    ]
