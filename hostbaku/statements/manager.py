"""
Owner statement record management.

Owns every write to owner_statements: the generation insert, the publish
flag and notes. Generation does not pre-check for an existing statement;
it inserts and lets the (property_id, statement_date) unique constraint
reject duplicates, which also covers two requests racing for the same month.
"""

import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from hostbaku.models import OwnerStatement, Property
from hostbaku.models.base import utcnow
from hostbaku.statements import access
from hostbaku.statements.aggregator import aggregate, to_money, CENT
from hostbaku.statements.errors import DuplicatePeriod, Forbidden, NotFound, StorageFailure, ValidationError
from hostbaku.utils.validators import validate_statement_period, validate_year

logger = logging.getLogger(__name__)


def compute_management_fee(total_revenue: Decimal, fee_percent) -> Decimal:
    """Absolute fee for a revenue figure at the given percentage rate."""
    rate = Decimal(str(fee_percent or 0))
    return (total_revenue * rate / Decimal('100')).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_net_income(total_revenue: Decimal, total_expenses: Decimal, management_fee: Decimal) -> Decimal:
    """Net payout to the owner. The fee is a deduction, same as expenses."""
    return (total_revenue - total_expenses - management_fee).quantize(CENT, rounding=ROUND_HALF_UP)


def _load_statement(session, statement_id):
    statement = session.query(OwnerStatement).options(
        joinedload(OwnerStatement.rental_property).joinedload(Property.owner)
    ).filter(OwnerStatement.id == statement_id).first()
    if statement is None:
        raise NotFound('Statement not found')
    return statement


def generate(session, caller, property_id, year, month, fee_percent=0):
    """
    Create the draft statement for a property and month.

    Args:
        session: SQLAlchemy session
        caller: Caller requesting generation (admin only)
        property_id: Property primary key
        year: Statement year
        month: Statement month (1-12)
        fee_percent: Management fee rate in percent of revenue

    Returns:
        The persisted OwnerStatement (draft)

    Raises:
        Forbidden: caller is not an admin
        ValidationError: missing or malformed input, storage untouched
        NotFound: property does not exist
        DuplicatePeriod: a statement for this property and month exists
        StorageFailure: any other database error; nothing is persisted
    """
    access.ensure_can_generate(caller)
    is_valid, message = validate_statement_period(property_id, month, year)
    if not is_valid:
        raise ValidationError(message)
    property_id, year, month = int(property_id), int(year), int(month)

    try:
        prop = session.get(Property, property_id)
        if prop is None:
            raise NotFound('Property not found')
        totals = aggregate(session, property_id, year, month)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Aggregation failed for property {property_id} {year}-{month:02d}: {e}")
        raise StorageFailure('Failed to create statement')

    management_fee = compute_management_fee(totals.total_revenue, fee_percent)
    statement = OwnerStatement(
        property_id=property_id,
        owner_id=prop.owner_id,
        statement_date=date(year, month, 1),
        total_revenue=totals.total_revenue,
        total_expenses=totals.total_expenses,
        management_fee=management_fee,
        net_income=compute_net_income(totals.total_revenue, totals.total_expenses, management_fee),
        published=False,
    )

    try:
        session.add(statement)
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.info(f"Duplicate statement rejected for property {property_id} {year}-{month:02d}")
        raise DuplicatePeriod()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Statement insert failed for property {property_id} {year}-{month:02d}: {e}")
        raise StorageFailure('Failed to create statement')

    logger.info(
        f"Generated statement {statement.id} for property {property_id} {year}-{month:02d} "
        f"(revenue={statement.total_revenue}, expenses={statement.total_expenses}, "
        f"fee={statement.management_fee}, net={statement.net_income})"
    )
    return _load_statement(session, statement.id)


def publish(session, caller, statement_id):
    """
    Make a statement visible to its owner. Publishing twice is a no-op.
    """
    access.ensure_can_publish(caller)
    statement = _load_statement(session, statement_id)
    if statement.published:
        return statement

    statement.published = True
    statement.published_at = utcnow()
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to publish statement {statement_id}: {e}")
        raise StorageFailure('Failed to publish statement')
    logger.info(f"Published statement {statement_id}")
    return statement


def update_notes(session, caller, statement_id, notes):
    """Replace the free-text notes. The only edit allowed after publishing."""
    access.ensure_can_edit(caller)
    if notes is not None and not isinstance(notes, str):
        raise ValidationError('Notes must be text')
    statement = _load_statement(session, statement_id)
    statement.notes = (notes or '').strip() or None
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to update notes on statement {statement_id}: {e}")
        raise StorageFailure('Failed to update statement')
    return statement


def get_statement(session, caller, statement_id):
    """Single statement lookup, gate-checked for the caller."""
    statement = _load_statement(session, statement_id)
    access.ensure_can_view(caller, statement)
    return statement


def _year_bounds(year):
    return date(year, 1, 1), date(year, 12, 31)


def list_statements(session, caller, property_id=None, year=None, published_only=False):
    """
    Statements visible to the caller, most recent period first.

    Owners only ever get published statements of properties they own,
    whatever published_only says.
    """
    access.ensure_can_list(caller)

    query = session.query(OwnerStatement).join(
        Property, OwnerStatement.property_id == Property.id
    ).options(
        joinedload(OwnerStatement.rental_property).joinedload(Property.owner)
    )

    if caller.is_owner:
        query = query.filter(Property.owner_id == caller.user_id)
        published_only = True

    if published_only:
        query = query.filter(OwnerStatement.published.is_(True))

    if property_id is not None:
        query = query.filter(OwnerStatement.property_id == property_id)

    if year is not None:
        is_valid, message = validate_year(year)
        if not is_valid:
            raise ValidationError(message)
        start, end = _year_bounds(int(year))
        query = query.filter(OwnerStatement.statement_date >= start, OwnerStatement.statement_date <= end)

    return query.order_by(OwnerStatement.statement_date.desc(), OwnerStatement.id.desc()).all()


def owner_summary(session, caller, year):
    """
    Year-to-date figures for an owner, from published statements only.

    Returns:
        dict with property_count, statement_count and money totals as floats
    """
    if not caller.is_owner:
        raise Forbidden()

    start, end = _year_bounds(year)
    row = session.query(
        func.count(OwnerStatement.id),
        func.coalesce(func.sum(OwnerStatement.total_revenue), 0),
        func.coalesce(func.sum(OwnerStatement.total_expenses), 0),
        func.coalesce(func.sum(OwnerStatement.management_fee), 0),
        func.coalesce(func.sum(OwnerStatement.net_income), 0),
    ).join(
        Property, OwnerStatement.property_id == Property.id
    ).filter(
        Property.owner_id == caller.user_id,
        OwnerStatement.published.is_(True),
        OwnerStatement.statement_date >= start,
        OwnerStatement.statement_date <= end,
    ).one()

    property_count = session.query(func.count(Property.id)).filter(
        Property.owner_id == caller.user_id
    ).scalar() or 0

    statement_count, revenue, expenses, fees, net = row
    return {
        'year': year,
        'property_count': property_count,
        'statement_count': statement_count or 0,
        'total_revenue': float(to_money(revenue)),
        'total_expenses': float(to_money(expenses)),
        'management_fees': float(to_money(fees)),
        'net_income': float(to_money(net)),
    }
