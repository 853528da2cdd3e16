"""
Tests for monthly revenue/expense aggregation.
"""

from datetime import date
from decimal import Decimal

from hostbaku.models import Expense, Reservation
from hostbaku.statements.aggregator import (
    aggregate, fetch_expense_lines, fetch_reservation_lines, month_window, to_money,
)


def _reservation(property_id, check_in, check_out, amount, **kwargs):
    return Reservation(
        property_id=property_id,
        check_in=check_in,
        check_out=check_out,
        total_amount=amount,
        **kwargs
    )


class TestMonthWindow:
    def test_thirty_day_month(self):
        assert month_window(2025, 6) == (date(2025, 6, 1), date(2025, 6, 30))

    def test_leap_february(self):
        assert month_window(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_december(self):
        assert month_window(2025, 12) == (date(2025, 12, 1), date(2025, 12, 31))


class TestToMoney:
    def test_none_is_zero(self):
        assert to_money(None) == Decimal('0.00')

    def test_float_rounds_half_up(self):
        assert to_money(2.675) == Decimal('2.68')

    def test_integer(self):
        assert to_money(380) == Decimal('380.00')


class TestAggregate:
    def test_empty_month_is_zero(self, db_session, seed):
        totals = aggregate(db_session, seed.studio.id, 2025, 6)

        assert totals.total_revenue == Decimal('0.00')
        assert totals.total_expenses == Decimal('0.00')

    def test_example_month(self, db_session, june_activity):
        totals = aggregate(db_session, june_activity.studio.id, 2025, 6)

        assert totals.total_revenue == Decimal('380.00')
        assert totals.total_expenses == Decimal('45.00')

    def test_revenue_attributed_by_checkout(self, db_session, seed):
        # Spans May/June, checks out on the last day of June
        db_session.add(_reservation(seed.studio.id, date(2025, 5, 28), date(2025, 6, 30), Decimal('500.00')))
        # Checks in during June, checks out July 1
        db_session.add(_reservation(seed.studio.id, date(2025, 6, 27), date(2025, 7, 1), Decimal('210.00')))
        db_session.commit()

        june = aggregate(db_session, seed.studio.id, 2025, 6)
        july = aggregate(db_session, seed.studio.id, 2025, 7)

        assert june.total_revenue == Decimal('500.00')
        assert july.total_revenue == Decimal('210.00')

    def test_checkout_on_first_day_counts(self, db_session, seed):
        db_session.add(_reservation(seed.studio.id, date(2025, 5, 29), date(2025, 6, 1), Decimal('99.99')))
        db_session.commit()

        assert aggregate(db_session, seed.studio.id, 2025, 6).total_revenue == Decimal('99.99')
        assert aggregate(db_session, seed.studio.id, 2025, 5).total_revenue == Decimal('0.00')

    def test_null_amount_contributes_zero(self, db_session, seed):
        db_session.add(_reservation(seed.studio.id, date(2025, 6, 1), date(2025, 6, 4), None))
        db_session.add(_reservation(seed.studio.id, date(2025, 6, 5), date(2025, 6, 8), Decimal('120.50')))
        db_session.commit()

        assert aggregate(db_session, seed.studio.id, 2025, 6).total_revenue == Decimal('120.50')

    def test_unit_reservation_counts_for_property(self, db_session, seed):
        # Booked against the unit; property_id points at a different property
        db_session.add(_reservation(
            seed.loft.id, date(2025, 6, 2), date(2025, 6, 6), Decimal('300.00'), unit_id=seed.unit.id,
        ))
        db_session.commit()

        assert aggregate(db_session, seed.studio.id, 2025, 6).total_revenue == Decimal('300.00')
        assert aggregate(db_session, seed.loft.id, 2025, 6).total_revenue == Decimal('0.00')

    def test_unit_reservation_lines_follow_unit(self, db_session, seed):
        db_session.add(_reservation(
            seed.loft.id, date(2025, 6, 2), date(2025, 6, 6), Decimal('300.00'),
            unit_id=seed.unit.id, guest_name='Kenji Sato',
        ))
        db_session.commit()

        studio_lines = fetch_reservation_lines(db_session, seed.studio.id, 2025, 6)
        assert [(line.guest_name, line.unit_name) for line in studio_lines] == [('Kenji Sato', 'A1')]
        assert fetch_reservation_lines(db_session, seed.loft.id, 2025, 6) == []

    def test_other_property_excluded(self, db_session, seed):
        db_session.add(_reservation(seed.loft.id, date(2025, 6, 2), date(2025, 6, 6), Decimal('300.00')))
        db_session.add(Expense(
            property_id=seed.loft.id, category='Repairs', amount=Decimal('80.00'),
            expense_date=date(2025, 6, 3),
        ))
        db_session.commit()

        totals = aggregate(db_session, seed.studio.id, 2025, 6)
        assert totals.total_revenue == Decimal('0.00')
        assert totals.total_expenses == Decimal('0.00')

    def test_expense_month_boundaries(self, db_session, seed):
        for day, amount in ((date(2025, 5, 31), '10.00'), (date(2025, 6, 1), '20.00'),
                            (date(2025, 6, 30), '30.00'), (date(2025, 7, 1), '40.00')):
            db_session.add(Expense(
                property_id=seed.studio.id, category='Supplies', amount=Decimal(amount), expense_date=day,
            ))
        db_session.commit()

        assert aggregate(db_session, seed.studio.id, 2025, 6).total_expenses == Decimal('50.00')

    def test_non_billable_expenses_included(self, db_session, seed):
        db_session.add(Expense(
            property_id=seed.studio.id, category='Supplies', amount=Decimal('15.00'),
            expense_date=date(2025, 6, 3), is_billable=False,
        ))
        db_session.commit()

        assert aggregate(db_session, seed.studio.id, 2025, 6).total_expenses == Decimal('15.00')


class TestLineItems:
    def test_reservation_lines_match_totals(self, db_session, seed):
        db_session.add(_reservation(seed.studio.id, date(2025, 6, 20), date(2025, 6, 23), Decimal('240.00'),
                                    guest_name='Late Guest'))
        db_session.add(_reservation(seed.studio.id, date(2025, 6, 2), date(2025, 6, 5), Decimal('180.00'),
                                    guest_name=None, unit_id=seed.unit.id, platform='booking'))
        db_session.add(_reservation(seed.studio.id, date(2025, 6, 29), date(2025, 7, 2), Decimal('90.00')))
        db_session.commit()

        lines = fetch_reservation_lines(db_session, seed.studio.id, 2025, 6)

        assert [line.check_in for line in lines] == [date(2025, 6, 2), date(2025, 6, 20)]
        assert lines[0].guest_name == 'Guest'
        assert lines[0].unit_name == 'A1'
        assert lines[0].platform == 'booking'
        assert lines[1].unit_name is None
        assert sum(line.amount for line in lines) == aggregate(db_session, seed.studio.id, 2025, 6).total_revenue

    def test_expense_lines_ordered_by_date(self, db_session, seed):
        db_session.add(Expense(property_id=seed.studio.id, category='Utilities', description='Electricity',
                               amount=Decimal('60.00'), expense_date=date(2025, 6, 25)))
        db_session.add(Expense(property_id=seed.studio.id, category='Cleaning', description=None,
                               amount=Decimal('45.00'), expense_date=date(2025, 6, 10)))
        db_session.commit()

        lines = fetch_expense_lines(db_session, seed.studio.id, 2025, 6)

        assert [line.category for line in lines] == ['Cleaning', 'Utilities']
        assert lines[0].description == ''
        assert lines[1].amount == Decimal('60.00')

    def test_empty_month_has_no_lines(self, db_session, seed):
        assert fetch_reservation_lines(db_session, seed.studio.id, 2025, 6) == []
        assert fetch_expense_lines(db_session, seed.studio.id, 2025, 6) == []
