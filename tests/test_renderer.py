"""
Tests for statement PDF rendering.

Layout is checked through the story (flowables) and row builders; the
PDF itself is only checked for being a PDF and being reproducible.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
import pytz
from reportlab.platypus import Paragraph

from hostbaku.statements import manager
from hostbaku.statements.aggregator import ExpenseLine, ReservationLine
from hostbaku.statements.errors import Forbidden, NotFound
from hostbaku.statements.renderer import (
    StatementDocument, StatementSettings, build_statement_document, build_story,
    expense_rows, format_deduction, format_long_date, format_money, render_pdf,
    render_statement, reservation_rows, statement_filename, summary_rows, _localize,
)

SETTINGS = StatementSettings()


def _document(**overrides):
    values = dict(
        period=date(2025, 6, 1),
        property_name='Old City Studio',
        property_address='12 Kichik Qala, Baku',
        owner_name='Leyla Aliyeva',
        owner_email='leyla@example.com',
        total_revenue=Decimal('380.00'),
        total_expenses=Decimal('45.00'),
        management_fee=Decimal('0.00'),
        net_income=Decimal('335.00'),
        generated_at=datetime(2025, 7, 1, 9, 0),
    )
    values.update(overrides)
    return StatementDocument(**values)


def _story_text(story):
    return [flowable.getPlainText() for flowable in story if isinstance(flowable, Paragraph)]


class TestFormatting:
    def test_money(self):
        assert format_money(Decimal('1234.5')) == '$1,234.50'
        assert format_money(0) == '$0.00'
        assert format_money(Decimal('-12')) == '-$12.00'

    def test_money_custom_symbol(self):
        assert format_money(Decimal('99.9'), symbol='₼') == '₼99.90'

    def test_deduction(self):
        assert format_deduction(Decimal('45')) == '-$45.00'
        assert format_deduction(0) == '-$0.00'
        assert format_deduction(Decimal('-5')) == '$5.00'

    def test_filename(self):
        assert statement_filename('Old City Studio', date(2025, 6, 1)) == 'Statement_Old_City_Studio_June_2025.pdf'
        assert statement_filename('  Sea   View Loft ', date(2024, 12, 1)) == 'Statement_Sea_View_Loft_December_2024.pdf'

    def test_footer_date_uses_configured_timezone(self):
        # 21:30 UTC on 1 July is already 2 July in Baku (UTC+4)
        local = _localize(datetime(2025, 7, 1, 21, 30), 'Asia/Baku')
        assert format_long_date(local) == 'July 2, 2025'

    def test_aware_timestamp_localized(self):
        # PostgreSQL returns timestamptz values already carrying UTC
        stored = pytz.UTC.localize(datetime(2025, 7, 1, 21, 30))
        assert _localize(stored, 'Asia/Baku') == _localize(stored.replace(tzinfo=None), 'Asia/Baku')


class TestRows:
    def test_reservation_rows(self):
        lines = [ReservationLine('Anna Schmidt', None, 'airbnb', date(2025, 6, 12), date(2025, 6, 15), Decimal('380'))]
        assert reservation_rows(lines) == [['Anna Schmidt', '-', 'airbnb', 'Jun 12', 'Jun 15', '$380.00']]

    def test_expense_rows(self):
        lines = [ExpenseLine(date(2025, 6, 10), 'Cleaning', 'Deep clean', Decimal('45'))]
        assert expense_rows(lines) == [['Jun 10', 'Cleaning', 'Deep clean', '$45.00']]

    def test_summary_rows(self):
        rows = summary_rows(_document(management_fee=Decimal('38.00'), net_income=Decimal('297.00')))
        assert rows == [
            ['Total Revenue', '$380.00'],
            ['Total Expenses', '-$45.00'],
            ['Management Fee', '-$38.00'],
            ['Net Payout', '$297.00'],
        ]


class TestStory:
    def test_placeholders_for_empty_sections(self):
        text = _story_text(build_story(_document(), SETTINGS, width=500))

        assert 'No reservations this month' in text
        assert 'No expenses this month' in text
        assert 'Notes:' not in text

    def test_tables_replace_placeholders(self):
        document = _document(
            reservations=[ReservationLine('Anna', 'A1', 'airbnb', date(2025, 6, 12), date(2025, 6, 15), Decimal('380'))],
            expenses=[ExpenseLine(date(2025, 6, 10), 'Cleaning', '', Decimal('45'))],
        )
        text = _story_text(build_story(document, SETTINGS, width=500))

        assert 'No reservations this month' not in text
        assert 'No expenses this month' not in text
        assert text[:2] == ['Rental Income', 'Expenses']

    def test_notes_rendered_as_text(self):
        text = _story_text(build_story(_document(notes='Boiler <fixed> & tested'), SETTINGS, width=500))

        assert text[-2] == 'Notes:'
        assert text[-1] == 'Boiler <fixed> & tested'

    def test_pdf_bytes(self):
        content = render_pdf(_document(), SETTINGS)
        assert content.startswith(b'%PDF')

    def test_pdf_is_reproducible(self):
        document = _document(notes='Same input, same bytes')
        assert render_pdf(document, SETTINGS) == render_pdf(document, SETTINGS)


class TestRenderStatement:
    @pytest.fixture
    def june_statement(self, db_session, june_activity, callers):
        statement = manager.generate(db_session, callers.admin, june_activity.studio.id, 2025, 6)
        return statement.id

    def test_document_from_statement(self, db_session, june_statement):
        statement = manager._load_statement(db_session, june_statement)

        document = build_statement_document(db_session, statement)

        assert document.owner_name == 'Leyla Aliyeva'
        assert document.property_address == '12 Kichik Qala, Baku'
        assert [line.guest_name for line in document.reservations] == ['Anna Schmidt']
        assert [line.category for line in document.expenses] == ['Cleaning']
        assert document.net_income == Decimal('335.00')

    def test_unassigned_owner(self, db_session, june_statement, seed):
        seed.studio.owner_id = None
        db_session.commit()
        statement = manager._load_statement(db_session, june_statement)

        assert build_statement_document(db_session, statement).owner_name == 'Unassigned'

    def test_admin_renders_draft(self, db_session, june_statement, callers):
        rendered = render_statement(db_session, june_statement, callers.admin, SETTINGS)

        assert rendered.filename == 'Statement_Old_City_Studio_June_2025.pdf'
        assert rendered.mimetype == 'application/pdf'
        assert rendered.content.startswith(b'%PDF')

    def test_same_statement_same_bytes(self, db_session, june_statement, callers):
        first = render_statement(db_session, june_statement, callers.admin, SETTINGS)
        second = render_statement(db_session, june_statement, callers.admin, SETTINGS)
        assert first.content == second.content

    def test_owner_blocked_from_draft(self, db_session, june_statement, callers):
        with pytest.raises(Forbidden):
            render_statement(db_session, june_statement, callers.owner, SETTINGS)

    def test_owner_renders_published(self, db_session, june_statement, callers):
        manager.publish(db_session, callers.admin, june_statement)
        rendered = render_statement(db_session, june_statement, callers.owner, SETTINGS)
        assert rendered.content.startswith(b'%PDF')

    def test_missing_statement(self, db_session, seed, callers):
        with pytest.raises(NotFound):
            render_statement(db_session, 8080, callers.admin, SETTINGS)
