"""
Owner statement PDF rendering.

Builds the statement document on demand from the stored statement and the
line items re-queried for its month. Nothing is cached or written to disk.
Output is byte-for-byte reproducible: ReportLab runs in invariant mode and
the footer date is the statement's creation time, not the render time.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO
from typing import List, Optional
from xml.sax.saxutils import escape

import pytz
from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, StyleSheet1
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle, KeepTogether

from hostbaku.statements.aggregator import (
    ExpenseLine, ReservationLine, fetch_expense_lines, fetch_reservation_lines, to_money,
)
from hostbaku.statements.manager import get_statement

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December',
)

BRAND_COLOR = '#267A54'
BODY_TEXT_COLOR = '#3C3C3C'
MUTED_COLOR = '#969696'
RULE_COLOR = '#C8C8C8'
INCOME_HEADER_BG = '#F0F9F4'
EXPENSE_HEADER_BG = '#FFF5F5'
EXPENSE_HEADER_TEXT = '#B43C3C'

PAGE_MARGIN = 20 * mm
FOOTER_OFFSET = 15 * mm


@dataclass(frozen=True)
class StatementSettings:
    """Presentation settings, read from the statements config section."""
    company_name: str = 'HostBaku'
    company_tagline: str = 'Property Management'
    currency_symbol: str = '$'
    timezone: str = 'Asia/Baku'
    management_fee_percent: Decimal = Decimal('0')

    @classmethod
    def from_config(cls, section):
        """Build settings from a ConfigSection (or anything with .get)."""
        defaults = cls()
        return cls(
            company_name=section.get('company_name', defaults.company_name),
            company_tagline=section.get('company_tagline', defaults.company_tagline),
            currency_symbol=section.get('currency_symbol', defaults.currency_symbol),
            timezone=section.get('timezone', defaults.timezone),
            management_fee_percent=Decimal(str(section.get('management_fee_percent', 0))),
        )


@dataclass
class StatementDocument:
    """Everything the PDF shows, already typed and formatted-ready."""
    period: date
    property_name: str
    property_address: str
    owner_name: str
    owner_email: str
    total_revenue: Decimal
    total_expenses: Decimal
    management_fee: Decimal
    net_income: Decimal
    generated_at: datetime
    notes: Optional[str] = None
    reservations: List[ReservationLine] = field(default_factory=list)
    expenses: List[ExpenseLine] = field(default_factory=list)


@dataclass(frozen=True)
class RenderedStatement:
    filename: str
    content: bytes
    mimetype: str = 'application/pdf'


# =============================================================================
# Formatting helpers
# =============================================================================

def format_money(amount, symbol='$'):
    """Two decimals with a currency symbol, e.g. $1,234.50 or -$12.00."""
    amount = to_money(amount)
    sign = '-' if amount < 0 else ''
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_deduction(amount, symbol='$'):
    """Amount shown as a negative adjustment in the summary."""
    amount = to_money(amount)
    if amount < 0:
        return format_money(-amount, symbol)
    return f"-{format_money(amount, symbol)}"


def format_period(period: date) -> str:
    return f"{MONTH_NAMES[period.month - 1]} {period.year}"


def format_short_date(value: date) -> str:
    return f"{MONTH_NAMES[value.month - 1][:3]} {value.day}"


def format_long_date(value: datetime) -> str:
    return f"{MONTH_NAMES[value.month - 1]} {value.day}, {value.year}"


def statement_filename(property_name: str, period: date) -> str:
    """Download name, e.g. Statement_Old_City_Studio_June_2025.pdf."""
    safe_name = re.sub(r'\s+', '_', (property_name or 'Property').strip())
    return f"Statement_{safe_name}_{MONTH_NAMES[period.month - 1]}_{period.year}.pdf"


def _localize(value: Optional[datetime], tz_name: str) -> datetime:
    """Statement timestamps are stored in UTC; naive values are treated as UTC."""
    if value is None:
        value = datetime(1970, 1, 1)
    if value.tzinfo is None:
        value = pytz.UTC.localize(value)
    return value.astimezone(pytz.timezone(tz_name))


# =============================================================================
# Document data
# =============================================================================

def build_statement_document(session, statement) -> StatementDocument:
    """Collect the statement, its live owner/property and re-fetched line items."""
    prop = statement.rental_property
    owner = prop.owner if prop is not None else None
    year, month = statement.statement_date.year, statement.statement_date.month

    return StatementDocument(
        period=statement.statement_date,
        property_name=prop.name if prop is not None else 'Unknown property',
        property_address=prop.full_address if prop is not None else '',
        owner_name=owner.name if owner is not None else 'Unassigned',
        owner_email=owner.email if owner is not None else '',
        total_revenue=to_money(statement.total_revenue),
        total_expenses=to_money(statement.total_expenses),
        management_fee=to_money(statement.management_fee),
        net_income=to_money(statement.net_income),
        generated_at=statement.created_at,
        notes=statement.notes,
        reservations=fetch_reservation_lines(session, statement.property_id, year, month),
        expenses=fetch_expense_lines(session, statement.property_id, year, month),
    )


def reservation_rows(lines: List[ReservationLine], symbol='$'):
    """Table body for the Rental Income section."""
    return [
        [
            line.guest_name,
            line.unit_name or '-',
            line.platform or '-',
            format_short_date(line.check_in),
            format_short_date(line.check_out),
            format_money(line.amount, symbol),
        ]
        for line in lines
    ]


def expense_rows(lines: List[ExpenseLine], symbol='$'):
    """Table body for the Expenses section."""
    return [
        [
            format_short_date(line.expense_date),
            line.category or '-',
            line.description or '',
            format_money(line.amount, symbol),
        ]
        for line in lines
    ]


def summary_rows(document: StatementDocument, symbol='$'):
    return [
        ['Total Revenue', format_money(document.total_revenue, symbol)],
        ['Total Expenses', format_deduction(document.total_expenses, symbol)],
        ['Management Fee', format_deduction(document.management_fee, symbol)],
        ['Net Payout', format_money(document.net_income, symbol)],
    ]


# =============================================================================
# Layout
# =============================================================================

def _load_styles():
    styles = StyleSheet1()
    styles.add(ParagraphStyle(
        name='Brand', fontName='Helvetica-Bold', fontSize=22, leading=26,
        textColor=colors.HexColor(BRAND_COLOR),
    ))
    styles.add(ParagraphStyle(
        name='Tagline', fontName='Helvetica', fontSize=10, leading=13,
        textColor=colors.HexColor('#646464'),
    ))
    styles.add(ParagraphStyle(
        name='Title', fontName='Helvetica', fontSize=16, leading=20,
        alignment=TA_RIGHT, textColor=colors.black,
    ))
    styles.add(ParagraphStyle(
        name='Period', fontName='Helvetica', fontSize=10, leading=13,
        alignment=TA_RIGHT, textColor=colors.HexColor('#646464'),
    ))
    styles.add(ParagraphStyle(
        name='Label', fontName='Helvetica-Bold', fontSize=11, leading=14,
        textColor=colors.black, spaceAfter=4,
    ))
    styles.add(ParagraphStyle(
        name='Body', fontName='Helvetica', fontSize=10, leading=13,
        textColor=colors.HexColor(BODY_TEXT_COLOR),
    ))
    styles.add(ParagraphStyle(
        name='Section', fontName='Helvetica-Bold', fontSize=12, leading=15,
        textColor=colors.black, spaceBefore=14, spaceAfter=6,
    ))
    styles.add(ParagraphStyle(
        name='Cell', fontName='Helvetica', fontSize=9, leading=11,
        textColor=colors.HexColor(BODY_TEXT_COLOR), alignment=TA_LEFT,
    ))
    styles.add(ParagraphStyle(
        name='CellRight', parent=styles['Cell'], alignment=TA_RIGHT,
    ))
    styles.add(ParagraphStyle(
        name='Placeholder', fontName='Helvetica-Oblique', fontSize=10, leading=13,
        textColor=colors.HexColor(MUTED_COLOR), spaceBefore=4,
    ))
    styles.add(ParagraphStyle(
        name='NotesLabel', fontName='Helvetica-Oblique', fontSize=10, leading=13,
        textColor=colors.HexColor('#646464'), spaceBefore=18,
    ))
    return styles


def _p(text, style):
    return Paragraph(escape(str(text)), style)


def _masthead(document, settings, styles, width):
    left = [_p(settings.company_name, styles['Brand']), _p(settings.company_tagline, styles['Tagline'])]
    right = [_p('Owner Statement', styles['Title']), _p(format_period(document.period), styles['Period'])]
    table = Table([[left, right]], colWidths=[width * 0.5, width * 0.5])
    table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('LEFTPADDING', (0, 0), (-1, -1), 0),
        ('RIGHTPADDING', (0, 0), (-1, -1), 0),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
        ('LINEBELOW', (0, 0), (-1, 0), 0.5, colors.HexColor(RULE_COLOR)),
    ]))
    return table


def _identity_block(document, styles, width):
    data = [
        [_p('Property Owner', styles['Label']), _p('Property', styles['Label'])],
        [_p(document.owner_name, styles['Body']), _p(document.property_name, styles['Body'])],
        [_p(document.owner_email, styles['Body']), _p(document.property_address, styles['Body'])],
    ]
    table = Table(data, colWidths=[width * 0.5, width * 0.5])
    table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('LEFTPADDING', (0, 0), (-1, -1), 0),
        ('TOPPADDING', (0, 0), (-1, -1), 1),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 1),
    ]))
    return table


def _line_item_table(headers, rows, weights, width, styles, header_bg, header_text):
    """Itemized table. Widths follow the frame width; the header repeats on page breaks."""
    last = len(headers) - 1
    header_style = ParagraphStyle(
        name='HeaderCell', parent=styles['Cell'], fontName='Helvetica-Bold',
        textColor=colors.HexColor(header_text),
    )
    header_right = ParagraphStyle(name='HeaderCellRight', parent=header_style, alignment=TA_RIGHT)

    data = [[_p(h, header_right if i == last else header_style) for i, h in enumerate(headers)]]
    for row in rows:
        data.append([_p(cell, styles['CellRight'] if i == last else styles['Cell']) for i, cell in enumerate(row)])

    total_weight = float(sum(weights))
    col_widths = [width * w / total_weight for w in weights]
    table = Table(data, colWidths=col_widths, repeatRows=1, hAlign='LEFT')
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor(header_bg)),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 3),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 3),
        ('LINEBELOW', (0, -1), (-1, -1), 0.25, colors.HexColor(RULE_COLOR)),
    ]))
    return table


def _summary_block(document, settings, styles):
    rows = summary_rows(document, settings.currency_symbol)
    data = [[_p(label, styles['Body']), _p(amount, styles['CellRight'])] for label, amount in rows[:-1]]

    net_label, net_amount = rows[-1]
    net_style = ParagraphStyle(
        name='Net', parent=styles['Body'], fontName='Helvetica-Bold', fontSize=12, leading=15,
        textColor=colors.HexColor(BRAND_COLOR),
    )
    data.append([_p(net_label, net_style), _p(net_amount, ParagraphStyle(
        name='NetRight', parent=net_style, alignment=TA_RIGHT))])

    table = Table(data, colWidths=[60 * mm, 35 * mm], hAlign='RIGHT')
    table.setStyle(TableStyle([
        ('LINEABOVE', (0, 0), (-1, 0), 0.5, colors.HexColor(RULE_COLOR)),
        ('LINEABOVE', (0, -1), (-1, -1), 0.5, colors.HexColor(RULE_COLOR)),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
        ('TOPPADDING', (0, -1), (-1, -1), 8),
    ]))
    return KeepTogether([table])


def build_story(document: StatementDocument, settings: StatementSettings, width: float):
    """Ordered flowables: masthead, identity, income, expenses, summary, notes."""
    styles = _load_styles()
    symbol = settings.currency_symbol
    story = [
        _masthead(document, settings, styles, width),
        Spacer(1, 10 * mm),
        _identity_block(document, styles, width),
        Paragraph('Rental Income', styles['Section']),
    ]

    if document.reservations:
        story.append(_line_item_table(
            ['Guest', 'Unit', 'Platform', 'Check-in', 'Check-out', 'Amount'],
            reservation_rows(document.reservations, symbol),
            weights=[24, 12, 14, 14, 14, 22],
            width=width, styles=styles,
            header_bg=INCOME_HEADER_BG, header_text=BRAND_COLOR,
        ))
    else:
        story.append(Paragraph('No reservations this month', styles['Placeholder']))

    story.append(Paragraph('Expenses', styles['Section']))
    if document.expenses:
        story.append(_line_item_table(
            ['Date', 'Category', 'Description', 'Amount'],
            expense_rows(document.expenses, symbol),
            weights=[14, 20, 44, 22],
            width=width, styles=styles,
            header_bg=EXPENSE_HEADER_BG, header_text=EXPENSE_HEADER_TEXT,
        ))
    else:
        story.append(Paragraph('No expenses this month', styles['Placeholder']))

    story.append(Spacer(1, 10 * mm))
    story.append(_summary_block(document, settings, styles))

    if document.notes:
        story.append(Paragraph('Notes:', styles['NotesLabel']))
        story.append(Paragraph(escape(document.notes).replace('\n', '<br/>'), styles['Body']))

    return story


def render_pdf(document: StatementDocument, settings: StatementSettings) -> bytes:
    """Lay out a statement document and return the PDF bytes."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        topMargin=PAGE_MARGIN,
        bottomMargin=PAGE_MARGIN + 5 * mm,
        title=f"Owner Statement - {document.property_name} - {format_period(document.period)}",
        author=settings.company_name,
        invariant=1,
    )

    generated_on = format_long_date(_localize(document.generated_at, settings.timezone))
    footer_text = f"Generated on {generated_on} | {settings.company_name} {settings.company_tagline}"

    def draw_footer(canvas, doc_template):
        page_width = doc_template.pagesize[0]
        canvas.saveState()
        canvas.setFont('Helvetica', 8)
        canvas.setFillColor(colors.HexColor(MUTED_COLOR))
        canvas.drawCentredString(page_width / 2, FOOTER_OFFSET, footer_text)
        canvas.drawRightString(page_width - PAGE_MARGIN, FOOTER_OFFSET - 4 * mm, f"Page {doc_template.page}")
        canvas.restoreState()

    doc.build(build_story(document, settings, doc.width), onFirstPage=draw_footer, onLaterPages=draw_footer)
    return buffer.getvalue()


def render_statement(session, statement_id, caller, settings: StatementSettings) -> RenderedStatement:
    """
    Render one statement for a caller.

    Raises:
        NotFound: statement does not exist
        Forbidden: caller may not see it (owner on a draft or someone else's)
    """
    statement = get_statement(session, caller, statement_id)
    document = build_statement_document(session, statement)
    content = render_pdf(document, settings)
    logger.debug(
        f"Rendered statement {statement_id}: {len(document.reservations)} reservations, "
        f"{len(document.expenses)} expenses, {len(content)} bytes"
    )
    return RenderedStatement(
        filename=statement_filename(document.property_name, document.period),
        content=content,
    )
