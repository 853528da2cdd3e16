"""
Owner statement routes - published statements, PDF download, yearly summary.
"""

from datetime import datetime
from io import BytesIO

import pytz
from flask import Blueprint, jsonify, request, current_app, g, send_file

from hostbaku.auth.decorators import owner_required, statement_access_required
from hostbaku.routes.admin import get_session, optional_int_arg
from hostbaku.statements import manager
from hostbaku.statements.errors import Forbidden, NotFound, ValidationError
from hostbaku.statements.renderer import render_statement
from hostbaku.utils.audit import audit_log, AuditEvent
from hostbaku.utils.rate_limit import throttle
from hostbaku.utils.validators import validate_year

owner_bp = Blueprint('owner', __name__, url_prefix='/api/owner')


@owner_bp.route('/statements')
@owner_required
def list_statements():
    """Published statements for the caller's own properties."""
    property_id = optional_int_arg('property_id', 'Property ID')
    year = request.args.get('year') or None

    session = get_session()
    try:
        statements = manager.list_statements(
            session, g.current_user, property_id=property_id, year=year, published_only=True,
        )
        return jsonify({'success': True, 'data': [s.to_dict() for s in statements]})
    finally:
        session.close()


@owner_bp.route('/statements/<int:statement_id>/pdf')
@statement_access_required
@throttle(max_hits=30, window_seconds=60)
def download_statement(statement_id):
    """
    Statement PDF as an attachment.

    A statement the caller may not see answers exactly like a missing one,
    so owners cannot discover other owners' statement ids.
    """
    caller = g.current_user
    session = get_session()
    try:
        try:
            rendered = render_statement(session, statement_id, caller, current_app.statement_settings)
        except Forbidden:
            audit_log(
                AuditEvent.ACCESS_DENIED,
                f"Statement {statement_id} PDF hidden from caller",
                level='WARNING',
            )
            raise NotFound('Statement not found')
    finally:
        session.close()

    audit_log(AuditEvent.STATEMENT_DOWNLOADED, f"Statement {statement_id} ({rendered.filename})")
    return send_file(
        BytesIO(rendered.content),
        mimetype=rendered.mimetype,
        as_attachment=True,
        download_name=rendered.filename,
    )


@owner_bp.route('/stats')
@owner_required
def owner_stats():
    """Year-to-date totals over published statements (?year=, default current year)."""
    year = request.args.get('year')
    if year in (None, ''):
        tz = pytz.timezone(current_app.statement_settings.timezone)
        year = datetime.now(tz).year
    else:
        is_valid, message = validate_year(year)
        if not is_valid:
            raise ValidationError(message)
        year = int(year)

    session = get_session()
    try:
        summary = manager.owner_summary(session, g.current_user, year)
        return jsonify({'success': True, 'data': summary})
    finally:
        session.close()
