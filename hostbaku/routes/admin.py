"""
Admin statement routes - generate, review, publish, annotate.
"""

from flask import Blueprint, jsonify, request, current_app, g

from hostbaku.auth.decorators import admin_required
from hostbaku.statements import manager
from hostbaku.statements.errors import ValidationError
from hostbaku.utils.audit import audit_log, AuditEvent
from hostbaku.utils.rate_limit import throttle
from hostbaku.utils.validators import validate_id

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


def get_session():
    """Get database session from app context."""
    return current_app.get_db_session()


def optional_int_arg(name, label):
    """Integer query parameter or None; malformed values are a 400."""
    value = request.args.get(name)
    if value in (None, ''):
        return None
    is_valid, message = validate_id(value, label)
    if not is_valid:
        raise ValidationError(message)
    return int(value)


@admin_bp.route('/statements')
@admin_required
def list_statements():
    """All statements, drafts included. Optional ?year= and ?property_id= filters."""
    property_id = optional_int_arg('property_id', 'Property ID')
    year = request.args.get('year') or None

    session = get_session()
    try:
        statements = manager.list_statements(
            session, g.current_user, property_id=property_id, year=year,
        )
        return jsonify({'success': True, 'data': [s.to_dict() for s in statements]})
    finally:
        session.close()


@admin_bp.route('/statements', methods=['POST'])
@admin_required
@throttle(max_hits=20, window_seconds=60)
def generate_statement():
    """Create the draft statement for {property_id, month, year}."""
    data = request.get_json(silent=True) or {}

    session = get_session()
    try:
        statement = manager.generate(
            session,
            g.current_user,
            data.get('property_id'),
            data.get('year'),
            data.get('month'),
            fee_percent=current_app.statement_settings.management_fee_percent,
        )
        audit_log(
            AuditEvent.STATEMENT_GENERATED,
            f"Statement {statement.id} for property {statement.property_id} "
            f"period {statement.statement_date.isoformat()}",
        )
        return jsonify({'success': True, 'data': statement.to_dict()}), 201
    finally:
        session.close()


@admin_bp.route('/statements/<int:statement_id>')
@admin_required
def get_statement(statement_id):
    session = get_session()
    try:
        statement = manager.get_statement(session, g.current_user, statement_id)
        return jsonify({'success': True, 'data': statement.to_dict()})
    finally:
        session.close()


@admin_bp.route('/statements/<int:statement_id>/publish', methods=['POST'])
@admin_required
def publish_statement(statement_id):
    """Publish a draft. Already-published statements are returned unchanged."""
    session = get_session()
    try:
        statement = manager.publish(session, g.current_user, statement_id)
        audit_log(AuditEvent.STATEMENT_PUBLISHED, f"Statement {statement_id}")
        return jsonify({'success': True, 'data': statement.to_dict()})
    finally:
        session.close()


@admin_bp.route('/statements/<int:statement_id>', methods=['PATCH'])
@admin_required
def update_statement(statement_id):
    """Edit notes. Totals are immutable once generated."""
    data = request.get_json(silent=True) or {}
    if 'notes' not in data:
        raise ValidationError('Only notes can be updated')

    session = get_session()
    try:
        statement = manager.update_notes(session, g.current_user, statement_id, data.get('notes'))
        audit_log(AuditEvent.STATEMENT_NOTES_UPDATED, f"Statement {statement_id}")
        return jsonify({'success': True, 'data': statement.to_dict()})
    finally:
        session.close()
