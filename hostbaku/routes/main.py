"""
Main routes - liveness and health checks.
"""

import sys
from datetime import datetime

import pytz
from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from hostbaku import __version__
from hostbaku.common.engine import get_pool_stats

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """Liveness check. Does not touch the database."""
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.now(pytz.UTC).isoformat()
    })


@main_bp.route('/healthcheck')
def healthcheck():
    """System health check endpoint."""
    # Check database connection
    db_status = 'unknown'
    try:
        session = current_app.get_db_session()
        try:
            session.execute(text('SELECT 1'))
        finally:
            session.close()
        db_status = 'connected'
    except SQLAlchemyError as e:
        current_app.logger.error(f"Database health check failed: {e}")
        db_status = 'error'

    # Calculate uptime
    uptime_seconds = None
    if hasattr(current_app, 'web_started_at'):
        uptime_seconds = (datetime.now() - current_app.web_started_at).total_seconds()

    return jsonify({
        'status': 'healthy' if db_status == 'connected' else 'degraded',
        'version': __version__,
        'python_version': sys.version,
        'database': db_status,
        'pool': get_pool_stats(current_app.get_db_engine()),
        'uptime_seconds': uptime_seconds,
        'timestamp': datetime.now(pytz.UTC).isoformat()
    }), 200 if db_status == 'connected' else 503
