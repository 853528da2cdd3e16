"""
Audit logging for security-relevant events.

Logs statement lifecycle actions, downloads and denied requests
to a dedicated audit log.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from flask import g, has_request_context, request


# Configure audit logger
audit_logger = logging.getLogger('security.audit')


def setup_audit_logging(app):
    """
    Set up audit logging for the application.

    Creates a dedicated log file for security audit events in
    AUDIT_LOG_DIR (defaults to logs/ next to the package).
    """
    log_dir = app.config.get('AUDIT_LOG_DIR') or os.path.join(
        os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), 'logs'
    )
    os.makedirs(log_dir, exist_ok=True)

    # One file handler per process; a second app (tests) replaces the first
    for existing in list(audit_logger.handlers):
        audit_logger.removeHandler(existing)
        existing.close()

    # Set up rotating file handler (10MB max, keep 5 backups)
    log_file = os.path.join(log_dir, 'audit.log')
    handler = RotatingFileHandler(log_file, maxBytes=10*1024*1024, backupCount=5)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    audit_logger.addHandler(handler)
    audit_logger.setLevel(logging.INFO)

    # Also echo to console in debug mode
    if app.debug:
        audit_logger.addHandler(logging.StreamHandler())

    app.audit_log_file = log_file


def get_client_ip():
    """Get the real client IP, handling proxies."""
    if not has_request_context():
        return 'local'
    if request.headers.get('X-Forwarded-For'):
        return request.headers.get('X-Forwarded-For').split(',')[0].strip()
    return request.remote_addr or 'unknown'


def get_current_username():
    """Authenticated caller as 'email (role)', or 'anonymous'."""
    caller = g.get('current_user') if has_request_context() else None
    if caller is None:
        return 'anonymous'
    return f"{caller.email or caller.user_id} ({caller.role})"


def audit_log(event_type, details, user=None, level='INFO'):
    """
    Log a security audit event.

    Args:
        event_type: Type of event (e.g., 'STATEMENT_GENERATED', 'ACCESS_DENIED')
        details: Description of what happened
        user: Username (defaults to current caller)
        level: Log level ('INFO', 'WARNING', 'ERROR')
    """
    username = user or get_current_username()
    ip_address = get_client_ip()

    message = f"{event_type} | User: {username} | IP: {ip_address} | {details}"

    if level == 'WARNING':
        audit_logger.warning(message)
    elif level == 'ERROR':
        audit_logger.error(message)
    else:
        audit_logger.info(message)


class AuditEvent:
    """Audit event type constants."""
    # Statement lifecycle
    STATEMENT_GENERATED = 'STATEMENT_GENERATED'
    STATEMENT_PUBLISHED = 'STATEMENT_PUBLISHED'
    STATEMENT_NOTES_UPDATED = 'STATEMENT_NOTES_UPDATED'
    STATEMENT_DOWNLOADED = 'STATEMENT_DOWNLOADED'

    # Access control
    ACCESS_DENIED = 'ACCESS_DENIED'
    AUTH_FAILED = 'AUTH_FAILED'
