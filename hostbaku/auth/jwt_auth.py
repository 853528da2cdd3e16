"""
JWT Authentication Middleware for the HostBaku API.
Validates tokens issued by the login flow and resolves them to a Caller.
"""

from datetime import datetime, timedelta
from functools import wraps

import jwt
import pytz
from flask import current_app, g, jsonify, request

from hostbaku.models import User
from hostbaku.statements.access import Caller


class AuthError(Exception):
    """Authentication error with status code."""
    def __init__(self, message, status_code=401):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _jwt_settings():
    secret = current_app.config.get('JWT_SECRET')
    if not secret:
        raise AuthError('JWT secret not configured', 500)
    return secret, current_app.config.get('JWT_ALGORITHM', 'HS256')


def get_token_from_header():
    """
    Extract JWT token from Authorization header.

    Returns:
        str: Token string or None
    """
    auth_header = request.headers.get('Authorization', '')

    if auth_header.startswith('Bearer '):
        return auth_header[7:]

    # Browser downloads (PDF links) carry the token as a cookie
    return request.cookies.get('token')


def generate_token(user, expires_days=None):
    """
    Issue a signed token for a user.

    Args:
        user: User model instance
        expires_days: Lifetime in days (defaults to JWT_EXPIRES_DAYS)

    Returns:
        str: Encoded JWT
    """
    secret, algorithm = _jwt_settings()
    if expires_days is None:
        expires_days = current_app.config.get('JWT_EXPIRES_DAYS', 7)

    payload = {
        'sub': str(user.id),
        'email': user.email,
        'role': user.role,
        'exp': datetime.now(pytz.UTC) + timedelta(days=expires_days),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token):
    """
    Decode and validate JWT token.

    Args:
        token: JWT token string

    Returns:
        dict: Decoded payload

    Raises:
        AuthError: If token is invalid
    """
    secret, algorithm = _jwt_settings()

    try:
        return jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthError('Token has expired')
    except jwt.InvalidTokenError:
        raise AuthError('Invalid token')


def authenticate():
    """
    Resolve the request's token to an active user.

    Returns:
        Caller for the authenticated user

    Raises:
        AuthError: missing token, bad token, unknown or inactive user
    """
    token = get_token_from_header()
    if not token:
        raise AuthError('Missing authentication token')

    payload = decode_token(token)
    try:
        user_id = int(payload.get('sub'))
    except (TypeError, ValueError):
        raise AuthError('Invalid token')

    session = current_app.get_db_session()
    try:
        user = session.get(User, user_id)
        if user is None or not user.is_active:
            raise AuthError('User not found or inactive')
        return Caller(user_id=user.id, role=user.role, email=user.email, name=user.name)
    finally:
        session.close()


def _audit_auth_failure(error):
    from hostbaku.utils.audit import audit_log, AuditEvent
    audit_log(
        AuditEvent.AUTH_FAILED,
        f"{request.method} {request.path}: {error.message}",
        level='WARNING',
    )


def require_role(allowed_roles):
    """
    Decorator factory to require specific roles.

    Usage:
        @bp.route('/api/admin-only')
        @require_role(['admin'])
        def admin_route():
            ...
    """
    if isinstance(allowed_roles, str):
        allowed_roles = [allowed_roles]

    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            try:
                caller = authenticate()
            except AuthError as e:
                _audit_auth_failure(e)
                return jsonify({'success': False, 'error': e.message}), e.status_code

            g.current_user = caller
            if caller.role not in allowed_roles:
                from hostbaku.utils.audit import audit_log, AuditEvent
                audit_log(
                    AuditEvent.ACCESS_DENIED,
                    f"Role '{caller.role}' denied on {request.method} {request.path}",
                    level='WARNING',
                )
                return jsonify({
                    'success': False,
                    'error': 'Forbidden: Insufficient permissions',
                }), 403

            return f(*args, **kwargs)

        return decorated
    return decorator


def init_auth(app):
    """
    Initialize authentication for Flask app.
    Adds the AuthError handler.

    Args:
        app: Flask application
    """
    @app.errorhandler(AuthError)
    def handle_auth_error(error):
        return jsonify({'success': False, 'error': error.message}), error.status_code
