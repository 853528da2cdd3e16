"""
Role decorators for the statement endpoints.
"""

from hostbaku.auth.jwt_auth import require_role
from hostbaku.statements.access import ROLE_ADMIN, ROLE_OWNER


def admin_required(f):
    """Admin-only endpoint (generate, publish, edit, admin listing)."""
    return require_role([ROLE_ADMIN])(f)


def owner_required(f):
    """Owner-only endpoint (own statement listing and summary)."""
    return require_role([ROLE_OWNER])(f)


def statement_access_required(f):
    """
    Endpoint open to admins and owners.
    Per-statement visibility is still checked by the service layer.
    """
    return require_role([ROLE_ADMIN, ROLE_OWNER])(f)
