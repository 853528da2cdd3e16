"""
Access and visibility rules for owner statements.

All checks are pure functions of the caller and the resource. They are
evaluated on every request; nothing is cached between calls.
"""

from dataclasses import dataclass
from typing import Optional

from hostbaku.statements.errors import Forbidden

ROLE_ADMIN = 'admin'
ROLE_OWNER = 'owner'


@dataclass(frozen=True)
class Caller:
    """Authenticated identity supplied by the authentication layer."""
    user_id: int
    role: str
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_owner(self) -> bool:
        return self.role == ROLE_OWNER


def ensure_admin(caller: Caller) -> None:
    if not caller.is_admin:
        raise Forbidden()


# Generation, publishing and notes editing are admin-only.
ensure_can_generate = ensure_admin
ensure_can_publish = ensure_admin
ensure_can_edit = ensure_admin


def ensure_can_list(caller: Caller) -> None:
    """Admins and owners may list statements; cleaners may not."""
    if not (caller.is_admin or caller.is_owner):
        raise Forbidden()


def can_view(caller: Caller, statement) -> bool:
    """
    Whether caller may see a statement.

    Owners need both: the property is currently theirs, and the statement
    is published. Drafts are admin-only.
    """
    if caller.is_admin:
        return True
    if not caller.is_owner:
        return False
    prop = statement.rental_property
    if prop is None or prop.owner_id != caller.user_id:
        return False
    return bool(statement.published)


def ensure_can_view(caller: Caller, statement) -> None:
    if not can_view(caller, statement):
        raise Forbidden()
