from __future__ import annotations
"""Idempotent bootstrap data: role presets, ticket categories, first admin.

Used by scripts/seed_authz.py and by the test suite. Nothing here commits;
the caller owns the transaction.
"""
from typing import Optional
from sqlalchemy import select

from vansupport.constants.roles import ROLE_PRESETS, RoleName
from vansupport.constants.ticketing import DEFAULT_CATEGORIES
from vansupport.models.authz import Role, User, UserRole
from vansupport.models.category import TicketCategory


def ensure_roles(session) -> int:
    existing = {r.name: r for r in session.execute(select(Role)).scalars().all()}
    created = 0
    for name, preset in ROLE_PRESETS.items():
        role = existing.get(name)
        if role is None:
            session.add(Role(name=name, description=preset['description'], permissions=list(preset['permissions'])))
            created += 1
        elif sorted(role.permissions or []) != sorted(preset['permissions']):
            # presets are authoritative for the built-in roles
            role.permissions = list(preset['permissions'])
    session.flush()
    return created


def ensure_categories(session) -> int:
    existing = set(session.execute(select(TicketCategory.name)).scalars().all())
    created = 0
    for name, description in DEFAULT_CATEGORIES:
        if name not in existing:
            session.add(TicketCategory(name=name, description=description, is_active=True))
            created += 1
    session.flush()
    return created


def ensure_admin_user(session, email: str, password: str, full_name: Optional[str] = 'Administrator') -> Optional[User]:
    """Create the admin account if missing; returns the new user or None when it already exists."""
    email = email.strip().lower()
    if session.execute(select(User).where(User.email == email)).scalar_one_or_none():
        return None
    admin_role = session.execute(select(Role).where(Role.name == RoleName.ADMIN.value)).scalar_one()
    user = User(email=email, full_name=full_name, is_active=True)
    user.set_password(password)
    session.add(user)
    session.flush()
    session.add(UserRole(user_id=user.id, role_id=admin_role.id))
    session.flush()
    return user
