from __future__ import annotations
from typing import Iterable, List, Set
from flask import abort
from flask_jwt_extended import get_jwt, get_jwt_identity
from sqlalchemy import select
from vansupport.models.authz import User, UserRole, Role
from vansupport.constants.roles import RoleName, role_permissions
from vansupport import get_db


def current_roles() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('roles', []))


def current_user_id() -> int:
    return int(get_jwt_identity())


def has_role(name) -> bool:
    return _role_value(name) in current_roles()


def has_any_role(*names) -> bool:
    roles = current_roles()
    return any(_role_value(n) in roles for n in names)


def has_any_permission(*codes: str) -> bool:
    perms = set(get_jwt().get('perms', []))
    return any(c in perms for c in codes)


def _role_value(name) -> str:
    return name.value if isinstance(name, RoleName) else str(name)


def compute_effective_roles(user_id: int):
    """Role names plus the union of their permission lists, as carried in the token."""
    session = get_db()
    rows = session.execute(
        select(Role).join(UserRole, UserRole.role_id == Role.id).where(UserRole.user_id == user_id)
    ).scalars().all()
    names = sorted(r.name for r in rows)
    perms = set(role_permissions(names))
    for r in rows:
        perms.update(r.permissions or [])
    return {'roles': names, 'perms': sorted(perms)}


def resolve_roles(session, names: Iterable[str]) -> List[Role]:
    """Map role names to Role rows; unknown names are a 400."""
    names = set(names or [])
    if not names:
        return []
    roles = session.execute(select(Role).where(Role.name.in_(list(names)))).scalars().all()
    missing = names - {r.name for r in roles}
    if missing:
        abort(400, description=f'Unknown roles: {sorted(missing)}')
    return roles


def count_admin_users(session) -> int:
    admin = session.execute(select(Role).where(Role.name == RoleName.ADMIN.value)).scalar_one_or_none()
    if not admin:
        return 0
    return len(session.execute(select(UserRole.user_id).where(UserRole.role_id == admin.id)).scalars().all())


def assert_not_removing_last_admin(session, target: User, new_role_names: Set[str]):
    """Keep at least one admin account after replacing target's roles or deleting it."""
    if RoleName.ADMIN.value in new_role_names:
        return
    if RoleName.ADMIN.value in target.role_names and count_admin_users(session) <= 1:
        abort(400, description='Cannot remove the last admin')
