from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select, delete, update, func
from vansupport.decorators.auth import require_roles
from vansupport.decorators.audit import audit_log
from vansupport.constants.roles import RoleName
from vansupport.models.authz import User, Role, UserRole
from vansupport.models.ticket import Ticket
from vansupport.services.policy import resolve_roles, assert_not_removing_last_admin, current_user_id
from vansupport.utils.persistence import commit_or_abort, get_or_404
from vansupport.utils.serialize import user_json
from vansupport.utils.validation import validate_email
from vansupport import get_db

admin_bp = Blueprint('admin', __name__)

MIN_PASSWORD_LENGTH = 8


def _check_password(raw):
    if not raw or len(raw) < MIN_PASSWORD_LENGTH:
        abort(400, description=f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
    return raw


def _clean_email(session, raw, user_id: int = None) -> str:
    if not validate_email(raw, required=True).valid:
        abort(400, description='A valid email is required')
    email = raw.strip().lower()
    clash = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if clash and clash.id != user_id:
        abort(409, description='A user with this email already exists')
    return email


def _prefetch_user(user_id: int):
    u = get_db().get(User, user_id)
    if not u:
        return None
    return {'email': u.email, 'full_name': u.full_name, 'is_active': u.is_active, 'roles': u.role_names}


@admin_bp.get('/users')
@require_roles(RoleName.ADMIN)
def list_users():
    session = get_db()
    users = session.execute(select(User).order_by(User.email)).scalars().all()
    return [user_json(u) for u in users]


@admin_bp.post('/users')
@require_roles(RoleName.ADMIN)
@audit_log('USER.CREATE', entity='User', entity_id_key='id', meta_keys=['email', 'roles'])
def create_user():
    session = get_db()
    data = request.json or {}
    email = _clean_email(session, data.get('email'))
    password = _check_password(data.get('password'))
    roles = resolve_roles(session, data.get('roles') or [])
    user = User(email=email, full_name=str(data.get('full_name') or '').strip() or None, is_active=True)
    user.set_password(password)
    session.add(user)
    session.flush()
    for r in roles:
        session.add(UserRole(user_id=user.id, role_id=r.id))
    commit_or_abort(session, 'create user')
    session.refresh(user)
    return user_json(user), 201


@admin_bp.put('/users/<int:user_id>')
@require_roles(RoleName.ADMIN)
@audit_log('USER.UPDATE', entity='User', entity_id_key='id', diff_keys=['email', 'full_name', 'is_active'],
           pre_fetch=lambda a, kw: _prefetch_user(kw.get('user_id')))
def update_user(user_id: int):
    session = get_db()
    user = get_or_404(session, User, user_id, 'User')
    data = request.json or {}
    if 'email' in data:
        user.email = _clean_email(session, data.get('email'), user.id)
    if 'full_name' in data:
        user.full_name = str(data.get('full_name') or '').strip() or None
    if 'is_active' in data:
        active = bool(data.get('is_active'))
        if not active and user.id == current_user_id():
            abort(400, description='Cannot deactivate your own account')
        user.is_active = active
    commit_or_abort(session, 'update user')
    return user_json(user)


@admin_bp.put('/users/<int:user_id>/roles')
@require_roles(RoleName.ADMIN)
@audit_log('USER.ROLES.SET', entity='User', entity_id_key='id', diff_keys=['roles'],
           pre_fetch=lambda a, kw: _prefetch_user(kw.get('user_id')))
def set_user_roles(user_id: int):
    session = get_db()
    user = get_or_404(session, User, user_id, 'User')
    data = request.json or {}
    names = data.get('roles')
    if not isinstance(names, list):
        abort(400, description='roles must be a list of role names')
    roles = resolve_roles(session, names)
    assert_not_removing_last_admin(session, user, {r.name for r in roles})
    # Replace direct assignments
    session.execute(delete(UserRole).where(UserRole.user_id == user.id))
    for r in roles:
        session.add(UserRole(user_id=user.id, role_id=r.id))
    commit_or_abort(session, 'update user roles')
    session.refresh(user)
    return user_json(user)


@admin_bp.put('/users/<int:user_id>/password')
@require_roles(RoleName.ADMIN)
@audit_log('USER.PASSWORD.RESET', entity='User', entity_id_arg='user_id')
def reset_password(user_id: int):
    session = get_db()
    user = get_or_404(session, User, user_id, 'User')
    data = request.json or {}
    user.set_password(_check_password(data.get('password')))
    commit_or_abort(session, 'reset password')
    return {'id': user.id, 'message': 'Password updated'}


@admin_bp.delete('/users/<int:user_id>')
@require_roles(RoleName.ADMIN)
@audit_log('USER.DELETE', entity='User', entity_id_arg='user_id', meta_keys=['email'])
def delete_user(user_id: int):
    session = get_db()
    user = get_or_404(session, User, user_id, 'User')
    if user.id == current_user_id():
        abort(400, description='Cannot delete your own account')
    assert_not_removing_last_admin(session, user, set())
    email = user.email
    # their open work goes back to the unassigned queue
    session.execute(update(Ticket).where(Ticket.assigned_to == user.id).values(assigned_to=None))
    session.delete(user)
    commit_or_abort(session, 'delete user')
    return {'deleted': True, 'id': user_id, 'email': email}


@admin_bp.get('/roles')
@require_roles(RoleName.ADMIN)
def list_roles():
    session = get_db()
    counts = dict(session.execute(
        select(UserRole.role_id, func.count(UserRole.user_id)).group_by(UserRole.role_id)
    ).all())
    roles = session.execute(select(Role).order_by(Role.name)).scalars().all()
    return [
        {'id': r.id, 'name': r.name, 'description': r.description,
         'permissions': r.permissions or [], 'user_count': counts.get(r.id, 0)}
        for r in roles
    ]
