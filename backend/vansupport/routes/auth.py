from flask import Blueprint, request, abort, jsonify
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity, set_access_cookies, unset_jwt_cookies
from sqlalchemy import select
from vansupport.models.authz import User
from vansupport.models.ticket import utcnow
from vansupport import get_db
from vansupport.services.policy import compute_effective_roles
from vansupport.utils.persistence import commit_or_abort

auth_bp = Blueprint('auth', __name__)


@auth_bp.post('/login')
def login():
    data = request.json or {}
    email = str(data.get('email') or '').strip().lower()
    password = data.get('password')
    if not email or not password:
        abort(400, description='email & password required')
    session = get_db()
    user = session.execute(select(User).where(User.email==email)).scalar_one_or_none()
    if not user or not user.verify_password(password):
        abort(401, description='Invalid email or password')
    if not user.is_active:
        abort(403, description='Account is disabled')
    eff = compute_effective_roles(user.id)
    claims = {'roles': eff['roles'], 'perms': eff['perms'], 'name': user.display_name}
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(user.id), additional_claims=claims)
    user.last_login = utcnow()
    commit_or_abort(session, 'record login')
    resp = jsonify({
        'access_token': token,
        'user': {'id': user.id, 'email': user.email, 'full_name': user.full_name, 'roles': eff['roles']},
    })
    set_access_cookies(resp, token)
    return resp


@auth_bp.post('/logout')
def logout():
    resp = jsonify({'message': 'Logged out'})
    unset_jwt_cookies(resp)
    return resp


@auth_bp.get('/me')
@jwt_required()
def me():
    user_id = int(get_jwt_identity())
    session = get_db()
    user = session.execute(select(User).where(User.id==user_id)).scalar_one_or_none()
    if not user or not user.is_active:
        abort(401, description='Authentication required')
    eff = compute_effective_roles(user.id)
    return {
        'id': user.id,
        'email': user.email,
        'full_name': user.full_name,
        'roles': eff['roles'],
        'perms': eff['perms'],
    }
