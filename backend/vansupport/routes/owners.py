from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import func, or_
from vansupport.decorators.auth import require_login, require_roles
from vansupport.decorators.audit import audit_log
from vansupport.constants.roles import TECH_ROLES
from vansupport.models.owner import Owner
from vansupport.models.van import Van
from vansupport.services.dependencies import owner_dependencies
from vansupport.utils.listing import paginate_query, build_list_payload
from vansupport.utils.persistence import commit_or_abort, get_or_404
from vansupport.utils.serialize import owner_json, van_json
from vansupport.utils.validation import validate_name, validate_phone, validate_email, collect_errors
from vansupport import get_db

owners_bp = Blueprint('owners', __name__)

OWNER_FIELDS = ('name', 'company', 'phone', 'email')


def _van_count(session, owner_id: int) -> int:
    return session.query(func.count(Van.id)).filter(Van.owner_id == owner_id).scalar()


def _prefetch_owner(owner_id: int):
    o = get_db().get(Owner, owner_id)
    return {k: getattr(o, k) for k in OWNER_FIELDS} if o else None


def _clean_owner_fields(data: dict, partial: bool) -> dict:
    """Validate submitted owner fields; phone is stored in canonical form."""
    checks = {}
    if not partial or 'name' in data:
        checks['name'] = validate_name(data.get('name'))
    if not partial or 'phone' in data:
        checks['phone'] = validate_phone(data.get('phone'), strict=True)
    if 'email' in data:
        checks['email'] = validate_email(data.get('email'))
    collect_errors(checks)
    out = {}
    if 'name' in checks:
        out['name'] = str(data['name']).strip()
    if 'phone' in checks:
        out['phone'] = checks['phone'].formatted
    if 'email' in data:
        out['email'] = str(data.get('email') or '').strip() or None
    if 'company' in data:
        out['company'] = str(data.get('company') or '').strip() or None
    return out


@owners_bp.get('')
@require_login()
def list_owners():
    session = get_db()
    van_count = func.count(Van.id)
    q = (session.query(Owner, van_count)
         .outerjoin(Van, Van.owner_id == Owner.id)
         .group_by(Owner.id)
         .order_by(Owner.name.asc(), Owner.id.asc()))
    search = (request.args.get('search') or '').strip()
    if search:
        like = f'%{search}%'
        q = q.filter(or_(Owner.name.ilike(like), Owner.company.ilike(like), Owner.phone.ilike(like)))
    rows, pagination = paginate_query(q)
    return build_list_payload('owners', [owner_json(o, count) for o, count in rows], pagination)


@owners_bp.get('/<int:owner_id>')
@require_login()
def get_owner(owner_id: int):
    session = get_db()
    o = get_or_404(session, Owner, owner_id, 'Owner')
    data = owner_json(o, _van_count(session, o.id))
    vans = session.query(Van).filter(Van.owner_id == o.id).order_by(Van.van_number).all()
    data['vans'] = [van_json(v) for v in vans]
    return data


@owners_bp.post('')
@require_roles(*TECH_ROLES)
@audit_log('OWNER.CREATE', entity='Owner', entity_id_key='id', meta_keys=['name', 'phone'])
def create_owner():
    session = get_db()
    fields = _clean_owner_fields(request.json or {}, partial=False)
    o = Owner(**fields)
    session.add(o)
    commit_or_abort(session, 'create owner')
    return owner_json(o, 0), 201


@owners_bp.put('/<int:owner_id>')
@require_roles(*TECH_ROLES)
@audit_log('OWNER.UPDATE', entity='Owner', entity_id_key='id', diff_keys=list(OWNER_FIELDS),
           pre_fetch=lambda a, kw: _prefetch_owner(kw.get('owner_id')))
def update_owner(owner_id: int):
    session = get_db()
    o = get_or_404(session, Owner, owner_id, 'Owner')
    fields = _clean_owner_fields(request.json or {}, partial=True)
    if not fields:
        abort(400, description='No updatable fields provided')
    for k, v in fields.items():
        setattr(o, k, v)
    commit_or_abort(session, 'update owner')
    return owner_json(o, _van_count(session, o.id))


@owners_bp.get('/<int:owner_id>/check-dependencies')
@require_login()
def check_dependencies(owner_id: int):
    session = get_db()
    get_or_404(session, Owner, owner_id, 'Owner')
    return owner_dependencies(session, owner_id)


@owners_bp.delete('/<int:owner_id>')
@require_roles(*TECH_ROLES)
@audit_log('OWNER.DELETE', entity='Owner', entity_id_arg='owner_id', meta_keys=['name'])
def delete_owner(owner_id: int):
    session = get_db()
    o = get_or_404(session, Owner, owner_id, 'Owner')
    deps = owner_dependencies(session, owner_id)
    if deps['hasDependencies']:
        abort(409, description=f"Cannot delete owner: {deps['message']}")
    name = o.name
    session.delete(o)
    commit_or_abort(session, 'delete owner')
    return {'deleted': True, 'id': owner_id, 'name': name}
