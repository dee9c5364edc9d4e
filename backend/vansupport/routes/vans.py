from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select
from vansupport.decorators.auth import require_login, require_roles
from vansupport.decorators.audit import audit_log
from vansupport.constants.roles import TECH_ROLES
from vansupport.models.owner import Owner
from vansupport.models.van import Van
from vansupport.services.dependencies import van_dependencies
from vansupport.utils.filters import apply_filters
from vansupport.utils.listing import paginate_query, build_list_payload
from vansupport.utils.persistence import commit_or_abort, get_or_404
from vansupport.utils.serialize import van_json
from vansupport.utils.validation import validate_van_number, validate_make, validate_year, validate_vin, collect_errors
from vansupport import get_db

vans_bp = Blueprint('vans', __name__)

VAN_FIELDS = ('van_number', 'make', 'version', 'year', 'vin', 'owner_id')


def _prefetch_van(van_id: int):
    v = get_db().get(Van, van_id)
    return {k: getattr(v, k) for k in VAN_FIELDS} if v else None


def _clean_van_fields(session, data: dict, partial: bool, van_id: int = None) -> dict:
    checks = {}
    for field, check in (('van_number', validate_van_number), ('make', validate_make), ('year', validate_year)):
        if not partial or field in data:
            checks[field] = check(data.get(field))
    if 'vin' in data:
        checks['vin'] = validate_vin(data.get('vin'))
    collect_errors(checks)
    out = {}
    if 'van_number' in checks:
        out['van_number'] = checks['van_number'].formatted
        clash = session.execute(select(Van).where(Van.van_number == out['van_number'])).scalar_one_or_none()
        if clash and clash.id != van_id:
            abort(409, description=f"Van number {out['van_number']} already exists")
    if 'make' in checks:
        out['make'] = data['make']
    if 'year' in checks:
        out['year'] = int(data['year'])
    if 'vin' in data:
        out['vin'] = checks['vin'].formatted
    if 'version' in data:
        out['version'] = str(data.get('version') or '').strip() or None
    if 'owner_id' in data:
        owner_id = data.get('owner_id')
        if owner_id in (None, ''):
            out['owner_id'] = None
        else:
            try:
                owner_id = int(owner_id)
            except (TypeError, ValueError):
                abort(400, description='owner_id invalid')
            if session.get(Owner, owner_id) is None:
                abort(400, description='owner_id does not reference an existing owner')
            out['owner_id'] = owner_id
    return out


@vans_bp.get('')
@require_login()
def list_vans():
    session = get_db()
    q = session.query(Van)
    specs = {
        'owner_id': {'coerce': int, 'op': lambda q, v: q.filter(Van.owner_id == v)},
        'make': {'op': lambda q, v: q.filter(Van.make == v)},
        'search': {'op': lambda q, v: q.filter(Van.van_number.ilike(f'%{v}%'))},
    }
    q = apply_filters(q, specs, request.args)
    q = q.order_by(Van.van_number.asc(), Van.id.asc())
    rows, pagination = paginate_query(q)
    return build_list_payload('vans', [van_json(v) for v in rows], pagination)


@vans_bp.get('/<int:van_id>')
@require_login()
def get_van(van_id: int):
    return van_json(get_or_404(get_db(), Van, van_id, 'Van'))


@vans_bp.post('')
@require_roles(*TECH_ROLES)
@audit_log('VAN.CREATE', entity='Van', entity_id_key='id', meta_keys=['van_number', 'owner_id'])
def create_van():
    session = get_db()
    fields = _clean_van_fields(session, request.json or {}, partial=False)
    v = Van(**fields)
    session.add(v)
    commit_or_abort(session, 'create van')
    return van_json(v), 201


@vans_bp.put('/<int:van_id>')
@require_roles(*TECH_ROLES)
@audit_log('VAN.UPDATE', entity='Van', entity_id_key='id', diff_keys=list(VAN_FIELDS),
           pre_fetch=lambda a, kw: _prefetch_van(kw.get('van_id')))
def update_van(van_id: int):
    session = get_db()
    v = get_or_404(session, Van, van_id, 'Van')
    fields = _clean_van_fields(session, request.json or {}, partial=True, van_id=v.id)
    if not fields:
        abort(400, description='No updatable fields provided')
    for k, val in fields.items():
        setattr(v, k, val)
    if 'owner_id' in fields:
        session.expire(v, ['owner'])
    commit_or_abort(session, 'update van')
    return van_json(v)


@vans_bp.get('/<int:van_id>/check-dependencies')
@require_login()
def check_dependencies(van_id: int):
    session = get_db()
    get_or_404(session, Van, van_id, 'Van')
    return van_dependencies(session, van_id)


@vans_bp.delete('/<int:van_id>')
@require_roles(*TECH_ROLES)
@audit_log('VAN.DELETE', entity='Van', entity_id_arg='van_id', meta_keys=['van_number'])
def delete_van(van_id: int):
    session = get_db()
    v = get_or_404(session, Van, van_id, 'Van')
    deps = van_dependencies(session, van_id)
    if deps['hasDependencies']:
        abort(409, description=f"Cannot delete van: {deps['message']}")
    number = v.van_number
    session.delete(v)
    commit_or_abort(session, 'delete van')
    return {'deleted': True, 'id': van_id, 'van_number': number}
