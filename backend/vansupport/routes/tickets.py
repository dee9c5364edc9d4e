from __future__ import annotations
from flask import Blueprint, request, abort
from flask_jwt_extended import get_jwt
from sqlalchemy import case
from vansupport.decorators.auth import require_roles
from vansupport.decorators.audit import audit_log
from vansupport.constants.roles import RoleName, TECH_ROLES
from vansupport.constants.ticketing import PRIORITY_ORDER, PRIORITIES, AUTHOR_TECH
from vansupport.models.authz import User
from vansupport.models.ticket import Ticket
from vansupport.services import ticket_lifecycle as lifecycle
from vansupport.services.policy import current_user_id
from vansupport.utils.filters import apply_filters
from vansupport.utils.listing import paginate_query, build_list_payload
from vansupport.utils.persistence import commit_or_abort, get_or_404
from vansupport.utils.serialize import ticket_summary_json, ticket_detail_json, comment_json
from vansupport.utils.sorting import apply_multi_sort
from vansupport.utils.validation import validate_status
from vansupport import get_db

tickets_bp = Blueprint('tickets', __name__)

# urgent first, unknown values last
PRIORITY_RANK = case(PRIORITY_ORDER, value=Ticket.priority, else_=len(PRIORITY_ORDER))


def _actor_name() -> str:
    return get_jwt().get('name') or f'user {current_user_id()}'


def _prefetch_ticket(ticket_id: str):
    t = get_db().get(Ticket, ticket_id)
    if not t:
        return None
    return {'status': t.status, 'priority': t.priority, 'assigned_to': t.assigned_to}


def _queue_page(q):
    q = q.order_by(PRIORITY_RANK, Ticket.created_at.asc(), Ticket.ticket_number.asc())
    rows, pagination = paginate_query(q)
    return build_list_payload('tickets', [ticket_summary_json(t) for t in rows], pagination)


@tickets_bp.get('/unassigned')
@require_roles(*TECH_ROLES)
def unassigned():
    session = get_db()
    q = session.query(Ticket).filter(Ticket.assigned_to.is_(None), Ticket.status.in_(Ticket.ACTIVE_STATUSES))
    return _queue_page(q)


@tickets_bp.get('/my-tickets')
@require_roles(*TECH_ROLES)
def my_tickets():
    session = get_db()
    q = session.query(Ticket).filter(Ticket.assigned_to == current_user_id(), Ticket.status.in_(Ticket.ACTIVE_STATUSES))
    return _queue_page(q)


@tickets_bp.get('/all')
@require_roles(RoleName.ADMIN)
def all_tickets():
    session = get_db()
    q = session.query(Ticket)
    specs = {
        'status': {'validate': lambda v: v in Ticket.ALL_STATUSES, 'op': lambda q, v: q.filter(Ticket.status == v)},
        'priority': {'validate': lambda v: v in PRIORITIES, 'op': lambda q, v: q.filter(Ticket.priority == v)},
        'assigned_to': {'coerce': int, 'op': lambda q, v: q.filter(Ticket.assigned_to == v)},
        'owner_id': {'coerce': int, 'op': lambda q, v: q.filter(Ticket.owner_id == v)},
        'van_id': {'coerce': int, 'op': lambda q, v: q.filter(Ticket.van_id == v)},
    }
    q = apply_filters(q, specs, request.args)
    allowed = {
        'ticket_number': Ticket.ticket_number,
        'created_at': Ticket.created_at,
        'updated_at': Ticket.updated_at,
        'status': Ticket.status,
        'priority': PRIORITY_RANK,
    }
    q = apply_multi_sort(q, request.args.get('sort'), allowed, Ticket.ticket_number, default=[Ticket.created_at.desc()])
    rows, pagination = paginate_query(q)
    return build_list_payload('tickets', [ticket_summary_json(t) for t in rows], pagination)


@tickets_bp.get('/<string:ticket_id>')
@require_roles(*TECH_ROLES)
def ticket_detail(ticket_id: str):
    t = get_or_404(get_db(), Ticket, ticket_id, 'Ticket')
    return ticket_detail_json(t)


@tickets_bp.post('/<string:ticket_id>/assign')
@require_roles(*TECH_ROLES)
@audit_log('TICKET.ASSIGN', entity='Ticket', entity_id_key='id', diff_keys=['status', 'assigned_to'],
           pre_fetch=lambda a, kw: _prefetch_ticket(kw.get('ticket_id')), meta_keys=['ticket_number'])
def assign(ticket_id: str):
    session = get_db()
    t = get_or_404(session, Ticket, ticket_id, 'Ticket')
    data = request.json or {}
    target_id = data.get('assigned_to') or current_user_id()
    try:
        target_id = int(target_id)
    except (TypeError, ValueError):
        abort(400, description='assigned_to invalid')
    tech = session.get(User, target_id)
    if not tech or not tech.is_active:
        abort(400, description='assigned_to does not reference an active user')
    if not set(tech.role_names) & set(TECH_ROLES):
        abort(400, description='Tickets can only be assigned to managers or admins')
    lifecycle.assign_ticket(session, t, tech.id, _actor_name())
    commit_or_abort(session, 'assign ticket')
    return ticket_summary_json(t)


@tickets_bp.put('/<string:ticket_id>/status')
@require_roles(*TECH_ROLES)
@audit_log('TICKET.STATUS', entity='Ticket', entity_id_key='id', diff_keys=['status'],
           pre_fetch=lambda a, kw: _prefetch_ticket(kw.get('ticket_id')), meta_keys=['ticket_number'])
def update_status(ticket_id: str):
    session = get_db()
    t = get_or_404(session, Ticket, ticket_id, 'Ticket')
    data = request.json or {}
    target = validate_status(data.get('status'), Ticket.ALL_STATUSES)
    resolution = str(data.get('resolution') or '').strip()
    if target == Ticket.STATUS_RESOLVED and resolution:
        lifecycle.resolve_ticket(session, t, resolution, AUTHOR_TECH, _actor_name(), author_user_id=current_user_id())
    else:
        lifecycle.change_status(session, t, target, AUTHOR_TECH, changed_by=_actor_name(), reason=data.get('reason'))
    commit_or_abort(session, 'update ticket status')
    return ticket_summary_json(t)


@tickets_bp.post('/<string:ticket_id>/comments')
@require_roles(*TECH_ROLES)
def add_comment(ticket_id: str):
    session = get_db()
    t = get_or_404(session, Ticket, ticket_id, 'Ticket')
    data = request.json or {}
    text = str(data.get('comment_text') or '').strip()
    if not text:
        abort(400, description='comment_text required')
    c = lifecycle.add_comment(session, t, text, AUTHOR_TECH, _actor_name(),
                              author_user_id=current_user_id(), is_resolution=bool(data.get('is_resolution')))
    commit_or_abort(session, 'add comment')
    return comment_json(c), 201


@tickets_bp.put('/<string:ticket_id>/priority')
@require_roles(*TECH_ROLES)
@audit_log('TICKET.PRIORITY', entity='Ticket', entity_id_key='id', diff_keys=['priority'],
           pre_fetch=lambda a, kw: _prefetch_ticket(kw.get('ticket_id')), meta_keys=['ticket_number'])
def update_priority(ticket_id: str):
    session = get_db()
    t = get_or_404(session, Ticket, ticket_id, 'Ticket')
    data = request.json or {}
    lifecycle.update_priority(session, t, data.get('priority'), _actor_name())
    commit_or_abort(session, 'update ticket priority')
    return ticket_summary_json(t)
