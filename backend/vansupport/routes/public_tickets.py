from __future__ import annotations
"""Customer-facing ticket endpoints.

No session is required: the ticket UUID handed out at creation time is the
credential for everything under /public/<uuid>.
"""
from datetime import datetime, timezone
from flask import Blueprint, request, abort
from werkzeug.exceptions import HTTPException
from vansupport.decorators.audit import audit_log
from vansupport.constants.ticketing import AUTHOR_CUSTOMER, PRIORITIES, URGENCIES, DEFAULT_PRIORITY
from vansupport.models.ticket import Ticket
from vansupport.models.ticket_attachment import TicketAttachment
from vansupport.models.ticket_comment import TicketComment
from vansupport.services import ticket_lifecycle as lifecycle
from vansupport.services.storage import store_upload, discard_upload
from vansupport.utils.persistence import commit_or_abort, get_or_404
from vansupport.utils.serialize import ticket_detail_json, comment_json, attachment_json, iso
from vansupport.utils.validation import (
    validate_name, validate_phone, validate_email, validate_subject, validate_description,
    validate_status, collect_errors,
)
from vansupport import get_db

public_bp = Blueprint('public_tickets', __name__)

# customers cannot add to these; closed tickets are reopened instead
NO_CUSTOMER_COMMENT_STATUSES = (Ticket.STATUS_CLOSED, Ticket.STATUS_CANCELLED)
REOPEN_REASON_MAX = 500


def _customer_name(data, t: Ticket, key: str = 'author_name') -> str:
    return str(data.get(key) or '').strip() or t.owner_name or 'Customer'


def _as_utc(ts: datetime) -> datetime:
    # SQLite hands back naive values for timezone-aware columns
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts.astimezone(timezone.utc)


def _parse_since(raw: str) -> datetime:
    try:
        return _as_utc(datetime.fromisoformat(raw.replace('Z', '+00:00')))
    except ValueError:
        abort(400, description='since must be an ISO 8601 timestamp')


@public_bp.post('/create')
@audit_log('TICKET.CREATE', entity='Ticket', entity_id_key='ticket_id', meta_keys=['ticket_number', 'priority'])
def create_ticket():
    session = get_db()
    data = request.json or {}
    has_owner = bool(data.get('owner_id'))
    checks = {
        'subject': validate_subject(data.get('subject')),
        'description': validate_description(data.get('description')),
        'email': validate_email(data.get('email')),
    }
    if not has_owner or data.get('owner_name'):
        checks['owner_name'] = validate_name(data.get('owner_name'))
    if not has_owner or data.get('phone'):
        checks['phone'] = validate_phone(data.get('phone'))
    collect_errors(checks)
    priority = validate_status(data.get('priority') or DEFAULT_PRIORITY, PRIORITIES, 'priority')
    urgency = data.get('urgency') or None
    if urgency is not None:
        validate_status(urgency, URGENCIES, 'urgency')
    phone_check = checks.get('phone')
    fields = {
        'owner_id': data.get('owner_id'),
        'van_id': data.get('van_id'),
        'category_id': data.get('category_id'),
        'owner_name': str(data.get('owner_name') or '').strip() or None,
        'phone': (phone_check.formatted or str(data['phone']).strip()) if phone_check else None,
        'email': str(data.get('email') or '').strip() or None,
        'subject': str(data['subject']).strip(),
        'description': str(data['description']).strip(),
        'priority': priority,
        'urgency': urgency,
    }
    try:
        for key in ('owner_id', 'van_id', 'category_id'):
            if fields[key]:
                fields[key] = int(fields[key])
    except (TypeError, ValueError):
        abort(400, description=f'{key} invalid')
    t = lifecycle.create_ticket(session, fields, created_by_type=AUTHOR_CUSTOMER)
    commit_or_abort(session, 'create ticket')
    return {
        'ticket_id': t.id,
        'ticket_number': t.ticket_number,
        'subject': t.subject,
        'status': t.status,
        'priority': t.priority,
        'urgency': t.urgency,
        'created_at': iso(t.created_at),
        'owner_name': t.owner_name,
        'phone': t.phone,
        'email': t.email,
    }, 201


@public_bp.get('/public/<string:ticket_id>')
def public_detail(ticket_id: str):
    t = get_or_404(get_db(), Ticket, ticket_id, 'Ticket')
    data = ticket_detail_json(t)
    data.pop('assigned_to', None)
    return data


@public_bp.get('/public/<string:ticket_id>/comments')
def public_comments(ticket_id: str):
    """Comment feed for polling; `since` limits it to newer comments."""
    t = get_or_404(get_db(), Ticket, ticket_id, 'Ticket')
    comments = list(t.comments)
    since = request.args.get('since')
    if since:
        cutoff = _parse_since(since)
        comments = [c for c in comments if c.created_at and _as_utc(c.created_at) > cutoff]
    return {'ticket_id': t.id, 'status': t.status, 'comments': [comment_json(c) for c in comments]}


@public_bp.post('/public/<string:ticket_id>/comments')
def public_add_comment(ticket_id: str):
    session = get_db()
    t = get_or_404(session, Ticket, ticket_id, 'Ticket')
    if t.status in NO_CUSTOMER_COMMENT_STATUSES:
        abort(400, description=f'Cannot comment on a {t.status} ticket')
    data = request.json or {}
    text = str(data.get('comment_text') or '').strip()
    if not text:
        abort(400, description='comment_text required')
    c = lifecycle.add_comment(session, t, text, AUTHOR_CUSTOMER, _customer_name(data, t))
    commit_or_abort(session, 'add comment')
    return comment_json(c), 201


@public_bp.put('/public/<string:ticket_id>/resolve')
@audit_log('TICKET.RESOLVE', entity='Ticket', entity_id_arg='ticket_id', meta_keys=['ticket_number'])
def public_resolve(ticket_id: str):
    session = get_db()
    t = get_or_404(session, Ticket, ticket_id, 'Ticket')
    data = request.json or {}
    resolution = str(data.get('resolution') or '').strip()
    if not resolution:
        abort(400, description='resolution required')
    lifecycle.resolve_ticket(session, t, resolution, AUTHOR_CUSTOMER, _customer_name(data, t))
    commit_or_abort(session, 'resolve ticket')
    return ticket_detail_json(t)


@public_bp.post('/public/<string:ticket_id>/reopen')
@audit_log('TICKET.REOPEN', entity='Ticket', entity_id_key='original_ticket_id',
           meta_builder=lambda data, rv, a, kw: {'new_ticket_id': data.get('new_ticket_id'), 'new_ticket_number': data.get('new_ticket_number')})
def public_reopen(ticket_id: str):
    session = get_db()
    original = get_or_404(session, Ticket, ticket_id, 'Ticket')
    data = request.json or {}
    reason = str(data.get('reason') or '').strip()
    if not reason:
        abort(400, description='reason required')
    if len(reason) > REOPEN_REASON_MAX:
        abort(400, description=f'reason must be at most {REOPEN_REASON_MAX} characters')
    fork = lifecycle.reopen_ticket(session, original, reason, _customer_name(data, original, 'reopened_by_name'))
    commit_or_abort(session, 'reopen ticket')
    return {
        'new_ticket_id': fork.id,
        'new_ticket_number': fork.ticket_number,
        'original_ticket_id': original.id,
    }, 201


@public_bp.post('/public/<string:ticket_id>/attachments')
def public_upload(ticket_id: str):
    session = get_db()
    t = get_or_404(session, Ticket, ticket_id, 'Ticket')
    upload = request.files.get('file')
    if upload is None:
        abort(400, description='file required')
    comment_id = request.form.get('comment_id') or None
    if comment_id:
        c = session.get(TicketComment, comment_id)
        if not c or c.ticket_id != t.id:
            abort(400, description='comment_id does not belong to this ticket')
    stored = store_upload(upload, t.id)
    a = TicketAttachment(
        comment_id=comment_id,
        file_name=stored.file_name,
        mime_type=stored.mime_type,
        size_bytes=stored.size_bytes,
        public_url=stored.public_url,
        uploaded_by_type=AUTHOR_CUSTOMER,
    )
    t.attachments.append(a)
    session.add(a)
    try:
        commit_or_abort(session, 'save attachment')
    except HTTPException:
        discard_upload(stored)
        raise
    return attachment_json(a), 201
