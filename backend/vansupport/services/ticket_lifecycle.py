"""Ticket lifecycle: creation, comments, status changes, resolve, reopen.

All functions take the caller's session and leave the commit to the caller,
so an endpoint either persists the whole change (status + system comment) or
nothing. Transition checks run before any attribute is touched.

Reopening is a fork: a resolved or closed ticket is never moved back to open
by the public flow. A new ticket is filed that points at the original through
reopened_from_id, and the original keeps its terminal status and resolution.
Only the administrative unresolve_ticket() maintenance path mutates a ticket
back to open in place.
"""
from __future__ import annotations
from typing import Any, Dict, Optional
from flask import abort, current_app
from sqlalchemy import select, func

from vansupport.constants.ticketing import AUTHOR_SYSTEM, AUTHOR_TYPES, DEFAULT_PRIORITY, PRIORITIES
from vansupport.models.category import TicketCategory
from vansupport.models.owner import Owner
from vansupport.models.ticket import Ticket, utcnow
from vansupport.models.ticket_comment import TicketComment
from vansupport.models.van import Van
from vansupport.utils.fsm import TransitionValidator
from vansupport.utils.validation import validate_status, SUBJECT_MAX, DESCRIPTION_MAX

TICKET_FSM = TransitionValidator({
    Ticket.STATUS_OPEN: {Ticket.STATUS_ASSIGNED, Ticket.STATUS_IN_PROGRESS, Ticket.STATUS_CANCELLED, Ticket.STATUS_RESOLVED},
    Ticket.STATUS_ASSIGNED: {Ticket.STATUS_IN_PROGRESS, Ticket.STATUS_WAITING_CUSTOMER, Ticket.STATUS_CANCELLED, Ticket.STATUS_RESOLVED},
    Ticket.STATUS_IN_PROGRESS: {Ticket.STATUS_WAITING_CUSTOMER, Ticket.STATUS_CANCELLED, Ticket.STATUS_RESOLVED},
    Ticket.STATUS_WAITING_CUSTOMER: {Ticket.STATUS_IN_PROGRESS, Ticket.STATUS_RESOLVED},
    Ticket.STATUS_RESOLVED: {Ticket.STATUS_CLOSED},
    Ticket.STATUS_CLOSED: set(),
    Ticket.STATUS_CANCELLED: set(),
})

REOPENABLE_STATUSES = Ticket.RESOLVED_STATUSES
SYSTEM_AUTHOR_NAME = 'System'


def next_ticket_number(session) -> int:
    current = session.execute(select(func.max(Ticket.ticket_number))).scalar()
    return (current or 0) + 1


def find_ticket_by_number(session, ticket_number: int) -> Optional[Ticket]:
    return session.execute(select(Ticket).where(Ticket.ticket_number == ticket_number)).scalar_one_or_none()


def _resolve_owner(session, fields: Dict[str, Any]) -> Optional[Owner]:
    owner_id = fields.get('owner_id')
    if owner_id:
        owner = session.get(Owner, int(owner_id))
        if owner is None:
            abort(400, description='owner_id does not reference an existing owner')
        return owner
    phone = fields.get('phone')
    if not phone:
        return None
    owner = session.execute(select(Owner).where(Owner.phone == phone).order_by(Owner.id)).scalars().first()
    if owner is None and fields.get('owner_name'):
        owner = Owner(name=fields['owner_name'], phone=phone, email=fields.get('email'))
        session.add(owner)
        session.flush()
    return owner


def add_comment(session, ticket: Ticket, text: str, author_type: str, author_name: str,
                author_user_id: Optional[int] = None, is_resolution: bool = False) -> TicketComment:
    validate_status(author_type, AUTHOR_TYPES, 'author_type')
    comment = TicketComment(
        comment_text=text,
        author_type=author_type,
        author_name=author_name,
        author_user_id=author_user_id,
        is_resolution=bool(is_resolution),
    )
    # through the relationship so an already loaded ticket.comments stays current
    ticket.comments.append(comment)
    session.add(comment)
    return comment


def _system_comment(session, ticket: Ticket, text: str) -> TicketComment:
    return add_comment(session, ticket, text, AUTHOR_SYSTEM, SYSTEM_AUTHOR_NAME)


def create_ticket(session, fields: Dict[str, Any], created_by_type: str, check_van_owner: bool = True) -> Ticket:
    """File a new open ticket. `fields` must already be validated.

    check_van_owner=False skips the van-belongs-to-owner rule; a fork keeps the
    original's owner and van even if the van has since changed hands.
    """
    owner = _resolve_owner(session, fields)
    van_id = fields.get('van_id')
    if van_id:
        van = session.get(Van, int(van_id))
        if van is None:
            abort(400, description='van_id does not reference an existing van')
        if check_van_owner and owner is not None and van.owner_id is not None and van.owner_id != owner.id:
            abort(400, description='van does not belong to the selected owner')
    category_id = fields.get('category_id')
    if category_id and session.get(TicketCategory, int(category_id)) is None:
        abort(400, description='category_id does not reference an existing category')

    ticket = Ticket(
        ticket_number=next_ticket_number(session),
        owner_id=owner.id if owner else None,
        van_id=int(van_id) if van_id else None,
        category_id=int(category_id) if category_id else None,
        owner_name=fields.get('owner_name') or (owner.name if owner else None),
        phone=fields.get('phone') or (owner.phone if owner else None),
        email=fields.get('email') or (owner.email if owner else None),
        subject=fields['subject'],
        description=fields['description'],
        priority=fields.get('priority') or DEFAULT_PRIORITY,
        urgency=fields.get('urgency'),
        status=Ticket.STATUS_OPEN,
        reopened_from_id=fields.get('reopened_from_id'),
        created_at=utcnow(),
    )
    session.add(ticket)
    session.flush()
    _system_comment(session, ticket, f'Ticket created by {created_by_type}')
    current_app.logger.info('Ticket #%s filed by %s', ticket.ticket_number, created_by_type)
    return ticket


def change_status(session, ticket: Ticket, target: str, changed_by_type: str,
                  changed_by: Optional[str] = None, reason: Optional[str] = None) -> Ticket:
    validate_status(target, Ticket.ALL_STATUSES)
    TICKET_FSM.assert_can_transition(ticket.status, target)
    previous = ticket.status
    ticket.status = target
    if target == Ticket.STATUS_RESOLVED:
        ticket.resolved_at = utcnow()
        ticket.resolved_by = changed_by or changed_by_type
    text = f'Status changed from {previous} to {target} by {changed_by or changed_by_type}'
    if reason:
        text += f': {reason}'
    _system_comment(session, ticket, text)
    current_app.logger.info('Ticket #%s %s -> %s', ticket.ticket_number, previous, target)
    return ticket


def resolve_ticket(session, ticket: Ticket, resolution: str, resolved_by_type: str,
                   author_name: str, author_user_id: Optional[int] = None) -> Ticket:
    TICKET_FSM.assert_can_transition(ticket.status, Ticket.STATUS_RESOLVED)
    add_comment(session, ticket, resolution, resolved_by_type, author_name,
                author_user_id=author_user_id, is_resolution=True)
    ticket.resolution = resolution
    reason = 'Customer marked as resolved' if resolved_by_type == 'customer' else None
    return change_status(session, ticket, Ticket.STATUS_RESOLVED, resolved_by_type,
                         changed_by=author_name, reason=reason)


def reopen_ticket(session, original: Ticket, reason: str, reopened_by_name: str) -> Ticket:
    """Fork a resolved/closed ticket into a new open one; the original is left as is."""
    if original.status not in REOPENABLE_STATUSES:
        abort(400, description=f'Only resolved or closed tickets can be reopened (current status: {original.status})')
    prefix = 'Reopened: '
    subject = original.subject
    if not subject.startswith(prefix):
        subject = (prefix + subject)[:SUBJECT_MAX]
    description = (
        f'Reopened from ticket #{original.ticket_number} by {reopened_by_name}.\n\n'
        f'Reason: {reason}\n\nOriginal description:\n{original.description}'
    )[:DESCRIPTION_MAX]
    fork = create_ticket(session, {
        'owner_id': original.owner_id,
        'van_id': original.van_id,
        'category_id': original.category_id,
        'owner_name': original.owner_name,
        'phone': original.phone,
        'email': original.email,
        'subject': subject,
        'description': description,
        'priority': original.priority,
        'urgency': original.urgency,
        'reopened_from_id': original.id,
    }, created_by_type='customer', check_van_owner=False)
    _system_comment(session, fork, f'Reopened from ticket #{original.ticket_number} by {reopened_by_name}')
    add_comment(session, fork, reason, 'customer', reopened_by_name)
    _system_comment(session, original, f'Reopened by {reopened_by_name} as ticket #{fork.ticket_number}')
    current_app.logger.info('Ticket #%s reopened as #%s', original.ticket_number, fork.ticket_number)
    return fork


def assign_ticket(session, ticket: Ticket, tech_user_id: int, assigned_by_name: str) -> Ticket:
    if ticket.status not in Ticket.ACTIVE_STATUSES:
        abort(400, description=f'Cannot assign a {ticket.status} ticket')
    if ticket.status == Ticket.STATUS_OPEN:
        TICKET_FSM.assert_can_transition(ticket.status, Ticket.STATUS_ASSIGNED)
    ticket.assigned_to = tech_user_id
    session.expire(ticket, ['assignee'])
    if ticket.status == Ticket.STATUS_OPEN:
        change_status(session, ticket, Ticket.STATUS_ASSIGNED, 'tech', changed_by=assigned_by_name)
    else:
        _system_comment(session, ticket, f'Ticket reassigned by {assigned_by_name}')
    current_app.logger.info('Ticket #%s assigned to user %s', ticket.ticket_number, tech_user_id)
    return ticket


def unresolve_ticket(session, ticket: Ticket) -> bool:
    """Administrative repair: put a resolved/closed ticket back to open in place.

    Clears the resolution fields so they stay consistent with the status.
    Returns False when the ticket is already open (nothing to do).
    """
    if ticket.status == Ticket.STATUS_OPEN:
        return False
    if ticket.status not in REOPENABLE_STATUSES:
        raise ValueError(f'Ticket #{ticket.ticket_number} is {ticket.status}; only resolved or closed tickets can be unresolved')
    previous = ticket.status
    ticket.status = Ticket.STATUS_OPEN
    ticket.resolution = None
    ticket.resolved_at = None
    ticket.resolved_by = None
    _system_comment(session, ticket, f'Status reset from {previous} to open by an administrator')
    return True


def restore_resolution_from_comment(session, ticket: Ticket) -> Optional[TicketComment]:
    """Copy the newest resolution comment into ticket.resolution; None if there is none."""
    if ticket.status not in Ticket.RESOLVED_STATUSES:
        raise ValueError(f'Ticket #{ticket.ticket_number} is {ticket.status}; resolution text only applies to resolved or closed tickets')
    comment = session.execute(
        select(TicketComment)
        .where(TicketComment.ticket_id == ticket.id, TicketComment.is_resolution.is_(True))
        .order_by(TicketComment.created_at.desc())
        .limit(1)
    ).scalar_one_or_none()
    if comment is not None:
        ticket.resolution = comment.comment_text
    return comment


def update_priority(session, ticket: Ticket, priority: str, changed_by: str) -> Ticket:
    validate_status(priority, PRIORITIES, 'priority')
    if ticket.priority == priority:
        return ticket
    previous = ticket.priority
    ticket.priority = priority
    _system_comment(session, ticket, f'Priority changed from {previous} to {priority} by {changed_by}')
    return ticket
