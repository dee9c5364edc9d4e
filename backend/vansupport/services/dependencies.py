from __future__ import annotations
"""Pre-delete dependency checks for owners and vans.

Deletion is check-then-delete without a lock: a ticket filed between the
check and the delete is not caught here.
"""
from typing import Any, Dict
from sqlalchemy import select, func

from vansupport.models.ticket import Ticket
from vansupport.models.van import Van


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


def _summary(ticket_count: int, van_count: int) -> Dict[str, Any]:
    parts = []
    if van_count:
        parts.append(_plural(van_count, 'van'))
    if ticket_count:
        parts.append(_plural(ticket_count, 'ticket'))
    has = bool(parts)
    return {
        'hasDependencies': has,
        'ticketCount': ticket_count,
        'vanCount': van_count,
        'message': f"Has {' and '.join(parts)}" if has else 'No dependencies',
    }


def owner_dependencies(session, owner_id: int) -> Dict[str, Any]:
    tickets = session.execute(select(func.count(Ticket.id)).where(Ticket.owner_id == owner_id)).scalar_one()
    vans = session.execute(select(func.count(Van.id)).where(Van.owner_id == owner_id)).scalar_one()
    return _summary(tickets, vans)


def van_dependencies(session, van_id: int) -> Dict[str, Any]:
    tickets = session.execute(select(func.count(Ticket.id)).where(Ticket.van_id == van_id)).scalar_one()
    return _summary(tickets, 0)
