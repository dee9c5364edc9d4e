#!/usr/bin/env python
"""Print a quick health report of the ticket tables.

Usage:
    python backend/scripts/diagnose_tickets.py
    python backend/scripts/diagnose_tickets.py --recent 20
"""
from __future__ import annotations
import os, sys, argparse
from sqlalchemy import select, func

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from vansupport import create_app, get_db  # type: ignore
from vansupport.models.authz import User, UserRole
from vansupport.models.ticket import Ticket


def parse_args():
    p = argparse.ArgumentParser(description="Summarize ticket counts, statuses and role-less users")
    p.add_argument('--recent', type=int, default=10, help='How many of the newest tickets to list')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        total = session.execute(select(func.count(Ticket.id))).scalar_one()
        assigned = session.execute(select(func.count(Ticket.id)).where(Ticket.assigned_to.is_not(None))).scalar_one()
        print(f"Tickets: {total} total, {assigned} assigned, {total - assigned} unassigned")

        print("\nBy status:")
        rows = session.execute(select(Ticket.status, func.count(Ticket.id)).group_by(Ticket.status).order_by(Ticket.status)).all()
        for status, count in rows:
            print(f"  {status.ljust(18)} {count}")

        print(f"\nNewest {args.recent}:")
        recent = session.execute(select(Ticket).order_by(Ticket.created_at.desc()).limit(args.recent)).scalars().all()
        for t in recent:
            assignee = t.assignee.display_name if t.assignee else '-'
            print(f"  #{t.ticket_number} [{t.status}] {t.subject[:50]} (assigned: {assignee})")

        # these accounts can log in but see nothing
        roleless = session.execute(
            select(User).where(~select(UserRole.id).where(UserRole.user_id == User.id).exists()).order_by(User.email)
        ).scalars().all()
        print(f"\nUsers without roles: {len(roleless)}")
        for u in roleless:
            print(f"  {u.email}")


if __name__ == '__main__':
    main()
