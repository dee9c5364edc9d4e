#!/usr/bin/env python
"""Put a resolved or closed ticket back to open, in place.

This is the administrative repair path; customers reopen through the API,
which files a new linked ticket instead.

Usage:
    python backend/scripts/unresolve_ticket.py 1042
    python backend/scripts/unresolve_ticket.py 1042 --dry-run
"""
from __future__ import annotations
import os, sys, argparse

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from vansupport import create_app, get_db  # type: ignore
from vansupport.services.ticket_lifecycle import find_ticket_by_number, unresolve_ticket


def parse_args():
    p = argparse.ArgumentParser(description="Reset a resolved/closed ticket to open")
    p.add_argument('ticket_number', type=int)
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        ticket = find_ticket_by_number(session, args.ticket_number)
        if ticket is None:
            print(f"[ERROR] Ticket #{args.ticket_number} not found")
            sys.exit(1)
        print(f"Ticket #{ticket.ticket_number}: {ticket.subject} [{ticket.status}]")
        try:
            changed = unresolve_ticket(session, ticket)
        except ValueError as e:
            print(f"[ERROR] {e}")
            sys.exit(2)
        if not changed:
            print("[INFO] Ticket is already open; nothing to do")
            return
        if args.dry_run:
            session.rollback()
            print("[DRY-RUN] (rolled back) Ticket would be set to open")
        else:
            session.commit()
            print("[DONE] Ticket set to open; resolution fields cleared")


if __name__ == '__main__':
    main()
